"""LLM Provider interface — abstract base for all LLM backends.

Every provider implements ``generate_json``. The budget estimator calls
providers via dependency injection, so Gemini, Claude and GPT models are
interchangeable behind the same call.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class LLMConfig:
    """Immutable configuration for a single LLM call."""

    model: str = ""
    temperature: float = 0.2
    max_tokens: int = 512
    timeout_seconds: int = 30


@dataclass
class LLMResponse:
    """What a provider returns: the raw reply, the parsed object and token usage."""

    raw_text: str
    parsed_json: Optional[Dict[str, Any]] = None
    model: str = ""
    provider: str = ""
    input_tokens: int = 0
    output_tokens: int = 0


class LLMProvider(abc.ABC):
    """Abstract base class for LLM providers."""

    provider_name: str = "base"
    default_model: str = ""

    @abc.abstractmethod
    def generate_json(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        config: Optional[LLMConfig] = None,
        schema_hint: Optional[Dict[str, Any]] = None,
    ) -> LLMResponse:
        """Send a prompt and return a parsed JSON response.

        Parameters
        ----------
        system_prompt : str
            System-level instruction (persona, rules, output format).
        user_prompt : str
            User-level content (the project description).
        config : LLMConfig, optional
            Override default config for this call.
        schema_hint : dict, optional
            Expected JSON schema (for providers that support structured output).

        Returns
        -------
        LLMResponse
            Contains ``parsed_json`` (dict) and usage metadata.

        Raises
        ------
        LLMError
            On API failure, timeout, or invalid JSON. Calls are not retried.
        """
        ...

    def _default_config(self, config: Optional[LLMConfig]) -> LLMConfig:
        return config or LLMConfig()

    def _model_for(self, cfg: LLMConfig) -> str:
        return cfg.model or self.default_model


class LLMError(Exception):
    """Base exception for LLM provider errors."""

    def __init__(self, message: str, provider: str = ""):
        super().__init__(message)
        self.provider = provider


class LLMJSONError(LLMError):
    """LLM returned text that does not contain a JSON object."""

    def __init__(self, message: str, raw_text: str = "", provider: str = ""):
        super().__init__(message, provider=provider)
        self.raw_text = raw_text
