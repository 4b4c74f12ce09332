"""Anthropic Claude provider implementation."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from .base import LLMConfig, LLMError, LLMJSONError, LLMProvider, LLMResponse
from .guards import JSONOutputGuard

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMProvider):
    """LLM Provider backed by the Anthropic Messages API.

    Claude has no JSON response mode, so the schema travels in the system
    prompt and the reply goes through ``JSONOutputGuard``.
    """

    provider_name = "anthropic"

    def __init__(
        self,
        api_key: Optional[str] = None,
        default_model: str = "claude-haiku-4-5-20251001",
        base_url: Optional[str] = None,
    ):
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY", "")
        self.default_model = default_model
        self.base_url = base_url
        self._client = None

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise LLMError("ANTHROPIC_API_KEY is not set", provider=self.provider_name)
            try:
                from anthropic import Anthropic
            except ImportError:
                raise LLMError(
                    "anthropic package required: pip install anthropic",
                    provider=self.provider_name,
                )
            kwargs: Dict[str, Any] = {"api_key": self.api_key, "max_retries": 0}
            if self.base_url:
                kwargs["base_url"] = self.base_url
            self._client = Anthropic(**kwargs)
        return self._client

    def generate_json(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        config: Optional[LLMConfig] = None,
        schema_hint: Optional[Dict[str, Any]] = None,
    ) -> LLMResponse:
        cfg = self._default_config(config)
        model = self._model_for(cfg)

        try:
            message = self.client.messages.create(
                model=model,
                max_tokens=cfg.max_tokens,
                temperature=cfg.temperature,
                system=system_prompt + JSONOutputGuard.system_prompt_suffix(schema_hint),
                messages=[{"role": "user", "content": user_prompt}],
                timeout=cfg.timeout_seconds,
            )
        except LLMError:
            raise
        except Exception as e:
            logger.error("Anthropic API error: %s", e)
            raise LLMError(f"Anthropic API call failed: {e}", provider=self.provider_name)

        text_blocks = [b.text for b in (message.content or []) if getattr(b, "text", None)]
        if not text_blocks:
            raise LLMJSONError("Empty response from Anthropic", provider=self.provider_name)
        raw_text = "".join(text_blocks)

        usage = getattr(message, "usage", None)
        return LLMResponse(
            raw_text=raw_text,
            parsed_json=JSONOutputGuard.enforce(raw_text),
            model=model,
            provider=self.provider_name,
            input_tokens=getattr(usage, "input_tokens", 0) if usage else 0,
            output_tokens=getattr(usage, "output_tokens", 0) if usage else 0,
        )
