"""OpenAI provider implementation (GPT models, structured outputs)."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from .base import LLMConfig, LLMError, LLMProvider, LLMResponse
from .guards import JSONOutputGuard

logger = logging.getLogger(__name__)


def _response_format(schema_hint: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not schema_hint:
        return {"type": "json_object"}
    return {
        "type": "json_schema",
        "json_schema": {"name": "estimate", "schema": schema_hint},
    }


class OpenAIProvider(LLMProvider):
    """LLM Provider backed by the OpenAI chat completions API."""

    provider_name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        default_model: str = "gpt-4o-mini",
    ):
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY", "")
        self.default_model = default_model
        self._client = None

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise LLMError("OPENAI_API_KEY is not set", provider=self.provider_name)
            try:
                from openai import OpenAI
            except ImportError:
                raise LLMError(
                    "openai package required: pip install openai",
                    provider=self.provider_name,
                )
            self._client = OpenAI(api_key=self.api_key, max_retries=0)
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
            completion = self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt + JSONOutputGuard.system_prompt_suffix()},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=cfg.temperature,
                max_tokens=cfg.max_tokens,
                response_format=_response_format(schema_hint),
                timeout=cfg.timeout_seconds,
            )
        except LLMError:
            raise
        except Exception as e:
            logger.error("OpenAI API error: %s", e)
            raise LLMError(f"OpenAI API call failed: {e}", provider=self.provider_name)

        raw_text = completion.choices[0].message.content or ""
        usage = completion.usage
        return LLMResponse(
            raw_text=raw_text,
            parsed_json=JSONOutputGuard.enforce(raw_text),
            model=model,
            provider=self.provider_name,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )
