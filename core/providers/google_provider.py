"""Google Gemini provider — the default budget-estimation backend."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from .base import LLMConfig, LLMError, LLMProvider, LLMResponse
from .guards import JSONOutputGuard

logger = logging.getLogger(__name__)


class GoogleProvider(LLMProvider):
    """LLM Provider backed by Google Gemini.

    Requires the ``google-generativeai`` package and a ``GOOGLE_API_KEY``.
    Gemini enforces ``schema_hint`` natively through ``response_schema``.
    """

    provider_name = "google"

    def __init__(
        self,
        api_key: Optional[str] = None,
        default_model: str = "gemini-2.5-flash",
    ):
        self.api_key = api_key or os.environ.get("GOOGLE_API_KEY", "")
        self.default_model = default_model
        self._genai = None

    @property
    def genai(self):
        if self._genai is None:
            if not self.api_key:
                raise LLMError("GOOGLE_API_KEY is not set", provider=self.provider_name)
            try:
                import google.generativeai as genai
            except ImportError:
                raise LLMError(
                    "google-generativeai package required: pip install google-generativeai",
                    provider=self.provider_name,
                )
            genai.configure(api_key=self.api_key)
            self._genai = genai
        return self._genai

    def generate_json(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        config: Optional[LLMConfig] = None,
        schema_hint: Optional[Dict[str, Any]] = None,
    ) -> LLMResponse:
        cfg = self._default_config(config)
        model_name = self._model_for(cfg)

        generation_config: Dict[str, Any] = {
            "temperature": cfg.temperature,
            "max_output_tokens": cfg.max_tokens,
            "response_mime_type": "application/json",
        }
        if schema_hint:
            generation_config["response_schema"] = schema_hint

        try:
            model = self.genai.GenerativeModel(
                model_name,
                system_instruction=system_prompt + JSONOutputGuard.system_prompt_suffix(),
            )
            result = model.generate_content(
                user_prompt,
                generation_config=generation_config,
                request_options={"timeout": cfg.timeout_seconds},
            )
            # .text raises when the candidate was blocked
            raw_text = result.text or ""
        except LLMError:
            raise
        except Exception as e:
            logger.error("Gemini API error: %s", e)
            raise LLMError(f"Gemini API call failed: {e}", provider=self.provider_name)

        usage = getattr(result, "usage_metadata", None)
        return LLMResponse(
            raw_text=raw_text,
            parsed_json=JSONOutputGuard.enforce(raw_text),
            model=model_name,
            provider=self.provider_name,
            input_tokens=getattr(usage, "prompt_token_count", 0) if usage else 0,
            output_tokens=getattr(usage, "candidates_token_count", 0) if usage else 0,
        )
