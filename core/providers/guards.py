"""Output guards for LLM responses.

Model output is untrusted: it may be wrapped in markdown fences, carry
prose around the object, or not be JSON at all.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

from .base import LLMJSONError

logger = logging.getLogger(__name__)


class JSONOutputGuard:
    """Ensure LLM output is a JSON object."""

    @staticmethod
    def system_prompt_suffix(schema_hint: Optional[Dict[str, Any]] = None) -> str:
        suffix = (
            "\n\nRespond with a single JSON object only. "
            "Do not wrap it in markdown code fences and do not add commentary. "
            "The first character of your reply must be {."
        )
        if schema_hint:
            suffix += "\nThe object must match this JSON schema:\n" + json.dumps(schema_hint)
        return suffix

    @staticmethod
    def enforce(raw_text: str) -> Dict[str, Any]:
        """Parse raw LLM text into a JSON dict."""
        text = (raw_text or "").strip()

        # Strip markdown code block wrapper
        if text.startswith("```"):
            first_nl = text.find("\n")
            if first_nl > 0:
                text = text[first_nl + 1:]
            if text.rstrip().endswith("```"):
                text = text.rstrip()[:-3].rstrip()

        brace_pos = text.find("{")
        if brace_pos < 0:
            raise LLMJSONError("LLM response contains no JSON object", raw_text=raw_text)
        text = text[brace_pos:]

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            parsed = JSONOutputGuard._try_extract(raw_text)

        if not isinstance(parsed, dict):
            raise LLMJSONError("LLM response is not a JSON object", raw_text=raw_text)
        return parsed

    @staticmethod
    def _try_extract(text: str) -> Any:
        """Last-resort extraction strategies."""
        patterns = [r'```json\s*(.*?)\s*```', r'```\s*(.*?)\s*```', r'\{.*\}']
        for pattern in patterns:
            match = re.search(pattern, text, re.DOTALL)
            if match:
                try:
                    candidate = match.group(1) if '```' in pattern else match.group(0)
                    return json.loads(candidate)
                except (json.JSONDecodeError, IndexError):
                    continue

        logger.debug("Unparseable LLM output: %s", text[:200])
        raise LLMJSONError(
            f"Could not extract JSON from LLM response. First 200 chars: {text[:200]}",
            raw_text=text,
        )
