"""AI budget suggestion.

The estimate is a best-effort enrichment of the request form: any failure
(no provider configured, API error, quota, malformed output) produces the
fixed fallback value instead of an error, and project submission never
depends on it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from .lifecycle import MAX_BUDGET, MIN_BUDGET
from .providers.base import LLMConfig, LLMError, LLMProvider

logger = logging.getLogger(__name__)

FALLBACK_BUDGET = 25.0

SYSTEM_PROMPT = (
    "You are a professional software project estimator. Your goal is to provide "
    "a single numeric value representing the suggested budget in USD. High "
    "complexity projects get closer to $100, while simple tasks get closer to $10."
)

USER_PROMPT_TEMPLATE = (
    "Estimate a fair budget for this web development project based on its description. "
    "The budget MUST be between ${min_budget} and ${max_budget}.\n\n"
    'Project Description: "{description}"'
)

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "suggestedBudget": {
            "type": "number",
            "description": "The estimated budget for the project in USD, between 10 and 100.",
        },
        "reasoning": {
            "type": "string",
            "description": "Short explanation for the budget.",
        },
    },
    "required": ["suggestedBudget"],
}


@dataclass
class BudgetEstimate:
    suggested_budget: float
    reasoning: Optional[str] = None
    fallback: bool = False
    provider: str = ""
    model: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def clamp_budget(value: Any) -> float:
    """Coerce an untrusted model value into [MIN_BUDGET, MAX_BUDGET].

    Missing, zero, non-numeric and non-finite values become the fallback.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return FALLBACK_BUDGET
    try:
        number = float(value)
    except (OverflowError, ValueError):
        # JSON integers are unbounded; anything past float range is unusable
        return FALLBACK_BUDGET
    if not math.isfinite(number) or number == 0:
        return FALLBACK_BUDGET
    return min(max(number, MIN_BUDGET), MAX_BUDGET)


def build_user_prompt(description: str) -> str:
    return USER_PROMPT_TEMPLATE.format(
        min_budget=MIN_BUDGET, max_budget=MAX_BUDGET, description=description,
    )


class BudgetEstimator:
    """Ask an LLM for a budget suggestion. ``estimate`` never raises."""

    def __init__(self, provider: Optional[LLMProvider] = None, config: Optional[LLMConfig] = None):
        self.provider = provider
        self.config = config or LLMConfig()

    def _fallback(self) -> BudgetEstimate:
        return BudgetEstimate(
            suggested_budget=FALLBACK_BUDGET,
            fallback=True,
            provider=getattr(self.provider, "provider_name", ""),
        )

    def estimate(self, description: str) -> BudgetEstimate:
        if self.provider is None:
            logger.debug("No LLM provider configured, using fallback budget")
            return self._fallback()

        try:
            response = self.provider.generate_json(
                SYSTEM_PROMPT,
                build_user_prompt(description),
                config=self.config,
                schema_hint=RESPONSE_SCHEMA,
            )
            logger.debug(
                "Budget estimate from %s/%s (%d in, %d out tokens)",
                response.provider, response.model, response.input_tokens, response.output_tokens,
            )
            parsed = response.parsed_json or {}
            raw_value = parsed.get("suggestedBudget")
            budget = clamp_budget(raw_value)
            reasoning = parsed.get("reasoning")
            return BudgetEstimate(
                suggested_budget=budget,
                reasoning=reasoning if isinstance(reasoning, str) else None,
                fallback=budget == FALLBACK_BUDGET and raw_value != FALLBACK_BUDGET,
                provider=response.provider,
                model=response.model,
            )
        except LLMError as e:
            logger.warning("Budget estimation failed, using fallback: %s", e)
            return self._fallback()
        except Exception:
            logger.exception("Unexpected error during budget estimation, using fallback")
            return self._fallback()
