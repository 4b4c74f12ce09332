"""Tests for core.estimator -- budget suggestion with clamping and fallback."""

import math
from unittest.mock import MagicMock

import pytest

from core.estimator import (
    FALLBACK_BUDGET,
    RESPONSE_SCHEMA,
    BudgetEstimator,
    build_user_prompt,
    clamp_budget,
)
from core.providers.base import LLMError, LLMJSONError, LLMResponse

DESCRIPTION = "A booking site for a small dental clinic."


def _make_mock_llm(parsed=None, side_effect=None) -> MagicMock:
    mock = MagicMock()
    mock.provider_name = "google"
    if side_effect is not None:
        mock.generate_json = MagicMock(side_effect=side_effect)
    else:
        mock.generate_json = MagicMock(return_value=LLMResponse(
            raw_text="{}", parsed_json=parsed, model="gemini-2.5-flash", provider="google",
        ))
    return mock


class TestClampBudget:
    @pytest.mark.parametrize("value,expected", [
        (50, 50.0),
        (10, 10.0),
        (100, 100.0),
        (150, 100.0),
        (5, 10.0),
        (-20, 10.0),
        (42.5, 42.5),
    ])
    def test_clamps_into_range(self, value, expected):
        assert clamp_budget(value) == expected

    @pytest.mark.parametrize("value", [None, 0, "50", True, math.nan, math.inf, [50], 10**400, -10**400])
    def test_unusable_values_fall_back(self, value):
        assert clamp_budget(value) == FALLBACK_BUDGET


class TestBudgetEstimator:
    def test_uses_model_suggestion(self):
        llm = _make_mock_llm({"suggestedBudget": 70, "reasoning": "Several pages"})
        est = BudgetEstimator(llm).estimate(DESCRIPTION)
        assert est.suggested_budget == 70.0
        assert est.reasoning == "Several pages"
        assert est.fallback is False
        assert est.model == "gemini-2.5-flash"

    def test_passes_prompt_and_schema(self):
        llm = _make_mock_llm({"suggestedBudget": 30})
        BudgetEstimator(llm).estimate(DESCRIPTION)
        args, kwargs = llm.generate_json.call_args
        assert args[1] == build_user_prompt(DESCRIPTION)
        assert "$10 and $100" in args[1]
        assert kwargs["schema_hint"] is RESPONSE_SCHEMA

    def test_out_of_range_suggestion_clamped(self):
        est = BudgetEstimator(_make_mock_llm({"suggestedBudget": 1000})).estimate(DESCRIPTION)
        assert est.suggested_budget == 100.0
        assert est.fallback is False

    def test_missing_field_falls_back(self):
        est = BudgetEstimator(_make_mock_llm({"budget": 40})).estimate(DESCRIPTION)
        assert est.suggested_budget == FALLBACK_BUDGET
        assert est.fallback is True

    def test_oversized_integer_falls_back(self):
        est = BudgetEstimator(_make_mock_llm({"suggestedBudget": 10**400})).estimate(DESCRIPTION)
        assert est.suggested_budget == FALLBACK_BUDGET
        assert est.fallback is True

    def test_model_suggesting_exactly_25_is_not_fallback(self):
        est = BudgetEstimator(_make_mock_llm({"suggestedBudget": 25})).estimate(DESCRIPTION)
        assert est.suggested_budget == 25.0
        assert est.fallback is False

    @pytest.mark.parametrize("error", [
        LLMError("quota exceeded", provider="google"),
        LLMJSONError("no JSON", raw_text="sorry", provider="google"),
        RuntimeError("unexpected"),
    ])
    def test_failures_fall_back(self, error):
        est = BudgetEstimator(_make_mock_llm(side_effect=error)).estimate(DESCRIPTION)
        assert est.suggested_budget == FALLBACK_BUDGET
        assert est.fallback is True
        assert est.provider == "google"

    def test_no_provider_falls_back(self):
        est = BudgetEstimator(None).estimate(DESCRIPTION)
        assert est.to_dict() == {
            "suggested_budget": 25.0,
            "reasoning": None,
            "fallback": True,
            "provider": "",
            "model": "",
        }
