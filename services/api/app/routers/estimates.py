"""AI budget suggestion endpoint."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from core.estimator import BudgetEstimator
from core.identity import User
from core.lifecycle import MIN_DESCRIPTION_LENGTH
from core.providers.base import LLMProvider
from core.providers.registry import get_available_provider
from shared.schemas import BudgetEstimateResponse

from .. import db
from .auth import get_current_user

logger = logging.getLogger(__name__)
router = APIRouter()


class _EstimateBody(BaseModel):
    description: str = Field(..., min_length=MIN_DESCRIPTION_LENGTH)


def get_estimation_provider() -> Optional[LLMProvider]:
    """Provider for the configured LLM default, or None if it cannot run here."""
    llm = db.get_llm_default()
    try:
        return get_available_provider(llm["provider"], model=llm.get("model"))
    except ValueError as e:
        logger.warning("Invalid LLM default %s: %s", llm, e)
        return None


@router.post("/estimates", response_model=BudgetEstimateResponse)
def estimate_budget(
    body: _EstimateBody,
    user: User = Depends(get_current_user),
    provider: Optional[LLMProvider] = Depends(get_estimation_provider),
):
    """Suggest a budget for a description. Falls back to a fixed value on any failure."""
    estimate = BudgetEstimator(provider).estimate(body.description)
    return estimate.to_dict()
