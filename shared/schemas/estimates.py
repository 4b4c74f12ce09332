"""Budget estimate schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class BudgetEstimateResponse(BaseModel):
    suggested_budget: float
    reasoning: Optional[str] = None
    fallback: bool = False
    provider: str = ""
    model: str = ""
