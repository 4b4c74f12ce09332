"""Project schemas for API contracts."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

ProjectStatusLiteral = Literal["PENDING", "SCOPING", "IN_PROGRESS", "COMPLETED", "CANCELLED"]
PaymentStatusLiteral = Literal["UNPAID", "PENDING_VERIFICATION", "PAID", "REFUNDED"]
PaymentMethodLiteral = Literal["jazzcash", "easypaisa", "bank"]


class ProjectResponse(BaseModel):
    """API response for a project."""

    id: str
    user_id: str
    user_email: str
    user_name: Optional[str] = None
    contact_email: Optional[str] = None
    title: str
    description: str
    budget: float
    status: ProjectStatusLiteral = "PENDING"
    payment_status: PaymentStatusLiteral = "UNPAID"
    is_free_trial: bool = False
    payment_method: Optional[PaymentMethodLiteral] = None
    sender_name: Optional[str] = None
    transaction_id: Optional[str] = None
    created_at: str
    updated_at: Optional[str] = None


class RequestFormState(BaseModel):
    """What the new-request form needs to render."""

    eligible_for_free_trial: bool
    project_count: int
    contact_email: str
    default_budget: float
    min_budget: float
    max_budget: float
    min_description_length: int


class DashboardResponse(BaseModel):
    """A client's own projects plus account status."""

    projects: List[ProjectResponse] = Field(default_factory=list)
    email_verified: bool = False


class AdminProjectList(BaseModel):
    projects: List[ProjectResponse] = Field(default_factory=list)
    pending_payments: List[ProjectResponse] = Field(default_factory=list)
    total: int = 0
