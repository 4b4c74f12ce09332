"""Project lifecycle and eligibility rules.

A project carries two independent state axes: the delivery ``status`` and
the ``payment_status``. Neither axis constrains the other, and admins may
move ``status`` between any two values. All writes to either axis go
through the functions in this module, so a transition guard can be added
here later without touching the HTTP layer.

Every function is pure: it takes plain dict records and returns the
fields to write. Persistence is the caller's job.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional

from .identity.base import User

logger = logging.getLogger(__name__)

MIN_DESCRIPTION_LENGTH = 20
MIN_BUDGET = 10
MAX_BUDGET = 100
DEFAULT_FORM_BUDGET = 50


class ProjectStatus(str, Enum):
    PENDING = "PENDING"
    SCOPING = "SCOPING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    UNPAID = "UNPAID"
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class PaymentMethod(str, Enum):
    JAZZCASH = "jazzcash"
    EASYPAISA = "easypaisa"
    BANK = "bank"


class LifecycleError(Exception):
    """Base exception for rejected lifecycle operations."""

    code = "LIFECYCLE_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class InvalidRequestError(LifecycleError):
    """Input failed validation; nothing was written."""

    code = "INVALID_REQUEST"


class OwnershipError(LifecycleError):
    """The acting user does not own the project."""

    code = "NOT_PROJECT_OWNER"


# ---------------------------------------------------------------------------
# Free trial
# ---------------------------------------------------------------------------

def is_eligible_for_free_trial(prior_project_count: int) -> bool:
    """A user's first project request is free."""
    return prior_project_count == 0


# ---------------------------------------------------------------------------
# Request submission
# ---------------------------------------------------------------------------

def validate_request(title: str, description: str) -> None:
    if not (title or "").strip():
        raise InvalidRequestError("Project title is required.", field="title")
    if len(description or "") < MIN_DESCRIPTION_LENGTH:
        raise InvalidRequestError(
            f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters.",
            field="description",
        )


def validate_budget(budget: Any) -> float:
    if isinstance(budget, bool) or not isinstance(budget, (int, float)):
        raise InvalidRequestError("Budget must be a number.", field="budget")
    if not MIN_BUDGET <= budget <= MAX_BUDGET:
        raise InvalidRequestError(
            f"Budget must be between ${MIN_BUDGET} and ${MAX_BUDGET}.",
            field="budget",
        )
    return float(budget)


def plan_new_project(
    requester: User,
    title: str,
    description: str,
    contact_email: Optional[str],
    budget: Optional[float],
    prior_project_count: int,
) -> Dict[str, Any]:
    """Build the record for a new project request.

    The free-trial decision is stamped onto the record here and never
    recomputed for it. A trial project costs nothing and is marked paid
    immediately; the client's budget is ignored.
    """
    validate_request(title, description)

    free_trial = is_eligible_for_free_trial(prior_project_count)
    if free_trial:
        final_budget = 0.0
        payment_status = PaymentStatus.PAID
    else:
        final_budget = validate_budget(DEFAULT_FORM_BUDGET if budget is None else budget)
        payment_status = PaymentStatus.UNPAID

    return {
        "user_id": requester.id,
        "user_email": requester.email,
        "user_name": requester.name,
        "contact_email": (contact_email or "").strip() or requester.email,
        "title": title.strip(),
        "description": description,
        "budget": final_budget,
        "status": ProjectStatus.PENDING.value,
        "payment_status": payment_status.value,
        "is_free_trial": free_trial,
    }


# ---------------------------------------------------------------------------
# Payment evidence
# ---------------------------------------------------------------------------

def payment_evidence_update(
    project: Dict[str, Any],
    submitter: User,
    method: str,
    sender_name: str,
    transaction_id: str,
) -> Dict[str, Any]:
    """Fields to write when a client reports an out-of-band transfer.

    Resubmitting overwrites the previous evidence.
    """
    if project.get("user_id") != submitter.id:
        raise OwnershipError("Only the project owner can submit payment details.")

    try:
        method_value = PaymentMethod(method).value
    except ValueError:
        raise InvalidRequestError(
            "Payment method must be one of: jazzcash, easypaisa, bank.",
            field="payment_method",
        )
    sender = (sender_name or "").strip()
    reference = (transaction_id or "").strip()
    if not sender or not reference:
        raise InvalidRequestError(
            "Please provide sender name and transaction ID.",
            field="sender_name" if not sender else "transaction_id",
        )

    return {
        "payment_status": PaymentStatus.PENDING_VERIFICATION.value,
        "payment_method": method_value,
        "sender_name": sender,
        "transaction_id": reference,
    }


# ---------------------------------------------------------------------------
# Admin decisions
# ---------------------------------------------------------------------------

def transition_status(project: Dict[str, Any], target: str) -> Dict[str, Any]:
    """Move a project to ``target`` status. Any status is reachable from any other."""
    try:
        new_status = ProjectStatus(target)
    except ValueError:
        raise InvalidRequestError(f"Unknown project status: {target!r}", field="status")

    logger.debug(
        "Status transition for %s: %s -> %s",
        project.get("id"), project.get("status"), new_status.value,
    )
    return {"status": new_status.value}


def payment_decision(approved: bool) -> Dict[str, Any]:
    """Approve or reject submitted payment evidence.

    Rejection returns the project to UNPAID and leaves the submitted
    evidence fields in place.
    """
    status = PaymentStatus.PAID if approved else PaymentStatus.UNPAID
    return {"payment_status": status.value}
