"""Payment page endpoints.

Clients pay by bank or mobile-wallet transfer outside the system, then
report the transfer here. An administrator verifies it later.
"""

from __future__ import annotations

import logging
import os

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from core.identity import User
from core.lifecycle import payment_evidence_update
from shared.schemas import PaymentPageResponse, ProjectResponse

from .. import db
from .auth import get_current_user
from .projects import project_not_found

logger = logging.getLogger(__name__)
router = APIRouter()

PAYMENT_ACCOUNT_NUMBER = os.environ.get("PAYMENT_ACCOUNT_NUMBER", "")
PAYMENT_ACCOUNT_TITLE = os.environ.get("PAYMENT_ACCOUNT_TITLE", "DevFlow")


class _PaymentEvidenceBody(BaseModel):
    payment_method: str = Field(default="jazzcash")
    sender_name: str = Field(default="")
    transaction_id: str = Field(default="")


def _load_for(project_id: str, user: User) -> dict:
    project = db.get_project(project_id)
    if not project:
        raise project_not_found()
    if project["user_id"] != user.id and not user.is_admin:
        raise HTTPException(
            status_code=403,
            detail={"code": "NOT_PROJECT_OWNER", "message": "You do not have access to this project."},
        )
    return project


@router.get("/payments/{project_id}", response_model=PaymentPageResponse)
def payment_page(project_id: str, user: User = Depends(get_current_user)):
    project = _load_for(project_id, user)
    return {
        "project": project,
        "instructions": {
            "account_number": PAYMENT_ACCOUNT_NUMBER,
            "account_title": PAYMENT_ACCOUNT_TITLE,
            "amount": project["budget"],
        },
    }


@router.post("/payments/{project_id}", response_model=ProjectResponse)
def submit_payment(
    project_id: str,
    body: _PaymentEvidenceBody,
    user: User = Depends(get_current_user),
):
    """Attach transfer evidence and move the project to PENDING_VERIFICATION."""
    project = db.get_project(project_id)
    if not project:
        raise project_not_found()

    updates = payment_evidence_update(
        project,
        submitter=user,
        method=body.payment_method,
        sender_name=body.sender_name,
        transaction_id=body.transaction_id,
    )
    updated = db.update_project(project_id, **updates)
    if not updated:
        raise project_not_found()
    logger.info(
        "Payment evidence submitted for project %s via %s",
        project_id, updates["payment_method"],
    )
    return updated
