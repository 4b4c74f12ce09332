"""Admin panel endpoints.

Request review (status changes, payment verification), portfolio
management and the LLM used for budget estimates. All endpoints are
under /v1/admin and require the admin role.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from core.hosting import HostingClient
from core.identity import User
from core.lifecycle import PaymentStatus, payment_decision, transition_status
from core.portfolio import toggle_hidden
from core.providers.registry import (
    get_model_catalog,
    get_providers,
    validate_provider_model,
)
from shared.schemas import AdminPortfolioResponse, AdminProjectList, ProjectResponse

from .. import db
from .auth import require_admin
from .projects import project_not_found

logger = logging.getLogger(__name__)
router = APIRouter()


class _StatusBody(BaseModel):
    status: str


class _PaymentDecisionBody(BaseModel):
    approved: bool


class _TokenBody(BaseModel):
    token: str = Field(default="")


class _LLMDefaultBody(BaseModel):
    provider: str
    model: str


def _matches(project: dict, term: str) -> bool:
    term = term.lower()
    return any(
        term in (project.get(k) or "").lower()
        for k in ("title", "user_email", "user_name", "contact_email", "id")
    )


# -------------------------------------------------------------------
# Project requests
# -------------------------------------------------------------------

@router.get("/admin/projects", response_model=AdminProjectList)
def list_all_projects(q: Optional[str] = None, admin: User = Depends(require_admin)):
    """Every project, newest first, plus the ones awaiting payment verification."""
    all_projects = db.list_projects()
    projects = [p for p in all_projects if _matches(p, q)] if q else all_projects
    # The pending banner ignores the search term
    pending = [
        p for p in all_projects
        if p["payment_status"] == PaymentStatus.PENDING_VERIFICATION.value
    ]
    return {"projects": projects, "pending_payments": pending, "total": len(projects)}


@router.patch("/admin/projects/{project_id}/status", response_model=ProjectResponse)
def update_status(project_id: str, body: _StatusBody, admin: User = Depends(require_admin)):
    project = db.get_project(project_id)
    if not project:
        raise project_not_found()

    updates = transition_status(project, body.status)
    updated = db.update_project(project_id, **updates)
    if not updated:
        raise project_not_found()
    logger.info(
        "Admin %s set project %s status %s -> %s",
        admin.id, project_id, project["status"], updated["status"],
    )
    return updated


@router.post("/admin/projects/{project_id}/payment-decision", response_model=ProjectResponse)
def decide_payment(
    project_id: str,
    body: _PaymentDecisionBody,
    admin: User = Depends(require_admin),
):
    """Approve (PAID) or reject (back to UNPAID) submitted payment evidence."""
    project = db.get_project(project_id)
    if not project:
        raise project_not_found()

    updated = db.update_project(project_id, **payment_decision(body.approved))
    if not updated:
        raise project_not_found()
    logger.info(
        "Admin %s %s payment for project %s",
        admin.id, "approved" if body.approved else "rejected", project_id,
    )
    return updated


# -------------------------------------------------------------------
# Portfolio
# -------------------------------------------------------------------

@router.get("/admin/portfolio", response_model=AdminPortfolioResponse)
def admin_portfolio(admin: User = Depends(require_admin)):
    """Portfolio settings plus every hosted site, hidden ones flagged."""
    settings = db.get_portfolio_settings()
    hidden = set(settings["hidden_site_ids"])
    sites = HostingClient(settings["hosting_token"]).list_sites()
    return {
        "has_token": bool(settings["hosting_token"]),
        "hidden_site_ids": settings["hidden_site_ids"],
        "sites": [{**s.to_dict(), "hidden": s.id in hidden} for s in sites],
    }


@router.put("/admin/portfolio/token", response_model=AdminPortfolioResponse)
def save_hosting_token(body: _TokenBody, admin: User = Depends(require_admin)):
    settings = db.get_portfolio_settings()
    settings["hosting_token"] = body.token.strip()
    saved = db.save_portfolio_settings(settings, actor_role=admin.role)
    logger.info("Admin %s %s the hosting token", admin.id, "set" if saved["hosting_token"] else "cleared")
    return {
        "has_token": bool(saved["hosting_token"]),
        "hidden_site_ids": saved["hidden_site_ids"],
        "sites": [],
    }


@router.post("/admin/portfolio/sites/{site_id}/toggle")
def toggle_site_visibility(site_id: str, admin: User = Depends(require_admin)):
    settings = db.get_portfolio_settings()
    settings["hidden_site_ids"] = toggle_hidden(settings["hidden_site_ids"], site_id)
    saved = db.save_portfolio_settings(settings, actor_role=admin.role)
    return {
        "site_id": site_id,
        "hidden": site_id in saved["hidden_site_ids"],
        "hidden_site_ids": saved["hidden_site_ids"],
    }


# -------------------------------------------------------------------
# Budget-estimation model
# -------------------------------------------------------------------

@router.get("/admin/llm")
def get_llm_settings(admin: User = Depends(require_admin)):
    return {
        "current": db.get_llm_default(),
        "providers": get_providers(),
        "models": get_model_catalog(),
    }


@router.put("/admin/llm")
def set_llm_settings(body: _LLMDefaultBody, admin: User = Depends(require_admin)):
    if not validate_provider_model(body.provider, body.model):
        raise HTTPException(
            status_code=422,
            detail={
                "code": "INVALID_REQUEST",
                "message": f"Unknown provider/model: {body.provider}/{body.model}",
            },
        )
    return db.set_llm_default(body.provider, body.model)
