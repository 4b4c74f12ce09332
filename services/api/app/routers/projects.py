"""Client-facing project endpoints: dashboard, request form, submission."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from core.identity import User
from core.lifecycle import (
    DEFAULT_FORM_BUDGET,
    MAX_BUDGET,
    MIN_BUDGET,
    MIN_DESCRIPTION_LENGTH,
    is_eligible_for_free_trial,
    plan_new_project,
    validate_request,
)
from shared.schemas import DashboardResponse, ProjectResponse, RequestFormState

from .. import db
from .auth import get_current_user

logger = logging.getLogger(__name__)
router = APIRouter()


def project_not_found() -> HTTPException:
    return HTTPException(
        status_code=404,
        detail={
            "code": "PROJECT_NOT_FOUND",
            "message": "Project not found.",
            "return_to": "/dashboard",
        },
    )


class _ProjectCreateBody(BaseModel):
    title: str = Field(default="", max_length=200)
    description: str = Field(default="")
    contact_email: Optional[str] = Field(default=None)
    budget: Optional[float] = Field(default=None)


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(user: User = Depends(get_current_user)):
    """The signed-in user's projects, newest first."""
    return {
        "projects": db.list_projects_by_owner(user.id),
        "email_verified": user.email_verified,
    }


@router.get("/projects/request-form", response_model=RequestFormState)
def request_form(user: User = Depends(get_current_user)):
    """Free-trial eligibility is recomputed from the user's history on every visit."""
    count = db.count_projects_by_owner(user.id)
    return {
        "eligible_for_free_trial": is_eligible_for_free_trial(count),
        "project_count": count,
        "contact_email": user.email,
        "default_budget": DEFAULT_FORM_BUDGET,
        "min_budget": MIN_BUDGET,
        "max_budget": MAX_BUDGET,
        "min_description_length": MIN_DESCRIPTION_LENGTH,
    }


@router.post("/projects", status_code=201, response_model=ProjectResponse)
def create_project(body: _ProjectCreateBody, user: User = Depends(get_current_user)):
    """Submit a new project request."""
    validate_request(body.title, body.description)

    prior = db.count_projects_by_owner(user.id)
    record = plan_new_project(
        requester=user,
        title=body.title,
        description=body.description,
        contact_email=body.contact_email,
        budget=body.budget,
        prior_project_count=prior,
    )
    project = db.create_project(**record)
    logger.info(
        "Project %s created for user %s (free_trial=%s, budget=%s)",
        project["id"], user.id, project["is_free_trial"], project["budget"],
    )
    return project


@router.get("/projects/{project_id}", response_model=ProjectResponse)
def get_project(project_id: str, user: User = Depends(get_current_user)):
    project = db.get_project(project_id)
    if not project:
        raise project_not_found()
    if project["user_id"] != user.id and not user.is_admin:
        raise HTTPException(
            status_code=403,
            detail={"code": "NOT_PROJECT_OWNER", "message": "You do not have access to this project."},
        )
    return project
