"""Portfolio schemas."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class HostedSiteResponse(BaseModel):
    id: str
    name: str
    url: str = ""
    ssl_url: str = ""
    screenshot_url: str = ""
    updated_at: str = ""


class PublicPortfolioResponse(BaseModel):
    """Public landing-page portfolio (hidden sites removed)."""

    sites: List[HostedSiteResponse] = Field(default_factory=list)
    total: int = 0
    show_all: bool = False
    error: Optional[Dict[str, str]] = None


class AdminSiteResponse(HostedSiteResponse):
    hidden: bool = False


class AdminPortfolioResponse(BaseModel):
    """Admin view: settings plus every site with its visibility flag."""

    has_token: bool = False
    hidden_site_ids: List[str] = Field(default_factory=list)
    sites: List[AdminSiteResponse] = Field(default_factory=list)
