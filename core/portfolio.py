"""Portfolio visibility: which hosted sites are shown publicly."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from .hosting import HostedSite, HostingClient, HostingError

logger = logging.getLogger(__name__)

PREVIEW_SIZE = 3


@dataclass
class PortfolioView:
    """Result of loading the public portfolio."""

    sites: List[HostedSite] = field(default_factory=list)
    total: int = 0
    error: Optional[Dict[str, str]] = None


def filter_visible(sites: Iterable[HostedSite], hidden_ids: Iterable[str]) -> List[HostedSite]:
    """Drop every site whose id is hidden. Order is preserved."""
    hidden = set(hidden_ids or ())
    return [s for s in sites if s.id not in hidden]


def preview(sites: List[HostedSite], show_all: bool = False) -> List[HostedSite]:
    return list(sites) if show_all else list(sites[:PREVIEW_SIZE])


def toggle_hidden(hidden_ids: Iterable[str], site_id: str) -> List[str]:
    """Hide ``site_id`` if it is visible, show it if it is hidden."""
    current = list(hidden_ids or ())
    if site_id in current:
        return [i for i in current if i != site_id]
    return current + [site_id]


def load_public_portfolio(
    settings: Dict[str, Any],
    show_all: bool = False,
    client_factory: Callable[[str], HostingClient] = HostingClient,
) -> PortfolioView:
    """Fetch, filter and slice the public portfolio.

    Hosting failures are reported in ``error`` with an empty list; they
    never propagate to the caller.
    """
    token = settings.get("hosting_token") or ""
    if not token:
        return PortfolioView()

    try:
        sites = client_factory(token).list_sites()
    except HostingError as e:
        logger.warning("Portfolio could not be loaded: %s", e)
        return PortfolioView(error={"code": e.code, "message": e.message})

    visible = filter_visible(sites, settings.get("hidden_site_ids") or [])
    return PortfolioView(sites=preview(visible, show_all), total=len(visible))
