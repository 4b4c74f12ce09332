"""Public portfolio for the landing page."""

from __future__ import annotations

import logging

from fastapi import APIRouter

from core.portfolio import load_public_portfolio
from shared.schemas import PublicPortfolioResponse

from .. import db

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/portfolio", response_model=PublicPortfolioResponse)
def public_portfolio(show_all: bool = False):
    """Visible hosted sites: the first three, or all with ``show_all``.

    Always answers 200. A failure to read settings or reach the hosting
    API yields an empty list, with the reason in ``error``.
    """
    try:
        settings = db.get_portfolio_settings()
    except db.StorePermissionError:
        logger.warning("Settings read blocked by store permissions. Returning defaults.")
        settings = {"hosting_token": "", "hidden_site_ids": []}

    view = load_public_portfolio(settings, show_all=show_all)
    return {
        "sites": [s.to_dict() for s in view.sites],
        "total": view.total,
        "show_all": show_all,
        "error": view.error,
    }
