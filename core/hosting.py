"""Client for the deployment host's site-listing API (Netlify).

The portfolio is the list of sites deployed under the agency's hosting
account. Only the listing endpoint is used.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

NETLIFY_API_URL = os.environ.get("NETLIFY_API_URL", "https://api.netlify.com/api/v1")


class HostingError(Exception):
    """The hosting API call failed."""

    code = "HOSTING_ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class HostingAuthError(HostingError):
    """The hosting API rejected the access token (HTTP 401)."""

    code = "INVALID_TOKEN"


@dataclass
class HostedSite:
    id: str
    name: str
    url: str = ""
    ssl_url: str = ""
    screenshot_url: str = ""
    updated_at: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "HostedSite":
        screenshot = data.get("screenshot_url") or (
            (data.get("published_deploy") or {}).get("screenshot_url") or ""
        )
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            url=data.get("url") or "",
            ssl_url=data.get("ssl_url") or "",
            screenshot_url=screenshot,
            updated_at=data.get("updated_at") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class HostingClient:
    """Bearer-token client for ``GET /sites``."""

    def __init__(
        self,
        token: str,
        base_url: Optional[str] = None,
        timeout: int = 30,
        http: Optional[requests.Session] = None,
    ):
        self.token = token or ""
        self.base_url = (base_url or NETLIFY_API_URL).rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()

    def list_sites(self) -> List[HostedSite]:
        """Return every site on the account. No token means no sites."""
        if not self.token:
            return []

        try:
            response = self.http.get(
                f"{self.base_url}/sites",
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Netlify API request failed: %s", e)
            raise HostingError(f"Netlify API request failed: {e}")

        if response.status_code == 401:
            raise HostingAuthError("Unauthorized: Invalid Netlify Access Token.", status_code=401)

        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = None
            provider_message = body.get("message") if isinstance(body, dict) else None
            raise HostingError(
                provider_message
                or f"Netlify API error: {response.status_code} {response.reason}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, list) or not all(isinstance(item, dict) for item in body):
            logger.error("Unexpected Netlify /sites payload: %s", type(body).__name__)
            raise HostingError(
                "Netlify API returned an unexpected response",
                status_code=response.status_code,
            )

        sites = [HostedSite.from_api(item) for item in body]
        logger.info("Fetched %d sites from Netlify", len(sites))
        return sites
