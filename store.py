"""
Grimoire Ledger v1.0 — Aggregate Store Client
HTTP access to the campaign store: fetch, list, create, full replace.

There is no patch call. `replace` sends the whole document and the echoed
response is the canonical stored value. Without `expected_version` the
store overwrites unconditionally (last write wins). Failures are raised to
the caller; nothing is retried here.
"""

import logging
from typing import Optional

import httpx

from config import REQUEST_TIMEOUT, STORE_URL
from models import Campaign, campaign_from_dict, campaign_to_dict

logger = logging.getLogger("grimoire.store")


# ─────────────────────────────────────────────────────
# ERRORS
# ─────────────────────────────────────────────────────

class StoreError(Exception):
    """Store or network failure."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CampaignNotFoundError(StoreError):
    """No campaign with that id. Callers redirect instead of rendering."""

    def __init__(self, campaign_id: str):
        super().__init__(f"Campaign not found: {campaign_id}", status_code=404)
        self.campaign_id = campaign_id


class VersionConflictError(StoreError):
    """Version precondition failed: someone else wrote first."""

    def __init__(self, campaign_id: str, expected: int, current: Optional[int] = None):
        super().__init__(
            f"Campaign {campaign_id} changed since version {expected}"
            + (f" (now {current})" if current is not None else ""),
            status_code=409,
        )
        self.campaign_id = campaign_id
        self.expected = expected
        self.current = current


# ─────────────────────────────────────────────────────
# CLIENT
# ─────────────────────────────────────────────────────

class CampaignStore:
    """
    Thin client over the store's REST API. Pass `client` to reuse an
    existing httpx.Client (e.g. a FastAPI TestClient); otherwise one is
    created against `base_url`.
    """

    def __init__(self, base_url: str = None, client: httpx.Client = None,
                 timeout: float = REQUEST_TIMEOUT):
        self.base_url = (base_url or STORE_URL).rstrip("/")
        if client is None:
            client = httpx.Client(base_url=self.base_url, timeout=timeout)
        self._client = client

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ── Requests ──

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            return self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise StoreError(f"Store unavailable: {e}") from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, campaign_id: str = None):
        if response.is_success:
            return
        if response.status_code == 404 and campaign_id is not None:
            raise CampaignNotFoundError(campaign_id)
        try:
            detail = response.json().get("detail", response.text)
        except ValueError:
            detail = response.text
        raise StoreError(f"Store returned {response.status_code}: {detail}",
                         status_code=response.status_code)

    # ── Operations ──

    def fetch(self, campaign_id: str) -> Campaign:
        response = self._request("GET", f"/api/campaigns/{campaign_id}")
        self._raise_for_status(response, campaign_id)
        return campaign_from_dict(response.json())

    def fetch_all_for_user(self, username: str) -> list[Campaign]:
        """Campaigns the user created or was invited to."""
        response = self._request("GET", "/api/campaigns", params={"user": username})
        self._raise_for_status(response)
        return [campaign_from_dict(c) for c in response.json()]

    def create(self, fields: dict) -> Campaign:
        """Create from initial camelCase fields; store fills in defaults."""
        response = self._request("POST", "/api/campaigns", json=fields)
        self._raise_for_status(response)
        campaign = campaign_from_dict(response.json())
        logger.info(f"Created campaign {campaign.id}")
        return campaign

    def replace(self, campaign_id: str, campaign: Campaign,
                expected_version: Optional[int] = None) -> Campaign:
        """
        Full-document replace. Returns the stored document.
        With `expected_version`, raises VersionConflictError when the
        stored version differs.
        """
        headers = {}
        if expected_version is not None:
            headers["If-Match"] = str(expected_version)
        response = self._request("PUT", f"/api/campaigns/{campaign_id}",
                                 json=campaign_to_dict(campaign), headers=headers)
        if response.status_code == 409:
            current = response.headers.get("ETag")
            raise VersionConflictError(campaign_id, expected_version,
                                       int(current) if current else None)
        self._raise_for_status(response, campaign_id)
        stored = campaign_from_dict(response.json())
        logger.debug(f"Replaced campaign {campaign_id} -> version {stored.version}")
        return stored
