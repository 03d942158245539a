"""
Grimoire Ledger v1.0 — MCP Server (Thin Bridge)
An assistant connects to this via stdio and acts as the DM's hands.
Every tool loads a fresh snapshot and writes through an UpdateCoordinator,
exactly like any other surface.

Tools:
  State inspection (read-only):
    get_campaign_state   — Tracker summary
    check_permission     — Effective access for a player and categories
  DM actions:
    advance_time         — Step the clock (and roll weather) N times
    select_region        — Change the active weather region
    set_permission       — Set one category level for a player
"""

import os
import sys

ENGINE_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, ENGINE_DIR)

from mcp.server.fastmcp import FastMCP

from config import DEFAULT_USER, configure_logging
from coordinator import AccessDeniedError, UpdateCoordinator
from models import PermissionLevel, User, UserRole
from permissions import resolve_permission
from store import CampaignNotFoundError, CampaignStore, StoreError
from tracker import format_date

server = FastMCP("grimoire-ledger")

_store: CampaignStore = None


def _get_store() -> CampaignStore:
    global _store
    if _store is None:
        _store = CampaignStore()
    return _store


def _acting_user() -> User:
    return User(username=DEFAULT_USER, role=UserRole.DM.value) if DEFAULT_USER else None


def _coordinator(campaign_id: str) -> UpdateCoordinator:
    return UpdateCoordinator.load(_get_store(), campaign_id, _acting_user())


def _failure(e: Exception) -> str:
    if isinstance(e, CampaignNotFoundError):
        return f"Campaign not found: {e.campaign_id}"
    return f"Error: {e}"


# ─────────────────────────────────────────────────────
# STATE INSPECTION (read-only)
# ─────────────────────────────────────────────────────

@server.tool()
def get_campaign_state(campaign_id: str) -> str:
    """Summary of the campaign's clock, weather and region."""
    try:
        campaign = _get_store().fetch(campaign_id)
    except StoreError as e:
        return _failure(e)

    region = campaign.weather_settings.get_region(campaign.tracking.current_region_id)
    lines = [
        f"CAMPAIGN: {campaign.name} (v{campaign.version})",
        f"DATE: {format_date(campaign)}",
        f"TIME: {campaign.tracking.current_time_of_day}",
        f"WEATHER: {campaign.tracking.current_weather or 'N/A'}",
        f"REGION: {region.name if region else '—'}",
        "",
        f"REGIONS ({len(campaign.weather_settings.regions)}):",
    ]
    for r in campaign.weather_settings.regions:
        total = sum(c.probability for c in r.conditions)
        flag = "" if total == 100 else f"  [sums to {total}%]"
        lines.append(f"  {r.id}: {r.name}{flag}")
    return "\n".join(lines)


@server.tool()
def check_permission(campaign_id: str, username: str, category_ids: list[str]) -> str:
    """Effective access level of `username` for an item with these categories."""
    try:
        campaign = _get_store().fetch(campaign_id)
    except StoreError as e:
        return _failure(e)
    level = resolve_permission(category_ids, campaign.policy_for(username),
                               is_owner=username == campaign.creator_username)
    return f"{username}: {level.value}"


# ─────────────────────────────────────────────────────
# DM ACTIONS
# ─────────────────────────────────────────────────────

@server.tool()
def advance_time(campaign_id: str, steps: int = 1) -> str:
    """Advance the clock `steps` times. Weather is rolled on every step."""
    if steps < 1:
        return f"Error: steps must be at least 1 (got {steps})"
    try:
        coord = _coordinator(campaign_id)
        lines = []
        for _ in range(steps):
            result = coord.advance_time()
            lines.append(f"{result['new_time_of_day']}, {result['new_date']}: "
                         f"{result['weather'] or 'N/A'}")
            if result.get("error"):
                lines.append(f"  WARNING: {result['error']}")
        return "\n".join(lines)
    except (StoreError, AccessDeniedError) as e:
        return _failure(e)


@server.tool()
def select_region(campaign_id: str, region_id: str) -> str:
    """Change the active region. Does not roll weather."""
    try:
        campaign = _coordinator(campaign_id).select_region(region_id)
    except (StoreError, AccessDeniedError, ValueError) as e:
        return _failure(e)
    return f"Region set to {campaign.tracking.current_region_id}"


@server.tool()
def set_permission(campaign_id: str, username: str, category_id: str, level: str) -> str:
    """Set `username`'s access for one category (full, partial or none)."""
    try:
        coord = _coordinator(campaign_id)
        policy = dict(coord.campaign.policy_for(username))
        policy[category_id] = PermissionLevel(level).value
        coord.set_user_permissions(username, policy)
    except (StoreError, AccessDeniedError, ValueError) as e:
        return _failure(e)
    return f"{username}: {category_id} -> {level}"


if __name__ == "__main__":
    configure_logging("WARNING")
    server.run(transport="stdio")
