"""
Grimoire Ledger v1.0 — Update Coordinator
Read-modify-write against the campaign store. Every surface that changes a
campaign (notes, bestiary, inventory, tracker, permissions, metadata) goes
through one of these.

Each write:
  1. take the snapshot this coordinator holds
  2. replace one or more top-level fields on a copy
  3. send the WHOLE document to the store
  4. adopt the store's echo as the new snapshot (this coordinator only)

There is no patch and, by default, no version check: two coordinators with
different snapshots both write, and the later one wins entirely (lost
update). `check_version=True` sends the snapshot's version so the store
rejects stale writes; `rebase_on_conflict=True` then refetches and
re-applies the same change once. Sibling coordinators are never notified.
"""

import copy
import dataclasses
import logging
import time
import uuid
from datetime import datetime
from typing import Callable, Optional

import tracker
from models import Campaign, InventoryItem, Monster, Note, User, UserInventory
from permissions import can_access, is_owner, materialize_permissions
from store import CampaignStore, VersionConflictError

logger = logging.getLogger("grimoire.coordinator")

_UNSET = object()


# ─────────────────────────────────────────────────────
# ERRORS
# ─────────────────────────────────────────────────────

class AccessDeniedError(Exception):
    """Caller is not allowed to see or change this campaign (or this part)."""


class InventoryFullError(ValueError):
    """Limited inventory already holds its maximum number of items."""


class UnknownRegionError(ValueError):
    """Region id is not configured in the campaign's weather settings."""


def _new_id(prefix: str) -> str:
    """prefix-<ms>-<random suffix>; unique even within one millisecond."""
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


# ─────────────────────────────────────────────────────
# COORDINATOR
# ─────────────────────────────────────────────────────

class UpdateCoordinator:
    """One surface's view of one campaign."""

    def __init__(self, store: CampaignStore, campaign: Campaign, user: User = None,
                 check_version: bool = False, rebase_on_conflict: bool = False):
        self.store = store
        self.user = user
        self.check_version = check_version
        self.rebase_on_conflict = rebase_on_conflict
        self._campaign = campaign

    @classmethod
    def load(cls, store: CampaignStore, campaign_id: str, user: User = None,
             **kwargs) -> "UpdateCoordinator":
        """
        Fetch and gate. Raises CampaignNotFoundError for unknown ids and
        AccessDeniedError when `user` is neither creator nor invited.
        """
        campaign = store.fetch(campaign_id)
        if user is not None and not can_access(user, campaign):
            raise AccessDeniedError(f"{user.username} has no access to campaign {campaign_id}")
        return cls(store, campaign, user, **kwargs)

    @property
    def campaign(self) -> Campaign:
        return self._campaign

    @property
    def is_owner(self) -> bool:
        return self.user is None or is_owner(self.user, self._campaign)

    def refresh(self) -> Campaign:
        self._campaign = self.store.fetch(self._campaign.id)
        return self._campaign

    def _require_owner(self, action: str):
        if not self.is_owner:
            raise AccessDeniedError(f"Only the campaign owner can {action}")

    def _username(self, username: Optional[str]) -> str:
        if username:
            return username
        if self.user is None:
            raise ValueError("No username given and no user bound to this coordinator")
        return self.user.username

    # ── Core protocol ──

    def submit(self, changes_fn: Callable[[Campaign], dict]) -> Campaign:
        """
        Apply `changes_fn(snapshot) -> {field: value}` as a shallow merge of
        top-level fields and replace the stored document.
        """
        snapshot = self._campaign
        draft = dataclasses.replace(snapshot, **changes_fn(snapshot))
        expected = snapshot.version if self.check_version else None
        try:
            stored = self.store.replace(snapshot.id, draft, expected_version=expected)
        except VersionConflictError:
            if not self.rebase_on_conflict:
                raise
            logger.info(f"Campaign {snapshot.id} moved past v{snapshot.version}; "
                        f"re-applying change on a fresh copy")
            fresh = self.store.fetch(snapshot.id)
            draft = dataclasses.replace(fresh, **changes_fn(fresh))
            stored = self.store.replace(fresh.id, draft, expected_version=fresh.version)
        self._campaign = stored
        logger.debug(f"Campaign {stored.id} now at v{stored.version}")
        return stored

    def update_fields(self, **fields) -> Campaign:
        unknown = set(fields) - {f.name for f in dataclasses.fields(Campaign)}
        if unknown:
            raise ValueError(f"Unknown campaign field(s): {', '.join(sorted(unknown))}")
        return self.submit(lambda _snapshot: fields)

    # ── Notes ──

    def save_note(self, note: Note) -> Campaign:
        """Add a new note (empty id) or replace the one with the same id."""
        if not note.id:
            note = dataclasses.replace(
                note, id=_new_id("note"),
                creator_username=note.creator_username or (self.user.username if self.user else ""))

        def changes(snapshot: Campaign) -> dict:
            if snapshot.get_note(note.id) is not None:
                return {"notes": [note if n.id == note.id else n for n in snapshot.notes]}
            return {"notes": list(snapshot.notes) + [note]}

        return self.submit(changes)

    def delete_note(self, note_id: str) -> Campaign:
        return self.submit(lambda s: {"notes": [n for n in s.notes if n.id != note_id]})

    # ── Bestiary ──

    def save_monster(self, monster: Monster) -> Campaign:
        if not monster.id:
            monster = dataclasses.replace(
                monster, id=_new_id("monster"),
                creator_username=monster.creator_username or (self.user.username if self.user else ""))

        def changes(snapshot: Campaign) -> dict:
            if snapshot.get_monster(monster.id) is not None:
                return {"bestiary": [monster if m.id == monster.id else m
                                     for m in snapshot.bestiary]}
            return {"bestiary": list(snapshot.bestiary) + [monster]}

        return self.submit(changes)

    def delete_monster(self, monster_id: str) -> Campaign:
        return self.submit(lambda s: {"bestiary": [m for m in s.bestiary if m.id != monster_id]})

    # ── Inventory ──

    def add_inventory_item(self, item: InventoryItem, username: str = None) -> Campaign:
        username = self._username(username)
        if not item.id:
            item = dataclasses.replace(item, id=_new_id("item"))

        def changes(snapshot: Campaign) -> dict:
            current = snapshot.inventory_for(username)
            limit = snapshot.inventory_limit(username)
            if limit is not None and len(current.items) >= limit:
                raise InventoryFullError(
                    f"Inventory of {username} is full ({len(current.items)}/{limit})")
            inventories = dict(snapshot.user_inventories)
            inventories[username] = UserInventory(items=list(current.items) + [item],
                                                  max_size=current.max_size)
            return {"user_inventories": inventories}

        return self.submit(changes)

    def remove_inventory_item(self, item_id: str, username: str = None) -> Campaign:
        username = self._username(username)

        def changes(snapshot: Campaign) -> dict:
            current = snapshot.inventory_for(username)
            inventories = dict(snapshot.user_inventories)
            inventories[username] = UserInventory(
                items=[i for i in current.items if i.id != item_id],
                max_size=current.max_size)
            return {"user_inventories": inventories}

        return self.submit(changes)

    def set_inventory_size(self, username: str, max_size: Optional[int]) -> Campaign:
        """Per-player override of the campaign's default size (None clears it)."""
        self._require_owner("change inventory sizes")
        if max_size is not None and max_size < 0:
            raise ValueError(f"Inventory size cannot be negative: {max_size}")

        def changes(snapshot: Campaign) -> dict:
            current = snapshot.inventory_for(username)
            inventories = dict(snapshot.user_inventories)
            inventories[username] = UserInventory(items=list(current.items), max_size=max_size)
            return {"user_inventories": inventories}

        return self.submit(changes)

    # ── Permissions ──

    def set_user_permissions(self, username: str, levels: dict,
                             category_ids=()) -> Campaign:
        """
        Replace one player's policy map. Every id in `category_ids` is
        written explicitly (default full) so nothing is left implicit.
        """
        self._require_owner("change permissions")
        policy = materialize_permissions(levels, category_ids)

        def changes(snapshot: Campaign) -> dict:
            permissions = dict(snapshot.user_permissions)
            permissions[username] = policy
            return {"user_permissions": permissions}

        return self.submit(changes)

    # ── Metadata & session notes ──

    def edit_metadata(self, name=_UNSET, description=_UNSET, invited_usernames=_UNSET,
                      grimoire_id=_UNSET, image=_UNSET, inventory_settings=_UNSET) -> Campaign:
        self._require_owner("edit the campaign")
        fields = {
            "name": name, "description": description,
            "invited_usernames": invited_usernames, "grimoire_id": grimoire_id,
            "image": image, "inventory_settings": inventory_settings,
        }
        fields = {k: v for k, v in fields.items() if v is not _UNSET}
        if "name" in fields and not str(fields["name"]).strip():
            raise ValueError("Campaign name is required.")
        if "invited_usernames" in fields:
            fields["invited_usernames"] = list(fields["invited_usernames"])
        return self.submit(lambda _snapshot: fields)

    def save_session_notes(self, text: str, date: str = None) -> Campaign:
        """Manual save only; there is no autosave."""
        self._require_owner("edit session notes")
        stamp = date or datetime.now().isoformat()
        return self.submit(lambda _s: {"session_notes": text, "session_notes_date": stamp})

    # ── Tracker ──

    def advance_time(self, rng=None) -> dict:
        """
        Advance one time-of-day step and persist. Returns the tracker result;
        `result["error"]` is set when the weather table failed validation
        (time and date were still saved).
        """
        self._require_owner("advance time")
        outcome = {}

        def changes(snapshot: Campaign) -> dict:
            advanced, result = tracker.advance_time(snapshot, rng)
            outcome.clear()
            outcome.update(result)
            return {"tracking": advanced.tracking}

        self.submit(changes)
        return dict(outcome)

    def select_region(self, region_id: Optional[str]) -> Campaign:
        self._require_owner("change the region")
        if region_id is not None and self._campaign.weather_settings.get_region(region_id) is None:
            raise UnknownRegionError(f"Unknown region: {region_id}")
        return self.submit(
            lambda s: {"tracking": tracker.select_region(s, region_id).tracking})

    def set_tracking_visibility(self, **flags) -> Campaign:
        """Toggle show_date / show_time_of_day / show_weather / show_region."""
        self._require_owner("change tracker visibility")

        def changes(snapshot: Campaign) -> dict:
            tracking = copy.deepcopy(snapshot.tracking)
            try:
                tracking.visibility = dataclasses.replace(tracking.visibility, **flags)
            except TypeError as e:
                raise ValueError(f"Unknown visibility flag: {e}") from e
            return {"tracking": tracking}

        return self.submit(changes)
