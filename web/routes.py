"""
Grimoire Ledger v1.0 — Store Routes
Reference aggregate store: campaigns by id, whole-document replace.

Replace is unconditional last-write-wins unless the caller sends
If-Match with the version it read; then a stale write gets 409.
Every accepted write bumps `version`.
"""

import dataclasses
import json
import logging
import os
import threading
from typing import Optional

from fastapi import Body, FastAPI, Header, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from campaign_state import campaign_id_from_name, load_demo_campaign, new_campaign
from models import Campaign, campaign_from_dict, campaign_to_dict, campaign_to_json

logger = logging.getLogger("grimoire.web")


# ─────────────────────────────────────────────────────
# REPOSITORY
# ─────────────────────────────────────────────────────

class StaleVersionError(Exception):
    def __init__(self, current: int):
        super().__init__(f"stored version is {current}")
        self.current = current


class CampaignRepository:
    """
    In-memory campaign map, optionally mirrored to one JSON file per
    campaign under `data_dir`.
    """

    def __init__(self, data_dir: str = None):
        self.data_dir = data_dir
        self._campaigns: dict[str, Campaign] = {}
        self._lock = threading.Lock()

    def load(self):
        if not self.data_dir or not os.path.isdir(self.data_dir):
            return
        for filename in sorted(os.listdir(self.data_dir)):
            if not filename.endswith(".json"):
                continue
            path = os.path.join(self.data_dir, filename)
            try:
                with open(path, "r", encoding="utf-8") as f:
                    campaign = campaign_from_dict(json.load(f))
            except (OSError, ValueError, KeyError) as e:
                logger.error(f"Skipping unreadable campaign file {filename}: {e}")
                continue
            self._campaigns[campaign.id] = campaign
        logger.info(f"Loaded {len(self._campaigns)} campaign(s) from {self.data_dir}")

    def _persist(self, campaign: Campaign):
        if not self.data_dir:
            return
        os.makedirs(self.data_dir, exist_ok=True)
        path = os.path.join(self.data_dir, f"{campaign.id}.json")
        tmp_path = path + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(campaign_to_json(campaign))
        os.replace(tmp_path, path)

    def count(self) -> int:
        return len(self._campaigns)

    def get(self, campaign_id: str) -> Optional[Campaign]:
        return self._campaigns.get(campaign_id)

    def for_user(self, username: str) -> list[Campaign]:
        return [c for c in self._campaigns.values()
                if c.creator_username == username or username in c.invited_usernames]

    def add(self, campaign: Campaign) -> Campaign:
        with self._lock:
            base = campaign.id or "campaign"
            candidate, n = base, 2
            while candidate in self._campaigns:
                candidate = f"{base}-{n}"
                n += 1
            staged = dataclasses.replace(campaign, id=candidate, version=1)
            self._persist(staged)
            self._campaigns[staged.id] = staged
        return staged

    def replace(self, campaign_id: str, campaign: Campaign,
                expected_version: Optional[int] = None) -> Campaign:
        """Raises KeyError when missing, StaleVersionError on mismatch."""
        with self._lock:
            current = self._campaigns.get(campaign_id)
            if current is None:
                raise KeyError(campaign_id)
            if expected_version is not None and expected_version != current.version:
                raise StaleVersionError(current.version)
            staged = dataclasses.replace(campaign, id=campaign_id,
                                         version=current.version + 1)
            # Memory only changes once the file write has succeeded
            self._persist(staged)
            self._campaigns[campaign_id] = staged
        return staged


# ─────────────────────────────────────────────────────
# APP SETUP
# ─────────────────────────────────────────────────────

app = FastAPI(title="Grimoire Ledger — Campaign Store", version="1.0")
repository = CampaignRepository()


def init_store(data_dir: str = None, seed: bool = False):
    """Reset the repository. Called from server.py and test fixtures."""
    global repository
    repository = CampaignRepository(data_dir)
    repository.load()
    if seed and repository.get(load_demo_campaign().id) is None:
        repository.add(load_demo_campaign())
    return repository


def _parse(payload: dict) -> Campaign:
    try:
        return campaign_from_dict(payload)
    except (ValueError, KeyError, TypeError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid campaign document: {e}")


def _respond(campaign: Campaign, status_code: int = 200) -> JSONResponse:
    return JSONResponse(campaign_to_dict(campaign), status_code=status_code,
                        headers={"ETag": str(campaign.version)})


# ─────────────────────────────────────────────────────
# CAMPAIGN API
# ─────────────────────────────────────────────────────

@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.get("/api/campaigns")
async def list_campaigns(user: str):
    """Campaigns created by or shared with `user`."""
    return JSONResponse([campaign_to_dict(c) for c in repository.for_user(user)])


@app.get("/api/campaigns/{campaign_id}")
async def get_campaign(campaign_id: str):
    campaign = repository.get(campaign_id)
    if campaign is None:
        raise HTTPException(status_code=404, detail=f"Campaign not found: {campaign_id}")
    return _respond(campaign)


class CreateCampaignRequest(BaseModel):
    name: str
    creatorUsername: str
    description: str = ""
    invitedUsernames: list[str] = []
    grimoireId: Optional[str] = None
    image: Optional[str] = None
    sessionNotes: Optional[str] = ""


@app.post("/api/campaigns")
async def create_campaign(req: CreateCampaignRequest):
    """Create with default calendar, weather and tracking."""
    if not req.name.strip():
        raise HTTPException(status_code=422, detail="Campaign name is required.")
    campaign = new_campaign(
        name=req.name,
        creator_username=req.creatorUsername,
        description=req.description,
        invited_usernames=req.invitedUsernames,
        grimoire_id=req.grimoireId,
        image=req.image,
        session_notes=req.sessionNotes,
    )
    campaign.id = campaign_id_from_name(req.name)
    campaign = repository.add(campaign)
    logger.info(f"Created campaign {campaign.id} for {campaign.creator_username}")
    return _respond(campaign, status_code=201)


@app.put("/api/campaigns/{campaign_id}")
async def replace_campaign(campaign_id: str, payload: dict = Body(...),
                           if_match: Optional[str] = Header(None)):
    """Whole-document replace. Echoes what was stored."""
    campaign = _parse(payload)

    expected = None
    if if_match is not None:
        try:
            expected = int(if_match.strip('"'))
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Bad If-Match: {if_match}")

    try:
        stored = repository.replace(campaign_id, campaign, expected)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Campaign not found: {campaign_id}")
    except StaleVersionError as e:
        current = e.current
        logger.info(f"Rejected stale write to {campaign_id}: "
                    f"expected v{expected}, stored v{current}")
        return JSONResponse(
            {"detail": f"Version mismatch: expected {expected}, stored {current}"},
            status_code=409,
            headers={"ETag": str(current)},
        )
    return _respond(stored)
