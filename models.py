"""
Grimoire Ledger v1.0 — Data Models
Core data structures for the campaign aggregate.

One Campaign is one document. The store only ever replaces it whole, so
every field here travels on every write. Wire format is camelCase JSON;
Python side is snake_case dataclasses. Conversion is explicit and
backward-compatible: missing keys fall back to defaults.
"""

import json
from dataclasses import dataclass, field
from typing import Optional
from enum import Enum


# ─────────────────────────────────────────────────────
# ENUMS
# ─────────────────────────────────────────────────────

class PermissionLevel(str, Enum):
    FULL = "full"
    PARTIAL = "partial"
    NONE = "none"


class TimeOfDay(str, Enum):
    MORNING = "morning"
    NOON = "noon"
    EVENING = "evening"
    NIGHT = "night"


class UserRole(str, Enum):
    PLAYER = "player"
    DM = "dm"


class InventoryType(str, Enum):
    FREE = "free"
    LIMITED = "limited"


# ─────────────────────────────────────────────────────
# IDENTITY
# ─────────────────────────────────────────────────────

@dataclass
class User:
    """Caller identity as supplied by the session layer."""
    username: str
    role: str = UserRole.PLAYER.value


# ─────────────────────────────────────────────────────
# GRIMOIRE CONTENT (read-only here; used for visibility)
# ─────────────────────────────────────────────────────

@dataclass
class Category:
    id: str
    name: str


@dataclass
class Recipe:
    """A grimoire entry. Visibility is decided by its categories."""
    id: str
    name: str
    description: str = ""
    secret_description: Optional[str] = None    # DM only
    category_ids: list = field(default_factory=list)
    rarity_id: str = ""
    components: list = field(default_factory=list)  # [{recipeId, quantity}]
    image: Optional[str] = None
    value: Optional[str] = None


# ─────────────────────────────────────────────────────
# TRACKING (calendar, clock, weather)
# ─────────────────────────────────────────────────────

@dataclass
class CurrentDate:
    day: int = 1
    month: int = 1
    year: int = 1


@dataclass
class TrackingVisibility:
    """Which tracker readouts players can see."""
    show_date: bool = True
    show_time_of_day: bool = True
    show_weather: bool = True
    show_region: bool = True


@dataclass
class Tracking:
    current_date: CurrentDate = field(default_factory=CurrentDate)
    current_time_of_day: str = TimeOfDay.MORNING.value
    current_region_id: Optional[str] = None
    current_weather: Optional[str] = None       # condition *name*, not id
    visibility: TrackingVisibility = field(default_factory=TrackingVisibility)


@dataclass
class CalendarSettings:
    days_per_month: int = 30
    months_per_year: int = 12
    year_name: str = "AR"


@dataclass
class PredefinedWeatherCondition:
    id: str
    name: str


@dataclass
class RegionWeatherCondition:
    condition_id: str
    probability: float = 0              # percentage, 0..100


@dataclass
class WeatherRegion:
    """Named area with its own weighted weather table. Order matters."""
    id: str
    name: str
    conditions: list = field(default_factory=list)  # list of RegionWeatherCondition


@dataclass
class WeatherSettings:
    predefined_conditions: list = field(default_factory=list)  # PredefinedWeatherCondition
    regions: list = field(default_factory=list)                # WeatherRegion

    def get_region(self, region_id: Optional[str]) -> Optional[WeatherRegion]:
        if region_id is None:
            return None
        for region in self.regions:
            if region.id == region_id:
                return region
        return None


# ─────────────────────────────────────────────────────
# INVENTORY
# ─────────────────────────────────────────────────────

@dataclass
class InventorySettings:
    type: str = InventoryType.FREE.value
    default_size: Optional[int] = None


@dataclass
class InventoryItem:
    id: str
    name: str
    recipe_id: Optional[str] = None     # set when the item comes from a grimoire
    description: Optional[str] = None
    quantity: int = 1
    value: Optional[str] = None
    is_custom: bool = False


@dataclass
class UserInventory:
    items: list = field(default_factory=list)   # list of InventoryItem
    max_size: Optional[int] = None              # overrides campaign default


# ─────────────────────────────────────────────────────
# BESTIARY & NOTES
# ─────────────────────────────────────────────────────

@dataclass
class Monster:
    id: str
    name: str
    creator_username: str = ""
    image: Optional[str] = None
    behavior: str = "neutral"           # aggressive, neutral, friendly
    hit_points: Optional[int] = None
    description: str = ""
    resistances: list = field(default_factory=list)
    damage_types: list = field(default_factory=list)


@dataclass
class Note:
    id: str
    title: str
    content: str = ""
    creator_username: str = ""
    image: Optional[str] = None
    location: str = ""
    tags: list = field(default_factory=list)


# ─────────────────────────────────────────────────────
# CAMPAIGN (the aggregate)
# ─────────────────────────────────────────────────────

@dataclass
class Campaign:
    """The whole per-campaign document. Owned by its creator (the DM)."""

    # META
    id: str = ""
    name: str = ""
    description: str = ""
    creator_username: str = ""
    invited_usernames: list = field(default_factory=list)
    image: Optional[str] = None
    grimoire_id: Optional[str] = None
    session_notes: Optional[str] = None
    session_notes_date: Optional[str] = None

    # SLICES (each written by a different surface)
    bestiary: list = field(default_factory=list)         # list of Monster
    notes: list = field(default_factory=list)            # list of Note
    inventory_settings: InventorySettings = field(default_factory=InventorySettings)
    user_permissions: dict = field(default_factory=dict)  # username -> {categoryId: level}
    user_inventories: dict = field(default_factory=dict)  # username -> UserInventory

    # TIME & WEATHER
    calendar_settings: CalendarSettings = field(default_factory=CalendarSettings)
    weather_settings: WeatherSettings = field(default_factory=WeatherSettings)
    tracking: Tracking = field(default_factory=Tracking)

    # Store-managed write counter
    version: int = 0

    # ── Helpers ──

    def policy_for(self, username: str) -> dict:
        return self.user_permissions.get(username, {})

    def inventory_for(self, username: str) -> UserInventory:
        return self.user_inventories.get(username) or UserInventory()

    def inventory_limit(self, username: str) -> Optional[int]:
        """Effective size limit, or None when the inventory is unbounded."""
        if self.inventory_settings.type != InventoryType.LIMITED.value:
            return None
        inv = self.user_inventories.get(username)
        if inv is not None and inv.max_size is not None:
            return inv.max_size
        return self.inventory_settings.default_size

    def get_note(self, note_id: str) -> Optional[Note]:
        return next((n for n in self.notes if n.id == note_id), None)

    def get_monster(self, monster_id: str) -> Optional[Monster]:
        return next((m for m in self.bestiary if m.id == monster_id), None)


# ─────────────────────────────────────────────────────
# SERIALIZATION
# ─────────────────────────────────────────────────────

def _level(value) -> str:
    return PermissionLevel(value).value


def campaign_to_dict(campaign: Campaign) -> dict:
    """Campaign -> camelCase wire dict."""
    tracking = campaign.tracking
    vis = tracking.visibility
    return {
        "id": campaign.id,
        "name": campaign.name,
        "description": campaign.description,
        "creatorUsername": campaign.creator_username,
        "invitedUsernames": list(campaign.invited_usernames),
        "image": campaign.image,
        "grimoireId": campaign.grimoire_id,
        "sessionNotes": campaign.session_notes,
        "sessionNotesDate": campaign.session_notes_date,
        "bestiary": [
            {
                "id": m.id, "name": m.name,
                "creatorUsername": m.creator_username,
                "image": m.image, "behavior": m.behavior,
                "hitPoints": m.hit_points, "description": m.description,
                "resistances": list(m.resistances),
                "damageTypes": list(m.damage_types),
            }
            for m in campaign.bestiary
        ],
        "notes": [
            {
                "id": n.id, "title": n.title, "content": n.content,
                "creatorUsername": n.creator_username, "image": n.image,
                "location": n.location, "tags": list(n.tags),
            }
            for n in campaign.notes
        ],
        "inventorySettings": {
            "type": campaign.inventory_settings.type,
            "defaultSize": campaign.inventory_settings.default_size,
        },
        "userPermissions": {
            username: {cid: _level(lvl) for cid, lvl in levels.items()}
            for username, levels in campaign.user_permissions.items()
        },
        "userInventories": {
            username: {
                "items": [
                    {
                        "id": i.id, "recipeId": i.recipe_id, "name": i.name,
                        "description": i.description, "quantity": i.quantity,
                        "value": i.value, "isCustom": i.is_custom,
                    }
                    for i in inv.items
                ],
                "maxSize": inv.max_size,
            }
            for username, inv in campaign.user_inventories.items()
        },
        "calendarSettings": {
            "daysPerMonth": campaign.calendar_settings.days_per_month,
            "monthsPerYear": campaign.calendar_settings.months_per_year,
            "yearName": campaign.calendar_settings.year_name,
        },
        "weatherSettings": {
            "predefinedConditions": [
                {"id": c.id, "name": c.name}
                for c in campaign.weather_settings.predefined_conditions
            ],
            "regions": [
                {
                    "id": r.id, "name": r.name,
                    "conditions": [
                        {"conditionId": rc.condition_id, "probability": rc.probability}
                        for rc in r.conditions
                    ],
                }
                for r in campaign.weather_settings.regions
            ],
        },
        "tracking": {
            "currentDate": {
                "day": tracking.current_date.day,
                "month": tracking.current_date.month,
                "year": tracking.current_date.year,
            },
            "currentTimeOfDay": tracking.current_time_of_day,
            "currentRegionId": tracking.current_region_id,
            "currentWeather": tracking.current_weather,
            "visibility": {
                "showDate": vis.show_date,
                "showTimeOfDay": vis.show_time_of_day,
                "showWeather": vis.show_weather,
                "showRegion": vis.show_region,
            },
        },
        "version": campaign.version,
    }


def campaign_from_dict(data: dict) -> Campaign:
    """Wire dict -> Campaign. Raises ValueError on invalid enums or calendar."""
    campaign = Campaign(
        id=data.get("id", ""),
        name=data.get("name", ""),
        description=data.get("description", ""),
        creator_username=data.get("creatorUsername", ""),
        invited_usernames=list(data.get("invitedUsernames", [])),
        image=data.get("image"),
        grimoire_id=data.get("grimoireId"),
        session_notes=data.get("sessionNotes"),
        session_notes_date=data.get("sessionNotesDate"),
        version=int(data.get("version", 0)),
    )

    # BESTIARY
    for mdata in data.get("bestiary", []):
        campaign.bestiary.append(Monster(
            id=mdata["id"],
            name=mdata.get("name", ""),
            creator_username=mdata.get("creatorUsername", ""),
            image=mdata.get("image"),
            behavior=mdata.get("behavior", "neutral"),
            hit_points=mdata.get("hitPoints"),
            description=mdata.get("description", ""),
            resistances=list(mdata.get("resistances", [])),
            damage_types=list(mdata.get("damageTypes", [])),
        ))

    # NOTES
    for ndata in data.get("notes", []):
        campaign.notes.append(Note(
            id=ndata["id"],
            title=ndata.get("title", ""),
            content=ndata.get("content", ""),
            creator_username=ndata.get("creatorUsername", ""),
            image=ndata.get("image"),
            location=ndata.get("location", ""),
            tags=list(ndata.get("tags", [])),
        ))

    # INVENTORY
    isdata = data.get("inventorySettings", {})
    campaign.inventory_settings = InventorySettings(
        type=InventoryType(isdata.get("type", "free")).value,
        default_size=isdata.get("defaultSize"),
    )
    for username, invdata in data.get("userInventories", {}).items():
        items = [
            InventoryItem(
                id=idata["id"],
                name=idata.get("name", ""),
                recipe_id=idata.get("recipeId"),
                description=idata.get("description"),
                quantity=idata.get("quantity", 1),
                value=idata.get("value"),
                is_custom=idata.get("isCustom", False),
            )
            for idata in invdata.get("items", [])
        ]
        campaign.user_inventories[username] = UserInventory(
            items=items, max_size=invdata.get("maxSize"),
        )

    # PERMISSIONS
    for username, levels in data.get("userPermissions", {}).items():
        campaign.user_permissions[username] = {
            cid: _level(lvl) for cid, lvl in (levels or {}).items()
        }

    # CALENDAR
    cdata = data.get("calendarSettings", {})
    calendar = CalendarSettings(
        days_per_month=int(cdata.get("daysPerMonth", 30)),
        months_per_year=int(cdata.get("monthsPerYear", 12)),
        year_name=cdata.get("yearName", "AR"),
    )
    if calendar.days_per_month < 1 or calendar.months_per_year < 1:
        raise ValueError(
            f"Calendar needs at least one day per month and one month per year "
            f"(got daysPerMonth={calendar.days_per_month}, "
            f"monthsPerYear={calendar.months_per_year})")
    campaign.calendar_settings = calendar

    # WEATHER
    wdata = data.get("weatherSettings", {})
    campaign.weather_settings = WeatherSettings(
        predefined_conditions=[
            PredefinedWeatherCondition(id=c["id"], name=c.get("name", ""))
            for c in wdata.get("predefinedConditions", [])
        ],
        regions=[
            WeatherRegion(
                id=r["id"],
                name=r.get("name", ""),
                conditions=[
                    RegionWeatherCondition(
                        condition_id=rc["conditionId"],
                        probability=rc.get("probability", 0),
                    )
                    for rc in r.get("conditions", [])
                ],
            )
            for r in wdata.get("regions", [])
        ],
    )

    # TRACKING
    tdata = data.get("tracking", {})
    ddata = tdata.get("currentDate", {})
    vdata = tdata.get("visibility", {})
    campaign.tracking = Tracking(
        current_date=CurrentDate(
            day=ddata.get("day", 1),
            month=ddata.get("month", 1),
            year=ddata.get("year", 1),
        ),
        current_time_of_day=TimeOfDay(tdata.get("currentTimeOfDay", "morning")).value,
        current_region_id=tdata.get("currentRegionId"),
        current_weather=tdata.get("currentWeather"),
        visibility=TrackingVisibility(
            show_date=vdata.get("showDate", True),
            show_time_of_day=vdata.get("showTimeOfDay", True),
            show_weather=vdata.get("showWeather", True),
            show_region=vdata.get("showRegion", True),
        ),
    )

    return campaign


def campaign_to_json(campaign: Campaign) -> str:
    return json.dumps(campaign_to_dict(campaign), indent=2, ensure_ascii=False)


def campaign_from_json(json_str: str) -> Campaign:
    return campaign_from_dict(json.loads(json_str))
