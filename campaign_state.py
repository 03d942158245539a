"""
Grimoire Ledger v1.0 — Campaign Defaults
Initial values for a freshly created campaign, plus the demo campaign the
reference store seeds itself with. Edit this file to change what a new
campaign starts with.
"""

import re

from models import (
    Campaign, CalendarSettings, WeatherSettings, Tracking, CurrentDate,
    TrackingVisibility, InventorySettings, PredefinedWeatherCondition,
    WeatherRegion, RegionWeatherCondition, Category, Recipe,
)


# ── Default weather conditions (names double as icon keys in the UI) ──
DEFAULT_CONDITIONS = [
    ("cond-sunny", "Sunny"),
    ("cond-cloudy", "Cloudy"),
    ("cond-rain", "Rain"),
    ("cond-windy", "Windy"),
    ("cond-snow", "Snow"),
    ("cond-storm", "Storm"),
]


def campaign_id_from_name(name: str) -> str:
    """'The Tipsy Beholder' -> 'the-tipsy-beholder'."""
    return re.sub(r"\s+", "-", name.strip().lower())


def default_weather_settings() -> WeatherSettings:
    return WeatherSettings(
        predefined_conditions=[PredefinedWeatherCondition(id=cid, name=name)
                               for cid, name in DEFAULT_CONDITIONS],
        regions=[],
    )


def new_campaign(name: str, creator_username: str, description: str = "",
                 invited_usernames: list = None, grimoire_id: str = None,
                 image: str = None, session_notes: str = "") -> Campaign:
    """Campaign with default calendar, weather and tracking. No id yet."""
    return Campaign(
        id="",
        name=name,
        description=description,
        creator_username=creator_username,
        invited_usernames=list(invited_usernames or []),
        image=image,
        grimoire_id=grimoire_id,
        session_notes=session_notes,
        inventory_settings=InventorySettings(type="free", default_size=None),
        calendar_settings=CalendarSettings(days_per_month=30, months_per_year=12,
                                           year_name="AR"),
        weather_settings=default_weather_settings(),
        tracking=Tracking(
            current_date=CurrentDate(day=1, month=1, year=1),
            current_time_of_day="morning",
            current_region_id=None,
            current_weather=None,
            visibility=TrackingVisibility(),
        ),
    )


# ─────────────────────────────────────────────────────
# DEMO CAMPAIGN
# ─────────────────────────────────────────────────────

DEMO_CATEGORIES = [
    Category(id="cat-potion", name="Potions"),
    Category(id="cat-meal", name="Meals"),
]

DEMO_RECIPES = [
    Recipe(
        id="health-potion-cocktail",
        name="Health Potion Cocktail",
        description="A fizzy, red concoction that makes you feel reinvigorated.",
        secret_description="The 'hope' is mostly placebo.",
        category_ids=["cat-potion"],
        rarity_id="uncommon",
    ),
    Recipe(
        id="owlbear-omelette",
        name="Owlbear Omelette",
        description="A famously large and hearty meal, said to feed a whole party.",
        category_ids=["cat-meal"],
        rarity_id="rare",
    ),
]


def load_demo_campaign() -> Campaign:
    """The Guzzling Grimoire: one DM, two players, a temperate region."""
    campaign = new_campaign(
        name="The Guzzling Grimoire",
        creator_username="elminster",
        description="An adventure centered around a sentient, and very hungry, spellbook.",
        invited_usernames=["volo", "drizzt"],
        grimoire_id="elminsters-eats",
    )
    campaign.id = campaign_id_from_name(campaign.name)

    campaign.weather_settings.regions = [
        WeatherRegion(
            id="region-sword-coast",
            name="Sword Coast",
            conditions=[
                RegionWeatherCondition(condition_id="cond-sunny", probability=50),
                RegionWeatherCondition(condition_id="cond-cloudy", probability=30),
                RegionWeatherCondition(condition_id="cond-rain", probability=20),
            ],
        ),
        WeatherRegion(
            id="region-spine-of-the-world",
            name="Spine of the World",
            conditions=[
                RegionWeatherCondition(condition_id="cond-snow", probability=60),
                RegionWeatherCondition(condition_id="cond-windy", probability=25),
                RegionWeatherCondition(condition_id="cond-storm", probability=15),
            ],
        ),
    ]
    campaign.tracking.current_region_id = "region-sword-coast"
    campaign.tracking.current_weather = "Sunny"

    # Drizzt may not brew potions
    campaign.user_permissions = {
        "drizzt": {"cat-potion": "none", "cat-meal": "full"},
    }
    campaign.inventory_settings = InventorySettings(type="limited", default_size=10)
    return campaign
