"""
Grimoire Ledger v1.0 — Time & Weather Tracker
Pure state transitions over the campaign's calendar, clock and weather.

One advance:
1. Time of day steps once: morning -> noon -> evening -> night -> morning
2. Only the night -> morning wrap moves the date (with month/year rollover)
3. Weather is rolled for the selected region, every call

A region whose probabilities do not sum to 100 is a validation failure:
time still advances, weather stays as it was, and the result carries the
error. Nothing here talks to the store; callers persist the returned copy.
"""

import copy
import logging
from typing import Optional

from models import Campaign, CalendarSettings, CurrentDate, TimeOfDay, WeatherRegion
from dice import roll_percentile

logger = logging.getLogger("grimoire.tracker")


# ─────────────────────────────────────────────────────
# CLOCK
# ─────────────────────────────────────────────────────

TIME_OF_DAY_ORDER = [
    TimeOfDay.MORNING.value,
    TimeOfDay.NOON.value,
    TimeOfDay.EVENING.value,
    TimeOfDay.NIGHT.value,
]

UNKNOWN_WEATHER = "N/A"


def next_time_of_day(time_of_day: str) -> str:
    idx = TIME_OF_DAY_ORDER.index(TimeOfDay(time_of_day).value)
    return TIME_OF_DAY_ORDER[(idx + 1) % len(TIME_OF_DAY_ORDER)]


def advance_calendar(date: CurrentDate, settings: CalendarSettings) -> CurrentDate:
    """Next day. Thresholds come from the campaign, not constants."""
    day, month, year = date.day + 1, date.month, date.year
    if day > settings.days_per_month:
        day = 1
        month += 1
        if month > settings.months_per_year:
            month = 1
            year += 1
    return CurrentDate(day=day, month=month, year=year)


def format_date(campaign: Campaign) -> str:
    d = campaign.tracking.current_date
    return f"Day {d.day}, Month {d.month}, {d.year} {campaign.calendar_settings.year_name}"


# ─────────────────────────────────────────────────────
# WEATHER
# ─────────────────────────────────────────────────────

def region_probability_total(region: WeatherRegion):
    return sum(c.probability for c in region.conditions)


def validate_region(region: WeatherRegion) -> Optional[str]:
    """Error message when the region's table does not sum to exactly 100."""
    total = region_probability_total(region)
    if total != 100:
        return (f"Weather probabilities for region '{region.name}' must sum to 100% "
                f"(currently {total}%)")
    return None


def pick_weather(region: WeatherRegion, predefined_conditions: list, roll: float) -> Optional[str]:
    """
    Walk the table in configured order; the first condition whose
    cumulative probability is >= roll wins. None when nothing matches.
    """
    names = {c.id: c.name for c in predefined_conditions}
    cumulative = 0
    for entry in region.conditions:
        cumulative += entry.probability
        if roll <= cumulative:
            return names.get(entry.condition_id) or UNKNOWN_WEATHER
    return None


def roll_weather(campaign: Campaign, rng=None) -> dict:
    """
    Weather roll for the currently selected region.
    Returns {weather, changed, roll, region, error}; `weather` is the value
    the tracking should hold afterwards.
    """
    tracking = campaign.tracking
    settings = campaign.weather_settings
    result = {
        "weather": tracking.current_weather,
        "changed": False,
        "roll": None,
        "region": tracking.current_region_id,
        "error": None,
    }

    region = settings.get_region(tracking.current_region_id)
    if region is None or not region.conditions:
        return result

    error = validate_region(region)
    if error:
        logger.warning(f"Weather roll skipped for campaign {campaign.id}: {error}")
        result["error"] = error
        return result

    roll = roll_percentile(f"Weather ({region.name})", rng)
    result["roll"] = roll
    picked = pick_weather(region, settings.predefined_conditions, roll["roll"])
    if picked is not None:
        result["weather"] = picked
        result["changed"] = picked != tracking.current_weather
    return result


# ─────────────────────────────────────────────────────
# COMMANDS
# ─────────────────────────────────────────────────────

def advance_time(campaign: Campaign, rng=None) -> tuple[Campaign, dict]:
    """
    Advance one step. Returns (new campaign, result). The input campaign
    is left untouched.
    """
    updated = copy.deepcopy(campaign)
    tracking = updated.tracking

    old_time = tracking.current_time_of_day
    old_date = format_date(campaign)
    new_time = next_time_of_day(old_time)
    tracking.current_time_of_day = new_time

    day_changed = new_time == TimeOfDay.MORNING.value
    if day_changed:
        tracking.current_date = advance_calendar(tracking.current_date,
                                                 updated.calendar_settings)

    weather = roll_weather(updated, rng)
    tracking.current_weather = weather["weather"]

    result = {
        "action": "time_advance",
        "old_time_of_day": old_time,
        "new_time_of_day": new_time,
        "old_date": old_date,
        "new_date": format_date(updated),
        "day_changed": day_changed,
        "weather": tracking.current_weather,
        "weather_changed": weather["changed"],
        "roll": weather["roll"],
        "error": weather["error"],
    }
    return updated, result


def select_region(campaign: Campaign, region_id: Optional[str]) -> Campaign:
    """Set the active region. Never rolls weather."""
    updated = copy.deepcopy(campaign)
    updated.tracking.current_region_id = region_id
    return updated
