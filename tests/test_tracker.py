import random

from conftest import ScriptedRng, make_weather_campaign
from models import Campaign, CalendarSettings, CurrentDate, WeatherRegion
from tracker import (
    UNKNOWN_WEATHER, advance_calendar, advance_time, format_date, next_time_of_day,
    pick_weather, roll_weather, select_region, validate_region,
)


def _campaign_at(day, month, year, time_of_day="night", days_per_month=30, months_per_year=12):
    campaign = Campaign(
        id="c", name="Calendar",
        calendar_settings=CalendarSettings(days_per_month=days_per_month,
                                           months_per_year=months_per_year,
                                           year_name="DR"),
    )
    campaign.tracking.current_date = CurrentDate(day=day, month=month, year=year)
    campaign.tracking.current_time_of_day = time_of_day
    return campaign


# ── Clock & calendar ──

def test_time_of_day_cycle():
    assert next_time_of_day("morning") == "noon"
    assert next_time_of_day("noon") == "evening"
    assert next_time_of_day("evening") == "night"
    assert next_time_of_day("night") == "morning"


def test_four_advances_return_to_morning_one_day_later():
    campaign = _campaign_at(5, 3, 1490, time_of_day="morning")
    for _ in range(4):
        campaign, result = advance_time(campaign)
    assert campaign.tracking.current_time_of_day == "morning"
    assert (campaign.tracking.current_date.day, campaign.tracking.current_date.month) == (6, 3)


def test_only_night_to_morning_moves_the_date():
    campaign = _campaign_at(5, 3, 1490, time_of_day="noon")
    advanced, result = advance_time(campaign)
    assert advanced.tracking.current_date.day == 5
    assert result["day_changed"] is False


def test_month_rollover():
    advanced, result = advance_time(_campaign_at(30, 4, 1490))
    date = advanced.tracking.current_date
    assert (date.day, date.month, date.year) == (1, 5, 1490)
    assert result["day_changed"] is True


def test_year_rollover():
    advanced, _ = advance_time(_campaign_at(30, 12, 1490))
    date = advanced.tracking.current_date
    assert (date.day, date.month, date.year) == (1, 1, 1491)


def test_thresholds_come_from_campaign_settings():
    settings = CalendarSettings(days_per_month=1, months_per_year=1)
    nxt = advance_calendar(CurrentDate(day=1, month=1, year=7), settings)
    assert (nxt.day, nxt.month, nxt.year) == (1, 1, 8)


def test_advance_does_not_touch_the_input():
    campaign = _campaign_at(30, 12, 1490)
    advance_time(campaign)
    assert campaign.tracking.current_time_of_day == "night"
    assert campaign.tracking.current_date.day == 30


def test_format_date():
    assert format_date(_campaign_at(2, 7, 1490)) == "Day 2, Month 7, 1490 DR"


# ── Weather ──

def test_draw_of_30_is_sunny_and_90_is_rain(weather_campaign):
    region = weather_campaign.weather_settings.regions[0]
    predefined = weather_campaign.weather_settings.predefined_conditions
    assert pick_weather(region, predefined, 30) == "Sunny"
    assert pick_weather(region, predefined, 90) == "Rain"


def test_upper_bound_is_closed_and_first_match_wins(weather_campaign):
    region = weather_campaign.weather_settings.regions[0]
    predefined = weather_campaign.weather_settings.predefined_conditions
    assert pick_weather(region, predefined, 60) == "Sunny"
    assert pick_weather(region, predefined, 60.0001) == "Rain"


def test_list_order_is_significant():
    flipped = make_weather_campaign([("Rain", 40), ("Sunny", 60)])
    region = flipped.weather_settings.regions[0]
    assert pick_weather(region, flipped.weather_settings.predefined_conditions, 30) == "Rain"


def test_unknown_condition_id_reads_as_na(weather_campaign):
    weather_campaign.weather_settings.predefined_conditions = []
    region = weather_campaign.weather_settings.regions[0]
    assert pick_weather(region, [], 10) == UNKNOWN_WEATHER


def test_scripted_draw_is_used(weather_campaign):
    advanced, result = advance_time(weather_campaign, ScriptedRng(0.3))
    assert advanced.tracking.current_weather == "Sunny"
    advanced, result = advance_time(weather_campaign, ScriptedRng(0.9))
    assert advanced.tracking.current_weather == "Rain"
    assert result["weather_changed"] is True
    assert result["roll"]["expression"] == "d100"


def test_same_seed_same_weather(weather_campaign):
    first, _ = advance_time(weather_campaign, random.Random(1234))
    second, _ = advance_time(weather_campaign, random.Random(1234))
    assert first.tracking.current_weather == second.tracking.current_weather


def test_weather_rolls_on_every_advance_not_only_new_days(weather_campaign):
    weather_campaign.tracking.current_time_of_day = "morning"
    advanced, result = advance_time(weather_campaign, ScriptedRng(0.1))
    assert result["day_changed"] is False
    assert advanced.tracking.current_weather == "Sunny"


def test_bad_probability_sum_keeps_weather_but_advances_time():
    campaign = make_weather_campaign([("Sunny", 50), ("Rain", 40)], weather="Fog")
    campaign.tracking.current_time_of_day = "night"
    advanced, result = advance_time(campaign, ScriptedRng(0.5))

    assert result["error"] is not None
    assert "100" in result["error"]
    assert advanced.tracking.current_weather == "Fog"
    assert advanced.tracking.current_time_of_day == "morning"
    assert advanced.tracking.current_date.day == 2


def test_validate_region():
    ok = make_weather_campaign([("Sunny", 100)]).weather_settings.regions[0]
    bad = make_weather_campaign([("Sunny", 90)]).weather_settings.regions[0]
    assert validate_region(ok) is None
    assert validate_region(bad)


def test_region_without_conditions_leaves_weather():
    campaign = make_weather_campaign([], weather="Cloudy")
    result = roll_weather(campaign, ScriptedRng())
    assert result["weather"] == "Cloudy"
    assert result["error"] is None


def test_no_region_selected_leaves_weather(weather_campaign):
    weather_campaign.tracking.current_region_id = None
    advanced, result = advance_time(weather_campaign, ScriptedRng())
    assert advanced.tracking.current_weather == "Cloudy"
    assert result["roll"] is None


def test_select_region_never_rolls(weather_campaign):
    other = WeatherRegion(id="region-b", name="B")
    weather_campaign.weather_settings.regions.append(other)
    updated = select_region(weather_campaign, "region-b")
    assert updated.tracking.current_region_id == "region-b"
    assert updated.tracking.current_weather == "Cloudy"
    assert weather_campaign.tracking.current_region_id == "region-a"
