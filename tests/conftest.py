import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from campaign_state import load_demo_campaign
from models import (
    Campaign, CalendarSettings, PredefinedWeatherCondition, RegionWeatherCondition,
    User, WeatherRegion, WeatherSettings,
)
from store import CampaignStore
from web import routes


class ScriptedRng:
    """Stands in for random.Random: returns queued values from .random()."""

    def __init__(self, *values):
        self.values = list(values)

    def random(self):
        return self.values.pop(0)


@pytest.fixture
def client():
    routes.init_store(None)
    with TestClient(routes.app) as c:
        yield c


@pytest.fixture
def store(client):
    return CampaignStore(client=client)


@pytest.fixture
def dm():
    return User(username="elminster", role="dm")


@pytest.fixture
def player():
    return User(username="volo", role="player")


@pytest.fixture
def demo(store):
    """Demo campaign stored through the API; returns its fetched copy."""
    routes.repository.add(load_demo_campaign())
    return store.fetch("the-guzzling-grimoire")


def make_weather_campaign(conditions, region_id="region-a", weather=None,
                          days_per_month=30, months_per_year=12) -> Campaign:
    """Campaign with one region; `conditions` is [(name, probability), ...]."""
    predefined = [PredefinedWeatherCondition(id=f"cond-{name.lower()}", name=name)
                  for name, _ in conditions]
    region = WeatherRegion(
        id=region_id, name="Test Region",
        conditions=[RegionWeatherCondition(condition_id=f"cond-{name.lower()}",
                                           probability=p)
                    for name, p in conditions],
    )
    campaign = Campaign(
        id="weather-test", name="Weather Test", creator_username="elminster",
        calendar_settings=CalendarSettings(days_per_month=days_per_month,
                                           months_per_year=months_per_year),
        weather_settings=WeatherSettings(predefined_conditions=predefined,
                                         regions=[region]),
    )
    campaign.tracking.current_region_id = region_id
    campaign.tracking.current_weather = weather
    return campaign


@pytest.fixture
def weather_campaign():
    return make_weather_campaign([("Sunny", 60), ("Rain", 40)], weather="Cloudy")
