import pytest

from campaign_state import campaign_id_from_name, load_demo_campaign
from models import (
    Campaign, InventorySettings, UserInventory, campaign_from_dict, campaign_from_json,
    campaign_to_dict, campaign_to_json,
)


def test_demo_campaign_survives_json():
    demo = load_demo_campaign()
    assert campaign_from_json(campaign_to_json(demo)) == demo


def test_wire_format_is_camel_case():
    data = campaign_to_dict(load_demo_campaign())
    assert data["creatorUsername"] == "elminster"
    assert data["tracking"]["currentRegionId"] == "region-sword-coast"
    assert data["weatherSettings"]["regions"][0]["conditions"][0] == {
        "conditionId": "cond-sunny", "probability": 50,
    }


def test_missing_keys_fall_back_to_defaults():
    campaign = campaign_from_dict({"id": "bare", "name": "Bare"})
    assert campaign.tracking.current_time_of_day == "morning"
    assert campaign.calendar_settings.days_per_month == 30
    assert campaign.user_permissions == {}
    assert campaign.version == 0


@pytest.mark.parametrize("patch", [
    {"tracking": {"currentTimeOfDay": "dusk"}},
    {"userPermissions": {"volo": {"cat-a": "some"}}},
    {"calendarSettings": {"daysPerMonth": 0}},
    {"calendarSettings": {"monthsPerYear": 0}},
    {"inventorySettings": {"type": "bottomless"}},
])
def test_invalid_documents_are_rejected(patch):
    with pytest.raises(ValueError):
        campaign_from_dict({"id": "bad", **patch})


def test_inventory_limit():
    campaign = Campaign(inventory_settings=InventorySettings(type="limited", default_size=5))
    assert campaign.inventory_limit("volo") == 5
    campaign.user_inventories["volo"] = UserInventory(max_size=2)
    assert campaign.inventory_limit("volo") == 2
    campaign.inventory_settings = InventorySettings(type="free", default_size=5)
    assert campaign.inventory_limit("volo") is None


def test_campaign_id_from_name():
    assert campaign_id_from_name("The  Tipsy Beholder ") == "the-tipsy-beholder"
