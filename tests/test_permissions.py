import itertools

import pytest

from campaign_state import DEMO_CATEGORIES, DEMO_RECIPES, load_demo_campaign
from models import PermissionLevel, User
from permissions import (
    can_access, is_owner, materialize_permissions, permission_for,
    resolve_permission, search_recipes, visible_recipes,
)

FULL, PARTIAL, NONE = PermissionLevel.FULL, PermissionLevel.PARTIAL, PermissionLevel.NONE


def test_owner_always_full_even_with_none_policy():
    policy = {"cat-a": "none", "cat-b": "partial"}
    assert resolve_permission(["cat-a", "cat-b"], policy, is_owner=True) is FULL


def test_empty_policy_is_default_open():
    assert resolve_permission(["cat-a", "cat-b"], {}, is_owner=False) is FULL
    assert resolve_permission(["cat-a"], None) is FULL


def test_none_is_absorbing():
    policy = {"cat-a": "full", "cat-b": "none", "cat-c": "partial"}
    assert resolve_permission(["cat-a", "cat-b", "cat-c"], policy) is NONE


def test_partial_dominates_full():
    policy = {"cat-a": "full", "cat-b": "partial"}
    assert resolve_permission(["cat-a", "cat-b"], policy) is PARTIAL


def test_missing_category_defaults_to_full():
    policy = {"cat-other": "none"}
    assert resolve_permission(["cat-a", "cat-b"], policy) is FULL


def test_all_full_or_absent_is_full():
    policy = {"cat-a": "full"}
    assert resolve_permission(["cat-a", "cat-b"], policy) is FULL


def test_enum_values_accepted_in_policy():
    assert resolve_permission(["cat-a"], {"cat-a": PARTIAL}) is PARTIAL


def test_item_without_categories_resolves_full():
    assert resolve_permission([], {"cat-a": "none"}) is FULL


def test_unrecognised_level_counts_as_full():
    assert resolve_permission(["cat-a"], {"cat-a": "some"}) is FULL
    assert resolve_permission(["cat-a", "cat-b"], {"cat-a": "bogus", "cat-b": "partial"}) is PARTIAL


def test_order_does_not_change_result():
    policy = {"a": "partial", "b": "none", "c": "full"}
    for cats in (["a", "c"], ["a", "b", "c"], ["c", "d"]):
        results = {resolve_permission(list(p), policy) for p in itertools.permutations(cats)}
        assert len(results) == 1


def test_identity_gating(dm, player):
    campaign = load_demo_campaign()
    stranger = User(username="mordenkainen")
    assert is_owner(dm, campaign)
    assert not is_owner(player, campaign)
    assert can_access(dm, campaign)
    assert can_access(player, campaign)
    assert not can_access(stranger, campaign)
    assert not can_access(None, campaign)


def test_permission_for_uses_the_users_own_policy():
    campaign = load_demo_campaign()
    assert permission_for(campaign, User("drizzt"), ["cat-potion"]) is NONE
    assert permission_for(campaign, User("volo"), ["cat-potion"]) is FULL
    assert permission_for(campaign, User("elminster"), ["cat-potion"]) is FULL


def test_visible_recipes_drop_none_and_keep_order():
    campaign = load_demo_campaign()
    campaign.user_permissions["volo"] = {"cat-meal": "partial"}

    drizzt = visible_recipes(DEMO_RECIPES, campaign, User("drizzt"))
    assert [r.id for r, _ in drizzt] == ["owlbear-omelette"]

    volo = visible_recipes(DEMO_RECIPES, campaign, User("volo"))
    assert [(r.id, lvl) for r, lvl in volo] == [
        ("health-potion-cocktail", FULL),
        ("owlbear-omelette", PARTIAL),
    ]


def test_partial_recipes_are_not_redacted():
    campaign = load_demo_campaign()
    campaign.user_permissions["volo"] = {"cat-potion": "partial"}
    (recipe, level), _ = visible_recipes(DEMO_RECIPES, campaign, User("volo"))
    assert level is PARTIAL
    assert recipe.description == DEMO_RECIPES[0].description


def test_search_never_matches_hidden_recipes():
    campaign = load_demo_campaign()
    hits = search_recipes(DEMO_RECIPES, "potion", campaign, User("drizzt"), DEMO_CATEGORIES)
    assert hits == []

    hits = search_recipes(DEMO_RECIPES, "POTION", campaign, User("volo"), DEMO_CATEGORIES)
    assert [r.id for r, _ in hits] == ["health-potion-cocktail"]


def test_search_matches_category_name_and_blank_term():
    campaign = load_demo_campaign()
    hits = search_recipes(DEMO_RECIPES, "meals", campaign, User("volo"), DEMO_CATEGORIES)
    assert [r.id for r, _ in hits] == ["owlbear-omelette"]
    assert len(search_recipes(DEMO_RECIPES, "", campaign, User("volo"))) == 2


def test_materialize_fills_every_category():
    policy = materialize_permissions({"cat-a": "none", "stale": PARTIAL}, ["cat-a", "cat-b"])
    assert policy == {"cat-a": "none", "cat-b": "full", "stale": "partial"}


def test_materialize_rejects_unknown_levels():
    with pytest.raises(ValueError):
        materialize_permissions({"cat-a": "secret"}, ["cat-a"])
