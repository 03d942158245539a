"""
Grimoire Ledger v1.0 — Permission Resolver
Decides how much of a grimoire entry a player may see.

Resolution per item, for a non-owner with policy map P:
  owner                      -> full (P ignored)
  P empty                    -> full (default-open)
  any category maps to none  -> none (absorbing, short-circuits)
  any category maps partial  -> partial
  otherwise                  -> full (missing keys count as full)

Consumers: `none` removes the item from listings and search.
`partial` currently renders exactly like `full`; no redaction is applied.
"""

from models import Campaign, PermissionLevel, Recipe, User


# ─────────────────────────────────────────────────────
# RESOLUTION
# ─────────────────────────────────────────────────────

def resolve_permission(category_ids, policy: dict, is_owner: bool = False) -> PermissionLevel:
    """
    Effective access level for an item with the given categories.
    An item with no categories resolves to full, and so does a policy
    entry holding an unrecognised level.
    """
    if is_owner:
        return PermissionLevel.FULL
    if not policy:
        return PermissionLevel.FULL

    level = PermissionLevel.FULL
    for category_id in category_ids:
        try:
            found = PermissionLevel(policy.get(category_id, PermissionLevel.FULL))
        except ValueError:
            found = PermissionLevel.FULL
        if found is PermissionLevel.NONE:
            return PermissionLevel.NONE
        if found is PermissionLevel.PARTIAL:
            level = PermissionLevel.PARTIAL
    return level


# ─────────────────────────────────────────────────────
# IDENTITY GATING
# ─────────────────────────────────────────────────────

def is_owner(user: User, campaign: Campaign) -> bool:
    return user is not None and user.username == campaign.creator_username


def can_access(user: User, campaign: Campaign) -> bool:
    """Creator or invited player."""
    if user is None:
        return False
    return is_owner(user, campaign) or user.username in campaign.invited_usernames


def permission_for(campaign: Campaign, user: User, category_ids) -> PermissionLevel:
    """Resolve against the user's own policy in this campaign."""
    return resolve_permission(
        category_ids,
        campaign.policy_for(user.username),
        is_owner=is_owner(user, campaign),
    )


# ─────────────────────────────────────────────────────
# LISTING & SEARCH
# ─────────────────────────────────────────────────────

def visible_recipes(recipes: list, campaign: Campaign, user: User) -> list[tuple]:
    """
    Recipes the user may see, as (recipe, level) pairs in original order.
    Entries resolving to none are dropped.
    """
    visible = []
    for recipe in recipes:
        level = permission_for(campaign, user, recipe.category_ids)
        if level is PermissionLevel.NONE:
            continue
        visible.append((recipe, level))
    return visible


def search_recipes(recipes: list, term: str, campaign: Campaign, user: User,
                   categories: list = None) -> list[tuple]:
    """
    Case-insensitive search over name, description and category names.
    Hidden recipes never match, whatever the term.
    """
    needle = (term or "").strip().lower()
    names = {c.id: c.name.lower() for c in (categories or [])}

    def _matches(recipe: Recipe) -> bool:
        if not needle:
            return True
        if needle in recipe.name.lower() or needle in (recipe.description or "").lower():
            return True
        return any(needle in names.get(cid, "") for cid in recipe.category_ids)

    return [(r, lvl) for r, lvl in visible_recipes(recipes, campaign, user) if _matches(r)]


# ─────────────────────────────────────────────────────
# WRITE-TIME MATERIALIZATION
# ─────────────────────────────────────────────────────

def materialize_permissions(levels: dict, category_ids) -> dict:
    """
    Explicit policy map: every known category gets an entry, defaulting
    to full. Entries for categories outside `category_ids` are kept.
    Raises ValueError on an unknown level.
    """
    materialized = {cid: PermissionLevel(lvl).value for cid, lvl in (levels or {}).items()}
    for category_id in category_ids:
        materialized.setdefault(category_id, PermissionLevel.FULL.value)
    return materialized
