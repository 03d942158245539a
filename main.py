"""
Grimoire Ledger v1.0 — Tracker CLI
Inspect and drive a campaign's clock against a running store.

Usage:
    python main.py --user volo --list              # campaigns for a user
    python main.py <campaign> --user elminster     # show tracker status
    python main.py <campaign> --user elminster --advance 4
    python main.py <campaign> --user elminster --region region-sword-coast
"""

import sys

from config import configure_logging
from coordinator import AccessDeniedError, UnknownRegionError, UpdateCoordinator
from models import User, UserRole
from permissions import is_owner
from store import CampaignNotFoundError, CampaignStore, StoreError
from tracker import format_date


def _flag_value(args: list, flag: str):
    if flag in args:
        idx = args.index(flag)
        if idx + 1 < len(args):
            return args[idx + 1]
    return None


def show_status(campaign, user: User):
    """Print the tracker as this user would see it."""
    owner = is_owner(user, campaign)
    vis = campaign.tracking.visibility
    region = campaign.weather_settings.get_region(campaign.tracking.current_region_id)

    print(f"\n{'═'*60}")
    print(f"  {campaign.name}  (v{campaign.version})")
    print(f"{'═'*60}")
    if owner or vis.show_time_of_day:
        print(f"  Time:    {campaign.tracking.current_time_of_day}")
    if owner or vis.show_weather:
        print(f"  Weather: {campaign.tracking.current_weather or 'N/A'}")
    if owner or vis.show_date:
        print(f"  Date:    {format_date(campaign)}")
    if owner or vis.show_region:
        print(f"  Region:  {region.name if region else '—'}")
    print(f"{'═'*60}")


def list_campaigns(store: CampaignStore, user: User):
    campaigns = store.fetch_all_for_user(user.username)
    print(f"\n  CAMPAIGNS FOR {user.username} ({len(campaigns)}):")
    for c in campaigns:
        role = "DM" if c.creator_username == user.username else "player"
        print(f"  • {c.id}: {c.name} [{role}]")


def advance(coord: UpdateCoordinator, steps: int):
    for _ in range(steps):
        result = coord.advance_time()
        line = (f"  {result['old_time_of_day']} -> {result['new_time_of_day']}"
                f"  | {result['new_date']}  | weather: {result['weather'] or 'N/A'}")
        print(line)
        if result.get("error"):
            print(f"  ⚠️  {result['error']}")


def main(argv: list = None, store: CampaignStore = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    configure_logging("WARNING")

    username = _flag_value(args, "--user")
    if not username:
        print("Usage: main.py [<campaign>] --user NAME [--list|--advance N|--region ID]")
        return 2
    user = User(username=username, role=_flag_value(args, "--role") or UserRole.DM.value)
    store = store or CampaignStore()

    try:
        if "--list" in args:
            list_campaigns(store, user)
            return 0

        positional = [a for i, a in enumerate(args)
                      if not a.startswith("--") and (i == 0 or not args[i - 1].startswith("--"))]
        if not positional:
            print("No campaign id given.")
            return 2
        coord = UpdateCoordinator.load(store, positional[0], user)

        region_id = _flag_value(args, "--region")
        if region_id:
            coord.select_region(region_id)
            print(f"  Region set to {region_id}")

        steps = _flag_value(args, "--advance")
        if steps:
            advance(coord, int(steps))

        show_status(coord.campaign, user)
        return 0
    except CampaignNotFoundError as e:
        print(f"Not found: {e.campaign_id}")
        return 1
    except (AccessDeniedError, UnknownRegionError) as e:
        print(f"Refused: {e}")
        return 1
    except ValueError as e:
        print(f"Invalid input: {e}")
        return 2
    except StoreError as e:
        print(f"Store error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
