#!/usr/bin/env python3
"""
List MS365 users and their calendars, to pick CALENDAR_USER_ID and CALENDAR_ID.

Usage:
    uv run python src/scripts/list_users_calendars.py
    uv run python src/scripts/list_users_calendars.py --user reservations@example.com
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.graph_client import get_graph_client


async def print_calendars(graph, user_id: str) -> None:
    try:
        calendars_response = await graph.users.by_user_id(user_id).calendars.get()
        calendars = calendars_response.value if calendars_response.value else []
    except Exception as e:
        print(f"  Error fetching calendars: {e}")
        return

    if not calendars:
        print("  Calendars: None")
        return

    print(f"  Calendars ({len(calendars)}):")
    for cal in calendars:
        default = " (default)" if cal.is_default_calendar else ""
        print(f"    - {cal.name}{default}")
        print(f"      CALENDAR_ID={cal.id}")


async def main(user: str | None):
    """List users (or one user) and their calendars."""
    graph = get_graph_client()

    if user:
        print(f"\nUser: {user}")
        print(f"  CALENDAR_USER_ID={user}")
        await print_calendars(graph, user)
        return

    print("Fetching users from MS365...\n")
    users_response = await graph.users.get()
    users = users_response.value if users_response.value else []

    print(f"Found {len(users)} users\n")
    print("=" * 80)

    for entry in users:
        print(f"\nUser: {entry.display_name}")
        print(f"  CALENDAR_USER_ID={entry.user_principal_name}")
        await print_calendars(graph, entry.id)
        print("-" * 80)

    print("\nDone!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="List MS365 users and calendar ids")
    parser.add_argument("--user", help="Only list calendars for this user (id or UPN)")
    args = parser.parse_args()

    asyncio.run(main(args.user))
