#!/usr/bin/env python3
"""
Exercise the calendar endpoints of a running server end to end.

Creates a reservation, renames it, lists events, then deletes it by its new
name. Uses the first key in API_KEYS for the authenticated health check.

Usage:
    uv run python src/scripts/smoke_test_calendar.py --base-url http://localhost:3000
"""

import argparse
import sys
import time
from datetime import date, timedelta
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx

from core.config import API_KEYS


def check(response: httpx.Response, expected: int, step: str) -> dict | list:
    print(f"{step}: {response.status_code}")
    if response.status_code != expected:
        print(f"  Expected {expected}, got body: {response.text}")
        sys.exit(1)
    return response.json()


def main():
    parser = argparse.ArgumentParser(description="Smoke-test the calendar endpoints")
    parser.add_argument("--base-url", default="http://localhost:3000")
    parser.add_argument("--user-id", help="Send a userId (for the 'user' key strategy)")
    args = parser.parse_args()

    headers = {"x-api-key": API_KEYS[0]} if API_KEYS else {}
    user_id = args.user_id
    name = f"Smoke Test {int(time.time())}"
    reservation = {
        "date": (date.today() + timedelta(days=14)).isoformat(),
        "time": "19:00",
        "partySize": 4,
        "email": "smoke-test@example.com",
        "restaurantName": "Test Restaurant",
        "restaurantAddress": "123 Test Street, Anytown, USA",
        "name": name,
    }
    if user_id:
        reservation["userId"] = user_id

    with httpx.Client(base_url=args.base_url, headers=headers, timeout=30) as client:
        check(client.get("/health"), 200, "0. Health")

        created = check(client.post("/calendar/events", json=reservation), 201, "1. Create")
        event_id = created["id"]
        print(f"  Event ID: {event_id}")

        renamed = f"{name} (renamed)"
        update = {"name": renamed, "partySize": 6}
        if user_id:
            update["userId"] = user_id
        check(client.put(f"/calendar/events/{event_id}", json=update), 200, "2. Update")

        listing = client.get(f"/calendar/users/{user_id}/events" if user_id else "/calendar/events")
        events = check(listing, 200, "3. List")
        print(f"  {len(events)} event(s) stored")

        owner = {"userId": user_id} if user_id else None
        response = client.request("DELETE", f"/calendar/events/{renamed}", json=owner)
        if response.status_code == 404:
            # 'id' key strategy keeps no name index
            response = client.request("DELETE", f"/calendar/events/{event_id}", json=owner)
        deleted = check(response, 200, "4. Delete")
        print(f"  Deleted: {deleted}")

    print("\nAll calendar endpoints responded as expected.")


if __name__ == "__main__":
    main()
