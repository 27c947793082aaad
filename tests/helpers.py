"""Shared ids, dates and header helpers for the test suite."""

from datetime import datetime, timedelta, timezone

NOW = datetime(2026, 6, 1, 10, 0, tzinfo=timezone.utc)

RENTER_ID = 1
OWNER_ID = 2
ADMIN_ID = 3
OTHER_RENTER_ID = 4
OTHER_OWNER_ID = 5

ITEM_ID = 100  # owned by OWNER_ID, 50/day
SECOND_ITEM_ID = 101  # owned by OWNER_ID, 30/day
OTHER_ITEM_ID = 200  # owned by OTHER_OWNER_ID, 20/day
ORPHAN_ITEM_ID = 300  # no owner


def days_from_now(days: float, hours: float = 0) -> datetime:
    return NOW + timedelta(days=days, hours=hours)


def auth(user_id: int) -> dict[str, str]:
    """Headers identifying the caller to the API."""
    return {"X-User-Id": str(user_id)}
