from datetime import datetime

from src.modules.reservations.models import BLOCKING_STATUSES
from src.modules.reservations.store import ReservationStore


def ranges_overlap(start1: datetime, end1: datetime, start2: datetime, end2: datetime) -> bool:
    """Closed intervals: touching endpoints count as an overlap."""
    return start1 <= end2 and start2 <= end1


class ConflictChecker:
    """
    Finds approved or paid reservations that overlap a candidate window.

    The answer is only meaningful while the caller holds the item's lock
    (see ItemLockRegistry) until its own write is done.
    """

    def __init__(self, store: ReservationStore):
        self.store = store

    async def has_blocking_overlap(
        self,
        item_id: int,
        start: datetime,
        end: datetime,
        exclude_id: int | None = None,
    ) -> bool:
        candidates = await self.store.list_by_item(item_id, statuses=BLOCKING_STATUSES)
        for r in candidates:
            if r.id != exclude_id and ranges_overlap(start, end, r.start, r.end):
                return True
        return False
