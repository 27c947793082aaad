import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from src.core.exceptions import ServiceUnavailableError

logger = logging.getLogger(__name__)


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class ItemLockRegistry:
    """
    One asyncio.Lock per item id, created on demand.

    Different items never contend. Waiting is bounded by `timeout` seconds and
    a timeout surfaces as ServiceUnavailableError instead of hanging. A call
    path must hold at most one item lock at a time.
    """

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout
        self._entries: dict[int, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    @asynccontextmanager
    async def hold(self, item_id: int) -> AsyncIterator[None]:
        entry = self._entries.get(item_id)
        if entry is None:
            entry = self._entries[item_id] = _Entry()
        entry.users += 1
        try:
            try:
                await asyncio.wait_for(entry.lock.acquire(), timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.warning("Timed out after %.1fs waiting for lock on item %s", self.timeout, item_id)
                raise ServiceUnavailableError(
                    f"Item {item_id} is busy, retry the request"
                ) from None
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            entry.users -= 1
            if entry.users == 0:
                self._entries.pop(item_id, None)
