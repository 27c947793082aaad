from datetime import datetime

from src.core.clock import ensure_utc
from src.core.exceptions import RequestCancelledError


class CallContext:
    """
    Per-request cancellation handle passed into reservation operations.

    The HTTP layer (or any other caller) creates one per request, optionally
    with a deadline, and calls `cancel()` when the client goes away. Operations
    check it once before they start a transition; a write that already started
    always completes.
    """

    def __init__(self, deadline: datetime | None = None):
        self.deadline = ensure_utc(deadline) if deadline else None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def ensure_active(self, now: datetime) -> None:
        if self._cancelled:
            raise RequestCancelledError()
        if self.deadline is not None and now >= self.deadline:
            raise RequestCancelledError("Request deadline exceeded")
