from datetime import datetime, timedelta, timezone

import pytest

from src.core.clock import FixedClock, ensure_utc
from src.core.context import CallContext
from src.core.exceptions import RequestCancelledError
from tests.helpers import NOW


class TestClock:
    def test_naive_datetime_is_treated_as_utc(self):
        naive = datetime(2026, 6, 1, 12, 0)
        assert ensure_utc(naive) == datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)

    def test_aware_datetime_is_converted(self):
        plus_three = timezone(timedelta(hours=3))
        value = ensure_utc(datetime(2026, 6, 1, 15, 0, tzinfo=plus_three))
        assert value == datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)
        assert value.tzinfo == timezone.utc

    def test_fixed_clock_moves_only_when_told(self):
        clock = FixedClock(NOW)
        assert clock.now() == NOW
        assert clock.advance(timedelta(hours=2)) == NOW + timedelta(hours=2)
        clock.set(datetime(2027, 1, 1))
        assert clock.now() == datetime(2027, 1, 1, tzinfo=timezone.utc)


class TestCallContext:
    def test_active_context_passes(self):
        CallContext().ensure_active(NOW)

    def test_cancelled_context_raises(self):
        ctx = CallContext()
        ctx.cancel()
        assert ctx.cancelled
        with pytest.raises(RequestCancelledError) as exc_info:
            ctx.ensure_active(NOW)
        assert exc_info.value.status_code == 408

    def test_deadline_passed_raises(self):
        ctx = CallContext(deadline=NOW)
        with pytest.raises(RequestCancelledError, match="deadline"):
            ctx.ensure_active(NOW)
        CallContext(deadline=NOW + timedelta(seconds=1)).ensure_active(NOW)
