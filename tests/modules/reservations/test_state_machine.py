import pytest

from src.core.exceptions import InvalidStateError
from src.modules.reservations.models import TERMINAL_STATUSES, ReservationStatus
from src.modules.reservations.state_machine import (
    TRANSITIONS,
    ReservationAction,
    can_apply,
    next_status,
)


class TestTransitionTable:
    def test_allowed_transitions(self):
        assert next_status(ReservationStatus.PENDING_APPROVAL, ReservationAction.APPROVE) == ReservationStatus.APPROVED
        assert next_status(ReservationStatus.PENDING_APPROVAL, ReservationAction.REJECT) == ReservationStatus.REJECTED
        assert next_status(ReservationStatus.APPROVED, ReservationAction.PAY) == ReservationStatus.PAID
        assert next_status(ReservationStatus.PAID, ReservationAction.COMPLETE) == ReservationStatus.COMPLETED
        for status in (ReservationStatus.PENDING_APPROVAL, ReservationStatus.APPROVED, ReservationStatus.PAID):
            assert next_status(status, ReservationAction.CANCEL) == ReservationStatus.CANCELLED

    @pytest.mark.parametrize("status", sorted(TERMINAL_STATUSES))
    @pytest.mark.parametrize("action", list(ReservationAction))
    def test_terminal_states_accept_nothing(self, status, action):
        assert not can_apply(status, action)
        with pytest.raises(InvalidStateError):
            next_status(status, action)

    def test_unlisted_combinations_are_rejected(self):
        assert not can_apply(ReservationStatus.PENDING_APPROVAL, ReservationAction.PAY)
        assert not can_apply(ReservationStatus.APPROVED, ReservationAction.APPROVE)
        assert not can_apply(ReservationStatus.PAID, ReservationAction.REJECT)

    def test_error_carries_status_and_action(self):
        with pytest.raises(InvalidStateError) as exc_info:
            next_status(ReservationStatus.REJECTED, ReservationAction.PAY)
        assert exc_info.value.details == {"status": "REJECTED", "action": "PAY"}
        assert "REJECTED" in exc_info.value.message

    def test_every_transition_leaves_its_source(self):
        for (source, _), target in TRANSITIONS.items():
            assert source != target
            assert not source.is_terminal
