"""Allowed reservation transitions. Anything not listed here is rejected."""

from enum import StrEnum

from src.core.exceptions import InvalidStateError
from src.modules.reservations.models import ReservationStatus


class ReservationAction(StrEnum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    PAY = "PAY"
    CANCEL = "CANCEL"
    COMPLETE = "COMPLETE"


TRANSITIONS: dict[tuple[ReservationStatus, ReservationAction], ReservationStatus] = {
    (ReservationStatus.PENDING_APPROVAL, ReservationAction.APPROVE): ReservationStatus.APPROVED,
    (ReservationStatus.PENDING_APPROVAL, ReservationAction.REJECT): ReservationStatus.REJECTED,
    (ReservationStatus.PENDING_APPROVAL, ReservationAction.CANCEL): ReservationStatus.CANCELLED,
    (ReservationStatus.APPROVED, ReservationAction.PAY): ReservationStatus.PAID,
    (ReservationStatus.APPROVED, ReservationAction.CANCEL): ReservationStatus.CANCELLED,
    (ReservationStatus.PAID, ReservationAction.COMPLETE): ReservationStatus.COMPLETED,
    (ReservationStatus.PAID, ReservationAction.CANCEL): ReservationStatus.CANCELLED,
}


def can_apply(current: ReservationStatus, action: ReservationAction) -> bool:
    return (current, action) in TRANSITIONS


def next_status(current: ReservationStatus, action: ReservationAction) -> ReservationStatus:
    """Return the status `action` leads to from `current`, or raise InvalidStateError."""
    try:
        return TRANSITIONS[(current, action)]
    except KeyError:
        raise InvalidStateError(
            f"Cannot {action.value.lower()} a reservation in status {current.value}",
            details={"status": current.value, "action": action.value},
        ) from None
