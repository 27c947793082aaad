from datetime import datetime
from enum import StrEnum
from typing import Any

from src.shared.schemas import BaseSchema


class NotificationType(StrEnum):
    """Events the reservation engine emits to the notifier."""

    NEW_BOOKING = "NEW_BOOKING"
    CANCELLED_BY_RENTER = "CANCELLED_BY_RENTER"
    CANCELLED_BY_OWNER = "CANCELLED_BY_OWNER"
    CANCELLED_BY_ADMIN = "CANCELLED_BY_ADMIN"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    ACCOUNT_SUSPENDED = "ACCOUNT_SUSPENDED"
    ACCOUNT_BANNED = "ACCOUNT_BANNED"
    ACCOUNT_REACTIVATED = "ACCOUNT_REACTIVATED"
    DEPOSIT_REQUESTED = "DEPOSIT_REQUESTED"
    DEPOSIT_PAID = "DEPOSIT_PAID"


class Notification(BaseSchema):
    """A delivered notification, as kept by the in-memory notifier."""

    user_id: int
    event_type: NotificationType
    payload: dict[str, Any] = {}
    created_at: datetime
