"""Reservation domain record, its enumerations and the `reservations` table."""

from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from pydantic import field_validator
from sqlalchemy import BigInteger, DateTime, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.core.clock import ensure_utc
from src.core.database.base import Base, BigIntPK
from src.shared.schemas import BaseSchema


class ReservationStatus(StrEnum):
    """Reservation status enumeration."""

    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAID = "PAID"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_blocking(self) -> bool:
        return self in BLOCKING_STATUSES


# Only these hold the item; a pending request does not block other requests.
BLOCKING_STATUSES = frozenset({ReservationStatus.APPROVED, ReservationStatus.PAID})
ACTIVE_STATUSES = frozenset(
    {ReservationStatus.PENDING_APPROVAL, ReservationStatus.APPROVED, ReservationStatus.PAID}
)
TERMINAL_STATUSES = frozenset(
    {ReservationStatus.REJECTED, ReservationStatus.COMPLETED, ReservationStatus.CANCELLED}
)


class FulfillmentMethod(StrEnum):
    PICKUP = "PICKUP"
    SHIPPING = "SHIPPING"


class CancellationSource(StrEnum):
    RENTER = "RENTER"
    OWNER = "OWNER"
    ADMIN = "ADMIN"


class Reservation(BaseSchema):
    """
    A renter's claim on an item for [start, end].

    Stores hand out copies; the engine changes a copy and writes it back with
    the `version` it read, so concurrent writers cannot silently overwrite
    each other.
    """

    id: int | None = None
    renter_id: int
    item_id: int
    start: datetime
    end: datetime
    total_price: Decimal
    status: ReservationStatus = ReservationStatus.PENDING_APPROVAL

    fulfillment_method: FulfillmentMethod | None = None
    fulfillment_code: str | None = None
    pickup_location: str | None = None
    rejection_reason: str | None = None
    payment_reference: str | None = None

    cancelled_by: CancellationSource | None = None
    cancellation_reason: str | None = None

    deposit_amount: Decimal | None = None
    deposit_reason: str | None = None

    created_at: datetime
    approved_at: datetime | None = None
    paid_at: datetime | None = None
    cancelled_at: datetime | None = None
    completed_at: datetime | None = None
    deposit_requested_at: datetime | None = None
    deposit_paid_at: datetime | None = None

    version: int = 0

    @field_validator(
        "start",
        "end",
        "created_at",
        "approved_at",
        "paid_at",
        "cancelled_at",
        "completed_at",
        "deposit_requested_at",
        "deposit_paid_at",
    )
    @classmethod
    def normalize_timestamps(cls, v: datetime | None) -> datetime | None:
        """SQLite returns naive datetimes; everything in the engine is UTC-aware."""
        return ensure_utc(v) if v is not None else None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def deposit_requested(self) -> bool:
        return self.deposit_requested_at is not None


class ReservationRecord(Base):
    """Persistent row for a Reservation. Never deleted; terminal rows are history."""

    __tablename__ = "reservations"
    __table_args__ = (Index("ix_reservations_item_id_status", "item_id", "status"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    renter_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    item_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ReservationStatus.PENDING_APPROVAL.value, index=True
    )

    fulfillment_method: Mapped[str | None] = mapped_column(String(20), nullable=True)
    fulfillment_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    pickup_location: Mapped[str | None] = mapped_column(String(500), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)

    cancelled_by: Mapped[str | None] = mapped_column(String(20), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    deposit_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    deposit_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deposit_requested_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    deposit_paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
