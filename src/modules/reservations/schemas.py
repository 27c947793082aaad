"""Schemas for Reservations API."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.modules.reservations.models import (
    CancellationSource,
    FulfillmentMethod,
    ReservationStatus,
)


class ReservationCreate(BaseModel):
    """Renter's request for an item over [start, end]."""

    item_id: int
    start: datetime
    end: datetime


class ReservationApproveRequest(BaseModel):
    """Owner approval. Pickup needs a location, shipping does not."""

    # Kept as a plain string so a bad value surfaces as the engine's 400, not a 422
    fulfillment_method: str = Field(..., min_length=1, max_length=20)
    pickup_location: str | None = Field(None, max_length=500)


class ReservationRejectRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class DepositRequest(BaseModel):
    """Owner's damage deposit claim."""

    amount: Decimal = Field(..., gt=0)
    reason: str = Field(..., min_length=1, max_length=500)


class ReservationResponse(BaseModel):
    """Reservation response."""

    id: int
    renter_id: int
    item_id: int
    start: datetime
    end: datetime
    total_price: Decimal
    status: ReservationStatus
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

    model_config = {"from_attributes": True}
