"""Schemas for dashboard API (reservation metrics for admins)."""

from decimal import Decimal

from src.shared.schemas.base import BaseSchema


class ReservationMetricsResponse(BaseSchema):
    """Platform-wide reservation counts and revenue."""

    total_reservations: int = 0
    pending_approval: int = 0
    approved: int = 0
    rejected: int = 0
    # Paid and not yet completed: items currently out with renters or about to be
    active: int = 0
    completed: int = 0
    cancelled: int = 0

    # Revenue counts completed reservations only
    total_revenue: Decimal = Decimal("0.00")
    average_booking_value: Decimal = Decimal("0.00")
