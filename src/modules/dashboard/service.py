"""Service for the admin dashboard: reservation metrics."""

import asyncio

from src.modules.dashboard.schemas import ReservationMetricsResponse
from src.modules.reservations.models import ReservationStatus
from src.modules.reservations.store import ReservationStore
from src.shared.utils.money import round_money


class DashboardService:
    """Aggregates reservation data for the admin dashboard."""

    def __init__(self, store: ReservationStore):
        self.store = store

    async def get_reservation_metrics(self) -> ReservationMetricsResponse:
        """
        Build reservation metrics.

        Counts come from a single grouped query; revenue is the sum of
        completed reservations and the average is taken over those.
        """
        counts, revenue = await asyncio.gather(
            self.store.count_by_status(),
            self.store.sum_total_price(ReservationStatus.COMPLETED),
        )
        completed = counts.get(ReservationStatus.COMPLETED, 0)
        average = round_money(revenue / completed) if completed else round_money(0)

        return ReservationMetricsResponse(
            total_reservations=sum(counts.values()),
            pending_approval=counts.get(ReservationStatus.PENDING_APPROVAL, 0),
            approved=counts.get(ReservationStatus.APPROVED, 0),
            rejected=counts.get(ReservationStatus.REJECTED, 0),
            active=counts.get(ReservationStatus.PAID, 0),
            completed=completed,
            cancelled=counts.get(ReservationStatus.CANCELLED, 0),
            total_revenue=revenue,
            average_booking_value=average,
        )
