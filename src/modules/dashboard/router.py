"""API for reservation metrics (Admin only)."""

from fastapi import APIRouter, Depends

from src.container import ServiceContainer, get_container
from src.core.auth.dependencies import AdminUser
from src.modules.dashboard.schemas import ReservationMetricsResponse
from src.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get(
    "/reservations",
    response_model=ApiResponse[ReservationMetricsResponse],
)
async def get_reservation_metrics(
    current_user: AdminUser,
    container: ServiceContainer = Depends(get_container),
):
    """
    Reservation counts per status and revenue from completed rentals.

    Access: Admin only. Renters and owners get 403.
    """
    data = await container.dashboard.get_reservation_metrics()
    return ApiResponse(data=data)
