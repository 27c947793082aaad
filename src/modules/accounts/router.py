"""Admin endpoints for account standing."""

from fastapi import APIRouter, Depends

from src.container import ServiceContainer, get_container
from src.core.auth.dependencies import AdminUser
from src.modules.accounts.schemas import StandingChangeResult, StandingUpdateRequest
from src.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/admin/users", tags=["Accounts"])


@router.put("/{user_id}/standing", response_model=ApiResponse[StandingChangeResult])
async def update_user_standing(
    user_id: int,
    payload: StandingUpdateRequest,
    current_user: AdminUser,
    container: ServiceContainer = Depends(get_container),
):
    """
    Set a user's standing to active, suspended or banned.

    Suspending or banning cancels the user's in-flight reservations.
    Access: Admin only.
    """
    result = await container.standing.apply_standing_change(
        user_id, payload.standing, admin_id=current_user.id
    )
    message = None
    if result.cancelled_reservation_ids:
        message = f"{len(result.cancelled_reservation_ids)} reservation(s) cancelled"
    return ApiResponse(success=True, data=result, message=message)
