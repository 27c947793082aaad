"""API endpoints for Reservations module."""

import logging

from fastapi import APIRouter, Depends, Query, status

from src.container import ServiceContainer, get_container
from src.core.auth.dependencies import AdminUser, CurrentUser
from src.core.exceptions import AppException, AuthorizationError, InvalidStateError
from src.integrations.payments.schemas import PaymentConfirmation
from src.modules.reservations.models import Reservation, ReservationStatus
from src.modules.reservations.schemas import (
    DepositRequest,
    ReservationApproveRequest,
    ReservationCreate,
    ReservationRejectRequest,
    ReservationResponse,
)
from src.modules.reservations.state_machine import ReservationAction, can_apply
from src.shared.schemas.base import ApiResponse, ListResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reservations", tags=["Reservations"])


def _map_reservation(reservation: Reservation) -> ReservationResponse:
    return ReservationResponse.model_validate(reservation)


def _map_list(reservations: list[Reservation]) -> ListResponse[ReservationResponse]:
    return ListResponse.create([_map_reservation(r) for r in reservations])


async def _refund(container: ServiceContainer, confirmation: PaymentConfirmation) -> None:
    logger.warning(
        "Refunding charge %s for reservation %s: the payment could not be recorded",
        confirmation.reference,
        confirmation.reservation_id,
    )
    try:
        await container.payments.refund(confirmation.reference)
    except Exception:
        logger.exception("Refund of charge %s failed", confirmation.reference)


@router.post(
    "",
    response_model=ApiResponse[ReservationResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_reservation(
    payload: ReservationCreate,
    current_user: CurrentUser,
    container: ServiceContainer = Depends(get_container),
):
    reservation = await container.reservations.request_reservation(
        renter_id=current_user.id,
        item_id=payload.item_id,
        start=payload.start,
        end=payload.end,
    )
    return ApiResponse(success=True, data=_map_reservation(reservation))


@router.get("", response_model=ApiResponse[ListResponse[ReservationResponse]])
async def list_reservations(
    current_user: CurrentUser,
    item_id: int | None = Query(None),
    active: bool | None = Query(None),
    container: ServiceContainer = Depends(get_container),
):
    """Caller's own reservations, or all visible reservations for one item when item_id is given."""
    if item_id is not None:
        reservations = await container.reservations.list_for_item(item_id, current_user.id)
    else:
        reservations = await container.reservations.list_for_renter(current_user.id, active=active)
    return ApiResponse(success=True, data=_map_list(reservations))


@router.get("/owner/history", response_model=ApiResponse[ListResponse[ReservationResponse]])
async def list_owner_reservations(
    current_user: CurrentUser,
    status_filter: ReservationStatus | None = Query(None, alias="status"),
    container: ServiceContainer = Depends(get_container),
):
    statuses = {status_filter} if status_filter is not None else None
    reservations = await container.reservations.list_for_owner(current_user.id, statuses=statuses)
    return ApiResponse(success=True, data=_map_list(reservations))


@router.get("/owner/pending", response_model=ApiResponse[ListResponse[ReservationResponse]])
async def list_pending_approval(
    current_user: CurrentUser,
    container: ServiceContainer = Depends(get_container),
):
    reservations = await container.reservations.list_pending_for_owner(current_user.id)
    return ApiResponse(success=True, data=_map_list(reservations))


@router.get("/{reservation_id}", response_model=ApiResponse[ReservationResponse])
async def get_reservation(
    reservation_id: int,
    current_user: CurrentUser,
    container: ServiceContainer = Depends(get_container),
):
    reservation = await container.reservations.get_for_user(reservation_id, current_user.id)
    return ApiResponse(success=True, data=_map_reservation(reservation))


@router.put("/{reservation_id}/approve", response_model=ApiResponse[ReservationResponse])
async def approve_reservation(
    reservation_id: int,
    payload: ReservationApproveRequest,
    current_user: CurrentUser,
    container: ServiceContainer = Depends(get_container),
):
    reservation = await container.reservations.approve(
        reservation_id,
        owner_id=current_user.id,
        fulfillment_method=payload.fulfillment_method,
        pickup_location=payload.pickup_location,
    )
    return ApiResponse(success=True, data=_map_reservation(reservation))


@router.put("/{reservation_id}/reject", response_model=ApiResponse[ReservationResponse])
async def reject_reservation(
    reservation_id: int,
    payload: ReservationRejectRequest,
    current_user: CurrentUser,
    container: ServiceContainer = Depends(get_container),
):
    reservation = await container.reservations.reject(
        reservation_id, owner_id=current_user.id, reason=payload.reason
    )
    return ApiResponse(success=True, data=_map_reservation(reservation))


@router.post("/{reservation_id}/payment", response_model=ApiResponse[ReservationResponse])
async def pay_reservation(
    reservation_id: int,
    current_user: CurrentUser,
    container: ServiceContainer = Depends(get_container),
):
    """
    Charge the renter and record the payment.

    Preconditions are checked before charging. If the reservation changes
    between the charge and pay(), the charge is refunded and the error raised.
    """
    reservation = await container.reservations.get_by_id(reservation_id)
    if reservation.renter_id != current_user.id:
        raise AuthorizationError("Only the renter can pay for this reservation")
    if not can_apply(reservation.status, ReservationAction.PAY):
        raise InvalidStateError(f"Cannot pay a reservation in status {reservation.status.value}")

    confirmation = await container.payments.charge(reservation.id, reservation.total_price)
    try:
        reservation = await container.reservations.pay(
            reservation_id, renter_id=current_user.id, payment_reference=confirmation.reference
        )
    except AppException:
        await _refund(container, confirmation)
        raise
    return ApiResponse(success=True, data=_map_reservation(reservation))


@router.delete("/{reservation_id}", response_model=ApiResponse[ReservationResponse])
async def cancel_reservation(
    reservation_id: int,
    current_user: CurrentUser,
    container: ServiceContainer = Depends(get_container),
):
    reservation = await container.reservations.cancel(reservation_id, caller_id=current_user.id)
    return ApiResponse(success=True, data=_map_reservation(reservation))


@router.post("/{reservation_id}/complete", response_model=ApiResponse[ReservationResponse])
async def complete_reservation(
    reservation_id: int,
    current_user: AdminUser,
    container: ServiceContainer = Depends(get_container),
):
    reservation = await container.reservations.mark_completed(reservation_id)
    return ApiResponse(success=True, data=_map_reservation(reservation))


@router.post("/{reservation_id}/deposit", response_model=ApiResponse[ReservationResponse])
async def request_deposit(
    reservation_id: int,
    payload: DepositRequest,
    current_user: CurrentUser,
    container: ServiceContainer = Depends(get_container),
):
    reservation = await container.reservations.request_deposit(
        reservation_id,
        owner_id=current_user.id,
        amount=payload.amount,
        reason=payload.reason,
    )
    return ApiResponse(success=True, data=_map_reservation(reservation))


@router.post("/{reservation_id}/deposit/payment", response_model=ApiResponse[ReservationResponse])
async def pay_deposit(
    reservation_id: int,
    current_user: CurrentUser,
    container: ServiceContainer = Depends(get_container),
):
    reservation = await container.reservations.get_by_id(reservation_id)
    if reservation.renter_id != current_user.id:
        raise AuthorizationError("Only the renter can pay the deposit for this reservation")
    if reservation.deposit_amount is None or reservation.deposit_paid_at is not None:
        raise InvalidStateError("There is no outstanding deposit for this reservation")

    confirmation = await container.payments.charge(reservation.id, reservation.deposit_amount)
    try:
        reservation = await container.reservations.pay_deposit(reservation_id, renter_id=current_user.id)
    except AppException:
        await _refund(container, confirmation)
        raise
    return ApiResponse(success=True, data=_map_reservation(reservation))
