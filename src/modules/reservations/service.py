"""Reservation lifecycle engine: request, approve, reject, pay, cancel, complete."""

import asyncio
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any

from src.core.clock import Clock, SystemClock, ensure_utc
from src.core.config import settings
from src.core.context import CallContext
from src.core.exceptions import (
    AuthorizationError,
    ConflictError,
    InactiveReservationError,
    InvalidDateRangeError,
    InvalidStateError,
    ItemUnavailableError,
    NotFoundError,
    ValidationError,
)
from src.integrations.catalog.schemas import CatalogItem
from src.integrations.catalog.service import CatalogProvider
from src.integrations.identity.schemas import UserProfile
from src.integrations.identity.service import IdentityProvider
from src.integrations.notifications.schemas import NotificationType
from src.integrations.notifications.service import Notifier
from src.modules.reservations.codes import FulfillmentCodeGenerator
from src.modules.reservations.conflicts import ConflictChecker
from src.modules.reservations.locks import ItemLockRegistry
from src.modules.reservations.models import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    CancellationSource,
    FulfillmentMethod,
    Reservation,
    ReservationStatus,
)
from src.modules.reservations.pricing import calculate_total_price
from src.modules.reservations.state_machine import ReservationAction, next_status
from src.modules.reservations.store import ReservationStore
from src.shared.utils.money import round_money, to_money

logger = logging.getLogger(__name__)


class ReservationService:
    """
    Applies reservation transitions for renters, owners and administrators.

    Every transition validates before it writes, writes once, and only then
    notifies. Notifier failures are logged and never change the outcome.
    """

    def __init__(
        self,
        store: ReservationStore,
        *,
        identity: IdentityProvider,
        catalog: CatalogProvider,
        notifier: Notifier,
        clock: Clock | None = None,
        code_generator: FulfillmentCodeGenerator | None = None,
        locks: ItemLockRegistry | None = None,
    ):
        self.store = store
        self.identity = identity
        self.catalog = catalog
        self.notifier = notifier
        self.clock = clock or SystemClock()
        self.codes = code_generator or FulfillmentCodeGenerator(length=settings.fulfillment_code_length)
        self.locks = locks or ItemLockRegistry(timeout=settings.lock_timeout_seconds)
        self.conflicts = ConflictChecker(store)

    # --- Queries ---

    async def get_by_id(self, reservation_id: int) -> Reservation:
        """Get reservation by ID without any access check."""
        reservation = await self.store.get(reservation_id)
        if not reservation:
            raise NotFoundError("Reservation", reservation_id)
        return reservation

    async def get_for_user(self, reservation_id: int, caller_id: int) -> Reservation:
        """Get a reservation the caller is involved in (renter, item owner or admin)."""
        reservation = await self.get_by_id(reservation_id)
        if reservation.renter_id == caller_id:
            return reservation
        caller = await self.identity.get_user(caller_id)
        if caller and caller.is_admin:
            return reservation
        if await self.identity.find_owner_of(reservation.item_id) == caller_id:
            return reservation
        raise AuthorizationError("You are not involved in this reservation")

    async def list_for_renter(self, renter_id: int, active: bool | None = None) -> list[Reservation]:
        """
        Reservations made by a renter.

        active=True returns in-flight ones, active=False the history
        (rejected, completed, cancelled), None returns everything.
        """
        statuses = None
        if active is True:
            statuses = ACTIVE_STATUSES
        elif active is False:
            statuses = TERMINAL_STATUSES
        return await self.store.list_by_renter(renter_id, statuses=statuses)

    async def list_for_item(self, item_id: int, caller_id: int) -> list[Reservation]:
        """
        Reservations on one item.

        The owner and admins see all of them, a renter sees only their own,
        anyone without a reservation on the item is refused.
        """
        item = await self._get_item(item_id)
        reservations = await self.store.list_by_item(item_id)
        if item.owner_id is not None and item.owner_id == caller_id:
            return reservations
        caller = await self.identity.get_user(caller_id)
        if caller and caller.is_admin:
            return reservations
        own = [r for r in reservations if r.renter_id == caller_id]
        if not own:
            raise AuthorizationError("Only the item owner can view reservations for this item")
        return own

    async def list_for_owner(
        self, owner_id: int, statuses: set[ReservationStatus] | None = None
    ) -> list[Reservation]:
        """Reservations across every item the user owns."""
        items = await self.catalog.list_items_by_owner(owner_id)
        return await self.store.list_by_items([i.id for i in items], statuses=statuses)

    async def list_pending_for_owner(self, owner_id: int) -> list[Reservation]:
        owner = await self._get_user(owner_id)
        if not owner.is_owner:
            raise AuthorizationError("Only owners have reservations awaiting approval")
        return await self.list_for_owner(owner_id, statuses={ReservationStatus.PENDING_APPROVAL})

    # --- Transitions ---

    async def request_reservation(
        self,
        renter_id: int,
        item_id: int,
        start: datetime,
        end: datetime,
        ctx: CallContext | None = None,
    ) -> Reservation:
        """Create a PENDING_APPROVAL reservation and tell the owner about it."""
        self._check_context(ctx)
        renter = await self._get_user(renter_id)
        if not renter.is_active:
            raise AuthorizationError(f"Account is {renter.standing.value} and cannot make reservations")
        item = await self._get_item(item_id)
        if not item.available:
            raise ItemUnavailableError(item_id)

        start = ensure_utc(start)
        end = ensure_utc(end)
        now = self.clock.now()
        if end <= start:
            raise InvalidDateRangeError("End date must be after start date", field="end")
        if start < now:
            raise InvalidDateRangeError("Start date cannot be in the past", field="start")

        total_price = calculate_total_price(item.daily_rate, start, end)

        async with self.locks.hold(item_id):
            if await self.conflicts.has_blocking_overlap(item_id, start, end):
                raise ConflictError(
                    "Item is already booked for the selected dates",
                    details={"item_id": item_id},
                )
            reservation = Reservation(
                renter_id=renter_id,
                item_id=item_id,
                start=start,
                end=end,
                total_price=total_price,
                status=ReservationStatus.PENDING_APPROVAL,
                created_at=now,
            )
            reservation = await self._write(self.store.add(reservation))

        logger.info(
            "Reservation %s requested: renter=%s item=%s %s..%s price=%s",
            reservation.id, renter_id, item_id, start.isoformat(), end.isoformat(), total_price,
        )
        if item.owner_id is not None:
            await self._notify(item.owner_id, NotificationType.NEW_BOOKING, reservation)
        return reservation

    async def approve(
        self,
        reservation_id: int,
        owner_id: int,
        fulfillment_method: FulfillmentMethod | str,
        pickup_location: str | None = None,
        ctx: CallContext | None = None,
    ) -> Reservation:
        """Accept a pending request; from now on it blocks the item for its window."""
        self._check_context(ctx)
        reservation = await self.get_by_id(reservation_id)
        await self._require_item_owner(reservation, owner_id)
        next_status(reservation.status, ReservationAction.APPROVE)
        method, location = self._validate_fulfillment(fulfillment_method, pickup_location)

        async with self.locks.hold(reservation.item_id):
            # Re-read under the lock: another request may have approved an overlapping one.
            reservation = await self.get_by_id(reservation_id)
            reservation.status = next_status(reservation.status, ReservationAction.APPROVE)
            if await self.conflicts.has_blocking_overlap(
                reservation.item_id, reservation.start, reservation.end, exclude_id=reservation.id
            ):
                raise ConflictError(
                    "Another reservation for these dates is already approved",
                    details={"item_id": reservation.item_id},
                )
            reservation.fulfillment_method = method
            reservation.pickup_location = location
            reservation.approved_at = self.clock.now()
            reservation = await self._write(self.store.update(reservation))

        logger.info("Reservation %s approved by owner %s (%s)", reservation.id, owner_id, method.value)
        await self._notify(
            reservation.renter_id,
            NotificationType.APPROVED,
            reservation,
            fulfillment_method=method.value,
            pickup_location=location,
        )
        return reservation

    async def reject(
        self,
        reservation_id: int,
        owner_id: int,
        reason: str | None = None,
        ctx: CallContext | None = None,
    ) -> Reservation:
        self._check_context(ctx)
        reservation = await self.get_by_id(reservation_id)
        await self._require_item_owner(reservation, owner_id)
        reservation.status = next_status(reservation.status, ReservationAction.REJECT)
        reservation.rejection_reason = reason.strip() if reason and reason.strip() else None
        reservation = await self._write(self.store.update(reservation))

        logger.info("Reservation %s rejected by owner %s", reservation.id, owner_id)
        await self._notify(
            reservation.renter_id,
            NotificationType.REJECTED,
            reservation,
            reason=reservation.rejection_reason,
        )
        return reservation

    async def pay(
        self,
        reservation_id: int,
        renter_id: int,
        payment_reference: str | None = None,
        ctx: CallContext | None = None,
    ) -> Reservation:
        """
        Record a successful charge for an approved reservation.

        The charge itself happens before this call; only its reference is kept.
        Shipping reservations get their handover code here.
        """
        self._check_context(ctx)
        reservation = await self.get_by_id(reservation_id)
        if reservation.renter_id != renter_id:
            raise AuthorizationError("Only the renter can pay for this reservation")
        reservation.status = next_status(reservation.status, ReservationAction.PAY)
        reservation.paid_at = self.clock.now()
        reservation.payment_reference = payment_reference
        if reservation.fulfillment_method == FulfillmentMethod.SHIPPING:
            reservation.fulfillment_code = self.codes.generate()
        reservation = await self._write(self.store.update(reservation))

        logger.info("Reservation %s paid by renter %s", reservation.id, renter_id)
        owner_id = await self.identity.find_owner_of(reservation.item_id)
        if owner_id is not None:
            await self._notify(owner_id, NotificationType.PAYMENT_RECEIVED, reservation)
        return reservation

    async def cancel(
        self,
        reservation_id: int,
        caller_id: int,
        ctx: CallContext | None = None,
    ) -> Reservation:
        """
        Cancel on behalf of the renter or the item's owner, before the start date.

        A reservation that is already cancelled is reported as not found.
        """
        self._check_context(ctx)
        reservation = await self.store.get(reservation_id)
        if reservation is None:
            raise InactiveReservationError(reservation_id)
        if reservation.status == ReservationStatus.CANCELLED:
            raise InactiveReservationError(reservation_id, reason=InactiveReservationError.ALREADY_CANCELLED)

        owner_id = await self.identity.find_owner_of(reservation.item_id)
        if reservation.renter_id == caller_id:
            source = CancellationSource.RENTER
            counterparty_id = owner_id
            event_type = NotificationType.CANCELLED_BY_RENTER
        else:
            caller = await self.identity.get_user(caller_id)
            if not (caller and caller.is_owner and owner_id == caller_id):
                raise AuthorizationError("User is not authorized to cancel this reservation")
            source = CancellationSource.OWNER
            counterparty_id = reservation.renter_id
            event_type = NotificationType.CANCELLED_BY_OWNER

        next_status(reservation.status, ReservationAction.CANCEL)
        if self.clock.now() >= reservation.start:
            raise InvalidStateError(
                "Cannot cancel a reservation that has already started",
                details={"start": reservation.start.isoformat()},
            )

        reservation = await self._apply_cancellation(reservation, source, reason=None)
        logger.info("Reservation %s cancelled by %s %s", reservation.id, source.value.lower(), caller_id)
        if counterparty_id is not None:
            await self._notify(counterparty_id, event_type, reservation)
        return reservation

    async def cancel_administratively(
        self,
        reservation_id: int,
        affected_user_id: int,
        reason: str,
    ) -> Reservation | None:
        """
        Cancel because an administrator changed `affected_user_id`'s standing.

        Skips the actor and start-date checks of cancel(). The other side of the
        reservation gets CANCELLED_BY_ADMIN. Returns None when the reservation
        is no longer active.
        """
        reservation = await self.store.get(reservation_id)
        if reservation is None or not reservation.is_active:
            return None

        reservation = await self._apply_cancellation(reservation, CancellationSource.ADMIN, reason=reason)
        logger.info("Reservation %s cancelled by admin action: %s", reservation.id, reason)

        if reservation.renter_id == affected_user_id:
            counterparty_id = await self.identity.find_owner_of(reservation.item_id)
        else:
            counterparty_id = reservation.renter_id
        if counterparty_id is not None and counterparty_id != affected_user_id:
            await self._notify(counterparty_id, NotificationType.CANCELLED_BY_ADMIN, reservation, reason=reason)
        return reservation

    async def mark_completed(self, reservation_id: int, ctx: CallContext | None = None) -> Reservation:
        """PAID -> COMPLETED once the rental is over. Who may call this is decided by the caller."""
        self._check_context(ctx)
        reservation = await self.get_by_id(reservation_id)
        reservation.status = next_status(reservation.status, ReservationAction.COMPLETE)
        reservation.completed_at = self.clock.now()
        reservation = await self._write(self.store.update(reservation))
        logger.info("Reservation %s completed", reservation.id)
        return reservation

    # --- Deposits ---

    async def request_deposit(
        self,
        reservation_id: int,
        owner_id: int,
        amount: Decimal | float | str,
        reason: str,
        ctx: CallContext | None = None,
    ) -> Reservation:
        """Owner claims a damage deposit after the rental window has ended. Once per reservation."""
        self._check_context(ctx)
        reservation = await self.get_by_id(reservation_id)
        await self._require_item_owner(reservation, owner_id)
        if reservation.status not in (ReservationStatus.PAID, ReservationStatus.COMPLETED):
            raise InvalidStateError("Deposit can only be requested for paid or completed reservations")
        if self.clock.now() < reservation.end:
            raise InvalidStateError("Deposit can only be requested after the reservation end date")
        if reservation.deposit_requested:
            raise InvalidStateError("Deposit has already been requested for this reservation")
        try:
            value = to_money(amount)
        except ValueError:
            raise ValidationError("Deposit amount must be a number", field="amount") from None
        if value <= 0:
            raise ValidationError("Deposit amount must be positive", field="amount")
        if not reason or not reason.strip():
            raise ValidationError("Reason for deposit is required", field="reason")

        reservation.deposit_amount = round_money(value)
        reservation.deposit_reason = reason.strip()
        reservation.deposit_requested_at = self.clock.now()
        reservation = await self._write(self.store.update(reservation))

        logger.info("Deposit of %s requested on reservation %s", reservation.deposit_amount, reservation.id)
        await self._notify(
            reservation.renter_id,
            NotificationType.DEPOSIT_REQUESTED,
            reservation,
            amount=str(reservation.deposit_amount),
            reason=reservation.deposit_reason,
        )
        return reservation

    async def pay_deposit(
        self,
        reservation_id: int,
        renter_id: int,
        ctx: CallContext | None = None,
    ) -> Reservation:
        self._check_context(ctx)
        reservation = await self.get_by_id(reservation_id)
        if reservation.renter_id != renter_id:
            raise AuthorizationError("Only the renter can pay the deposit for this reservation")
        if not reservation.deposit_requested:
            raise InvalidStateError("No deposit has been requested for this reservation")
        if reservation.deposit_paid_at is not None:
            raise InvalidStateError("Deposit has already been paid")
        reservation.deposit_paid_at = self.clock.now()
        reservation = await self._write(self.store.update(reservation))

        logger.info("Deposit paid on reservation %s", reservation.id)
        owner_id = await self.identity.find_owner_of(reservation.item_id)
        if owner_id is not None:
            await self._notify(
                owner_id,
                NotificationType.DEPOSIT_PAID,
                reservation,
                amount=str(reservation.deposit_amount),
            )
        return reservation

    # --- Helpers ---

    def _check_context(self, ctx: CallContext | None) -> None:
        if ctx is not None:
            ctx.ensure_active(self.clock.now())

    async def _write(self, write) -> Reservation:
        # A started write finishes even if the caller's task is cancelled meanwhile.
        return await asyncio.shield(write)

    async def _get_user(self, user_id: int) -> UserProfile:
        user = await self.identity.get_user(user_id)
        if not user:
            raise NotFoundError("User", user_id)
        return user

    async def _get_item(self, item_id: int) -> CatalogItem:
        item = await self.catalog.get_item(item_id)
        if not item:
            raise NotFoundError("Item", item_id)
        return item

    async def _require_item_owner(self, reservation: Reservation, user_id: int) -> None:
        owner_id = await self.identity.find_owner_of(reservation.item_id)
        if owner_id is None or owner_id != user_id:
            raise AuthorizationError("Only the item owner can manage this reservation")

    @staticmethod
    def _validate_fulfillment(
        fulfillment_method: FulfillmentMethod | str, pickup_location: str | None
    ) -> tuple[FulfillmentMethod, str | None]:
        try:
            method = FulfillmentMethod(str(fulfillment_method).strip().upper())
        except ValueError:
            raise ValidationError(
                "Fulfillment method must be PICKUP or SHIPPING", field="fulfillment_method"
            ) from None
        if method == FulfillmentMethod.PICKUP:
            location = (pickup_location or "").strip()
            if not location:
                raise ValidationError("Pickup location is required for pickup", field="pickup_location")
            return method, location
        return method, None

    async def _apply_cancellation(
        self,
        reservation: Reservation,
        source: CancellationSource,
        reason: str | None,
    ) -> Reservation:
        reservation.status = next_status(reservation.status, ReservationAction.CANCEL)
        reservation.cancelled_by = source
        reservation.cancellation_reason = reason
        reservation.cancelled_at = self.clock.now()
        # A handover code only exists while the reservation is paid or completed.
        reservation.fulfillment_code = None
        return await self._write(self.store.update(reservation))

    async def _notify(
        self,
        user_id: int,
        event_type: NotificationType,
        reservation: Reservation,
        **extra: Any,
    ) -> None:
        payload = {
            "reservation_id": reservation.id,
            "item_id": reservation.item_id,
            "status": reservation.status.value,
            "start": reservation.start.isoformat(),
            "end": reservation.end.isoformat(),
            **extra,
        }
        try:
            await self.notifier.notify(user_id, event_type, payload)
        except Exception:
            logger.exception(
                "Failed to send %s notification to user %s for reservation %s",
                event_type.value, user_id, reservation.id,
            )
