"""Account standing changes and the reservation cascade they trigger."""

import logging

from src.core.context import CallContext
from src.core.exceptions import (
    AuthorizationError,
    ConcurrentUpdateError,
    NotFoundError,
    ValidationError,
)
from src.integrations.catalog.service import CatalogProvider
from src.integrations.identity.schemas import AccountStanding, UserProfile
from src.integrations.identity.service import IdentityProvider
from src.integrations.notifications.schemas import NotificationType
from src.integrations.notifications.service import Notifier
from src.modules.accounts.schemas import StandingChangeResult
from src.modules.reservations.models import ACTIVE_STATUSES, Reservation
from src.modules.reservations.service import ReservationService
from src.modules.reservations.store import ReservationStore

logger = logging.getLogger(__name__)

RESTRICTED_STANDINGS = (AccountStanding.SUSPENDED, AccountStanding.BANNED)

STANDING_NOTIFICATIONS = {
    AccountStanding.SUSPENDED: NotificationType.ACCOUNT_SUSPENDED,
    AccountStanding.BANNED: NotificationType.ACCOUNT_BANNED,
}

# Attempts per reservation when a concurrent transition wins the optimistic check.
MAX_CANCEL_ATTEMPTS = 3


class AccountStandingService:
    """Service for administrative standing changes (active / suspended / banned)."""

    def __init__(
        self,
        *,
        identity: IdentityProvider,
        catalog: CatalogProvider,
        store: ReservationStore,
        reservations: ReservationService,
        notifier: Notifier,
    ):
        self.identity = identity
        self.catalog = catalog
        self.store = store
        self.reservations = reservations
        self.notifier = notifier

    async def apply_standing_change(
        self,
        user_id: int,
        new_standing: AccountStanding | str,
        admin_id: int | None = None,
        ctx: CallContext | None = None,
    ) -> StandingChangeResult:
        """
        Move a user to a new standing.

        Suspending or banning cancels every in-flight reservation the user is
        part of, as item owner and as renter, through the regular cancellation
        transition. Reactivating only notifies the user. Re-applying a
        restricted standing sends no notification but runs the cascade again,
        so a cascade cut short by a storage failure can be retried.
        """
        if ctx is not None:
            ctx.ensure_active(self.reservations.clock.now())
        standing = self._parse_standing(new_standing)

        if admin_id is not None:
            admin = await self.identity.get_user(admin_id)
            if not admin or not admin.is_admin:
                raise AuthorizationError("Only administrators can change account standing")

        user = await self.identity.get_user(user_id)
        if not user:
            raise NotFoundError("User", user_id)
        if user.is_admin:
            raise AuthorizationError("Cannot modify admin user status")

        previous = user.standing
        changed = previous != standing
        if changed:
            await self.identity.update_standing(user_id, standing)
            logger.info(
                "User %s standing changed %s -> %s (admin=%s)", user_id, previous.value, standing.value, admin_id
            )

        cancelled: list[int] = []
        if standing in RESTRICTED_STANDINGS:
            if changed:
                await self._notify(user_id, STANDING_NOTIFICATIONS[standing], standing)
            cancelled = await self._cancel_reservations_of(user, standing)
        elif changed and previous in RESTRICTED_STANDINGS:
            await self._notify(user_id, NotificationType.ACCOUNT_REACTIVATED, standing)

        return StandingChangeResult(
            user_id=user_id,
            previous_standing=previous,
            new_standing=standing,
            changed=changed,
            cancelled_reservation_ids=cancelled,
        )

    async def _cancel_reservations_of(self, user: UserProfile, standing: AccountStanding) -> list[int]:
        cancelled: list[int] = []
        seen: set[int] = set()

        # As owner: reservations on every item the user owns
        owned_items = await self.catalog.list_items_by_owner(user.id)
        for item in owned_items:
            if item.owner_id is None:
                continue
            for reservation in await self.store.list_by_item(item.id, statuses=ACTIVE_STATUSES):
                seen.add(reservation.id)
                if await self._cancel(reservation, user.id, f"Owner account {standing.value}"):
                    cancelled.append(reservation.id)

        # As renter
        for reservation in await self.store.list_by_renter(user.id, statuses=ACTIVE_STATUSES):
            if reservation.id in seen:
                continue
            if await self._cancel(reservation, user.id, f"Renter account {standing.value}"):
                cancelled.append(reservation.id)

        logger.info(
            "Standing cascade for user %s cancelled %d reservation(s)", user.id, len(cancelled)
        )
        return cancelled

    async def _cancel(self, reservation: Reservation, affected_user_id: int, reason: str) -> bool:
        for attempt in range(1, MAX_CANCEL_ATTEMPTS + 1):
            try:
                result = await self.reservations.cancel_administratively(
                    reservation.id, affected_user_id=affected_user_id, reason=reason
                )
            except ConcurrentUpdateError:
                logger.warning(
                    "Reservation %s changed during cascade (attempt %d/%d)",
                    reservation.id, attempt, MAX_CANCEL_ATTEMPTS,
                )
                continue
            if result is None:
                logger.warning("Reservation %s no longer active, skipped by cascade", reservation.id)
                return False
            return True
        logger.error("Giving up cancelling reservation %s after %d attempts", reservation.id, MAX_CANCEL_ATTEMPTS)
        return False

    @staticmethod
    def _parse_standing(value: AccountStanding | str) -> AccountStanding:
        try:
            return AccountStanding(str(value).strip().lower())
        except ValueError:
            raise ValidationError(
                "Invalid status. Only 'active', 'suspended', or 'banned' are allowed",
                field="standing",
            ) from None

    async def _notify(self, user_id: int, event_type: NotificationType, standing: AccountStanding) -> None:
        try:
            await self.notifier.notify(user_id, event_type, {"standing": standing.value})
        except Exception:
            logger.exception("Failed to send %s notification to user %s", event_type.value, user_id)
