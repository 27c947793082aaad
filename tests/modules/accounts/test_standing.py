"""Tests for account standing changes and the reservation cascade."""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from src.core.exceptions import (
    AuthorizationError,
    ConcurrentUpdateError,
    NotFoundError,
    ServiceUnavailableError,
    ValidationError,
)
from src.integrations.identity.schemas import AccountStanding
from src.integrations.notifications.schemas import NotificationType
from src.modules.reservations.models import CancellationSource, ReservationStatus
from tests.helpers import (
    ADMIN_ID,
    ITEM_ID,
    ORPHAN_ITEM_ID,
    OTHER_ITEM_ID,
    OTHER_OWNER_ID,
    OTHER_RENTER_ID,
    OWNER_ID,
    RENTER_ID,
    SECOND_ITEM_ID,
    auth,
    days_from_now,
)


async def _book(service, renter_id, item_id, start_day=1, end_day=3):
    return await service.request_reservation(
        renter_id, item_id, days_from_now(start_day), days_from_now(end_day)
    )


class TestAccountStandingService:
    """Tests for AccountStandingService.apply_standing_change."""

    async def test_suspended_owner_cascade(self, service, standing_service, store, notifier):
        approved = await _book(service, RENTER_ID, ITEM_ID, start_day=10, end_day=12)
        await service.approve(approved.id, OWNER_ID, "SHIPPING")

        done = await _book(service, OTHER_RENTER_ID, SECOND_ITEM_ID, start_day=1, end_day=2)
        await service.approve(done.id, OWNER_ID, "SHIPPING")
        await service.pay(done.id, OTHER_RENTER_ID)
        await service.mark_completed(done.id)
        notifier.clear()

        result = await standing_service.apply_standing_change(OWNER_ID, AccountStanding.SUSPENDED)

        assert result.changed
        assert result.cancelled_reservation_ids == [approved.id]
        cancelled = await store.get(approved.id)
        assert cancelled.status == ReservationStatus.CANCELLED
        assert cancelled.cancelled_by == CancellationSource.ADMIN
        assert cancelled.cancellation_reason == "Owner account suspended"
        assert (await store.get(done.id)).status == ReservationStatus.COMPLETED

        admin_cancellations = notifier.of_type(NotificationType.CANCELLED_BY_ADMIN)
        assert len(admin_cancellations) == 1
        assert admin_cancellations[0].user_id == RENTER_ID
        assert len(notifier.for_user(OWNER_ID, NotificationType.ACCOUNT_SUSPENDED)) == 1

    async def test_banned_renter_cascade_notifies_owner(self, service, standing_service, store, notifier):
        pending = await _book(service, RENTER_ID, ITEM_ID)
        paid = await _book(service, RENTER_ID, OTHER_ITEM_ID)
        await service.approve(paid.id, OTHER_OWNER_ID, "SHIPPING")
        await service.pay(paid.id, RENTER_ID)
        notifier.clear()

        result = await standing_service.apply_standing_change(RENTER_ID, "BANNED")

        assert sorted(result.cancelled_reservation_ids) == sorted([pending.id, paid.id])
        assert (await store.get(paid.id)).fulfillment_code is None
        notified = {n.user_id for n in notifier.of_type(NotificationType.CANCELLED_BY_ADMIN)}
        assert notified == {OWNER_ID, OTHER_OWNER_ID}
        assert len(notifier.for_user(RENTER_ID, NotificationType.ACCOUNT_BANNED)) == 1

    async def test_cascade_ignores_start_date(self, service, standing_service, store, clock):
        reservation = await _book(service, RENTER_ID, ITEM_ID, start_day=1, end_day=5)
        await service.approve(reservation.id, OWNER_ID, "SHIPPING")
        clock.advance(timedelta(days=2))

        await standing_service.apply_standing_change(OWNER_ID, AccountStanding.BANNED)
        assert (await store.get(reservation.id)).status == ReservationStatus.CANCELLED

    async def test_terminal_reservations_untouched(self, service, standing_service, store):
        rejected = await _book(service, RENTER_ID, ITEM_ID)
        await service.reject(rejected.id, OWNER_ID)
        cancelled = await _book(service, RENTER_ID, SECOND_ITEM_ID)
        await service.cancel(cancelled.id, RENTER_ID)

        result = await standing_service.apply_standing_change(RENTER_ID, AccountStanding.SUSPENDED)

        assert result.cancelled_reservation_ids == []
        assert (await store.get(rejected.id)).status == ReservationStatus.REJECTED
        assert (await store.get(cancelled.id)).cancelled_by == CancellationSource.RENTER

    async def test_ownerless_items_are_skipped(self, service, standing_service, store):
        orphan = await _book(service, RENTER_ID, ORPHAN_ITEM_ID)

        result = await standing_service.apply_standing_change(OWNER_ID, AccountStanding.SUSPENDED)

        assert result.cancelled_reservation_ids == []
        assert (await store.get(orphan.id)).status == ReservationStatus.PENDING_APPROVAL

    async def test_reactivation_notifies_only(self, service, standing_service, identity, notifier, store):
        await standing_service.apply_standing_change(RENTER_ID, AccountStanding.SUSPENDED)
        notifier.clear()

        result = await standing_service.apply_standing_change(RENTER_ID, AccountStanding.ACTIVE)

        assert result.changed
        assert result.previous_standing == AccountStanding.SUSPENDED
        assert (await identity.get_user(RENTER_ID)).standing == AccountStanding.ACTIVE
        assert [n.event_type for n in notifier.sent] == [NotificationType.ACCOUNT_REACTIVATED]

    async def test_already_active_is_a_no_op(self, standing_service, notifier):
        result = await standing_service.apply_standing_change(RENTER_ID, "active")
        assert not result.changed
        assert notifier.sent == []

    async def test_same_restricted_standing_does_not_cascade_again(self, standing_service, notifier):
        await standing_service.apply_standing_change(RENTER_ID, AccountStanding.SUSPENDED)
        notifier.clear()
        result = await standing_service.apply_standing_change(RENTER_ID, AccountStanding.SUSPENDED)
        assert not result.changed
        assert notifier.sent == []

    async def test_reapplying_restriction_resumes_interrupted_cascade(
        self, service, standing_service, store, notifier, monkeypatch
    ):
        first = await _book(service, RENTER_ID, ITEM_ID, start_day=1, end_day=2)
        second = await _book(service, OTHER_RENTER_ID, SECOND_ITEM_ID, start_day=5, end_day=6)
        await service.approve(first.id, OWNER_ID, "SHIPPING")
        await service.approve(second.id, OWNER_ID, "SHIPPING")
        notifier.clear()

        real_update = store.update
        failures = {second.id: 1}

        async def unavailable_once(reservation):
            if failures.get(reservation.id):
                failures[reservation.id] -= 1
                raise ServiceUnavailableError()
            return await real_update(reservation)

        monkeypatch.setattr(store, "update", unavailable_once)

        with pytest.raises(ServiceUnavailableError):
            await standing_service.apply_standing_change(OWNER_ID, AccountStanding.SUSPENDED)
        assert (await store.get(second.id)).status == ReservationStatus.APPROVED

        retried = await standing_service.apply_standing_change(OWNER_ID, AccountStanding.SUSPENDED)

        assert not retried.changed
        assert retried.cancelled_reservation_ids == [second.id]
        assert (await store.get(first.id)).status == ReservationStatus.CANCELLED
        assert (await store.get(second.id)).status == ReservationStatus.CANCELLED
        assert len(notifier.for_user(OWNER_ID, NotificationType.ACCOUNT_SUSPENDED)) == 1

    async def test_suspended_to_banned_notifies_ban(self, standing_service, notifier):
        await standing_service.apply_standing_change(RENTER_ID, AccountStanding.SUSPENDED)
        await standing_service.apply_standing_change(RENTER_ID, AccountStanding.BANNED)
        assert len(notifier.for_user(RENTER_ID, NotificationType.ACCOUNT_BANNED)) == 1

    async def test_invalid_standing(self, standing_service):
        with pytest.raises(ValidationError):
            await standing_service.apply_standing_change(RENTER_ID, "deleted")

    async def test_unknown_user(self, standing_service):
        with pytest.raises(NotFoundError):
            await standing_service.apply_standing_change(999, AccountStanding.BANNED)

    async def test_admin_cannot_be_restricted(self, standing_service):
        with pytest.raises(AuthorizationError):
            await standing_service.apply_standing_change(ADMIN_ID, AccountStanding.BANNED)

    async def test_non_admin_actor_refused(self, standing_service):
        with pytest.raises(AuthorizationError):
            await standing_service.apply_standing_change(RENTER_ID, AccountStanding.BANNED, admin_id=OWNER_ID)

    async def test_retries_after_concurrent_update(self, service, standing_service, store, monkeypatch):
        reservation = await _book(service, RENTER_ID, ITEM_ID)
        real_cancel = service.cancel_administratively
        attempts = {"count": 0}

        async def flaky(reservation_id, affected_user_id, reason):
            attempts["count"] += 1
            if attempts["count"] == 1:
                raise ConcurrentUpdateError(reservation_id)
            return await real_cancel(reservation_id, affected_user_id=affected_user_id, reason=reason)

        monkeypatch.setattr(service, "cancel_administratively", flaky)

        result = await standing_service.apply_standing_change(RENTER_ID, AccountStanding.SUSPENDED)

        assert attempts["count"] == 2
        assert result.cancelled_reservation_ids == [reservation.id]
        assert (await store.get(reservation.id)).status == ReservationStatus.CANCELLED


class TestStandingApi:
    async def test_admin_suspends_user(self, client: AsyncClient, service, store):
        reservation = await _book(service, RENTER_ID, ITEM_ID)

        response = await client.put(
            f"/api/v1/admin/users/{RENTER_ID}/standing",
            json={"standing": "suspended"},
            headers=auth(ADMIN_ID),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["new_standing"] == "suspended"
        assert data["cancelled_reservation_ids"] == [reservation.id]
        assert (await store.get(reservation.id)).status == ReservationStatus.CANCELLED

    async def test_non_admin_forbidden(self, client: AsyncClient):
        response = await client.put(
            f"/api/v1/admin/users/{RENTER_ID}/standing",
            json={"standing": "banned"},
            headers=auth(OWNER_ID),
        )
        assert response.status_code == 403

    async def test_invalid_standing(self, client: AsyncClient):
        response = await client.put(
            f"/api/v1/admin/users/{RENTER_ID}/standing",
            json={"standing": "frozen"},
            headers=auth(ADMIN_ID),
        )
        assert response.status_code == 400
