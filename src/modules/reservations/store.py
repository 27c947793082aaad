"""Reservation storage: the interface the engine needs and its two implementations."""

import itertools
from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal
from typing import Protocol

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.exceptions import ConcurrentUpdateError, NotFoundError
from src.modules.reservations.models import Reservation, ReservationRecord, ReservationStatus
from src.shared.utils.money import round_money


class ReservationStore(Protocol):
    async def add(self, reservation: Reservation) -> Reservation: ...

    async def get(self, reservation_id: int) -> Reservation | None: ...

    async def update(self, reservation: Reservation) -> Reservation: ...

    async def list_by_item(
        self, item_id: int, statuses: Iterable[ReservationStatus] | None = None
    ) -> list[Reservation]: ...

    async def list_by_items(
        self, item_ids: Iterable[int], statuses: Iterable[ReservationStatus] | None = None
    ) -> list[Reservation]: ...

    async def list_by_renter(
        self, renter_id: int, statuses: Iterable[ReservationStatus] | None = None
    ) -> list[Reservation]: ...

    async def list_by_status(self, statuses: Iterable[ReservationStatus]) -> list[Reservation]: ...

    async def count_by_status(self) -> dict[ReservationStatus, int]: ...

    async def sum_total_price(self, status: ReservationStatus) -> Decimal: ...


def _sort_key(reservation: Reservation):
    return (reservation.start, reservation.id or 0)


class InMemoryReservationStore:
    """
    Dict-backed store with item and renter indexes.

    Every read returns a deep copy, so callers only change stored state
    through add() and update().
    """

    def __init__(self):
        self._rows: dict[int, Reservation] = {}
        self._by_item: dict[int, set[int]] = defaultdict(set)
        self._by_renter: dict[int, set[int]] = defaultdict(set)
        self._ids = itertools.count(1)

    def _select(
        self, ids: Iterable[int], statuses: Iterable[ReservationStatus] | None
    ) -> list[Reservation]:
        wanted = set(statuses) if statuses is not None else None
        rows = [
            self._rows[i].model_copy(deep=True)
            for i in ids
            if wanted is None or self._rows[i].status in wanted
        ]
        return sorted(rows, key=_sort_key)

    async def add(self, reservation: Reservation) -> Reservation:
        stored = reservation.model_copy(deep=True, update={"id": next(self._ids), "version": 0})
        self._rows[stored.id] = stored
        self._by_item[stored.item_id].add(stored.id)
        self._by_renter[stored.renter_id].add(stored.id)
        return stored.model_copy(deep=True)

    async def get(self, reservation_id: int) -> Reservation | None:
        row = self._rows.get(reservation_id)
        return row.model_copy(deep=True) if row else None

    async def update(self, reservation: Reservation) -> Reservation:
        current = self._rows.get(reservation.id)
        if current is None:
            raise NotFoundError("Reservation", reservation.id)
        if current.version != reservation.version:
            raise ConcurrentUpdateError(reservation.id)
        # item and renter never change after creation, so the indexes stay valid
        stored = reservation.model_copy(deep=True, update={"version": reservation.version + 1})
        self._rows[stored.id] = stored
        return stored.model_copy(deep=True)

    async def list_by_item(
        self, item_id: int, statuses: Iterable[ReservationStatus] | None = None
    ) -> list[Reservation]:
        return self._select(self._by_item.get(item_id, ()), statuses)

    async def list_by_items(
        self, item_ids: Iterable[int], statuses: Iterable[ReservationStatus] | None = None
    ) -> list[Reservation]:
        ids: set[int] = set()
        for item_id in item_ids:
            ids |= self._by_item.get(item_id, set())
        return self._select(ids, statuses)

    async def list_by_renter(
        self, renter_id: int, statuses: Iterable[ReservationStatus] | None = None
    ) -> list[Reservation]:
        return self._select(self._by_renter.get(renter_id, ()), statuses)

    async def list_by_status(self, statuses: Iterable[ReservationStatus]) -> list[Reservation]:
        return self._select(self._rows.keys(), statuses)

    async def count_by_status(self) -> dict[ReservationStatus, int]:
        counts = {status: 0 for status in ReservationStatus}
        for row in self._rows.values():
            counts[row.status] += 1
        return counts

    async def sum_total_price(self, status: ReservationStatus) -> Decimal:
        return round_money(sum((r.total_price for r in self._rows.values() if r.status == status), Decimal("0")))


class SqlReservationStore:
    """
    SQLAlchemy-backed store. One short session per call.

    update() is a compare-and-set on (id, version): zero matched rows means
    another request got there first.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @staticmethod
    def _where_status(query, statuses: Iterable[ReservationStatus] | None):
        if statuses is not None:
            query = query.where(ReservationRecord.status.in_([s.value for s in statuses]))
        return query

    async def _fetch(self, query) -> list[Reservation]:
        query = query.order_by(ReservationRecord.start, ReservationRecord.id)
        async with self.session_factory() as session:
            result = await session.execute(query)
            return [Reservation.model_validate(row) for row in result.scalars().all()]

    async def add(self, reservation: Reservation) -> Reservation:
        record = ReservationRecord(**reservation.model_dump(exclude={"id", "version"}), version=0)
        async with self.session_factory() as session:
            session.add(record)
            await session.commit()
            return Reservation.model_validate(record)

    async def get(self, reservation_id: int) -> Reservation | None:
        async with self.session_factory() as session:
            record = await session.get(ReservationRecord, reservation_id)
            return Reservation.model_validate(record) if record else None

    async def update(self, reservation: Reservation) -> Reservation:
        values = reservation.model_dump(exclude={"id", "version", "renter_id", "item_id"})
        stmt = (
            update(ReservationRecord)
            .where(
                ReservationRecord.id == reservation.id,
                ReservationRecord.version == reservation.version,
            )
            .values(**values, version=reservation.version + 1)
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            if result.rowcount == 0:
                await session.rollback()
                exists = await session.scalar(
                    select(func.count()).where(ReservationRecord.id == reservation.id)
                )
                if not exists:
                    raise NotFoundError("Reservation", reservation.id)
                raise ConcurrentUpdateError(reservation.id)
            await session.commit()
        return reservation.model_copy(update={"version": reservation.version + 1})

    async def list_by_item(
        self, item_id: int, statuses: Iterable[ReservationStatus] | None = None
    ) -> list[Reservation]:
        query = select(ReservationRecord).where(ReservationRecord.item_id == item_id)
        return await self._fetch(self._where_status(query, statuses))

    async def list_by_items(
        self, item_ids: Iterable[int], statuses: Iterable[ReservationStatus] | None = None
    ) -> list[Reservation]:
        ids = list(item_ids)
        if not ids:
            return []
        query = select(ReservationRecord).where(ReservationRecord.item_id.in_(ids))
        return await self._fetch(self._where_status(query, statuses))

    async def list_by_renter(
        self, renter_id: int, statuses: Iterable[ReservationStatus] | None = None
    ) -> list[Reservation]:
        query = select(ReservationRecord).where(ReservationRecord.renter_id == renter_id)
        return await self._fetch(self._where_status(query, statuses))

    async def list_by_status(self, statuses: Iterable[ReservationStatus]) -> list[Reservation]:
        return await self._fetch(self._where_status(select(ReservationRecord), statuses))

    async def count_by_status(self) -> dict[ReservationStatus, int]:
        counts = {status: 0 for status in ReservationStatus}
        async with self.session_factory() as session:
            result = await session.execute(
                select(ReservationRecord.status, func.count()).group_by(ReservationRecord.status)
            )
            for status, count in result.all():
                counts[ReservationStatus(status)] = count
        return counts

    async def sum_total_price(self, status: ReservationStatus) -> Decimal:
        async with self.session_factory() as session:
            total = await session.scalar(
                select(func.coalesce(func.sum(ReservationRecord.total_price), 0)).where(
                    ReservationRecord.status == status.value
                )
            )
        return round_money(total or 0)
