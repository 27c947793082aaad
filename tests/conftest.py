import random
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.container import ServiceContainer
from src.core.clock import FixedClock
from src.core.database.base import Base
from src.integrations.catalog.service import InMemoryCatalog
from src.integrations.identity.schemas import UserRole
from src.integrations.identity.service import InMemoryIdentityProvider
from src.integrations.notifications.service import InMemoryNotifier
from src.integrations.payments.service import InMemoryPaymentGateway
from src.main import create_app
from src.modules.reservations.codes import FulfillmentCodeGenerator
from src.modules.reservations.locks import ItemLockRegistry
from src.modules.reservations.store import InMemoryReservationStore
from tests.helpers import (
    ADMIN_ID,
    ITEM_ID,
    NOW,
    ORPHAN_ITEM_ID,
    OTHER_ITEM_ID,
    OTHER_OWNER_ID,
    OTHER_RENTER_ID,
    OWNER_ID,
    RENTER_ID,
    SECOND_ITEM_ID,
)

# In-memory SQLite shared by every session through a single connection
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def catalog() -> InMemoryCatalog:
    catalog = InMemoryCatalog()
    catalog.add_item(ITEM_ID, owner_id=OWNER_ID, daily_rate="50.00", name="Camera")
    catalog.add_item(SECOND_ITEM_ID, owner_id=OWNER_ID, daily_rate="30.00", name="Tripod")
    catalog.add_item(OTHER_ITEM_ID, owner_id=OTHER_OWNER_ID, daily_rate="20.00", name="Tent")
    catalog.add_item(ORPHAN_ITEM_ID, owner_id=None, daily_rate="10.00", name="Legacy kayak")
    return catalog


@pytest.fixture
def identity(catalog: InMemoryCatalog) -> InMemoryIdentityProvider:
    identity = InMemoryIdentityProvider(catalog)
    identity.add_user(RENTER_ID, role=UserRole.RENTER, name="Rita Renter")
    identity.add_user(OWNER_ID, role=UserRole.OWNER, name="Oscar Owner")
    identity.add_user(ADMIN_ID, role=UserRole.ADMIN, name="Ada Admin")
    identity.add_user(OTHER_RENTER_ID, role=UserRole.RENTER, name="Rob Renter")
    identity.add_user(OTHER_OWNER_ID, role=UserRole.OWNER, name="Olga Owner")
    return identity


@pytest.fixture
def notifier(clock: FixedClock) -> InMemoryNotifier:
    return InMemoryNotifier(clock)


@pytest.fixture
def payments(clock: FixedClock) -> InMemoryPaymentGateway:
    return InMemoryPaymentGateway(clock)


@pytest.fixture
def store() -> InMemoryReservationStore:
    return InMemoryReservationStore()


@pytest.fixture
def code_generator() -> FulfillmentCodeGenerator:
    return FulfillmentCodeGenerator(random.Random(42))


@pytest.fixture
def container(
    store, identity, catalog, notifier, payments, clock, code_generator
) -> ServiceContainer:
    return ServiceContainer(
        store=store,
        identity=identity,
        catalog=catalog,
        notifier=notifier,
        payments=payments,
        clock=clock,
        code_generator=code_generator,
        locks=ItemLockRegistry(timeout=1.0),
    )


@pytest.fixture
def service(container: ServiceContainer):
    return container.reservations


@pytest.fixture
def standing_service(container: ServiceContainer):
    return container.standing


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory over a fresh in-memory database with all tables created."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def client(container: ServiceContainer) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to an app built around the test container."""
    app = create_app(container)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

