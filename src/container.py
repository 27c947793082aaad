"""
Wiring of stores, collaborators and services for one application instance.

build_container() is a development wiring: identity and catalog start empty,
so every authenticated route answers 401 until users are added or a
deployment passes its own container to create_app().
"""

import logging

from fastapi import Request

from src.core.clock import Clock, SystemClock
from src.core.config import Settings, settings
from src.integrations.catalog.service import CatalogProvider, InMemoryCatalog
from src.integrations.identity.service import IdentityProvider, InMemoryIdentityProvider
from src.integrations.notifications.service import InMemoryNotifier, Notifier
from src.integrations.payments.service import InMemoryPaymentGateway, PaymentGateway
from src.modules.accounts.service import AccountStandingService
from src.modules.dashboard.service import DashboardService
from src.modules.reservations.codes import FulfillmentCodeGenerator
from src.modules.reservations.locks import ItemLockRegistry
from src.modules.reservations.service import ReservationService
from src.modules.reservations.store import (
    InMemoryReservationStore,
    ReservationStore,
    SqlReservationStore,
)

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Holds the collaborators and the services built on top of them."""

    def __init__(
        self,
        *,
        store: ReservationStore,
        identity: IdentityProvider,
        catalog: CatalogProvider,
        notifier: Notifier,
        payments: PaymentGateway,
        clock: Clock | None = None,
        code_generator: FulfillmentCodeGenerator | None = None,
        locks: ItemLockRegistry | None = None,
    ):
        self.clock = clock or SystemClock()
        self.store = store
        self.identity = identity
        self.catalog = catalog
        self.notifier = notifier
        self.payments = payments
        self.reservations = ReservationService(
            store,
            identity=identity,
            catalog=catalog,
            notifier=notifier,
            clock=self.clock,
            code_generator=code_generator,
            locks=locks,
        )
        self.standing = AccountStandingService(
            identity=identity,
            catalog=catalog,
            store=store,
            reservations=self.reservations,
            notifier=notifier,
        )
        self.dashboard = DashboardService(store)


def build_container(app_settings: Settings = settings) -> ServiceContainer:
    """
    Default wiring.

    Identity, catalog, notifications and payments are external systems; the
    in-memory implementations stand in for them until a deployment passes
    its own container to create_app().
    """
    if app_settings.is_production:
        logger.warning("Using in-memory identity, catalog, notifier and payment stubs in production")
    clock = SystemClock()
    catalog = InMemoryCatalog()
    if app_settings.store_backend == "sql":
        from src.core.database import async_session

        store: ReservationStore = SqlReservationStore(async_session)
    else:
        store = InMemoryReservationStore()
    return ServiceContainer(
        store=store,
        identity=InMemoryIdentityProvider(catalog),
        catalog=catalog,
        notifier=InMemoryNotifier(clock, max_history=app_settings.notification_history_limit),
        payments=InMemoryPaymentGateway(clock),
        clock=clock,
        code_generator=FulfillmentCodeGenerator(length=app_settings.fulfillment_code_length),
        locks=ItemLockRegistry(timeout=app_settings.lock_timeout_seconds),
    )


def get_container(request: Request) -> ServiceContainer:
    """Dependency returning the container attached to the running app."""
    return request.app.state.container
