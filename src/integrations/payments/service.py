"""Payment collaborator. The HTTP layer charges first, then records the outcome with pay()."""

import secrets
from decimal import Decimal
from typing import Protocol

from src.core.clock import Clock, SystemClock
from src.core.exceptions import NotFoundError, PaymentDeclinedError
from src.integrations.payments.schemas import PaymentConfirmation
from src.shared.utils.money import round_money


class PaymentGateway(Protocol):
    async def charge(self, reservation_id: int, amount: Decimal) -> PaymentConfirmation: ...

    async def refund(self, reference: str) -> None: ...


class InMemoryPaymentGateway:
    """Accepts every charge unless `decline` is set."""

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()
        self.decline = False
        self.charges: list[PaymentConfirmation] = []
        self.refunds: list[str] = []

    async def charge(self, reservation_id: int, amount: Decimal) -> PaymentConfirmation:
        if self.decline:
            raise PaymentDeclinedError(f"Charge for reservation {reservation_id} was declined")
        confirmation = PaymentConfirmation(
            reference=f"PAY-{secrets.token_hex(6).upper()}",
            reservation_id=reservation_id,
            amount=round_money(amount),
            charged_at=self._clock.now(),
        )
        self.charges.append(confirmation)
        return confirmation

    async def refund(self, reference: str) -> None:
        """Void a charge. Refunding the same reference twice is a no-op."""
        if not any(c.reference == reference for c in self.charges):
            raise NotFoundError("Payment", reference)
        if reference not in self.refunds:
            self.refunds.append(reference)
