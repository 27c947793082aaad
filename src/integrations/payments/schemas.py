from datetime import datetime
from decimal import Decimal

from src.shared.schemas import BaseSchema


class PaymentConfirmation(BaseSchema):
    """Outcome of a successful charge, recorded on the reservation by reference."""

    reference: str
    reservation_id: int
    amount: Decimal
    charged_at: datetime
