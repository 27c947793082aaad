from decimal import Decimal

from pydantic import Field

from src.shared.schemas import BaseSchema


class CatalogItem(BaseSchema):
    """Bookable item as seen by the reservation engine."""

    id: int
    # Items imported without an owner exist in older data; the engine skips them where ownership matters.
    owner_id: int | None = None
    daily_rate: Decimal = Field(..., ge=0)
    available: bool = True
    name: str = ""
