"""Schemas for the account standing module."""

from pydantic import BaseModel, Field

from src.integrations.identity.schemas import AccountStanding
from src.shared.schemas import BaseSchema


class StandingUpdateRequest(BaseModel):
    """Administrative standing change."""

    standing: str = Field(..., min_length=1, max_length=20)


class StandingChangeResult(BaseSchema):
    """What a standing change did."""

    user_id: int
    previous_standing: AccountStanding
    new_standing: AccountStanding
    changed: bool
    cancelled_reservation_ids: list[int] = []
