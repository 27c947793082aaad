from enum import StrEnum

from src.shared.schemas import BaseSchema


class UserRole(StrEnum):
    """Marketplace roles."""

    RENTER = "renter"
    OWNER = "owner"
    ADMIN = "admin"


class AccountStanding(StrEnum):
    """Administrative standing of an account."""

    ACTIVE = "active"
    SUSPENDED = "suspended"
    BANNED = "banned"


class UserProfile(BaseSchema):
    """What the reservation engine needs to know about a user."""

    id: int
    name: str = ""
    role: UserRole = UserRole.RENTER
    standing: AccountStanding = AccountStanding.ACTIVE

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_owner(self) -> bool:
        return self.role == UserRole.OWNER

    @property
    def is_active(self) -> bool:
        return self.standing == AccountStanding.ACTIVE
