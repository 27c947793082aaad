"""Identity collaborator: user lookup, item ownership and standing updates."""

from typing import Protocol

from src.core.exceptions import NotFoundError
from src.integrations.catalog.service import CatalogProvider
from src.integrations.identity.schemas import AccountStanding, UserProfile, UserRole


class IdentityProvider(Protocol):
    async def get_user(self, user_id: int) -> UserProfile | None: ...

    async def find_owner_of(self, item_id: int) -> int | None: ...

    async def update_standing(self, user_id: int, standing: AccountStanding) -> UserProfile: ...


class InMemoryIdentityProvider:
    """
    Reference identity directory.

    Item ownership lives in the catalog, so `find_owner_of` asks the catalog
    it was built with and returns None when there is none.
    """

    def __init__(self, catalog: CatalogProvider | None = None):
        self._users: dict[int, UserProfile] = {}
        self._catalog = catalog

    def add_user(
        self,
        user_id: int,
        *,
        role: UserRole = UserRole.RENTER,
        standing: AccountStanding = AccountStanding.ACTIVE,
        name: str = "",
    ) -> UserProfile:
        user = UserProfile(id=user_id, name=name, role=role, standing=standing)
        self._users[user_id] = user
        return user.model_copy()

    async def get_user(self, user_id: int) -> UserProfile | None:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    async def find_owner_of(self, item_id: int) -> int | None:
        if self._catalog is None:
            return None
        item = await self._catalog.get_item(item_id)
        return item.owner_id if item else None

    async def update_standing(self, user_id: int, standing: AccountStanding) -> UserProfile:
        user = self._users.get(user_id)
        if not user:
            raise NotFoundError("User", user_id)
        user.standing = standing
        return user.model_copy()
