"""Catalog collaborator: item lookup and owner listings."""

from decimal import Decimal
from typing import Protocol

from src.core.exceptions import NotFoundError
from src.integrations.catalog.schemas import CatalogItem


class CatalogProvider(Protocol):
    async def get_item(self, item_id: int) -> CatalogItem | None: ...

    async def list_items_by_owner(self, owner_id: int) -> list[CatalogItem]: ...


class InMemoryCatalog:
    """Reference catalog keyed by item id."""

    def __init__(self):
        self._items: dict[int, CatalogItem] = {}

    def add_item(
        self,
        item_id: int,
        *,
        owner_id: int | None,
        daily_rate: Decimal | int | str,
        available: bool = True,
        name: str = "",
    ) -> CatalogItem:
        item = CatalogItem(
            id=item_id,
            owner_id=owner_id,
            daily_rate=Decimal(str(daily_rate)),
            available=available,
            name=name,
        )
        self._items[item_id] = item
        return item.model_copy()

    def set_available(self, item_id: int, available: bool) -> None:
        item = self._items.get(item_id)
        if not item:
            raise NotFoundError("Item", item_id)
        item.available = available

    async def get_item(self, item_id: int) -> CatalogItem | None:
        item = self._items.get(item_id)
        return item.model_copy() if item else None

    async def list_items_by_owner(self, owner_id: int) -> list[CatalogItem]:
        return [
            item.model_copy()
            for item in self._items.values()
            if item.owner_id is not None and item.owner_id == owner_id
        ]
