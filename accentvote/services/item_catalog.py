"""Item Catalog adapters — implementations of the ItemCatalog protocol.

Invariants:
    - get_item() returns None for unknown items and for items not approved for voting
    - category_ids is the set of categories offered by the item's options
    - category_options maps each option id (client-facing handle) to its category

Design Decisions:
    - InMemoryItemCatalog for tests and scripts; SqlItemCatalog reads the items tables
    - SqlItemCatalog opens its own short read session: item lookup happens before
      the tabulation transaction begins
"""

from sqlalchemy import select

from accentvote.core.domain_types import (
    CategoryId, CategoryOptionId, ItemDefinition, ItemId,
)
from accentvote.infrastructure.database import DatabaseSessionManager
from accentvote.models.item import Item

VOTABLE_STATUS = "approved"


class InMemoryItemCatalog:
    """Dict-backed catalog."""

    def __init__(self, items: list[ItemDefinition] | None = None):
        self._items: dict[ItemId, ItemDefinition] = {
            item.item_id: item for item in items or []
        }

    def add(self, item: ItemDefinition) -> None:
        self._items[item.item_id] = item

    async def get_item(self, item_id: int) -> ItemDefinition | None:
        return self._items.get(ItemId(item_id))


def item_definition(item: Item) -> ItemDefinition:
    return ItemDefinition(
        item_id=ItemId(item.id),
        category_ids=frozenset(CategoryId(o.category_id) for o in item.options),
        category_options={
            CategoryOptionId(o.id): CategoryId(o.category_id) for o in item.options
        },
    )


class SqlItemCatalog:
    """Catalog backed by the items / category_options tables."""

    def __init__(self, db_manager: DatabaseSessionManager):
        self._db = db_manager

    async def get_item(self, item_id: int) -> ItemDefinition | None:
        async with self._db.session() as db:
            result = await db.execute(
                select(Item)
                .where(Item.id == item_id)
                .where(Item.status == VOTABLE_STATUS)
            )
            item = result.scalar_one_or_none()
            return item_definition(item) if item else None
