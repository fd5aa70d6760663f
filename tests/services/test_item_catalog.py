"""Item Catalog — SQL-backed catalog and engine integration.

Tests cover:
    - Category ids come from the item's category options
    - Option ids map to their categories (option handles)
    - Items not approved for voting are invisible
"""

import pytest

from accentvote.core.domain_types import CategoryId, ItemDefinition, ItemId
from accentvote.core.errors import NotFoundError
from accentvote.models.item import CategoryOption, Item
from accentvote.services.item_catalog import InMemoryItemCatalog, SqlItemCatalog
from accentvote.services.tabulation_engine import TabulationEngine


@pytest.fixture
async def seeded_items(db_manager):
    async with db_manager.transaction() as db:
        approved = Item(headword="hashi", status="approved")
        approved.options = [CategoryOption(category_id=10), CategoryOption(category_id=20)]
        pending = Item(headword="ame", status="pending")
        pending.options = [CategoryOption(category_id=10)]
        db.add_all([approved, pending])
        await db.flush()
        ids = {
            "approved": approved.id,
            "pending": pending.id,
            "options": {o.category_id: o.id for o in approved.options},
        }
    return ids


@pytest.fixture
def sql_engine(db_manager, rate_limiter, clock):
    return TabulationEngine(db_manager, SqlItemCatalog(db_manager), rate_limiter, clock)


async def test_sql_catalog_reads_options(db_manager, seeded_items):
    item = await SqlItemCatalog(db_manager).get_item(seeded_items["approved"])
    assert item.category_ids == {10, 20}
    assert item.category_options == {
        seeded_items["options"][10]: 10,
        seeded_items["options"][20]: 20,
    }


async def test_sql_catalog_hides_unapproved_items(db_manager, seeded_items):
    assert await SqlItemCatalog(db_manager).get_item(seeded_items["pending"]) is None


async def test_sql_catalog_unknown_item(db_manager):
    assert await SqlItemCatalog(db_manager).get_item(999) is None


async def test_engine_votes_through_option_handle(sql_engine, seeded_items):
    option_id = seeded_items["options"][20]
    receipt = await sql_engine.submit_vote(seeded_items["approved"], option_id, "voter-a")
    assert [(e.category_id, e.count) for e in receipt.national] == [(20, 1)]


async def test_engine_rejects_unapproved_item(sql_engine, seeded_items):
    with pytest.raises(NotFoundError):
        await sql_engine.submit_vote(seeded_items["pending"], 10, "voter-a")


async def test_in_memory_catalog_add():
    catalog = InMemoryItemCatalog()
    assert await catalog.get_item(7) is None
    catalog.add(ItemDefinition(ItemId(7), frozenset({CategoryId(1)})))
    assert (await catalog.get_item(7)).category_ids == {1}
