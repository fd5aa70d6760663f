"""Category Resolution — two-phase resolution of a caller-supplied category id.

Invariants:
    - Phase 1: the id is a category of the item -> used as-is
    - Phase 2: the id is an item-specific category-option handle -> mapped to its category
    - Otherwise InvalidCategoryError; never guesses
    - Result is always a ResolvedCategory; downstream code never sees the raw id

Design Decisions:
    - Both phases kept on purpose: clients send either kind of identifier
    - Direct category wins when an id is valid under both meanings
"""

from accentvote.core.domain_types import (
    CategoryId, CategoryOptionId, ItemDefinition, ResolvedCategory,
)
from accentvote.core.errors import ErrorContext, InvalidCategoryError


def resolve_category(
    item: ItemDefinition, raw_category_id: int,
    context: ErrorContext | None = None,
) -> ResolvedCategory:
    """Resolve raw_category_id against item. Pure."""
    if CategoryId(raw_category_id) in item.category_ids:
        return ResolvedCategory(item.item_id, CategoryId(raw_category_id))

    option_category = item.category_options.get(CategoryOptionId(raw_category_id))
    if option_category is not None:
        return ResolvedCategory(item.item_id, option_category)

    raise InvalidCategoryError(item.item_id, raw_category_id, context)
