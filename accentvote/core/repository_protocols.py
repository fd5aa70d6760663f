"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Collaborators the tabulation engine consumes are accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, tests pass plain fakes
    - ItemCatalog is async because real implementations do IO; Clock is sync
"""

from datetime import datetime
from typing import Protocol

from accentvote.core.domain_types import ItemDefinition


class ItemCatalog(Protocol):
    """Source of votable items and their selectable categories."""
    async def get_item(self, item_id: int) -> ItemDefinition | None: ...


class Clock(Protocol):
    """Injected time source so retraction and rate windows are testable."""
    def now(self) -> datetime: ...


class VoterIdentity(Protocol):
    """Turns an inbound request into an opaque voter key."""
    def resolve(self, request: object) -> str | None: ...
