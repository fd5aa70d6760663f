"""Region Catalog — immutable directory of regions and their adjacency graph.

Invariants:
    - Built once from region_table at import time; never mutated afterwards
    - regions preserves table order (deterministic iteration for clustering)
    - edges preserves table order; adjacency is symmetric

Design Decisions:
    - Adjacency loaded from a data table into frozensets (ADR: data, not logic)
    - Frozen dataclass: safe to share across concurrent requests without locking
"""

from dataclasses import dataclass, field

from accentvote.core.domain_types import RegionId
from accentvote.core.region_table import ADJACENT_PAIRS, REGIONS


@dataclass(frozen=True)
class Region:
    id: RegionId
    name: str
    group_label: str


@dataclass(frozen=True)
class RegionCatalog:
    """Static region directory with an undirected adjacency edge set."""

    regions: tuple[Region, ...]
    edges: tuple[tuple[RegionId, RegionId], ...]
    _by_id: dict[RegionId, Region] = field(init=False, repr=False, compare=False)
    _neighbors: dict[RegionId, frozenset[RegionId]] = field(
        init=False, repr=False, compare=False,
    )

    def __post_init__(self):
        by_id = {r.id: r for r in self.regions}
        if len(by_id) != len(self.regions):
            raise ValueError("duplicate region id in catalog")
        neighbors: dict[RegionId, set[RegionId]] = {r.id: set() for r in self.regions}
        for a, b in self.edges:
            if a not in by_id or b not in by_id:
                raise ValueError(f"adjacency references unknown region: {a}-{b}")
            if a == b:
                raise ValueError(f"self-adjacency not allowed: {a}")
            neighbors[a].add(b)
            neighbors[b].add(a)
        object.__setattr__(self, "_by_id", by_id)
        object.__setattr__(
            self, "_neighbors", {k: frozenset(v) for k, v in neighbors.items()},
        )

    @property
    def region_ids(self) -> list[RegionId]:
        return [r.id for r in self.regions]

    def get(self, region_id: str) -> Region | None:
        return self._by_id.get(RegionId(region_id))

    def contains(self, region_id: str) -> bool:
        return region_id in self._by_id

    def neighbors(self, region_id: str) -> frozenset[RegionId]:
        return self._neighbors.get(RegionId(region_id), frozenset())

    def are_adjacent(self, a: str, b: str) -> bool:
        return RegionId(b) in self.neighbors(a)

    def by_group(self, group_label: str) -> list[Region]:
        return [r for r in self.regions if r.group_label == group_label]

    @property
    def group_labels(self) -> list[str]:
        """Distinct grouping labels, in first-seen order."""
        return list(dict.fromkeys(r.group_label for r in self.regions))


def load_region_catalog() -> RegionCatalog:
    """Build the catalog from the static table."""
    regions = tuple(
        Region(RegionId(code), name, group) for code, name, group in REGIONS
    )
    edges = tuple((RegionId(a), RegionId(b)) for a, b in ADJACENT_PAIRS)
    return RegionCatalog(regions=regions, edges=edges)


DEFAULT_REGION_CATALOG: RegionCatalog = load_region_catalog()
