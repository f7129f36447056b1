"""
Column registry for the CPMP master problem.

Each column represents a cluster: one median plus the set of locations
assigned to it. Columns are immutable and identified by their creation
index. The registry is append-only, so a per-constraint index cursor is
enough to find the columns created since some earlier point.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterator, List, Optional, Tuple


@dataclass(frozen=True)
class Column:
    """
    A cluster column.

    Attributes:
        index: Creation index in the registry
        median: Median serving the cluster
        covered_items: Locations assigned to the median
        cost: Total service cost of the cluster
    """
    index: int
    median: int
    covered_items: FrozenSet[int]
    cost: float

    @property
    def locations(self) -> Tuple[int, ...]:
        """Covered locations in ascending order."""
        return tuple(sorted(self.covered_items))

    @property
    def n_locations(self) -> int:
        return len(self.covered_items)

    def covers(self, location: int) -> bool:
        """Check if a location is in the cluster."""
        return location in self.covered_items

    def __repr__(self) -> str:
        members = " ".join(str(i) for i in self.locations)
        return f"Column({self.index}: median={self.median}, locations=[{members}], cost={self.cost:g})"


class ColumnRegistry:
    """Append-only store of generated columns."""

    def __init__(self):
        self._columns: List[Column] = []
        self._keys: Dict[Tuple[int, FrozenSet[int]], int] = {}

    def add(self, median: int, locations, cost: float) -> Column:
        """Create and register a new column."""
        members = frozenset(int(i) for i in locations)
        column = Column(
            index=len(self._columns),
            median=int(median),
            covered_items=members,
            cost=float(cost),
        )
        self._columns.append(column)
        self._keys[(column.median, members)] = column.index
        return column

    def find(self, median: int, locations) -> Optional[Column]:
        """Find an existing column with the same median and members."""
        idx = self._keys.get((int(median), frozenset(int(i) for i in locations)))
        return None if idx is None else self._columns[idx]

    def since(self, start: int) -> List[Column]:
        """Columns created at or after index ``start``."""
        return self._columns[start:]

    def __len__(self) -> int:
        return len(self._columns)

    def __getitem__(self, index: int) -> Column:
        return self._columns[index]

    def __iter__(self) -> Iterator[Column]:
        return iter(self._columns)
