"""
Opportunity history.

Bounded, newest-first record of evaluated opportunities shown in the
dashboard table and included in exports.
"""

from collections import deque
from collections.abc import Iterable, Iterator

from dexarb.config.constants import DEFAULT_HISTORY_SIZE
from dexarb.core.types import Opportunity


class OpportunityHistory:
    """
    Ring buffer of opportunities, newest first.

    Older entries are dropped once `maxlen` is reached.
    """

    __slots__ = ("_items",)

    def __init__(self, maxlen: int = DEFAULT_HISTORY_SIZE) -> None:
        if maxlen <= 0:
            raise ValueError("maxlen must be positive")
        self._items: deque[Opportunity] = deque(maxlen=maxlen)

    def add(self, opportunity: Opportunity) -> None:
        self._items.appendleft(opportunity)

    def extend(self, opportunities: Iterable[Opportunity]) -> None:
        """Add a batch, keeping the batch's own order at the front."""
        self._items.extendleft(reversed(list(opportunities)))

    def recent(self, limit: int | None = None, viable_only: bool = False) -> list[Opportunity]:
        """
        Newest opportunities first.

        Args:
            limit: Maximum number returned, or None for all.
            viable_only: Only include viable opportunities.
        """
        items: Iterable[Opportunity] = self._items
        if viable_only:
            items = (o for o in items if o.viable)
        result = list(items)
        return result if limit is None else result[: max(limit, 0)]

    def viable(self) -> list[Opportunity]:
        return [o for o in self._items if o.viable]

    def best(self) -> Opportunity | None:
        """Highest net profit among viable opportunities."""
        return max(self.viable(), key=lambda o: o.profit, default=None)

    @property
    def success_rate(self) -> float:
        """Viable share of retained opportunities, in percent."""
        if not self._items:
            return 0.0
        return len(self.viable()) / len(self._items) * 100.0

    @property
    def maxlen(self) -> int:
        return self._items.maxlen or 0

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Opportunity]:
        return iter(self._items)
