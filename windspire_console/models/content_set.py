# windspire_console/models/content_set.py
"""
Single owner of the visible content set.

The orchestrator, detector, and resolver never touch a shared list; they ask
this owner to prepend, replace-by-id, or remove. Last write wins.
"""

import logging
from collections.abc import Iterable, Iterator

from windspire_console.models.content import ContentItem

logger = logging.getLogger(__name__)


class ContentSet:
    """
    Ordered, id-keyed collection of ContentItems.

    Order is arrival order as seen by the operator (newest batches first,
    because generated items are prepended). Drafts without an id are kept
    in order but cannot be addressed by `apply`/`remove`.
    """

    def __init__(self, items: Iterable[ContentItem] = ()) -> None:
        self._items: list[ContentItem] = list(items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ContentItem]:
        return iter(list(self._items))

    def __contains__(self, item_id: object) -> bool:
        return any(item.id == item_id for item in self._items if item.id)

    @property
    def items(self) -> list[ContentItem]:
        """Snapshot copy of the current items, in order."""
        return list(self._items)

    def get(self, item_id: str) -> ContentItem | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def replace_all(self, items: Iterable[ContentItem]) -> None:
        """Swap in a freshly listed set (e.g. after a store refresh)."""
        self._items = list(items)
        logger.info(f"Content set replaced ({len(self._items)} items)")

    def prepend(self, items: Iterable[ContentItem]) -> int:
        """
        Insert new items at the front, preserving their relative order.

        Items whose id is already present replace the existing entry instead
        of being inserted twice.

        Returns:
            Number of items newly inserted
        """
        fresh: list[ContentItem] = []
        for item in items:
            if item.id and item.id in self:
                self.apply(item)
            else:
                fresh.append(item)
        self._items = fresh + self._items
        return len(fresh)

    def apply(self, item: ContentItem) -> bool:
        """
        Replace the entry with the same id.

        Returns:
            True if an entry was replaced, False if the id was unknown
        """
        if item.id is None:
            return False
        for index, existing in enumerate(self._items):
            if existing.id == item.id:
                self._items[index] = item
                return True
        logger.warning(f"apply() ignored unknown content id {item.id}")
        return False

    def remove(self, item_id: str) -> bool:
        before = len(self._items)
        self._items = [item for item in self._items if item.id != item_id]
        return len(self._items) < before
