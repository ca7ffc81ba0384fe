# windspire_console/duplicates/detector.py
"""
Title-based duplicate detection.

The normalized title (lowercase, punctuation stripped) is the canonical
duplicate key for grouping, flagging, and cleanup. It is a heuristic, not a
guaranteed-unique key.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from windspire_console.errors import describe_error
from windspire_console.models.content import ContentItem
from windspire_console.models.content_set import ContentSet
from windspire_console.models.store import ContentStore

logger = logging.getLogger(__name__)

_NON_WORD_RE = re.compile(r"[^\w\s]")


def normalize_title(title: str) -> str:
    """Lowercase and strip every character that is not a word char or whitespace."""
    return _NON_WORD_RE.sub("", title.lower())


@dataclass
class DuplicateGroup:
    """
    Items sharing one normalized title, in arrival order.

    The first member is the default representative.
    """

    key: str
    items: list[ContentItem] = field(default_factory=list)

    @property
    def item_ids(self) -> list[str | None]:
        return [item.id for item in self.items]

    @property
    def title(self) -> str:
        """Display title (the first member's original title)."""
        return self.items[0].title if self.items else self.key

    def __len__(self) -> int:
        return len(self.items)


def find_duplicates(items: Iterable[ContentItem]) -> list[DuplicateGroup]:
    """
    Group items by normalized title.

    Returns:
        Groups with two or more members, ordered by first appearance.
        Every item lands in at most one group.
    """
    groups: dict[str, DuplicateGroup] = {}
    for item in items:
        if not item.title:
            continue
        key = normalize_title(item.title)
        groups.setdefault(key, DuplicateGroup(key=key)).items.append(item)

    return [group for group in groups.values() if len(group) >= 2]


def is_duplicate(item: ContentItem, items: Iterable[ContentItem]) -> bool:
    """
    Whether an item should be shown as a duplicate.

    The persisted flag is the source of truth once set; otherwise any other
    item with the same case-insensitive title makes this one a duplicate.
    """
    if item.is_duplicate:
        return True
    if not item.title:
        return False

    title = item.title.lower()
    for other in items:
        if other is item or (item.id is not None and other.id == item.id):
            continue
        if other.title and other.title.lower() == title:
            return True
    return False


async def mark_duplicates_in_store(content_set: ContentSet, store: ContentStore) -> int:
    """
    Persist `isDuplicate=True` on every group member except the first.

    Already-flagged items and drafts without an id are skipped, and each
    successful update is applied back to the content set, so a second pass
    over an unchanged set issues no writes.

    Returns:
        Number of update calls that succeeded
    """
    groups = find_duplicates(content_set.items)
    if not groups:
        logger.info("No duplicates found to update")
        return 0

    logger.info(f"Found {len(groups)} groups of duplicates to update")
    updated = 0
    for group in groups:
        for item in group.items[1:]:
            if item.is_duplicate or item.id is None:
                continue
            try:
                result = await store.update(item.id, {"isDuplicate": True})
            except Exception as e:
                logger.error(
                    f"Error updating duplicate status for {item.id}: {describe_error(e)}"
                )
                continue
            # The flag is what we asked for, whatever the store echoed back
            content_set.apply(result.model_copy(update={"is_duplicate": True}))
            updated += 1

    logger.info(f"Finished updating duplicate statuses ({updated} updated)")
    return updated
