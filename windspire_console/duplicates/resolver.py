# windspire_console/duplicates/resolver.py
"""
Duplicate resolution: keep one item per group, rewrite or delete the rest.

Every remote call is isolated per item; a failed rewrite or delete is
recorded and the remaining targets are still processed. Successful changes
are applied to the ContentSet so later scans see the current state.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Protocol

from windspire_console.duplicates.detector import (
    DuplicateGroup,
    find_duplicates,
    normalize_title,
)
from windspire_console.errors import PreconditionError, describe_error
from windspire_console.models.content import ContentItem, derive_summary
from windspire_console.models.content_set import ContentSet
from windspire_console.models.store import ContentStore

logger = logging.getLogger(__name__)

DUPLICATE_REASON = "duplicate"


class Rewriter(Protocol):
    async def rewrite(self, item_id: str, model: str | None = None) -> ContentItem: ...


class GroupState(str, Enum):
    DETECTED = "detected"
    RESOLVING = "resolving"
    RESOLVED = "resolved"


class ResolutionAction(str, Enum):
    REWRITE = "rewrite"
    DELETE = "delete"


@dataclass
class DeleteSummary:
    deleted: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def succeeded_count(self) -> int:
        return len(self.deleted)

    @property
    def failed_count(self) -> int:
        return len(self.failed)


@dataclass
class GroupResolution:
    """
    Outcome of resolving one group.

    `remaining` holds the group as recomputed from the content set after the
    action ran; it is None once the group no longer exists.
    """

    key: str
    keep_id: str
    action: ResolutionAction
    state: GroupState = GroupState.DETECTED
    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    remaining: DuplicateGroup | None = None

    @property
    def unresolved_ids(self) -> list[str]:
        if self.remaining is None:
            return []
        return [i for i in self.remaining.item_ids if i and i != self.keep_id]


@dataclass
class CleanupSummary:
    groups: int = 0
    kept: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return (
            f"Processed duplicate content: kept {len(self.kept)}, "
            f"deleted {len(self.deleted)}"
        )


class DuplicateResolver:
    """
    Applies keep/rewrite/delete decisions to duplicate groups.

    Example:
        resolver = DuplicateResolver(store, generation_client, content_set)
        summary = await resolver.bulk_cleanup()
        print(summary.message)
    """

    def __init__(
        self,
        store: ContentStore,
        rewriter: Rewriter,
        content_set: ContentSet,
        rewrite_model: str | None = None,
    ) -> None:
        """
        Initialize resolver.

        Args:
            store: Content store used for deletes and flag updates
            rewriter: Service producing reworded variants
            content_set: Owner of the visible items
            rewrite_model: Default model for rewrites (None = service default)
        """
        self._store = store
        self._rewriter = rewriter
        self._content_set = content_set
        self._rewrite_model = rewrite_model

    async def resolve(
        self,
        group: DuplicateGroup,
        keep_id: str,
        action: ResolutionAction | str,
        targets: Sequence[str] | None = None,
        model: str | None = None,
    ) -> GroupResolution:
        """
        Keep one member and rewrite or delete the others.

        Args:
            group: Group to resolve
            keep_id: Member to keep untouched
            action: "rewrite" or "delete"
            targets: Members to act on (default: every member but keep)
            model: Rewrite model override

        Returns:
            GroupResolution; state is RESOLVED when the group no longer
            exists in the content set, DETECTED otherwise

        Raises:
            PreconditionError: keep_id or a target is not a group member,
                or a target equals keep_id
        """
        action = ResolutionAction(action)
        members = [i for i in group.item_ids if i]
        if keep_id not in members:
            raise PreconditionError(f"Item {keep_id} is not a member of this group")

        if targets is None:
            targets = [i for i in members if i != keep_id]
        for target in targets:
            if target == keep_id:
                raise PreconditionError("The kept item cannot also be a target")
            if target not in members:
                raise PreconditionError(f"Item {target} is not a member of this group")

        resolution = GroupResolution(key=group.key, keep_id=keep_id, action=action)
        resolution.state = GroupState.RESOLVING
        logger.info(
            f"Resolving group '{group.title}': keep {keep_id}, "
            f"{action.value} {len(targets)} item(s)"
        )

        if action is ResolutionAction.DELETE:
            summary = await self.delete(targets, DUPLICATE_REASON, duplicate_of=keep_id)
            resolution.succeeded = summary.deleted
            resolution.failed = summary.failed
        else:
            for target in targets:
                try:
                    await self.rewrite(target, model)
                except Exception as e:
                    logger.error(f"Rewrite of {target} failed: {e}")
                    resolution.failed[target] = describe_error(e)
                else:
                    resolution.succeeded.append(target)

        resolution.remaining = self._regroup(group.key)
        resolution.state = (
            GroupState.RESOLVED if resolution.remaining is None else GroupState.DETECTED
        )
        logger.info(
            f"Group '{group.title}' {resolution.state.value}: "
            f"{len(resolution.succeeded)} succeeded, {len(resolution.failed)} failed"
        )
        return resolution

    async def rewrite(self, item_id: str, model: str | None = None) -> ContentItem:
        """
        Replace an item's wording with a rewritten variant.

        Title, body, summary and updated_at change; id, category, flags,
        counters and everything else are preserved.

        Raises:
            ServiceError: If the rewrite service fails
        """
        rewritten = await self._rewriter.rewrite(item_id, model or self._rewrite_model)
        current = self._content_set.get(item_id) or rewritten

        updated = current.model_copy(
            update={
                "title": rewritten.title,
                "body": rewritten.body,
                "summary": rewritten.summary or derive_summary(rewritten.body),
                "updated_at": rewritten.updated_at or datetime.now(timezone.utc),
            }
        )
        self._content_set.apply(updated)
        logger.info(f"Rewrote {item_id}: '{current.title}' -> '{updated.title}'")
        return updated

    async def delete(
        self,
        item_ids: Iterable[str],
        reason: str = "manual_delete",
        duplicate_of: str | None = None,
    ) -> DeleteSummary:
        """
        Delete items one by one.

        Returns:
            DeleteSummary; deleted ids have left the content set
        """
        summary = DeleteSummary()
        for item_id in item_ids:
            try:
                await self._store.delete(item_id, reason=reason, duplicate_of=duplicate_of)
            except Exception as e:
                logger.error(f"Error deleting {item_id}: {e}")
                summary.failed[item_id] = describe_error(e)
                continue
            self._content_set.remove(item_id)
            summary.deleted.append(item_id)

        logger.info(
            f"Deleted {summary.succeeded_count} item(s), {summary.failed_count} failed"
        )
        return summary

    async def bulk_cleanup(self, items: Iterable[ContentItem] | None = None) -> CleanupSummary:
        """
        Keep one representative per duplicate group and delete the rest.

        The representative is the first unflagged member in arrival order.
        If every member is flagged, the first is kept and its flag cleared.
        Running this again over the updated content set deletes nothing.

        Args:
            items: Items to scan (default: the content set)

        Returns:
            CleanupSummary with kept/deleted ids and per-id failures
        """
        if items is None:
            items = self._content_set.items
        else:
            # Ids already removed from the content set were deleted by an earlier pass
            items = [i for i in items if i.id is None or i.id in self._content_set]
        groups = find_duplicates(items)
        summary = CleanupSummary(groups=len(groups))
        if not groups:
            logger.info("No duplicate groups to clean up")
            return summary

        for group in groups:
            members = [item for item in group.items if item.id]
            if len(members) < 2:
                continue

            keep = next((item for item in members if not item.is_duplicate), None)
            if keep is None:
                keep = members[0]
                await self._clear_flag(keep)
            summary.kept.append(keep.id)

            doomed = [item.id for item in members if item.id != keep.id]
            result = await self.delete(doomed, DUPLICATE_REASON, duplicate_of=keep.id)
            summary.deleted.extend(result.deleted)
            summary.failed.update(result.failed)

        logger.info(summary.message)
        return summary

    async def _clear_flag(self, item: ContentItem) -> None:
        try:
            result = await self._store.update(item.id, {"isDuplicate": False})
        except Exception as e:
            logger.error(f"Could not clear duplicate flag on {item.id}: {e}")
            return
        self._content_set.apply(result.model_copy(update={"is_duplicate": False}))

    def _regroup(self, key: str) -> DuplicateGroup | None:
        members = [
            item for item in self._content_set
            if item.title and normalize_title(item.title) == key
        ]
        if len(members) < 2:
            return None
        return DuplicateGroup(key=key, items=members)
