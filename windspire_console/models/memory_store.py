# windspire_console/models/memory_store.py
"""
In-memory store implementations.

Used for tests and dry runs. Single-process only; async signatures match
the HTTP and SQLite implementations.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from windspire_console.errors import ServiceError
from windspire_console.models.content import ContentItem
from windspire_console.models.jobs import GenerationJob, JobState, job_log_entry
from windspire_console.models.store import ContentStore, FlagStore, JobLog

logger = logging.getLogger(__name__)

# ContentItem fields addressable by wire name in update patches
_PATCH_FIELDS = {
    "isDuplicate": "is_duplicate",
    "contentType": "content_type",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "deletedAt": "deleted_at",
}


class InMemoryContentStore(ContentStore):
    """
    Dict-backed content catalog.

    Deleted items move to `archive` together with the delete reason,
    mirroring the backend's DeletedContent collection.
    """

    def __init__(self, items: list[ContentItem] | None = None) -> None:
        self._items: dict[str, ContentItem] = {}
        self.archive: list[dict[str, Any]] = []
        for item in items or []:
            if item.id is None:
                raise ValueError("InMemoryContentStore requires items with ids")
            self._items[item.id] = item
        logger.info(f"Initialized InMemoryContentStore ({len(self._items)} items)")

    async def list(self, **filters: Any) -> list[ContentItem]:
        items = list(self._items.values())
        for key, value in filters.items():
            field = _PATCH_FIELDS.get(key, key)
            items = [
                item for item in items
                if _plain(getattr(item, field, None)) == _plain(value)
            ]
        return items

    async def update(self, item_id: str, patch: dict[str, Any]) -> ContentItem:
        item = self._items.get(item_id)
        if item is None:
            raise ServiceError(404, f"Content {item_id} not found")

        changes = {_PATCH_FIELDS.get(k, k): v for k, v in patch.items()}
        unknown = set(changes) - set(ContentItem.model_fields)
        if unknown:
            raise ServiceError(400, f"Invalid fields: {sorted(unknown)}")

        changes.setdefault("updated_at", datetime.now(timezone.utc))
        updated = item.model_copy(update=changes)
        self._items[item_id] = updated
        return updated

    async def delete(
        self,
        item_id: str,
        reason: str = "manual_delete",
        duplicate_of: str | None = None,
    ) -> None:
        item = self._items.pop(item_id, None)
        if item is None:
            raise ServiceError(404, f"Content {item_id} not found")
        self.archive.append(
            {
                "item": item,
                "reason": reason,
                "duplicate_of": duplicate_of,
                "deleted_at": datetime.now(timezone.utc),
            }
        )


class InMemoryFlagStore(FlagStore):
    """Plain dict flags; lost on restart."""

    def __init__(self) -> None:
        self._flags: dict[str, str] = {}

    async def set(self, key: str, value: str) -> None:
        self._flags[key] = value

    async def get(self, key: str) -> str | None:
        return self._flags.get(key)

    async def remove(self, key: str) -> None:
        self._flags.pop(key, None)


class InMemoryJobLog(JobLog):
    """Dict-backed job history."""

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, Any]] = {}

    async def record(self, job: GenerationJob) -> None:
        self._entries[job.job_id] = job_log_entry(job)

    async def get(self, job_id: str) -> dict[str, Any] | None:
        return self._entries.get(job_id)

    async def list_recent(self, limit: int = 20) -> list[dict[str, Any]]:
        entries = sorted(
            self._entries.values(), key=lambda e: e["created_at"], reverse=True
        )
        return entries[:limit]

    async def mark_state(self, job_id: str, state: JobState) -> None:
        entry = self._entries.get(job_id)
        if entry is None:
            raise ValueError(f"Job {job_id} not found")
        entry["state"] = state.value


def _plain(value: Any) -> Any:
    """Compare enums by their wire value."""
    return getattr(value, "value", value)
