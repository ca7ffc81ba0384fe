# windspire_console/models/store.py
"""
Store protocol definitions.

ContentStore is the remote catalog (implemented over HTTP in production and
in memory for tests). FlagStore backs the durable in-progress marker.
JobLog keeps a history of generation batches.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from windspire_console.models.content import ContentItem
    from windspire_console.models.jobs import GenerationJob, JobState


class ContentStore(ABC):
    """Remote content catalog, addressed by item id."""

    @abstractmethod
    async def list(self, **filters: Any) -> "list[ContentItem]":
        """
        List content items.

        Args:
            **filters: Backend filters (status, category, contentType, ...)

        Returns:
            Items in the store's order (newest first)
        """
        pass

    @abstractmethod
    async def update(self, item_id: str, patch: dict[str, Any]) -> "ContentItem":
        """
        Apply a partial update.

        Args:
            item_id: Content identifier
            patch: Wire-format fields to change

        Returns:
            The updated item

        Raises:
            ServiceError: If the item doesn't exist or the update fails
        """
        pass

    @abstractmethod
    async def delete(
        self,
        item_id: str,
        reason: str = "manual_delete",
        duplicate_of: str | None = None,
    ) -> None:
        """
        Remove an item from the active set.

        Soft-delete bookkeeping (archive, reason) is the store's concern.

        Raises:
            ServiceError: If the delete fails
        """
        pass


class FlagStore(ABC):
    """Durable string key/value flags surviving a restart."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    async def get(self, key: str) -> str | None:
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        pass


class JobLog(ABC):
    """History of generation batches."""

    @abstractmethod
    async def record(self, job: "GenerationJob") -> None:
        """
        Insert or overwrite the log entry for a job.

        Args:
            job: Job whose current state should be persisted
        """
        pass

    @abstractmethod
    async def get(self, job_id: str) -> "dict[str, Any] | None":
        """
        Get a logged job summary by ID.

        Returns:
            Dict with job_id, state, requests, outcomes, failures,
            produced, created_at, finished_at; None if unknown
        """
        pass

    @abstractmethod
    async def list_recent(self, limit: int = 20) -> "list[dict[str, Any]]":
        """
        List logged jobs, newest first.
        """
        pass

    @abstractmethod
    async def mark_state(self, job_id: str, state: "JobState") -> None:
        pass

    async def close(self) -> None:
        """Release resources held by the log (no-op by default)."""
        pass
