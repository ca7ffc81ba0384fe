# windspire_console/generation/orchestrator.py
"""
Batch content-generation orchestrator.

Processes categories in caller order and items one call at a time, pacing
successive calls and backing off on rate limits. Individual failures are
recorded on the job; only precondition violations raise.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any, Protocol

from windspire_console.errors import PreconditionError, describe_error
from windspire_console.generation.marker import InProgressMarker
from windspire_console.models.content import Category, ContentItem, Difficulty
from windspire_console.models.content_set import ContentSet
from windspire_console.models.jobs import (
    MAX_ITEMS_PER_CATEGORY,
    CategoryOutcome,
    GenerationJob,
    GenerationRequest,
    ItemFailure,
    JobState,
    Progress,
    generate_job_id,
)
from windspire_console.models.store import JobLog
from windspire_console.service.retry import BackoffPolicy

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Progress], None] | Callable[[Progress], Awaitable[Any]]


class GenerationClient(Protocol):
    async def generate(
        self,
        category_id: str,
        content_type: str | None = None,
        count: int = 1,
        difficulty: Difficulty = Difficulty.BEGINNER,
        model: str | None = None,
    ) -> list[ContentItem]: ...


class GenerationOrchestrator:
    """
    Sequential batch generator.

    A bulk "N items for category C" request is fragmented into N unit calls
    so partial progress survives a failed call and item-level progress can
    be reported. Calls are never issued in parallel: the remote service is
    shared and rate limited.

    Example:
        orchestrator = GenerationOrchestrator(client, categories, content_set)
        job = await orchestrator.run(["cat-a", "cat-b"], 10, model="gpt-4o")
        print(job.summary())
    """

    def __init__(
        self,
        client: GenerationClient,
        categories: Mapping[str, Category],
        content_set: ContentSet | None = None,
        policy: BackoffPolicy | None = None,
        marker: InProgressMarker | None = None,
        job_log: JobLog | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            client: Generation service client (one call per item)
            categories: Category metadata keyed by id
            content_set: Owner that receives produced items (optional)
            policy: Backoff/pacing policy (default: BackoffPolicy())
            marker: Durable in-progress marker (optional)
            job_log: Job history sink (optional)
            sleep: Awaitable sleep used for pacing and backoff
        """
        self._client = client
        self._categories = dict(categories)
        self._content_set = content_set
        self._policy = policy or BackoffPolicy()
        self._marker = marker
        self._job_log = job_log
        self._sleep = sleep
        self._closed = False
        self._current_job: GenerationJob | None = None

    @property
    def current_job(self) -> GenerationJob | None:
        """The batch being processed (None if idle)."""
        return self._current_job

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """
        Refuse new batches.

        A batch already running keeps going, including scheduled retries.
        """
        self._closed = True
        logger.info("Orchestrator closed to new batches")

    async def run(
        self,
        category_ids: Sequence[str],
        count_per_category: int,
        difficulty: Difficulty = Difficulty.BEGINNER,
        model: str | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> GenerationJob:
        """
        Generate `count_per_category` items for each category.

        Args:
            category_ids: Categories to process, in order
            count_per_category: Items requested per category (1-50)
            difficulty: Audience level
            model: Generation model identifier (None = service default)
            progress_callback: Receives a Progress snapshot after every change

        Returns:
            GenerationJob with results, per-category outcomes, and item failures

        Raises:
            PreconditionError: Empty category list, count out of range,
                orchestrator closed, or a batch already running
        """
        self._check_preconditions(category_ids, count_per_category)

        requests = [
            GenerationRequest(category_id, count_per_category, difficulty, model)
            for category_id in category_ids
        ]
        job = GenerationJob(
            job_id=generate_job_id(),
            requests=requests,
            progress=Progress(total=len(requests)),
        )
        self._current_job = job
        logger.info(
            f"Starting generation job {job.job_id}: {len(requests)} categories "
            f"x {count_per_category} items (model={model})"
        )

        try:
            if self._marker:
                await self._marker.set()
            await self._record(job)
            await self._notify(job, progress_callback)

            for request in requests:
                await self._run_category(job, request, progress_callback)

            job.progress.current_category = None
            if self._content_set is not None and job.results:
                self._content_set.prepend(job.results)

            job.state = JobState.COMPLETE
            job.finished_at = datetime.now(timezone.utc)
            if self._marker:
                await self._marker.clear()
            await self._record(job)
            await self._notify(job, progress_callback)

        except asyncio.CancelledError:
            # Marker stays set so the next start can warn the operator
            logger.warning(f"Generation job {job.job_id} interrupted")
            job.state = JobState.INTERRUPTED
            job.finished_at = datetime.now(timezone.utc)
            await self._record(job)
            raise
        finally:
            self._current_job = None

        logger.info(f"Generation job {job.job_id} finished: {job.summary()}")
        return job

    def _check_preconditions(self, category_ids: Sequence[str], count: int) -> None:
        if self._closed:
            raise PreconditionError("Orchestrator is closed; no new batches can start")
        if self._current_job is not None:
            raise PreconditionError(
                f"Generation job {self._current_job.job_id} is already running"
            )
        if not category_ids:
            raise PreconditionError("Select at least one category to generate content for")
        if not 1 <= count <= MAX_ITEMS_PER_CATEGORY:
            raise PreconditionError(
                f"Item count must be between 1 and {MAX_ITEMS_PER_CATEGORY}, got {count}"
            )

    async def _run_category(
        self,
        job: GenerationJob,
        request: GenerationRequest,
        progress_callback: ProgressCallback | None,
    ) -> None:
        progress = job.progress
        category = self._categories.get(request.category_id)

        if category is None:
            logger.warning(f"Category {request.category_id} not found, skipping")
            progress.completed += 1
            progress.current_category = None
            progress.current_item_in_category = 0
            progress.items_in_category = 0
            await self._notify(job, progress_callback)
            return

        progress.current_category = category.name
        progress.current_item_in_category = 0
        progress.items_in_category = request.count
        await self._notify(job, progress_callback)

        produced: list[ContentItem] = []
        last_error: str | None = None

        for item_index in range(1, request.count + 1):
            if item_index > 1:
                await self._sleep(self._policy.pacing_for(request.count))

            logger.info(
                f"Generating item {item_index} of {request.count} for {category.name}"
            )
            items, error, attempts = await self._generate_one(category, request)

            if items:
                produced.extend(items)
                progress.current_item_in_category = item_index
                # The last item is reported together with the category completion
                if item_index < request.count:
                    await self._notify(job, progress_callback)
                continue

            last_error = error
            job.failures.append(
                ItemFailure(
                    category_id=category.id,
                    item_index=item_index,
                    error=error or "unknown error",
                    attempts=attempts,
                )
            )
            logger.error(
                f"Item {item_index} for {category.name} failed after "
                f"{attempts} attempt(s): {error}"
            )

        job.results.extend(produced)
        job.outcomes.append(
            CategoryOutcome(
                category_id=category.id,
                name=category.name,
                success=bool(produced),
                count=len(produced),
                error=None if produced else last_error,
            )
        )
        logger.info(f"Generated {len(produced)} items for {category.name}")

        progress.current_item_in_category = request.count
        progress.completed += 1
        await self._notify(job, progress_callback)

    async def _generate_one(
        self, category: Category, request: GenerationRequest
    ) -> tuple[list[ContentItem], str | None, int]:
        """
        One item call with rate-limit backoff.

        Returns:
            (items, error, attempts): items is empty when the call failed
        """
        attempts = 0
        try:
            async for attempt in self._policy.retrying(sleep=self._sleep):
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    items = await self._client.generate(
                        category.id,
                        None,  # Let the service use the category's content type
                        1,
                        request.difficulty,
                        request.model,
                    )
        except Exception as e:
            return [], describe_error(e), attempts

        if not items:
            return [], "Service returned no content", attempts
        return items, None, attempts

    async def _notify(
        self, job: GenerationJob, progress_callback: ProgressCallback | None
    ) -> None:
        """Report a Progress snapshot; a broken callback never fails the batch."""
        if progress_callback is None:
            return
        try:
            result_or_coro = progress_callback(job.progress.snapshot())
            if hasattr(result_or_coro, "__await__"):
                await result_or_coro
        except Exception as e:
            logger.error(f"Progress callback failed for job {job.job_id}: {e}")

    async def _record(self, job: GenerationJob) -> None:
        """Persist the job log entry; a broken log never fails the batch."""
        if self._job_log is None:
            return
        try:
            await self._job_log.record(job)
        except Exception as e:
            logger.error(f"Failed to log generation job {job.job_id}: {e}")
