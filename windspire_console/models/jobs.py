# windspire_console/models/jobs.py
"""
Generation job tracking models.

Internal dataclasses (NOT Pydantic - never sent over the wire) mutated
exclusively by the GenerationOrchestrator.
"""

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from windspire_console.models.content import ContentItem, Difficulty

MAX_ITEMS_PER_CATEGORY = 50


class JobState(Enum):
    """Generation job lifecycle states."""

    RUNNING = "running"
    COMPLETE = "complete"
    INTERRUPTED = "interrupted"


@dataclass(frozen=True)
class GenerationRequest:
    """One category's share of a batch."""

    category_id: str
    count: int
    difficulty: Difficulty = Difficulty.BEGINNER
    model: str | None = None


@dataclass
class Progress:
    """
    Two-level batch progress.

    `completed` counts finished categories; the item counters describe the
    category currently being processed.
    """

    total: int
    completed: int = 0
    current_category: str | None = None
    current_item_in_category: int = 0
    items_in_category: int = 0

    @property
    def fraction(self) -> float:
        """Overall completion in [0, 1], counting partial categories."""
        if self.total == 0:
            return 1.0
        partial = 0.0
        if (
            self.completed < self.total
            and self.current_item_in_category < self.items_in_category
        ):
            partial = self.current_item_in_category / self.items_in_category
        return min(1.0, (self.completed + partial) / self.total)

    def snapshot(self) -> "Progress":
        """Copy safe to hand to observers."""
        return replace(self)


@dataclass
class CategoryOutcome:
    """Per-category result: success iff at least one item was produced."""

    category_id: str
    name: str
    success: bool
    count: int
    error: str | None = None


@dataclass
class ItemFailure:
    """An item call that produced nothing after retries were exhausted."""

    category_id: str
    item_index: int
    error: str
    attempts: int = 1


@dataclass
class GenerationJob:
    """A launched batch and everything it produced."""

    job_id: str
    requests: list[GenerationRequest]
    progress: Progress
    state: JobState = JobState.RUNNING
    results: list[ContentItem] = field(default_factory=list)
    outcomes: list[CategoryOutcome] = field(default_factory=list)
    failures: list[ItemFailure] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    @property
    def failed_categories(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)

    @property
    def successful_categories(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    def summary(self) -> str:
        """Operator-facing one-liner, produced even when everything failed."""
        message = (
            f"Generated {len(self.results)} items across "
            f"{self.successful_categories} categories."
        )
        if self.failed_categories:
            message += f" Failed: {self.failed_categories} categories."
        return message


def generate_job_id() -> str:
    """
    Generate a unique job ID.

    Returns:
        12-character hex string (UUID4 truncated)
    """
    return uuid4().hex[:12]


def job_log_entry(job: GenerationJob) -> dict:
    """
    Flatten a job into the JSON-friendly dict stored by JobLog implementations.

    Results themselves are not logged; only their count.
    """
    return {
        "job_id": job.job_id,
        "state": job.state.value,
        "requests": [
            {
                "category_id": r.category_id,
                "count": r.count,
                "difficulty": r.difficulty.value,
                "model": r.model,
            }
            for r in job.requests
        ],
        "outcomes": [asdict(o) for o in job.outcomes],
        "failures": [asdict(f) for f in job.failures],
        "produced": len(job.results),
        "summary": job.summary(),
        "created_at": job.created_at.isoformat(),
        "finished_at": job.finished_at.isoformat() if job.finished_at else None,
    }
