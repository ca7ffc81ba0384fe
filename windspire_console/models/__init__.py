# windspire_console/models/__init__.py
"""
Data models for windspire-console.

Provides wire-facing Pydantic content models, internal job tracking
dataclasses, the content-set owner, and store implementations.
"""

from windspire_console.models.content import (
    Category,
    ContentItem,
    ContentStatus,
    ContentType,
    Difficulty,
    derive_summary,
)
from windspire_console.models.content_set import ContentSet
from windspire_console.models.jobs import (
    CategoryOutcome,
    GenerationJob,
    GenerationRequest,
    ItemFailure,
    JobState,
    Progress,
    generate_job_id,
)
from windspire_console.models.memory_store import (
    InMemoryContentStore,
    InMemoryFlagStore,
    InMemoryJobLog,
)
from windspire_console.models.store import ContentStore, FlagStore, JobLog

__all__ = [
    # Content
    "Category",
    "ContentItem",
    "ContentStatus",
    "ContentType",
    "Difficulty",
    "derive_summary",
    "ContentSet",
    # Job tracking
    "CategoryOutcome",
    "GenerationJob",
    "GenerationRequest",
    "ItemFailure",
    "JobState",
    "Progress",
    "generate_job_id",
    # Stores
    "ContentStore",
    "FlagStore",
    "JobLog",
    "InMemoryContentStore",
    "InMemoryFlagStore",
    "InMemoryJobLog",
]
