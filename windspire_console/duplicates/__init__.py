# windspire_console/duplicates/__init__.py
"""Duplicate detection, similarity ranking, and resolution."""

from windspire_console.duplicates.detector import (
    DuplicateGroup,
    find_duplicates,
    is_duplicate,
    mark_duplicates_in_store,
    normalize_title,
)
from windspire_console.duplicates.resolver import (
    CleanupSummary,
    DeleteSummary,
    DuplicateResolver,
    GroupResolution,
    GroupState,
    ResolutionAction,
)
from windspire_console.duplicates.similarity import (
    SimilarityMatch,
    SimilarityScorer,
    body_similarity,
    title_similarity,
)

__all__ = [
    "CleanupSummary",
    "DeleteSummary",
    "DuplicateGroup",
    "DuplicateResolver",
    "GroupResolution",
    "GroupState",
    "ResolutionAction",
    "SimilarityMatch",
    "SimilarityScorer",
    "body_similarity",
    "find_duplicates",
    "is_duplicate",
    "mark_duplicates_in_store",
    "normalize_title",
    "title_similarity",
]
