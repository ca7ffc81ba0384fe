# windspire_console/duplicates/similarity.py
"""
Pairwise similarity scoring for duplicate candidates.

Advisory only: scores rank and label candidates for an operator. Nothing in
this module deletes or flags content.
"""

import difflib
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from windspire_console.models.content import ContentItem

if TYPE_CHECKING:
    from windspire_console.config.schema import DuplicateConfig

logger = logging.getLogger(__name__)

Confidence = Literal["high", "medium", "low"]

# Paragraphs compared when scoring bodies
_BODY_SAMPLE = 3


def _ratio(a: str, b: str) -> float:
    return difflib.SequenceMatcher(None, a, b, autojunk=False).ratio()


def title_similarity(title_a: str, title_b: str) -> float:
    """
    Title similarity in [0, 1].

    Exact match (ignoring case) is 1.0; one title containing the other scores
    0.8 scaled by the length ratio; anything else is the edit-based ratio.
    """
    a = title_a.lower().strip()
    b = title_b.lower().strip()
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    if a in b or b in a:
        return 0.8 * min(len(a), len(b)) / max(len(a), len(b))
    return _ratio(a, b)


def body_similarity(body_a: str, body_b: str) -> float:
    """
    Body similarity in [0, 1].

    Compares the first few paragraphs pairwise and weights the average by how
    close the paragraph counts are.
    """
    a = body_a.lower().strip()
    b = body_b.lower().strip()
    if a == b:
        return 1.0
    paragraphs_a = [p for p in a.split("\n") if p.strip()]
    paragraphs_b = [p for p in b.split("\n") if p.strip()]
    if not paragraphs_a or not paragraphs_b:
        return 0.0

    count_ratio = min(len(paragraphs_a), len(paragraphs_b)) / max(
        len(paragraphs_a), len(paragraphs_b)
    )
    sample = min(_BODY_SAMPLE, len(paragraphs_a), len(paragraphs_b))
    total = sum(_ratio(paragraphs_a[i], paragraphs_b[i]) for i in range(sample))
    return (total / sample) * count_ratio


@dataclass
class SimilarityMatch:
    """A scored duplicate candidate for one target item."""

    item_id: str | None
    title: str
    title_similarity: float
    body_similarity: float
    overall: float
    confidence: Confidence


class SimilarityScorer:
    """
    Ranks items that look like a given target.

    Candidates must clear `title_threshold` on title similarity first; the
    survivors get an overall score of
    `title_weight * title + (1 - title_weight) * body`.
    """

    def __init__(
        self,
        title_threshold: float = 0.8,
        title_weight: float = 0.4,
        high_confidence: float = 0.85,
        medium_confidence: float = 0.6,
    ) -> None:
        self.title_threshold = title_threshold
        self.title_weight = title_weight
        self.high_confidence = high_confidence
        self.medium_confidence = medium_confidence

    @classmethod
    def from_config(cls, config: "DuplicateConfig") -> "SimilarityScorer":
        return cls(
            title_threshold=config.title_threshold,
            title_weight=config.title_weight,
            high_confidence=config.high_confidence,
            medium_confidence=config.medium_confidence,
        )

    def classify(self, overall: float) -> Confidence:
        if overall > self.high_confidence:
            return "high"
        if overall > self.medium_confidence:
            return "medium"
        return "low"

    def score(self, target: ContentItem, candidate: ContentItem) -> SimilarityMatch:
        title_score = title_similarity(target.title, candidate.title)
        body_score = body_similarity(target.body, candidate.body)
        overall = self.title_weight * title_score + (1 - self.title_weight) * body_score
        return SimilarityMatch(
            item_id=candidate.id,
            title=candidate.title,
            title_similarity=title_score,
            body_similarity=body_score,
            overall=overall,
            confidence=self.classify(overall),
        )

    def find_similar(
        self,
        target: ContentItem,
        items: Iterable[ContentItem],
        same_category: bool = False,
    ) -> list[SimilarityMatch]:
        """
        Score every plausible duplicate of `target`.

        Args:
            target: Item to compare against
            items: Pool of candidates (the target itself is skipped)
            same_category: Only consider candidates in the target's category

        Returns:
            Matches sorted by overall score, highest first
        """
        matches = []
        for candidate in items:
            if candidate is target or (target.id and candidate.id == target.id):
                continue
            if same_category and candidate.category != target.category:
                continue
            if title_similarity(target.title, candidate.title) <= self.title_threshold:
                continue
            matches.append(self.score(target, candidate))

        matches.sort(key=lambda m: m.overall, reverse=True)
        logger.info(f"Found {len(matches)} similar candidates for '{target.title}'")
        return matches
