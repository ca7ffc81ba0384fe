# tests/unit/test_similarity.py
"""Unit tests for advisory similarity scoring."""

import pytest

from windspire_console.config.schema import DuplicateConfig
from windspire_console.duplicates.similarity import (
    SimilarityScorer,
    body_similarity,
    title_similarity,
)
from windspire_console.models.content import ContentItem


def _item(item_id, title, body="", category="cat-1"):
    return ContentItem(id=item_id, title=title, body=body, category=category)


class TestTitleSimilarity:
    def test_exact_match_ignores_case(self):
        assert title_similarity("Save Money", "save money ") == 1.0

    def test_substring_scaled_by_length(self):
        # "save" is 4 of "save money" 10 characters
        assert title_similarity("save", "save money") == pytest.approx(0.8 * 4 / 10)

    def test_unrelated_titles_score_low(self):
        assert title_similarity("Save money on groceries", "Fix a bike chain") < 0.5

    def test_near_identical_titles_score_high(self):
        assert title_similarity("Save money on food", "Save money in food") > 0.9

    def test_empty_title(self):
        assert title_similarity("", "anything") == 0.0


class TestBodySimilarity:
    def test_identical_bodies(self):
        assert body_similarity("Line one\nLine two", "line one\nline two") == 1.0

    def test_empty_body(self):
        assert body_similarity("", "Something") == 0.0

    def test_paragraph_count_mismatch_lowers_score(self):
        same = body_similarity("Alpha\nBeta", "Alpha\nBeta!")
        longer = body_similarity("Alpha\nBeta", "Alpha\nBeta!\nGamma\nDelta")
        assert longer < same

    def test_blank_lines_ignored(self):
        assert body_similarity("Alpha\n\nBeta", "Alpha\nBeta") == pytest.approx(1.0)


class TestScorer:
    def test_classification_thresholds(self):
        scorer = SimilarityScorer()
        assert scorer.classify(0.9) == "high"
        assert scorer.classify(0.85) == "medium"
        assert scorer.classify(0.7) == "medium"
        assert scorer.classify(0.6) == "low"

    def test_overall_weights_title_and_body(self):
        scorer = SimilarityScorer(title_weight=0.4)
        target = _item("1", "Same title", "Body one")
        candidate = _item("2", "Same title", "Body one")

        match = scorer.score(target, candidate)

        assert match.title_similarity == 1.0
        assert match.body_similarity == 1.0
        assert match.overall == pytest.approx(1.0)
        assert match.confidence == "high"

    def test_find_similar_ranks_and_filters(self):
        scorer = SimilarityScorer()
        target = _item("t", "Save money on groceries", "Buy in bulk\nUse coupons")
        items = [
            target,
            _item("a", "Save Money on Groceries", "Buy in bulk\nUse coupons"),
            _item("b", "Save money on grocery", "Completely different advice"),
            _item("c", "Fix a bike chain", "Buy in bulk\nUse coupons"),
        ]

        matches = scorer.find_similar(target, items)

        assert [m.item_id for m in matches] == ["a", "b"]
        assert matches[0].overall >= matches[1].overall

    def test_find_similar_category_scope(self):
        scorer = SimilarityScorer()
        target = _item("t", "Save money", "x", category="cat-1")
        other = _item("o", "Save money", "x", category="cat-2")

        assert scorer.find_similar(target, [target, other], same_category=True) == []
        assert len(scorer.find_similar(target, [target, other])) == 1

    def test_from_config(self):
        config = DuplicateConfig(title_threshold=0.5, title_weight=0.7, high_confidence=0.95)
        scorer = SimilarityScorer.from_config(config)
        assert scorer.title_threshold == 0.5
        assert scorer.title_weight == 0.7
        assert scorer.high_confidence == 0.95
