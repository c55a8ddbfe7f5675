"""Tests for single-pass fuzzy title resolution."""

import pytest
from canonsync_common.models import FuzzyMatchConfig, TitleEntry, TitleKind
from canonsync_enrichment.matching.fuzzy_matcher import (
    adjusted_score,
    match_title,
    title_kind_boost,
)


def constant_scorer(value: float):
    """Scorer returning the same 0-100 similarity for every pair."""

    def _score(query, choice, **kwargs):
        return value

    return _score


class TestTitleKindBoost:
    def test_priority_order_when_preferring_official(self):
        boosts = [title_kind_boost(kind) for kind in (
            TitleKind.OFFICIAL, TitleKind.PRIMARY, TitleKind.SYNONYM, TitleKind.SHORT
        )]
        assert boosts == sorted(boosts, reverse=True)
        assert len(set(boosts)) == 4

    def test_adjusted_scores_monotonic(self):
        scores = [adjusted_score(0.8, kind) for kind in (
            TitleKind.OFFICIAL, TitleKind.PRIMARY, TitleKind.SYNONYM, TitleKind.SHORT
        )]
        assert scores[0] > scores[1] > scores[2] > scores[3]

    def test_all_equal_without_preference(self):
        scores = {adjusted_score(0.8, kind, prefer_official=False) for kind in TitleKind}
        assert scores == {0.8}

    def test_capped_at_one(self):
        assert adjusted_score(0.99, TitleKind.OFFICIAL) == 1.0


class TestMatchTitle:
    def test_empty_corpus(self):
        assert match_title("One Piece", []) is None

    def test_finds_normalized_query(self, title_entries):
        result = match_title("One Piece (TV)", title_entries)
        assert result is not None
        assert result.external_id == 69
        assert result.confidence == 1.0

    def test_prefers_official_on_near_match(self, title_entries):
        result = match_title("One Piec", title_entries, FuzzyMatchConfig())
        assert result.title_kind == TitleKind.OFFICIAL
        assert result.language == "en"

    def test_first_candidate_wins_ties(self, title_entries):
        result = match_title("One Piece", title_entries, FuzzyMatchConfig(prefer_official=False))
        assert result.title_kind == TitleKind.PRIMARY
        assert result.language == "x-jat"

    def test_no_candidate_above_threshold(self, title_entries):
        assert match_title("Cowboy Bebop", title_entries) is None

    def test_score_equal_to_threshold_is_accepted(self):
        corpus = [TitleEntry(1, "Anything", TitleKind.SYNONYM, "en")]
        config = FuzzyMatchConfig(threshold=0.75, prefer_official=False)
        result = match_title("query", corpus, config, scorer=constant_scorer(75.0))
        assert result is not None
        assert result.confidence == 0.75

    def test_score_below_threshold_is_rejected(self):
        corpus = [TitleEntry(1, "Anything", TitleKind.SYNONYM, "en")]
        config = FuzzyMatchConfig(threshold=0.76, prefer_official=False)
        assert match_title("query", corpus, config, scorer=constant_scorer(75.0)) is None

    def test_boost_can_lift_candidate_over_threshold(self):
        corpus = [TitleEntry(1, "Anything", TitleKind.OFFICIAL, "en")]
        config = FuzzyMatchConfig(threshold=0.78)
        result = match_title("query", corpus, config, scorer=constant_scorer(75.0))
        assert result is not None
        assert result.confidence == pytest.approx(0.80)

    def test_candidate_limit_restricts_scoring(self):
        corpus = [TitleEntry(i, f"Title {i}", TitleKind.SHORT, "en") for i in range(10)]
        corpus.append(TitleEntry(99, "Target", TitleKind.OFFICIAL, "en"))

        def scorer(query, choice, **kwargs):
            return 90.0 if choice.startswith("title") else 89.0

        result = match_title("x", corpus, FuzzyMatchConfig(candidate_limit=3), scorer=scorer)
        assert result.external_id != 99
        assert result.title_kind == TitleKind.SHORT
