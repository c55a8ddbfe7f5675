"""Single-pass fuzzy title resolution over an in-memory corpus.

Candidates are scored with rapidfuzz against the raw corpus titles; the
caller's query is normalized first. The best score is nudged by a small
title-kind boost so an official title beats an equally similar synonym.
"""

import logging
from collections.abc import Callable, Sequence

from canonsync_common.models import FuzzyMatchConfig, FuzzyMatchResult, TitleEntry, TitleKind
from rapidfuzz import fuzz, process, utils

from canonsync_enrichment.matching.normalization import normalize_title

logger = logging.getLogger(__name__)

TITLE_KIND_BOOST: dict[TitleKind, float] = {
    TitleKind.OFFICIAL: 0.05,
    TitleKind.PRIMARY: 0.03,
    TitleKind.SYNONYM: 0.01,
    TitleKind.SHORT: 0.0,
}

Scorer = Callable[..., float]


def title_kind_boost(title_kind: TitleKind, prefer_official: bool = True) -> float:
    """Return the score boost for ``title_kind`` (zero when boosting is off)."""
    if not prefer_official:
        return 0.0
    return TITLE_KIND_BOOST[title_kind]


def adjusted_score(raw_score: float, title_kind: TitleKind, prefer_official: bool = True) -> float:
    """Combine a [0, 1] similarity with the title-kind boost, capped at 1.0."""
    return min(1.0, raw_score + title_kind_boost(title_kind, prefer_official))


def match_title(
    query: str,
    corpus: Sequence[TitleEntry],
    config: FuzzyMatchConfig | None = None,
    scorer: Scorer = fuzz.ratio,
) -> FuzzyMatchResult | None:
    """Resolve ``query`` to the best corpus entry.

    Args:
        query: Free-form title, normalized before scoring.
        corpus: Title entries to search; may be empty.
        config: Threshold, candidate limit and boost switch. Defaults apply
            when omitted.
        scorer: rapidfuzz-compatible scorer returning a 0-100 similarity.

    Returns:
        The candidate with the highest adjusted score at or above the
        threshold, or None. On equal adjusted scores the earlier candidate
        wins.
    """
    if not corpus:
        return None

    config = config or FuzzyMatchConfig()
    normalized_query = normalize_title(query)
    logger.debug(f"Normalized query: '{query}' -> '{normalized_query}'")

    titles = [entry.title for entry in corpus]
    candidates = process.extract(
        normalized_query,
        titles,
        scorer=scorer,
        processor=utils.default_process,
        limit=config.candidate_limit,
    )

    best: FuzzyMatchResult | None = None
    best_score = 0.0
    for title, raw, index in candidates:
        entry = corpus[index]
        score = adjusted_score(raw / 100.0, entry.title_kind, config.prefer_official)
        logger.debug(
            f"  Candidate: '{title}' (external_id={entry.external_id}, "
            f"raw={raw / 100.0:.3f}, adjusted={score:.3f}, kind={entry.title_kind.name})"
        )
        if score >= config.threshold and (best is None or score > best_score):
            best_score = score
            best = FuzzyMatchResult(
                external_id=entry.external_id,
                matched_title=entry.title,
                confidence=score,
                title_kind=entry.title_kind,
                language=entry.language,
            )

    return best
