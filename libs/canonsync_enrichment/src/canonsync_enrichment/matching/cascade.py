"""Cascading title resolution: exact, then narrow fuzzy, then full fuzzy.

Each pass runs only when the previous one found nothing. A title source
failure inside a pass is logged and the next pass still runs.
"""

import logging

from canonsync_common.models import FuzzyMatchConfig, FuzzyMatchResult, TitleKind

from canonsync_enrichment.matching.fuzzy_matcher import match_title
from canonsync_enrichment.titles.source import TitleSource

logger = logging.getLogger(__name__)

# Exact hits do not know which corpus row matched; report them as primary
EXACT_MATCH_LANGUAGE = "en"


async def resolve(
    query: str,
    title_source: TitleSource,
    config: FuzzyMatchConfig | None = None,
) -> FuzzyMatchResult | None:
    """Resolve a free-form title to an AniDB anime id.

    Args:
        query: Title as scraped, e.g. ``"ONE PIECE"``.
        title_source: Corpus to search.
        config: Matcher settings shared by both fuzzy passes.

    Returns:
        The match, or None when every pass comes up empty.
    """
    config = config or FuzzyMatchConfig()
    logger.info(f"Resolving title '{query}'")

    try:
        external_id = await title_source.find_exact_id(query)
    except Exception as e:
        logger.error(f"Exact title lookup failed for '{query}': {e}")
    else:
        if external_id is not None:
            logger.info(f"Exact match for '{query}': external_id={external_id}")
            return FuzzyMatchResult(
                external_id=external_id,
                matched_title=query,
                confidence=1.0,
                title_kind=TitleKind.PRIMARY,
                language=EXACT_MATCH_LANGUAGE,
            )

    for pass_name, load in (
        ("narrow", title_source.get_narrow_titles),
        ("full", title_source.get_all_titles),
    ):
        try:
            corpus = await load()
        except Exception as e:
            logger.error(f"Loading {pass_name} titles failed: {e}")
            continue

        logger.debug(f"Fuzzy {pass_name} pass over {len(corpus)} titles")
        result = match_title(query, corpus, config)
        if result is not None:
            logger.info(
                f"Fuzzy {pass_name} match for '{query}': '{result.matched_title}' "
                f"(external_id={result.external_id}, confidence={result.confidence:.3f})"
            )
            return result

    logger.info(f"No AniDB match found for '{query}'")
    return None
