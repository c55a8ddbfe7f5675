"""Shared models for the canonsync scrape and enrichment pipeline."""

from canonsync_common.models.anidb import (
    REGULAR_EPISODE_CODE,
    AniDBEpisodeRecord,
    AniDBSeriesRecord,
)
from canonsync_common.models.episode import (
    UNKNOWN_AIR_DATE,
    UNTITLED_EPISODE,
    EpisodeKind,
    RawEpisodeRecord,
    SeriesSummary,
    StoredEpisodeType,
    to_stored_episode_type,
)
from canonsync_common.models.persistence import (
    EpisodeUpdate,
    NewEpisode,
    PersistedEpisode,
    PersistedSeries,
    SeriesUpdate,
    is_nil_uuid,
)
from canonsync_common.models.titles import (
    NARROW_LANGUAGES,
    FuzzyMatchConfig,
    FuzzyMatchResult,
    TitleDumpMeta,
    TitleEntry,
    TitleKind,
)

__all__ = [
    "NARROW_LANGUAGES",
    "REGULAR_EPISODE_CODE",
    "UNKNOWN_AIR_DATE",
    "UNTITLED_EPISODE",
    "AniDBEpisodeRecord",
    "AniDBSeriesRecord",
    "EpisodeKind",
    "EpisodeUpdate",
    "FuzzyMatchConfig",
    "FuzzyMatchResult",
    "NewEpisode",
    "PersistedEpisode",
    "PersistedSeries",
    "RawEpisodeRecord",
    "SeriesSummary",
    "SeriesUpdate",
    "StoredEpisodeType",
    "TitleDumpMeta",
    "TitleEntry",
    "TitleKind",
    "is_nil_uuid",
    "to_stored_episode_type",
]
