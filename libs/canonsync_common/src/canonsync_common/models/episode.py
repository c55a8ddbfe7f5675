"""Episode models scraped from the episode-listing page."""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field

# Air date used when the listing's date cell is missing or malformed
UNKNOWN_AIR_DATE = date(1970, 1, 1)

UNTITLED_EPISODE = "Untitled"


class EpisodeKind(str, Enum):
    """Relation of an episode to the source material, as the listing page publishes it."""

    CANON = "Canon"
    FILLER = "Filler"
    MIXED = "Mixed"
    ANIME_CANON = "Anime Canon"


class StoredEpisodeType(str, Enum):
    """Episode type as persisted by the storage layer."""

    CANON = "canon"
    MIXED_CANON = "mixed"
    FILLER = "filler"
    ANIME_CANON = "anime_canon"


def to_stored_episode_type(kind: EpisodeKind) -> StoredEpisodeType:
    """Translate a scraped episode kind into its storage representation."""
    match kind:
        case EpisodeKind.CANON:
            return StoredEpisodeType.CANON
        case EpisodeKind.FILLER:
            return StoredEpisodeType.FILLER
        case EpisodeKind.MIXED:
            return StoredEpisodeType.MIXED_CANON
        case EpisodeKind.ANIME_CANON:
            return StoredEpisodeType.ANIME_CANON
    raise ValueError(f"Unhandled episode kind: {kind!r}")


class RawEpisodeRecord(BaseModel):
    """One row of the episode-listing table."""

    episode_number: int = Field(
        default=0, description="Episode number as printed; 0 when unparseable"
    )
    absolute_index: int = Field(
        ..., ge=1, description="1-based row position in the listing table"
    )
    title: str = Field(default=UNTITLED_EPISODE, description="English episode title")
    air_date: date = Field(
        default=UNKNOWN_AIR_DATE, description="English release date"
    )
    episode_kind: EpisodeKind = Field(
        default=EpisodeKind.CANON, description="Canon/filler classification"
    )


class SeriesSummary(BaseModel):
    """Series as scraped from the listing page, returned to callers."""

    slug: str
    title: str
    episodes: list[RawEpisodeRecord] = Field(default_factory=list)
