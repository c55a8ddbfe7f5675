"""Title corpus models used by the AniDB title matcher."""

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel, Field

# Languages scanned by the narrow matching pass: English and romanized Japanese
NARROW_LANGUAGES = frozenset({"en", "x-jat"})


class TitleKind(IntEnum):
    """AniDB title type, valued by the code used in the title dump."""

    PRIMARY = 1  # One per anime
    SYNONYM = 2
    SHORT = 3
    OFFICIAL = 4  # One per language


@dataclass(frozen=True, slots=True)
class TitleEntry:
    """One row of the AniDB title corpus.

    Attributes:
        external_id: AniDB anime id (aid). Shared by every title of the anime.
        title: Title text exactly as it appears in the dump.
        title_kind: Primary, synonym, short or official.
        language: AniDB language code, e.g. "en", "ja", "x-jat".
    """

    external_id: int
    title: str
    title_kind: TitleKind
    language: str


class FuzzyMatchConfig(BaseModel):
    """Tuning knobs for fuzzy title matching."""

    threshold: float = Field(
        default=0.75, ge=0.0, le=1.0, description="Minimum adjusted score to accept"
    )
    candidate_limit: int = Field(
        default=5, ge=1, description="Number of top-scoring candidates considered"
    )
    prefer_official: bool = Field(
        default=True, description="Apply the title-kind priority boost"
    )


@dataclass(frozen=True)
class FuzzyMatchResult:
    """Outcome of a single title resolution.

    Attributes:
        external_id: AniDB anime id of the matched title.
        matched_title: Corpus title that won.
        confidence: Adjusted score in [0, 1]; 1.0 for exact hits.
        title_kind: Kind of the matched title.
        language: Language code of the matched title.
    """

    external_id: int
    matched_title: str
    confidence: float
    title_kind: TitleKind
    language: str


class TitleDumpMeta(BaseModel):
    """Bookkeeping for the downloaded AniDB title dump."""

    dump_name: str = Field(default="anime-titles", description="Dump identifier")
    last_fetched: datetime | None = Field(
        default=None, description="When the dump was last downloaded (UTC)"
    )
    dump_created: str | None = Field(
        default=None, description="Value of the '# created:' header line"
    )
    entry_count: int | None = Field(
        default=None, description="Number of title rows imported from the dump"
    )
