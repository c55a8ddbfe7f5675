"""Snapshots and update values exchanged with the storage layer.

Persisted entities are immutable snapshots. Changes are expressed as update
value objects whose explicitly set fields are applied by the store; unset
fields are left alone.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from canonsync_common.models.episode import StoredEpisodeType


def is_nil_uuid(value: UUID | None) -> bool:
    """Return True for a missing or all-zero UUID."""
    return value is None or value.int == 0


class PersistedSeries(BaseModel):
    """Stored series row."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    slug: str
    title: str
    anidb_id: int | None = None
    last_fetched: datetime | None = None
    anime_type: str | None = None
    episode_count: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    title_ja: str | None = None
    description: str | None = None
    official_url: str | None = None


class PersistedEpisode(BaseModel):
    """Stored episode row."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    series_id: UUID
    episode_number: int
    episode_type: StoredEpisodeType
    title: str | None = None
    anidb_id: int | None = None
    title_ja: str | None = None
    air_date: date | None = None
    length: int | None = None
    summary: str | None = None
    crunchyroll_id: str | None = None


class NewEpisode(BaseModel):
    """Episode to insert; the store assigns the id."""

    model_config = ConfigDict(frozen=True)

    series_id: UUID | None
    episode_number: int
    episode_type: StoredEpisodeType = StoredEpisodeType.CANON
    title: str | None = None

    @property
    def key(self) -> tuple[UUID | None, int]:
        return (self.series_id, self.episode_number)


class SeriesUpdate(BaseModel):
    """Field changes for a stored series."""

    anidb_id: int | None = None
    last_fetched: datetime | None = None
    anime_type: str | None = None
    episode_count: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    title_ja: str | None = None
    description: str | None = None
    official_url: str | None = None

    def changes(self) -> dict:
        """Return only the fields that were explicitly set."""
        return self.model_dump(exclude_unset=True)


class EpisodeUpdate(BaseModel):
    """Field changes for a stored episode. Only AniDB-sourced fields are updatable."""

    anidb_id: int | None = Field(default=None, description="AniDB episode id")
    title_ja: str | None = None
    air_date: date | None = None
    length: int | None = None
    summary: str | None = None
    crunchyroll_id: str | None = None

    def changes(self) -> dict:
        """Return only the fields that were explicitly set."""
        return self.model_dump(exclude_unset=True)
