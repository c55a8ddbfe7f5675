"""Abstract storage interfaces for series and episodes."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from uuid import UUID

from canonsync_common.models import (
    EpisodeUpdate,
    NewEpisode,
    PersistedEpisode,
    PersistedSeries,
    SeriesUpdate,
)


class SeriesStore(ABC):
    """Storage operations for series.

    Implementations must make ``find_or_create`` idempotent per slug.
    """

    @abstractmethod
    async def find_by_id(self, series_id: UUID) -> PersistedSeries | None:
        """Find a series by id."""
        pass

    @abstractmethod
    async def find_by_slug(self, slug: str) -> PersistedSeries | None:
        """Find a series by its unique slug."""
        pass

    @abstractmethod
    async def find_or_create(
        self, slug: str, title: str, anidb_id: int | None = None
    ) -> PersistedSeries:
        """Return the series with ``slug``, creating it if absent.

        An existing series without an AniDB id adopts ``anidb_id`` when one
        is given; an existing AniDB id is never overwritten.
        """
        pass

    @abstractmethod
    async def update(self, series_id: UUID, changes: SeriesUpdate) -> PersistedSeries:
        """Apply the explicitly set fields of ``changes`` and return the new snapshot."""
        pass


class EpisodeStore(ABC):
    """Storage operations for episodes."""

    @abstractmethod
    async def find_by_series(self, series_id: UUID) -> list[PersistedEpisode]:
        """Return all episodes of a series ordered by episode number."""
        pass

    @abstractmethod
    async def existing_keys(self, series_ids: Iterable[UUID]) -> set[tuple[UUID, int]]:
        """Return the ``(series_id, episode_number)`` keys already stored."""
        pass

    @abstractmethod
    async def insert_many(self, episodes: list[NewEpisode]) -> list[PersistedEpisode]:
        """Insert episodes in one bulk operation."""
        pass

    @abstractmethod
    async def update(self, episode_id: UUID, changes: EpisodeUpdate) -> PersistedEpisode:
        """Apply the explicitly set fields of ``changes`` and return the new snapshot."""
        pass
