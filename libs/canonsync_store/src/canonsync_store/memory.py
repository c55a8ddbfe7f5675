"""In-memory storage used for local runs and tests."""

import asyncio
import logging
import uuid
from collections.abc import Iterable
from uuid import UUID

from canonsync_common.errors import InvalidInputError, NotFoundError
from canonsync_common.models import (
    EpisodeUpdate,
    NewEpisode,
    PersistedEpisode,
    PersistedSeries,
    SeriesUpdate,
    is_nil_uuid,
)

from canonsync_store.base import EpisodeStore, SeriesStore

logger = logging.getLogger(__name__)


class InMemorySeriesStore(SeriesStore):
    """Dict-backed series store keyed by id with a slug index."""

    def __init__(self) -> None:
        self._rows: dict[UUID, PersistedSeries] = {}
        self._by_slug: dict[str, UUID] = {}
        self._lock = asyncio.Lock()

    async def find_by_id(self, series_id: UUID) -> PersistedSeries | None:
        if is_nil_uuid(series_id):
            raise InvalidInputError("series id cannot be nil")
        return self._rows.get(series_id)

    async def find_by_slug(self, slug: str) -> PersistedSeries | None:
        if not slug.strip():
            raise InvalidInputError("slug cannot be empty")
        series_id = self._by_slug.get(slug)
        return self._rows.get(series_id) if series_id else None

    async def find_or_create(
        self, slug: str, title: str, anidb_id: int | None = None
    ) -> PersistedSeries:
        if not slug.strip():
            raise InvalidInputError("slug cannot be empty")
        if not title.strip():
            raise InvalidInputError(f"title cannot be empty for series with slug '{slug}'")

        async with self._lock:
            existing_id = self._by_slug.get(slug)
            if existing_id is not None:
                existing = self._rows[existing_id]
                if anidb_id is not None and existing.anidb_id is None:
                    existing = existing.model_copy(update={"anidb_id": anidb_id})
                    self._rows[existing_id] = existing
                    logger.debug(f"Attached anidb_id={anidb_id} to series '{slug}'")
                return existing

            created = PersistedSeries(
                id=uuid.uuid4(), slug=slug, title=title, anidb_id=anidb_id
            )
            self._rows[created.id] = created
            self._by_slug[slug] = created.id
            logger.debug(f"Created series '{slug}' (id={created.id})")
            return created

    async def update(self, series_id: UUID, changes: SeriesUpdate) -> PersistedSeries:
        if is_nil_uuid(series_id):
            raise InvalidInputError("series id cannot be nil")
        current = self._rows.get(series_id)
        if current is None:
            raise NotFoundError(f"Series not found: {series_id}", series_id=str(series_id))
        updated = current.model_copy(update=changes.changes())
        self._rows[series_id] = updated
        return updated

    def all(self) -> list[PersistedSeries]:
        return sorted(self._rows.values(), key=lambda s: s.title)


class InMemoryEpisodeStore(EpisodeStore):
    """Dict-backed episode store.

    Enforces the ``(series_id, episode_number)`` uniqueness constraint a
    relational backend would declare, so a caller that skips reconciliation
    gets an error instead of a silent duplicate.
    """

    def __init__(self) -> None:
        self._rows: dict[UUID, PersistedEpisode] = {}
        self._keys: dict[tuple[UUID, int], UUID] = {}
        self.insert_calls = 0

    async def find_by_series(self, series_id: UUID) -> list[PersistedEpisode]:
        if is_nil_uuid(series_id):
            raise InvalidInputError("series id cannot be nil")
        episodes = [ep for ep in self._rows.values() if ep.series_id == series_id]
        return sorted(episodes, key=lambda ep: ep.episode_number)

    async def existing_keys(self, series_ids: Iterable[UUID]) -> set[tuple[UUID, int]]:
        wanted = set(series_ids)
        return {key for key in self._keys if key[0] in wanted}

    async def insert_many(self, episodes: list[NewEpisode]) -> list[PersistedEpisode]:
        self.insert_calls += 1
        batch_keys = [(ep.series_id, ep.episode_number) for ep in episodes]
        clashes = [key for key in batch_keys if key in self._keys]
        if clashes or len(set(batch_keys)) != len(batch_keys):
            raise InvalidInputError(
                "duplicate (series_id, episode_number) key in insert batch",
                keys=[f"{sid}:{num}" for sid, num in clashes],
            )

        created: list[PersistedEpisode] = []
        for new_episode in episodes:
            if new_episode.series_id is None:
                raise InvalidInputError("series id cannot be nil")
            row = PersistedEpisode(
                id=uuid.uuid4(),
                series_id=new_episode.series_id,
                episode_number=new_episode.episode_number,
                episode_type=new_episode.episode_type,
                title=new_episode.title,
            )
            self._rows[row.id] = row
            self._keys[(row.series_id, row.episode_number)] = row.id
            created.append(row)
        return created

    async def update(self, episode_id: UUID, changes: EpisodeUpdate) -> PersistedEpisode:
        current = self._rows.get(episode_id)
        if current is None:
            raise NotFoundError(f"Episode not found: {episode_id}", episode_id=str(episode_id))
        updated = current.model_copy(update=changes.changes())
        self._rows[episode_id] = updated
        return updated
