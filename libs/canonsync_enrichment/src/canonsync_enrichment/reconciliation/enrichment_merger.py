"""One-way merge of AniDB metadata into stored series and episodes.

Episodes are joined on episode number. AniDB-sourced fields are overwritten
on a hit; nothing is ever deleted, renumbered or created here.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from canonsync_common.errors import InvalidInputError
from canonsync_common.models import (
    AniDBEpisodeRecord,
    AniDBSeriesRecord,
    EpisodeUpdate,
    SeriesUpdate,
    is_nil_uuid,
)
from canonsync_store import EpisodeStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeResult:
    """Counts of one merge run.

    ``unmatched`` counts stored episodes without an AniDB counterpart; a
    growing value usually means the two sources number episodes differently.
    """

    updated: int
    unmatched: int


def episode_update_from_anidb(episode: AniDBEpisodeRecord) -> EpisodeUpdate:
    """Build the update carrying every AniDB-sourced episode field."""
    return EpisodeUpdate(
        anidb_id=episode.episode_id,
        title_ja=episode.title_ja,
        air_date=episode.air_date,
        length=episode.length,
        summary=episode.summary,
        crunchyroll_id=episode.crunchyroll_id,
    )


def series_update_from_anidb(record: AniDBSeriesRecord) -> SeriesUpdate:
    """Build the update carrying the AniDB-sourced series fields."""
    return SeriesUpdate(
        anime_type=record.anime_type,
        episode_count=record.episode_count,
        start_date=record.start_date,
        end_date=record.end_date,
        title_ja=record.title_ja,
        description=record.description,
        official_url=record.url,
    )


class EnrichmentMerger:
    """Applies parsed AniDB episodes to the stored episodes of a series."""

    def __init__(self, episode_store: EpisodeStore):
        self.episode_store = episode_store

    async def merge(
        self, series_id: UUID, anidb_episodes: list[AniDBEpisodeRecord]
    ) -> MergeResult:
        """Merge AniDB episodes into the stored episodes of ``series_id``.

        Raises:
            InvalidInputError: ``series_id`` is nil.
        """
        if is_nil_uuid(series_id):
            raise InvalidInputError("series id cannot be nil")

        by_number: dict[int, AniDBEpisodeRecord] = {}
        for episode in anidb_episodes:
            by_number.setdefault(episode.episode_number, episode)

        updated = 0
        unmatched = 0
        for stored in await self.episode_store.find_by_series(series_id):
            anidb_episode = by_number.get(stored.episode_number)
            if anidb_episode is None:
                unmatched += 1
                logger.debug(f"No AniDB episode for episode {stored.episode_number}")
                continue
            await self.episode_store.update(stored.id, episode_update_from_anidb(anidb_episode))
            updated += 1

        logger.info(f"Episode enrichment: {updated} updated, {unmatched} unmatched")
        return MergeResult(updated=updated, unmatched=unmatched)
