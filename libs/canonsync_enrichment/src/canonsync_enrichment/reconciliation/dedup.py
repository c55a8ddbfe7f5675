"""Idempotent episode insertion keyed by ``(series_id, episode_number)``."""

import logging
from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass
from typing import TypeVar
from uuid import UUID

from canonsync_common.errors import InvalidInputError
from canonsync_common.models import (
    NewEpisode,
    RawEpisodeRecord,
    is_nil_uuid,
    to_stored_episode_type,
)
from canonsync_store import EpisodeStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ReconcileResult:
    """Counts of one reconciliation run."""

    created: int
    skipped: int


def partition_by_key(
    items: Iterable[T],
    key_fn: Callable[[T], Hashable],
    seen: set | None = None,
) -> tuple[list[T], list[T]]:
    """Split items into first occurrences and duplicates.

    Args:
        items: Items in priority order; the first occurrence of a key wins.
        key_fn: Extracts the dedup key.
        seen: Keys treated as already present. Not modified.

    Returns:
        ``(unique, duplicates)``, each preserving input order.
    """
    known = set(seen or ())
    unique: list[T] = []
    duplicates: list[T] = []
    for item in items:
        key = key_fn(item)
        if key in known:
            duplicates.append(item)
            continue
        known.add(key)
        unique.append(item)
    return unique, duplicates


def build_candidates(series_id: UUID, records: Iterable[RawEpisodeRecord]) -> list[NewEpisode]:
    """Turn scraped rows into insertion candidates.

    A row whose printed number did not parse to a positive value is keyed by
    its position in the listing instead, unless that position is also the
    printed number of another row. Such a row keeps its non-positive number
    and the batch is rejected by ``EpisodeReconciler.insert_new``.
    """
    records = list(records)
    printed = {record.episode_number for record in records if record.episode_number > 0}

    def episode_number(record: RawEpisodeRecord) -> int:
        if record.episode_number > 0:
            return record.episode_number
        if record.absolute_index in printed:
            logger.warning(
                f"Row {record.absolute_index} '{record.title}' has no episode number and "
                "its position collides with a printed episode number"
            )
            return record.episode_number
        return record.absolute_index

    return [
        NewEpisode(
            series_id=series_id,
            episode_number=episode_number(record),
            episode_type=to_stored_episode_type(record.episode_kind),
            title=record.title,
        )
        for record in records
    ]


class EpisodeReconciler:
    """Inserts only the episodes storage does not already hold."""

    def __init__(self, episode_store: EpisodeStore):
        self.episode_store = episode_store

    async def insert_new(self, candidates: list[NewEpisode]) -> ReconcileResult:
        """Insert candidates whose key is not stored yet.

        Duplicates inside ``candidates`` are skipped after their first
        occurrence. Running the same batch twice creates nothing the second
        time.

        Raises:
            InvalidInputError: A candidate has a nil series id or a
                non-positive episode number. Nothing is inserted.
        """
        for candidate in candidates:
            if is_nil_uuid(candidate.series_id):
                raise InvalidInputError(
                    "series id cannot be nil",
                    episode_number=candidate.episode_number,
                )
            if candidate.episode_number <= 0:
                raise InvalidInputError(
                    f"episode number must be positive, got {candidate.episode_number}",
                    series_id=str(candidate.series_id),
                )

        if not candidates:
            return ReconcileResult(created=0, skipped=0)

        series_ids = {candidate.series_id for candidate in candidates}
        existing = await self.episode_store.existing_keys(series_ids)
        new, duplicates = partition_by_key(candidates, lambda c: c.key, seen=existing)

        if new:
            await self.episode_store.insert_many(new)

        logger.info(f"Episode reconciliation: {len(new)} created, {len(duplicates)} skipped")
        return ReconcileResult(created=len(new), skipped=len(duplicates))

    async def reconcile_and_insert(
        self, series_id: UUID, records: list[RawEpisodeRecord]
    ) -> ReconcileResult:
        """Persist scraped rows for ``series_id``, skipping known episodes."""
        return await self.insert_new(build_candidates(series_id, records))
