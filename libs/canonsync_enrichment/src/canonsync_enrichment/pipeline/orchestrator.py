"""Scrape pipeline: listing page to stored, AniDB-enriched series.

Stages run strictly in order::

    PARSING_URL -> FETCHING_PAGE -> EXTRACTING_EPISODES -> MATCHING_TITLE
    -> PERSISTING_SERIES -> PERSISTING_EPISODES -> ENRICHING -> DONE

A failure in any stage but ENRICHING aborts the scrape with a
``StageFailure``. Enrichment failures are recorded as report warnings; the
scraped series and episodes stay stored. A requested enrichment that cannot
run because the series has no AniDB id is noted the same way.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from uuid import UUID

from canonsync_common.errors import (
    CanonSyncError,
    EnrichmentError,
    ErrorKind,
    InvalidInputError,
    NotFoundError,
)
from canonsync_common.models import (
    AniDBSeriesRecord,
    FuzzyMatchConfig,
    FuzzyMatchResult,
    SeriesSummary,
    SeriesUpdate,
    is_nil_uuid,
)
from canonsync_store import EpisodeStore, SeriesStore
from pydantic import BaseModel, Field
from yarl import URL

from canonsync_enrichment.api_helpers.anidb_helper import AnimeXmlSource
from canonsync_enrichment.api_helpers.anidb_xml import parse_anidb_xml
from canonsync_enrichment.api_helpers.http_transport import Transport
from canonsync_enrichment.crawlers.episode_list_crawler import parse_episode_list
from canonsync_enrichment.matching.cascade import resolve
from canonsync_enrichment.reconciliation.dedup import EpisodeReconciler, ReconcileResult
from canonsync_enrichment.reconciliation.enrichment_merger import (
    EnrichmentMerger,
    MergeResult,
    series_update_from_anidb,
)
from canonsync_enrichment.titles.source import TitleSource

logger = logging.getLogger(__name__)

UNKNOWN_SERIES_SLUG = "unknown-series"


class ScrapeStage(str, Enum):
    """Pipeline stages in execution order."""

    PARSING_URL = "parsing_url"
    FETCHING_PAGE = "fetching_page"
    EXTRACTING_EPISODES = "extracting_episodes"
    MATCHING_TITLE = "matching_title"
    PERSISTING_SERIES = "persisting_series"
    PERSISTING_EPISODES = "persisting_episodes"
    ENRICHING = "enriching"
    DONE = "done"


class StageFailure(Exception):
    """A scrape aborted in ``stage``.

    Attributes:
        stage: Stage that failed.
        cause: Human-readable cause.
        kind: Error kind of the underlying domain error, if it was one.
    """

    def __init__(self, stage: ScrapeStage, error: BaseException):
        self.stage = stage
        self.cause = str(error) or type(error).__name__
        self.kind: ErrorKind | None = (
            error.kind if isinstance(error, CanonSyncError) else None
        )
        super().__init__(f"Scrape failed while {stage.value}: {self.cause}")


class ScrapeReport(BaseModel):
    """Outcome of a successful scrape."""

    series: SeriesSummary
    series_id: UUID
    anidb_id: int | None = None
    match: FuzzyMatchResult | None = None
    created: int = 0
    skipped: int = 0
    enrichment: MergeResult | None = None
    warnings: list[str] = Field(default_factory=list)
    stage: ScrapeStage = ScrapeStage.DONE


def parse_series_slug(url: str) -> str:
    """Return the last path segment of ``url``.

    Raises:
        InvalidInputError: The URL is empty or not absolute.
    """
    if not url or not url.strip():
        raise InvalidInputError("URL cannot be empty")
    try:
        parsed = URL(url.strip())
    except (ValueError, TypeError) as e:
        raise InvalidInputError(f"Invalid URL '{url}': {e}") from e
    if not parsed.is_absolute():
        raise InvalidInputError(f"URL must be absolute: '{url}'")
    return parsed.name or UNKNOWN_SERIES_SLUG


def series_title_from_slug(slug: str) -> str:
    return slug.replace("-", " ").upper()


class ScrapeOrchestrator:
    """Runs scrapes against injected collaborators."""

    def __init__(
        self,
        series_store: SeriesStore,
        episode_store: EpisodeStore,
        transport: Transport,
        title_source: TitleSource,
        anidb_client: AnimeXmlSource,
        match_config: FuzzyMatchConfig | None = None,
    ):
        self.series_store = series_store
        self.episode_store = episode_store
        self.transport = transport
        self.title_source = title_source
        self.anidb_client = anidb_client
        self.match_config = match_config or FuzzyMatchConfig()
        self.reconciler = EpisodeReconciler(episode_store)
        self.merger = EnrichmentMerger(episode_store)

    @contextmanager
    def _stage(self, stage: ScrapeStage) -> Iterator[None]:
        logger.info(f"Stage: {stage.value}")
        try:
            yield
        except StageFailure:
            raise
        except Exception as e:
            logger.error(f"Stage {stage.value} failed: {e}")
            raise StageFailure(stage, e) from e

    async def scrape(self, url: str, enrich: bool = True) -> ScrapeReport:
        """Scrape a listing page and store its series and episodes.

        Args:
            url: Episode-list page URL.
            enrich: Merge AniDB metadata when the series has an AniDB id.

        Raises:
            StageFailure: Any stage before enrichment failed.
        """
        with self._stage(ScrapeStage.PARSING_URL):
            slug = parse_series_slug(url)
            title = series_title_from_slug(slug)

        with self._stage(ScrapeStage.FETCHING_PAGE):
            html = (await self.transport.fetch(url)).decode("utf-8", errors="replace")

        with self._stage(ScrapeStage.EXTRACTING_EPISODES):
            episodes = parse_episode_list(html)

        with self._stage(ScrapeStage.MATCHING_TITLE):
            match = await resolve(title, self.title_source, self.match_config)
            if match is None:
                logger.info(f"No AniDB match for '{title}', continuing without AniDB id")

        with self._stage(ScrapeStage.PERSISTING_SERIES):
            series = await self.series_store.find_or_create(
                slug, title, match.external_id if match else None
            )

        with self._stage(ScrapeStage.PERSISTING_EPISODES):
            counts: ReconcileResult = await self.reconciler.reconcile_and_insert(
                series.id, episodes
            )
            series = await self.series_store.update(
                series.id, SeriesUpdate(last_fetched=datetime.now(timezone.utc))
            )
        logger.info(
            f"Stored series '{slug}': {counts.created} episodes created, "
            f"{counts.skipped} skipped"
        )

        report = ScrapeReport(
            series=SeriesSummary(slug=slug, title=title, episodes=episodes),
            series_id=series.id,
            anidb_id=series.anidb_id,
            match=match,
            created=counts.created,
            skipped=counts.skipped,
        )

        if enrich and series.anidb_id is not None:
            logger.info(f"Stage: {ScrapeStage.ENRICHING.value}")
            try:
                report.enrichment = await self.enrich_series(series.id)
            except Exception as e:
                warning = f"AniDB enrichment failed for '{slug}': {e}"
                logger.warning(warning)
                report.warnings.append(warning)
        elif enrich:
            warning = f"AniDB enrichment skipped for '{slug}': no AniDB id"
            logger.warning(warning)
            report.warnings.append(warning)

        logger.info(f"Stage: {ScrapeStage.DONE.value}")
        return report

    async def scrape_anidb(self, anidb_id: int | str) -> AniDBSeriesRecord:
        """Fetch and parse one AniDB anime without touching storage.

        Raises:
            InvalidInputError: The id is empty or not a positive integer.
            TransportError: The request failed or AniDB returned an error.
            ParseFailureError: The response could not be parsed.
        """
        if isinstance(anidb_id, str):
            if not anidb_id.strip():
                raise InvalidInputError("AniDB id cannot be empty")
            try:
                anidb_id = int(anidb_id.strip())
            except ValueError as e:
                raise InvalidInputError(f"AniDB id must be numeric: '{anidb_id}'") from e
        if anidb_id <= 0:
            raise InvalidInputError(f"Invalid AniDB id: {anidb_id}")

        xml = await self.anidb_client.fetch_anime_xml(anidb_id)
        record = parse_anidb_xml(xml)
        logger.info(f"Scraped AniDB anime {record.anidb_id} '{record.title_main}'")
        return record

    async def enrich_series(self, series_id: UUID) -> MergeResult:
        """Enrich a stored series and its episodes from AniDB.

        Raises:
            InvalidInputError: ``series_id`` is nil or the series has no AniDB id.
            NotFoundError: No series with ``series_id`` exists.
            EnrichmentError: AniDB answered for a different anime.
        """
        if is_nil_uuid(series_id):
            raise InvalidInputError("series id cannot be nil")

        series = await self.series_store.find_by_id(series_id)
        if series is None:
            raise NotFoundError(f"Series not found: {series_id}", series_id=str(series_id))
        if series.anidb_id is None:
            raise InvalidInputError(
                f"Series '{series.slug}' has no AniDB id", series_id=str(series_id)
            )

        record = await self.scrape_anidb(series.anidb_id)
        if record.anidb_id != series.anidb_id:
            raise EnrichmentError(
                f"AniDB returned anime {record.anidb_id} for requested {series.anidb_id}",
                series_id=str(series_id),
            )

        updated_series = await self.series_store.update(
            series_id, series_update_from_anidb(record)
        )
        logger.info(
            f"Enriched series '{updated_series.slug}': type={updated_series.anime_type}, "
            f"episodes={updated_series.episode_count}"
        )

        result = await self.merger.merge(series_id, record.episodes)
        logger.info(
            f"Episode enrichment complete for '{series.slug}': "
            f"{result.updated} updated, {result.unmatched} unmatched"
        )
        return result
