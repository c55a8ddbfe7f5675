"""Command-line entry point for one-off scrapes.

Usage::

    canonsync-scrape https://www.animefillerlist.com/shows/one-piece
    canonsync-scrape https://www.animefillerlist.com/shows/one-piece --no-enrich --json
    canonsync-scrape --anidb-id 69

Runs against in-memory storage, so the printed report is the only output.
"""

import argparse
import asyncio
import logging
import sys

from canonsync_common.config import get_settings
from canonsync_common.errors import CanonSyncError
from canonsync_store import InMemoryEpisodeStore, InMemorySeriesStore

from canonsync_enrichment.api_helpers.anidb_helper import AniDBClient
from canonsync_enrichment.api_helpers.http_transport import HttpTransport
from canonsync_enrichment.pipeline.orchestrator import (
    ScrapeOrchestrator,
    ScrapeReport,
    StageFailure,
)
from canonsync_enrichment.titles.dump import TitleDumpLoader
from canonsync_enrichment.titles.source import InMemoryTitleSource

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="canonsync-scrape",
        description="Scrape an episode list and enrich it from AniDB",
    )
    parser.add_argument("url", nargs="?", help="Episode-list page URL")
    parser.add_argument("--anidb-id", type=int, help="Only fetch and print an AniDB anime")
    parser.add_argument(
        "--no-enrich", action="store_true", help="Skip AniDB episode enrichment"
    )
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    return parser


def format_report(report: ScrapeReport) -> str:
    """Render a short human-readable summary."""
    lines = [
        f"Series: {report.series.title} ({report.series.slug})",
        f"Series id: {report.series_id}",
        f"AniDB id: {report.anidb_id if report.anidb_id is not None else '-'}",
    ]
    if report.match is not None:
        lines.append(
            f"Matched title: {report.match.matched_title} "
            f"(confidence {report.match.confidence:.3f})"
        )
    lines.append(f"Episodes: {report.created} created, {report.skipped} skipped")
    if report.enrichment is not None:
        lines.append(
            f"Enrichment: {report.enrichment.updated} updated, "
            f"{report.enrichment.unmatched} unmatched"
        )
    lines.extend(f"Warning: {warning}" for warning in report.warnings)
    return "\n".join(lines)


async def _load_title_source(loader: TitleDumpLoader) -> InMemoryTitleSource:
    try:
        return await loader.load_source()
    except CanonSyncError as e:
        logger.warning(f"Title dump refresh failed, using local copy: {e}")
        return InMemoryTitleSource(loader.load())


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()

    async with HttpTransport(settings) as transport, AniDBClient(settings) as anidb_client:
        if args.anidb_id is not None:
            orchestrator = ScrapeOrchestrator(
                InMemorySeriesStore(),
                InMemoryEpisodeStore(),
                transport,
                InMemoryTitleSource(),
                anidb_client,
            )
            record = await orchestrator.scrape_anidb(args.anidb_id)
            print(record.model_dump_json(indent=2))
            return 0

        title_source = await _load_title_source(TitleDumpLoader(transport, settings))
        orchestrator = ScrapeOrchestrator(
            InMemorySeriesStore(),
            InMemoryEpisodeStore(),
            transport,
            title_source,
            anidb_client,
            settings.fuzzy_match_config(),
        )
        report = await orchestrator.scrape(args.url, enrich=not args.no_enrich)
        print(report.model_dump_json(indent=2) if args.json else format_report(report))
        return 0


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, configure logging and run a scrape.

    Returns:
        0 on success, 1 when the scrape failed, 2 on a usage error.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.url is None and args.anidb_id is None:
        parser.print_usage(sys.stderr)
        return 2

    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return asyncio.run(run(args))
    except StageFailure as e:
        logger.error(f"{e} (stage={e.stage.value})")
        return 1
    except CanonSyncError as e:
        logger.error(f"{e.kind.value}: {e.message}")
        return 1
    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
