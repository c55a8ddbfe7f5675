"""AniDB title dump parsing and download bookkeeping.

The dump is a gzip-compressed text file with one title per line::

    # created: Sat Oct 18 02:00:01 2026
    # <aid>|<type>|<language>|<title>
    1|1|x-jat|Seikai no Monshou

AniDB bans clients that download it more than once a day, so ``refresh``
consults the recorded ``last_fetched`` timestamp before touching the network.
"""

import asyncio
import gzip
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

from canonsync_common.config import Settings, get_settings
from canonsync_common.errors import ParseFailureError
from canonsync_common.models import TitleDumpMeta, TitleEntry, TitleKind
from pydantic import ValidationError

from canonsync_enrichment.api_helpers.http_transport import Transport
from canonsync_enrichment.titles.source import InMemoryTitleSource

logger = logging.getLogger(__name__)

CREATED_PREFIX = "# created:"


def parse_title_dump(text: str) -> tuple[list[TitleEntry], str | None]:
    """Parse the dump text into entries.

    Malformed lines (wrong field count, non-numeric id, unknown type code or
    empty title) are skipped.

    Returns:
        The entries in file order and the ``# created:`` header value, if any.
    """
    entries: list[TitleEntry] = []
    created: str | None = None
    skipped = 0

    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        if line.startswith("#"):
            if line.lower().startswith(CREATED_PREFIX):
                created = line[len(CREATED_PREFIX):].strip()
            continue

        parts = line.split("|", 3)
        if len(parts) != 4 or not parts[3]:
            skipped += 1
            continue
        aid, type_code, language, title = parts
        try:
            entries.append(
                TitleEntry(
                    external_id=int(aid),
                    title=title,
                    title_kind=TitleKind(int(type_code)),
                    language=language,
                )
            )
        except ValueError:
            skipped += 1

    if skipped:
        logger.warning(f"Skipped {skipped} malformed title dump lines")
    return entries, created


class TitleDumpLoader:
    """Downloads, stores and loads the AniDB title dump."""

    def __init__(self, transport: Transport, settings: Settings | None = None):
        settings = settings or get_settings()
        self.transport = transport
        self.dump_url = settings.title_dump_url
        self.dump_path = Path(settings.title_dump_path)
        self.meta_path = Path(settings.title_dump_meta_path)
        self.refresh_interval = timedelta(hours=settings.title_dump_refresh_hours)
        self._lock = asyncio.Lock()

    def read_meta(self) -> TitleDumpMeta:
        """Return the stored metadata, or an empty record when none is usable."""
        if not self.meta_path.exists():
            return TitleDumpMeta()
        try:
            return TitleDumpMeta.model_validate_json(
                self.meta_path.read_text(encoding="utf-8")
            )
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable title dump metadata {self.meta_path}: {e}")
            return TitleDumpMeta()

    def _write_meta(self, meta: TitleDumpMeta) -> None:
        self.meta_path.parent.mkdir(parents=True, exist_ok=True)
        self.meta_path.write_text(meta.model_dump_json(indent=2), encoding="utf-8")

    def is_fresh(self, now: datetime | None = None) -> bool:
        """Return True when the dump was downloaded within the refresh interval."""
        last_fetched = self.read_meta().last_fetched
        if last_fetched is None or not self.dump_path.exists():
            return False
        now = now or datetime.now(timezone.utc)
        if last_fetched.tzinfo is None:
            last_fetched = last_fetched.replace(tzinfo=timezone.utc)
        return now - last_fetched < self.refresh_interval

    async def refresh(self, force: bool = False) -> TitleDumpMeta:
        """Download the dump unless the local copy is still fresh.

        ``force`` bypasses the freshness check; use it only after deleting a
        corrupt local copy.

        Returns:
            Metadata describing the local dump after the call.
        """
        async with self._lock:
            if not force and self.is_fresh():
                logger.info("Title dump is fresh, skipping download")
                return self.read_meta()

            content = await self.transport.fetch(self.dump_url)
            if content.startswith(b"\x1f\x8b"):
                try:
                    content = gzip.decompress(content)
                except (OSError, EOFError) as e:
                    raise ParseFailureError(f"Corrupt title dump archive: {e}") from e
            try:
                text = content.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ParseFailureError(f"Title dump is not UTF-8: {e}") from e

            entries, created = parse_title_dump(text)
            self.dump_path.parent.mkdir(parents=True, exist_ok=True)
            self.dump_path.write_text(text, encoding="utf-8")

            meta = TitleDumpMeta(
                last_fetched=datetime.now(timezone.utc),
                dump_created=created,
                entry_count=len(entries),
            )
            self._write_meta(meta)
            logger.info(f"Downloaded title dump with {len(entries)} titles (created {created})")
            return meta

    def load(self) -> list[TitleEntry]:
        """Parse the local dump file."""
        if not self.dump_path.exists():
            return []
        entries, _ = parse_title_dump(self.dump_path.read_text(encoding="utf-8"))
        return entries

    async def load_source(self) -> InMemoryTitleSource:
        """Refresh if stale, then build a title source from the local dump."""
        await self.refresh()
        return InMemoryTitleSource(self.load())
