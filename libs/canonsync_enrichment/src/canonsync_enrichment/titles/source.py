"""Title corpus sources consumed by the match cascade."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable

from canonsync_common.models import NARROW_LANGUAGES, TitleEntry

logger = logging.getLogger(__name__)


class TitleSource(ABC):
    """Read access to the AniDB title corpus."""

    @abstractmethod
    async def find_exact_id(self, title: str) -> int | None:
        """Return the external id of a title equal to ``title`` ignoring case."""
        pass

    @abstractmethod
    async def get_narrow_titles(self) -> list[TitleEntry]:
        """Return the titles in English or romanized Japanese."""
        pass

    @abstractmethod
    async def get_all_titles(self) -> list[TitleEntry]:
        """Return the whole corpus."""
        pass


class InMemoryTitleSource(TitleSource):
    """Title source over a list of entries with a lower-cased exact index.

    The first entry of a given lower-cased title owns the exact lookup.
    """

    def __init__(self, entries: Iterable[TitleEntry] = ()) -> None:
        self._entries: list[TitleEntry] = []
        self._exact: dict[str, int] = {}
        self.replace(entries)

    def replace(self, entries: Iterable[TitleEntry]) -> None:
        """Swap in a new corpus, e.g. after a dump refresh."""
        self._entries = list(entries)
        self._exact = {}
        for entry in self._entries:
            self._exact.setdefault(entry.title.lower(), entry.external_id)
        logger.info(f"Title source loaded with {len(self._entries)} titles")

    def __len__(self) -> int:
        return len(self._entries)

    async def find_exact_id(self, title: str) -> int | None:
        return self._exact.get(title.lower())

    async def get_narrow_titles(self) -> list[TitleEntry]:
        return [entry for entry in self._entries if entry.language in NARROW_LANGUAGES]

    async def get_all_titles(self) -> list[TitleEntry]:
        return list(self._entries)
