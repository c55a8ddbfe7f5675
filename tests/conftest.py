"""
Root test configuration for all tests.

Provides settings isolated from the developer's environment, in-memory
stores and small fixture documents for the listing page and AniDB API.
"""

from collections.abc import Callable, Generator
from unittest.mock import patch

import pytest
from canonsync_common.config.settings import Settings
from canonsync_common.models import TitleEntry, TitleKind
from canonsync_store import InMemoryEpisodeStore, InMemorySeriesStore

ANIDB_ONE_PIECE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<anime id="69" restricted="false">
  <type>TV Series</type>
  <episodecount>1100</episodecount>
  <startdate>1999-10-20</startdate>
  <titles>
    <title xml:lang="x-jat" type="main">One Piece</title>
    <title xml:lang="ja" type="official">ワンピース</title>
    <title xml:lang="en" type="official">One Piece</title>
  </titles>
  <url>https://one-piece.com/</url>
  <description>Gol D. Roger was known as the Pirate King.</description>
  <episodes>
    <episode id="1001" update="2020-01-01">
      <epno type="1">2</epno>
      <length>25</length>
      <airdate>1999-11-17</airdate>
      <rating votes="12">7.50</rating>
      <title xml:lang="en">The Great Swordsman Appears</title>
      <title xml:lang="ja">大剣豪現る</title>
      <summary>Luffy meets Zoro.</summary>
      <resources>
        <resource type="28">
          <externalentity><identifier>GR3VWXP96</identifier></externalentity>
        </resource>
      </resources>
    </episode>
    <episode id="1002" update="2020-01-02">
      <epno type="1">3</epno>
      <length>25</length>
      <airdate>1999-11-24</airdate>
      <title xml:lang="x-jat">Morgan vs. Luffy</title>
    </episode>
    <episode id="1003" update="2020-01-03">
      <epno type="1">4</epno>
      <airdate>1999-12-08</airdate>
    </episode>
    <episode id="2001" update="2020-01-04">
      <epno type="2">S1</epno>
    </episode>
  </episodes>
</anime>
"""


@pytest.fixture
def settings() -> Settings:
    """Settings that ignore any local .env and never sleep between AniDB requests."""
    return Settings(
        _env_file=None,
        anidb_client_name="canonsynctest",
        anidb_client_version="1",
        anidb_min_request_interval=0.0,
        anidb_max_retries=2,
        title_dump_refresh_hours=24.0,
    )


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Remove CANONSYNC_* variables for the duration of a test."""
    with patch.dict("os.environ", {}, clear=True):
        yield


@pytest.fixture
def series_store() -> InMemorySeriesStore:
    return InMemorySeriesStore()


@pytest.fixture
def episode_store() -> InMemoryEpisodeStore:
    return InMemoryEpisodeStore()


@pytest.fixture
def title_entries() -> list[TitleEntry]:
    """A small AniDB-style corpus; anime 69 is One Piece, 9541 is Shingeki no Kyojin."""
    return [
        TitleEntry(69, "One Piece", TitleKind.PRIMARY, "x-jat"),
        TitleEntry(69, "One Piece", TitleKind.OFFICIAL, "en"),
        TitleEntry(69, "ワンピース", TitleKind.OFFICIAL, "ja"),
        TitleEntry(69, "OP", TitleKind.SHORT, "en"),
        TitleEntry(9541, "Shingeki no Kyojin", TitleKind.PRIMARY, "x-jat"),
        TitleEntry(9541, "Attack on Titan", TitleKind.OFFICIAL, "en"),
        TitleEntry(9541, "L'Attaque des Titans", TitleKind.OFFICIAL, "fr"),
    ]


@pytest.fixture
def anidb_xml() -> str:
    return ANIDB_ONE_PIECE_XML


def render_episode_row(
    number: str | None, title: str | None, kind: str | None, air_date: str | None
) -> str:
    cells = []
    if number is not None:
        cells.append(f'<td class="Number">{number}</td>')
    if title is not None:
        cells.append(f'<td class="Title"><a href="#">{title}</a></td>')
    if kind is not None:
        cells.append(f'<td class="Type"><span>{kind}</span></td>')
    if air_date is not None:
        cells.append(f'<td class="Date">{air_date}</td>')
    return f"<tr>{''.join(cells)}</tr>"


def render_episode_list(rows: list[str]) -> str:
    return (
        "<html><body><h1>Episode list</h1>"
        '<table class="EpisodeList"><thead><tr><th>#</th></tr></thead>'
        f"<tbody>{''.join(rows)}</tbody></table></body></html>"
    )


@pytest.fixture
def make_episode_list() -> Callable[..., str]:
    """Build a listing page with ``count`` canon rows; kinds and titles can be overridden by number."""

    def _make(
        count: int, kinds: dict[int, str] | None = None, titles: dict[int, str] | None = None
    ) -> str:
        kinds = kinds or {}
        titles = titles or {}
        rows = [
            render_episode_row(
                str(number),
                titles.get(number, f"Episode {number}"),
                kinds.get(number, "Canon"),
                f"2000-01-{(number % 28) + 1:02d}",
            )
            for number in range(1, count + 1)
        ]
        return render_episode_list(rows)

    return _make


@pytest.fixture
def episode_row() -> Callable[..., str]:
    return render_episode_row


@pytest.fixture
def episode_page() -> Callable[[list[str]], str]:
    return render_episode_list
