"""Episode-list page extraction.

Reads the canon/filler table published by animefillerlist-style pages::

    <table class="EpisodeList"><tbody>
      <tr><td class="Number">1</td><td class="Title">...</td>
          <td class="Type">Canon</td><td class="Date">1999-10-20</td></tr>
    </tbody></table>

Every row becomes a record; unparseable cells fall back to defaults instead
of aborting the page.
"""

import logging
from datetime import date, datetime

from bs4 import BeautifulSoup, Tag
from canonsync_common.models import (
    UNKNOWN_AIR_DATE,
    UNTITLED_EPISODE,
    EpisodeKind,
    RawEpisodeRecord,
)

logger = logging.getLogger(__name__)

ROW_SELECTOR = "table.EpisodeList tbody tr"

EPISODE_KIND_LABELS: dict[str, EpisodeKind] = {kind.value: kind for kind in EpisodeKind}


def _cell_text(row: Tag, css_class: str) -> str | None:
    cell = row.select_one(f"td.{css_class}")
    if cell is None:
        return None
    return cell.get_text().strip()


def _parse_number(text: str | None) -> int:
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        return 0


def _parse_date(text: str | None) -> date:
    if not text:
        return UNKNOWN_AIR_DATE
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        return UNKNOWN_AIR_DATE


def parse_episode_list(html: str) -> list[RawEpisodeRecord]:
    """Extract episode rows from an episode-list page.

    Args:
        html: Page markup. Pages without the episode table yield no records.

    Returns:
        Records in page order. ``absolute_index`` counts rows from 1 even when
        the printed episode number is missing.
    """
    soup = BeautifulSoup(html, "html.parser")

    records: list[RawEpisodeRecord] = []
    for absolute_index, row in enumerate(soup.select(ROW_SELECTOR), start=1):
        kind_label = _cell_text(row, "Type")
        records.append(
            RawEpisodeRecord(
                episode_number=_parse_number(_cell_text(row, "Number")),
                absolute_index=absolute_index,
                title=_cell_text(row, "Title") or UNTITLED_EPISODE,
                air_date=_parse_date(_cell_text(row, "Date")),
                episode_kind=EPISODE_KIND_LABELS.get(kind_label or "", EpisodeKind.CANON),
            )
        )

    logger.info(f"Extracted {len(records)} episode rows")
    return records
