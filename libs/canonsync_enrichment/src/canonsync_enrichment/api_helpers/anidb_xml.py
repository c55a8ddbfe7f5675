"""AniDB ``request=anime`` XML response parsing."""

import logging
from datetime import date, datetime
from xml.etree.ElementTree import Element

from canonsync_common.errors import ParseFailureError, TransportError
from canonsync_common.models import (
    REGULAR_EPISODE_CODE,
    AniDBEpisodeRecord,
    AniDBSeriesRecord,
)
from defusedxml import ElementTree
from defusedxml.common import DefusedXmlException

logger = logging.getLogger(__name__)

XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"

# AniDB resource type code of Crunchyroll
CRUNCHYROLL_RESOURCE_TYPE = "28"


def _text(element: Element | None) -> str | None:
    if element is None or element.text is None:
        return None
    text = element.text.strip()
    return text or None


def _int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value.strip())
    except ValueError:
        return None


def _date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        return None


def _lang(element: Element) -> str:
    return element.get(XML_LANG) or element.get("xml:lang") or ""


def _first_title(titles: list[Element], *languages: str) -> str | None:
    """Return the first title in ``languages`` priority order."""
    for language in languages:
        for title in titles:
            if _lang(title) == language and (text := _text(title)):
                return text
    return None


def _crunchyroll_id(episode: Element) -> str | None:
    resources = episode.find("resources")
    if resources is None:
        return None
    for resource in resources.findall("resource"):
        if resource.get("type") != CRUNCHYROLL_RESOURCE_TYPE:
            continue
        for entity in resource.findall("externalentity"):
            identifier = _text(entity.find("identifier"))
            if identifier:
                return identifier
    return None


def _parse_episode(episode: Element) -> AniDBEpisodeRecord | None:
    """Parse one ``<episode>``; return None for non-regular or unusable episodes."""
    epno = episode.find("epno")
    kind_code = _int(epno.get("type")) if epno is not None else None
    if kind_code != REGULAR_EPISODE_CODE:
        return None

    episode_id = _int(episode.get("id"))
    update_date = _date(episode.get("update"))
    if episode_id is None or update_date is None:
        logger.warning(
            f"Dropping AniDB episode {episode.get('id')!r}: "
            f"invalid id or update date {episode.get('update')!r}"
        )
        return None

    titles = episode.findall("title")
    rating = episode.find("rating")
    # Episode Japanese titles take whichever of ja / x-jat appears first
    title_ja = next(
        (text for t in titles if _lang(t) in ("ja", "x-jat") and (text := _text(t))),
        None,
    )

    return AniDBEpisodeRecord(
        episode_id=episode_id,
        update_date=update_date,
        episode_number=_int(_text(epno)) or 0,
        episode_kind_code=kind_code,
        length=_int(_text(episode.find("length"))),
        air_date=_date(_text(episode.find("airdate"))),
        rating=_float(_text(rating)),
        votes=_int(rating.get("votes")) if rating is not None else None,
        title_ja=title_ja,
        title_en=_first_title(titles, "en"),
        summary=_text(episode.find("summary")),
        crunchyroll_id=_crunchyroll_id(episode),
    )


def parse_anidb_xml(xml: str | bytes) -> AniDBSeriesRecord:
    """Parse an AniDB anime response.

    Args:
        xml: Response body.

    Returns:
        The series with its regular episodes only.

    Raises:
        TransportError: AniDB answered with an ``<error>`` envelope.
        ParseFailureError: The document is malformed or lacks a numeric anime id.
    """
    try:
        root = ElementTree.fromstring(xml)
    except (ElementTree.ParseError, DefusedXmlException) as e:
        raise ParseFailureError(f"Failed to parse AniDB XML: {e}") from e

    if root.tag == "error":
        message = _text(root) or "unknown error"
        raise TransportError(f"AniDB API error: {message}")

    if root.tag != "anime":
        raise ParseFailureError(f"Unexpected AniDB root element <{root.tag}>")

    anidb_id = _int(root.get("id"))
    if anidb_id is None:
        raise ParseFailureError(f"Missing or non-numeric AniDB anime id: {root.get('id')!r}")

    titles_element = root.find("titles")
    titles = titles_element.findall("title") if titles_element is not None else []
    title_main = next(
        (text for t in titles if t.get("type") == "main" and (text := _text(t))),
        "Unknown",
    )

    episodes: list[AniDBEpisodeRecord] = []
    episodes_element = root.find("episodes")
    if episodes_element is not None:
        for episode in episodes_element.findall("episode"):
            parsed = _parse_episode(episode)
            if parsed is not None:
                episodes.append(parsed)

    record = AniDBSeriesRecord(
        anidb_id=anidb_id,
        restricted=root.get("restricted") == "true",
        anime_type=_text(root.find("type")) or "Unknown",
        episode_count=_int(_text(root.find("episodecount"))),
        start_date=_date(_text(root.find("startdate"))),
        end_date=_date(_text(root.find("enddate"))),
        title_main=title_main,
        title_ja=_first_title(titles, "ja", "x-jat"),
        title_en=_first_title(titles, "en"),
        description=_text(root.find("description")),
        url=_text(root.find("url")),
        episodes=episodes,
    )
    logger.info(
        f"Parsed AniDB anime {anidb_id} '{title_main}' with {len(episodes)} regular episodes"
    )
    return record
