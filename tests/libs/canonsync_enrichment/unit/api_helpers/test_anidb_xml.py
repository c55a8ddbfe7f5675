"""Tests for AniDB anime XML parsing."""

from datetime import date

import pytest
from canonsync_common.errors import ParseFailureError, TransportError
from canonsync_enrichment.api_helpers.anidb_xml import parse_anidb_xml


class TestParseAnimeXml:
    def test_series_fields(self, anidb_xml):
        record = parse_anidb_xml(anidb_xml)

        assert record.anidb_id == 69
        assert record.restricted is False
        assert record.anime_type == "TV Series"
        assert record.episode_count == 1100
        assert record.start_date == date(1999, 10, 20)
        assert record.end_date is None
        assert record.title_main == "One Piece"
        assert record.title_ja == "ワンピース"
        assert record.title_en == "One Piece"
        assert record.url == "https://one-piece.com/"
        assert record.description.startswith("Gol D. Roger")

    def test_accepts_bytes(self, anidb_xml):
        assert parse_anidb_xml(anidb_xml.encode("utf-8")).anidb_id == 69

    def test_only_regular_episodes_survive(self, anidb_xml):
        record = parse_anidb_xml(anidb_xml)
        assert [ep.episode_number for ep in record.episodes] == [2, 3, 4]
        assert all(ep.episode_kind_code == 1 for ep in record.episodes)

    def test_episode_fields(self, anidb_xml):
        episode = parse_anidb_xml(anidb_xml).episodes[0]

        assert episode.episode_id == 1001
        assert episode.update_date == date(2020, 1, 1)
        assert episode.length == 25
        assert episode.air_date == date(1999, 11, 17)
        assert episode.rating == 7.5
        assert episode.votes == 12
        assert episode.title_en == "The Great Swordsman Appears"
        assert episode.title_ja == "大剣豪現る"
        assert episode.summary == "Luffy meets Zoro."
        assert episode.crunchyroll_id == "GR3VWXP96"

    def test_romaji_episode_title_counts_as_japanese(self, anidb_xml):
        episode = parse_anidb_xml(anidb_xml).episodes[1]
        assert episode.title_ja == "Morgan vs. Luffy"
        assert episode.crunchyroll_id is None

    def test_bad_update_date_drops_episode(self, anidb_xml):
        xml = anidb_xml.replace('update="2020-01-02"', 'update="yesterday"')
        record = parse_anidb_xml(xml)
        assert [ep.episode_id for ep in record.episodes] == [1001, 1003]

    def test_unparseable_episode_number_becomes_zero(self, anidb_xml):
        xml = anidb_xml.replace('<epno type="1">4</epno>', '<epno type="1">4a</epno>')
        assert parse_anidb_xml(xml).episodes[-1].episode_number == 0

    def test_japanese_title_falls_back_to_romaji(self):
        xml = """<anime id="1"><titles>
            <title xml:lang="en" type="official">Crest of the Stars</title>
            <title xml:lang="x-jat" type="main">Seikai no Monshou</title>
        </titles></anime>"""
        record = parse_anidb_xml(xml)
        assert record.title_ja == "Seikai no Monshou"
        assert record.title_main == "Seikai no Monshou"

    def test_defaults_for_sparse_document(self):
        record = parse_anidb_xml('<anime id="5" restricted="true"/>')
        assert record.title_main == "Unknown"
        assert record.anime_type == "Unknown"
        assert record.restricted is True
        assert record.episodes == []


class TestParseAnimeXmlErrors:
    def test_error_envelope(self):
        with pytest.raises(TransportError, match="Banned"):
            parse_anidb_xml("<error>Banned</error>")

    def test_error_envelope_with_code(self):
        with pytest.raises(TransportError, match="Anime not found"):
            parse_anidb_xml('<error code="330">Anime not found</error>')

    @pytest.mark.parametrize(
        "xml",
        ["<anime id='1'><unclosed></anime>", "", "not xml at all"],
    )
    def test_malformed(self, xml):
        with pytest.raises(ParseFailureError):
            parse_anidb_xml(xml)

    @pytest.mark.parametrize("xml", ["<anime/>", "<anime id='abc'/>"])
    def test_missing_or_non_numeric_id(self, xml):
        with pytest.raises(ParseFailureError, match="anime id"):
            parse_anidb_xml(xml)

    def test_unexpected_root(self):
        with pytest.raises(ParseFailureError, match="root element"):
            parse_anidb_xml("<character id='1'/>")
