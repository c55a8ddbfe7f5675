"""Tests for episode-list page extraction."""

from datetime import date

import pytest
from canonsync_common.models import UNKNOWN_AIR_DATE, EpisodeKind
from canonsync_enrichment.crawlers.episode_list_crawler import parse_episode_list


class TestParseEpisodeList:
    def test_parses_rows_in_order(self, episode_row, episode_page):
        html = episode_page(
            [
                episode_row("1", "I'm Luffy!", "Canon", "1999-10-20"),
                episode_row("2", "The Great Swordsman Appears!", "Mixed", "1999-11-17"),
            ]
        )

        records = parse_episode_list(html)

        assert [r.episode_number for r in records] == [1, 2]
        assert [r.absolute_index for r in records] == [1, 2]
        assert records[0].title == "I'm Luffy!"
        assert records[0].air_date == date(1999, 10, 20)
        assert records[1].episode_kind == EpisodeKind.MIXED

    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("Canon", EpisodeKind.CANON),
            ("Filler", EpisodeKind.FILLER),
            ("Mixed", EpisodeKind.MIXED),
            ("Anime Canon", EpisodeKind.ANIME_CANON),
            ("Manga Canon", EpisodeKind.CANON),
            ("", EpisodeKind.CANON),
        ],
    )
    def test_episode_kind_labels(self, episode_row, episode_page, label, expected):
        html = episode_page([episode_row("1", "Title", label, "2000-01-01")])
        assert parse_episode_list(html)[0].episode_kind == expected

    def test_defaults_for_missing_cells(self, episode_row, episode_page):
        html = episode_page([episode_row(None, None, None, None)])

        (record,) = parse_episode_list(html)

        assert record.episode_number == 0
        assert record.absolute_index == 1
        assert record.title == "Untitled"
        assert record.air_date == UNKNOWN_AIR_DATE
        assert record.episode_kind == EpisodeKind.CANON

    @pytest.mark.parametrize("raw_date", ["20/10/1999", "1999-13-40", "soon"])
    def test_malformed_date_falls_back(self, episode_row, episode_page, raw_date):
        html = episode_page([episode_row("1", "Title", "Canon", raw_date)])
        assert parse_episode_list(html)[0].air_date == UNKNOWN_AIR_DATE

    def test_unparseable_number_keeps_row_position(self, episode_row, episode_page):
        html = episode_page(
            [
                episode_row("1", "First", "Canon", "2000-01-01"),
                episode_row("1.5", "Recap", "Filler", "2000-01-08"),
                episode_row("2", "Second", "Canon", "2000-01-15"),
            ]
        )

        records = parse_episode_list(html)

        assert [(r.episode_number, r.absolute_index) for r in records] == [(1, 1), (0, 2), (2, 3)]

    def test_page_without_table(self):
        assert parse_episode_list("<html><body><p>Not found</p></body></html>") == []

    def test_large_listing(self, make_episode_list):
        records = parse_episode_list(make_episode_list(131, {131: "Filler"}))
        assert len(records) == 131
        assert [r.episode_number for r in records if r.episode_kind == EpisodeKind.FILLER] == [131]
