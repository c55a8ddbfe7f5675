"""Tests for shared models and the error taxonomy."""

import uuid
from datetime import date

import pytest
from canonsync_common.errors import (
    CanonSyncError,
    EnrichmentError,
    ErrorKind,
    InvalidInputError,
    NotFoundError,
    ParseFailureError,
    TransportError,
)
from canonsync_common.models import (
    UNKNOWN_AIR_DATE,
    EpisodeKind,
    EpisodeUpdate,
    RawEpisodeRecord,
    SeriesUpdate,
    StoredEpisodeType,
    is_nil_uuid,
    to_stored_episode_type,
)
from pydantic import ValidationError


class TestEpisodeKindTranslation:
    @pytest.mark.parametrize(
        ("kind", "expected"),
        [
            (EpisodeKind.CANON, StoredEpisodeType.CANON),
            (EpisodeKind.FILLER, StoredEpisodeType.FILLER),
            (EpisodeKind.MIXED, StoredEpisodeType.MIXED_CANON),
            (EpisodeKind.ANIME_CANON, StoredEpisodeType.ANIME_CANON),
        ],
    )
    def test_every_kind_has_a_stored_type(self, kind, expected):
        assert to_stored_episode_type(kind) == expected

    def test_stored_values(self):
        assert [t.value for t in StoredEpisodeType] == ["canon", "mixed", "filler", "anime_canon"]


class TestRawEpisodeRecord:
    def test_defaults(self):
        record = RawEpisodeRecord(absolute_index=1)
        assert record.episode_number == 0
        assert record.title == "Untitled"
        assert record.air_date == UNKNOWN_AIR_DATE
        assert record.episode_kind == EpisodeKind.CANON

    def test_absolute_index_starts_at_one(self):
        with pytest.raises(ValidationError):
            RawEpisodeRecord(absolute_index=0)


class TestUpdateValues:
    def test_only_set_fields_are_changes(self):
        update = SeriesUpdate(anime_type="TV Series", end_date=None)
        assert update.changes() == {"anime_type": "TV Series", "end_date": None}

    def test_episode_update_changes(self):
        update = EpisodeUpdate(anidb_id=5, air_date=date(2000, 1, 1))
        assert update.changes() == {"anidb_id": 5, "air_date": date(2000, 1, 1)}


class TestNilUuid:
    def test_nil(self):
        assert is_nil_uuid(uuid.UUID(int=0))
        assert is_nil_uuid(None)

    def test_random(self):
        assert not is_nil_uuid(uuid.uuid4())


class TestErrors:
    @pytest.mark.parametrize(
        ("error_cls", "kind"),
        [
            (InvalidInputError, ErrorKind.INVALID_INPUT),
            (TransportError, ErrorKind.TRANSPORT_FAILURE),
            (ParseFailureError, ErrorKind.PARSE_FAILURE),
            (NotFoundError, ErrorKind.NOT_FOUND),
            (EnrichmentError, ErrorKind.ENRICHMENT_FAILURE),
        ],
    )
    def test_kinds(self, error_cls, kind):
        error = error_cls("boom")
        assert isinstance(error, CanonSyncError)
        assert error.kind == kind
        assert error.message == "boom"

    def test_transport_error_carries_status_and_url(self):
        error = TransportError("HTTP 503", status=503, url="http://example.com")
        assert error.status == 503
        assert error.url == "http://example.com"
        assert error.details == {"status": 503, "url": "http://example.com"}

    def test_details(self):
        error = NotFoundError("missing", series_id="abc")
        assert error.details == {"series_id": "abc"}
        assert isinstance(error, LookupError)
