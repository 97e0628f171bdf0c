"""Tests for the Deezer connector against a mocked HTTP layer."""

from unittest.mock import AsyncMock

import httpx
import pytest

from stellar.application.services import MusicService
from stellar.domain.errors import ErrorKind
from stellar.infrastructure.connectors import (
    fallback_on_error,
    map_deezer_artist,
    map_deezer_track,
    parse_retry_after,
)

DAFT_PUNK = {
    "id": 27,
    "name": "Daft Punk",
    "nb_fan": 4_000_000,
    "picture_medium": "https://img/medium.jpg",
    "picture_big": "https://img/big.jpg",
    "link": "https://www.deezer.com/artist/27",
}

ONE_MORE_TIME = {
    "id": 3135556,
    "title": "One More Time",
    "duration": 320,
    "preview": "https://cdn/preview.mp3",
    "album": {"title": "Discovery", "cover_medium": "https://img/cover.jpg"},
    "artist": {"id": 27, "name": "Daft Punk"},
}


class TestMapping:
    def test_map_artist(self):
        artist = map_deezer_artist(DAFT_PUNK)

        assert artist.id == "27"
        assert artist.name == "Daft Punk"
        assert artist.fan_count == 4_000_000
        assert artist.image_url == "https://img/medium.jpg"
        assert artist.image_large_url == "https://img/big.jpg"
        assert artist.provider_id == "deezer"

    def test_map_artist_defaults_link(self):
        artist = map_deezer_artist({"id": 5, "name": "Air"})

        assert artist.external_url == "https://www.deezer.com/artist/5"
        assert artist.image_url is None

    def test_map_track(self):
        track = map_deezer_track(ONE_MORE_TIME)

        assert track.id == "3135556"
        assert track.duration_ms == 320_000
        assert track.preview_url == "https://cdn/preview.mp3"
        assert track.album_name == "Discovery"
        assert track.artist_id == "27"


@pytest.mark.asyncio
async def test_search_artists(deezer_factory):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"data": [DAFT_PUNK, {"name": "no id"}]})

    connector = deezer_factory(handler)

    artists = await connector.search_artists("daft punk", limit=3)

    assert [artist.id for artist in artists] == ["27"]
    assert requests[0].url.path == "/deezer/search/artist"
    assert requests[0].url.params["q"] == "daft punk"
    assert requests[0].url.params["limit"] == "3"


@pytest.mark.asyncio
async def test_short_query_makes_no_request(deezer_factory):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"data": []})

    connector = deezer_factory(handler)

    assert await connector.search_artists(" a ") == []
    assert requests == []


@pytest.mark.asyncio
async def test_quota_error_pauses_and_retries(deezer_factory):
    attempts = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            return httpx.Response(
                200,
                json={"error": {"type": "Exception", "message": "Quota limit exceeded", "code": 4}},
            )
        return httpx.Response(200, json={"data": [DAFT_PUNK]})

    connector = deezer_factory(handler)

    related = await connector.get_related_artists("1")

    assert [artist.name for artist in related] == ["Daft Punk"]
    assert attempts == 2


@pytest.mark.asyncio
async def test_application_error_degrades(deezer_factory):
    connector = deezer_factory(
        lambda request: httpx.Response(
            200,
            json={"error": {"type": "DataException", "message": "no data", "code": 800}},
        )
    )

    assert await connector.get_related_artists("999") == []
    assert await connector.get_artist("999") is None
    assert not connector.queue.paused


@pytest.mark.asyncio
async def test_network_failure_degrades(deezer_factory):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    connector = deezer_factory(handler)

    assert await connector.get_artist_top_tracks("27") == []


@pytest.mark.asyncio
async def test_top_tracks_and_artist(deezer_factory):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/top"):
            return httpx.Response(200, json={"data": [ONE_MORE_TIME]})
        return httpx.Response(200, json=DAFT_PUNK)

    connector = deezer_factory(handler)

    tracks = await connector.get_artist_top_tracks("27", limit=1)
    artist = await connector.get_artist("27")

    assert [track.name for track in tracks] == ["One More Time"]
    assert artist is not None
    assert artist.name == "Daft Punk"


def test_error_classification(deezer_factory):
    connector = deezer_factory(lambda request: httpx.Response(200, json={}))

    quota = connector._extract_error({"error": {"code": 4, "message": "Quota"}})
    other = connector._extract_error({"error": "boom"})

    assert quota.kind is ErrorKind.RATE_LIMITED
    assert other.kind is ErrorKind.APPLICATION
    assert connector._extract_error({"data": []}) is None


@pytest.mark.parametrize(
    ("header", "expected"),
    [("3", 3.0), (" 1.5 ", 1.5), ("-2", 0.0), (None, None), ("", None), ("soon", None)],
)
def test_parse_retry_after(header, expected):
    assert parse_retry_after(header) == expected


class TestMalformedPayloads:
    @pytest.mark.asyncio
    async def test_null_name_maps_to_empty_string(self, deezer_factory):
        connector = deezer_factory(
            lambda request: httpx.Response(200, json={"data": [{"id": 1, "name": None}]})
        )

        artists = await connector.search_artists("boris")

        assert [(artist.id, artist.name) for artist in artists] == [("1", "")]

    @pytest.mark.asyncio
    async def test_non_object_entries_are_skipped(self, deezer_factory):
        connector = deezer_factory(
            lambda request: httpx.Response(200, json={"data": [None, "junk", DAFT_PUNK]})
        )

        artists = await connector.search_artists("daft punk")

        assert [artist.id for artist in artists] == ["27"]

    @pytest.mark.asyncio
    async def test_track_with_scalar_album(self, deezer_factory):
        track = {**ONE_MORE_TIME, "album": "Discovery"}
        connector = deezer_factory(
            lambda request: httpx.Response(200, json={"data": [track]})
        )

        tracks = await connector.get_artist_top_tracks("27")

        assert tracks[0].album_name == ""

    @pytest.mark.asyncio
    async def test_name_lookup_survives_null_entries(self, deezer_factory):
        connector = deezer_factory(
            lambda request: httpx.Response(200, json={"data": [None]})
        )
        service = MusicService.create(AsyncMock(), connector)

        assert await service.find_artist_by_name("boris") is None


@pytest.mark.asyncio
async def test_fallback_contains_mapping_errors():
    @fallback_on_error(list, "broken_mapping")
    async def broken() -> list[str]:
        raise KeyError("id")

    assert await broken() == []
