"""Shared test fixtures and helpers."""

from collections.abc import Callable

import httpx
import pytest

from stellar.domain.entities import ArtistRecord
from stellar.infrastructure.connectors import (
    DeezerConnector,
    LastFMConnector,
    RequestQueue,
)
from stellar.infrastructure.http import HttpTransport

Handler = Callable[[httpx.Request], httpx.Response]


def make_artist(artist_id: str, name: str, **kwargs) -> ArtistRecord:
    """Create a catalog artist with sensible defaults."""
    return ArtistRecord(id=artist_id, name=name, **kwargs)


def make_transport(handler: Handler, base_url: str) -> HttpTransport:
    """Transport served by an in-process handler, without network retries."""
    return HttpTransport(
        base_url=base_url,
        transport=httpx.MockTransport(handler),
        retry_count=0,
    )


@pytest.fixture
def lastfm_factory():
    """Build a LastFMConnector served by a mock handler."""

    def factory(handler: Handler, **queue_kwargs) -> LastFMConnector:
        queue_kwargs.setdefault("request_delay", 0.0)
        queue_kwargs.setdefault("default_retry_after", 0.01)
        return LastFMConnector(
            transport=make_transport(handler, "http://test/lastfm"),
            queue=RequestQueue(name="lastfm", **queue_kwargs),
            default_params={"format": "json", "api_key": "test-key"},
        )

    return factory


@pytest.fixture
def deezer_factory():
    """Build a DeezerConnector served by a mock handler."""

    def factory(handler: Handler, **queue_kwargs) -> DeezerConnector:
        queue_kwargs.setdefault("request_delay", 0.0)
        queue_kwargs.setdefault("default_retry_after", 0.01)
        return DeezerConnector(
            transport=make_transport(handler, "http://test/deezer"),
            queue=RequestQueue(name="deezer", **queue_kwargs),
        )

    return factory
