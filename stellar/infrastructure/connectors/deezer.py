"""Deezer API integration: the catalog and media provider.

Provides artist search, related artists, top tracks (with 30-second preview
URLs) and artist lookups, converted to ``ArtistRecord``/``TrackRecord``.

Deezer reports application errors as HTTP 200 with
``{"error": {"type": ..., "message": ..., "code": ...}}``. Code 4 is its
quota signal and pauses the queue like a 429.
"""

from typing import Any, ClassVar, Self

from attrs import define
from toolz import get_in

from stellar.config import Settings, get_logger, settings as default_settings
from stellar.domain.entities import ArtistRecord, TrackRecord
from stellar.domain.errors import ErrorKind, ProviderError
from stellar.infrastructure.connectors.base_connector import (
    ProviderConnector,
    as_records,
    fallback_on_error,
    to_int,
)
from stellar.infrastructure.connectors.request_queue import RequestQueue
from stellar.infrastructure.http import HttpTransport

logger = get_logger(__name__).bind(service="deezer")

RATE_LIMIT_ERROR_CODES = frozenset({4})
MIN_SEARCH_QUERY_LENGTH = 2


def map_deezer_artist(artist: dict[str, Any]) -> ArtistRecord:
    """Convert a Deezer artist payload to an ArtistRecord."""
    artist_id = str(artist["id"])
    return ArtistRecord(
        id=artist_id,
        name=str(artist.get("name") or ""),
        fan_count=to_int(artist.get("nb_fan")),
        image_url=artist.get("picture_medium") or artist.get("picture") or None,
        image_large_url=artist.get("picture_big") or artist.get("picture_xl") or None,
        external_url=artist.get("link") or f"https://www.deezer.com/artist/{artist_id}",
        provider_id="deezer",
    )


def map_deezer_track(track: dict[str, Any]) -> TrackRecord:
    """Convert a Deezer track payload to a TrackRecord."""
    track_id = str(track["id"])
    album = track.get("album")
    if not isinstance(album, dict):
        album = {}
    return TrackRecord(
        id=track_id,
        name=track.get("title") or track.get("title_short") or "",
        preview_url=track.get("preview") or None,
        duration_ms=(to_int(track.get("duration")) or 30) * 1000,
        album_name=album.get("title") or "",
        album_image_url=album.get("cover_medium") or album.get("cover") or None,
        album_image_large_url=album.get("cover_big") or album.get("cover_xl") or None,
        artist_name=get_in(["artist", "name"], track) or "",
        artist_id=str(get_in(["artist", "id"], track) or ""),
        external_url=track.get("link") or f"https://www.deezer.com/track/{track_id}",
    )


@define(slots=True)
class DeezerConnector(ProviderConnector):
    """Deezer API connector with domain model conversion."""

    PROVIDER: ClassVar[str] = "deezer"

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> Self:
        """Build a connector with its own transport and queue from settings."""
        config = config or default_settings
        return cls(
            transport=HttpTransport(base_url=config.api.deezer_base_url),
            queue=RequestQueue(
                name=cls.PROVIDER,
                max_concurrent=config.api.deezer_max_concurrent,
                request_delay=config.api.deezer_request_delay,
                default_retry_after=config.api.default_retry_after,
            ),
        )

    def _extract_error(self, data: dict[str, Any]) -> ProviderError | None:
        error = data.get("error")
        if not error:
            return None
        if not isinstance(error, dict):
            error = {"message": str(error)}

        code = to_int(error.get("code"), default=-1)
        kind = (
            ErrorKind.RATE_LIMITED
            if code in RATE_LIMIT_ERROR_CODES
            else ErrorKind.APPLICATION
        )
        return ProviderError(
            kind,
            error.get("message") or f"Deezer error {error.get('type', 'unknown')}",
            provider=self.PROVIDER,
            code=code,
        )

    @fallback_on_error(list, "deezer_search_artists")
    async def search_artists(self, query: str, limit: int = 6) -> list[ArtistRecord]:
        """Search artists by name; queries shorter than two characters return []."""
        if not query or len(query.strip()) < MIN_SEARCH_QUERY_LENGTH:
            return []

        data = await self._get_json(
            "/search/artist", {"q": query.strip(), "limit": limit}
        )
        artists = [
            map_deezer_artist(artist)
            for artist in as_records(data.get("data"))
            if artist.get("id") is not None
        ]
        logger.debug(f"Search returned {len(artists)} artists", query=query)
        return artists

    @fallback_on_error(list, "deezer_get_related_artists")
    async def get_related_artists(self, artist_id: str) -> list[ArtistRecord]:
        """Get artists Deezer considers related to ``artist_id``."""
        if not str(artist_id).strip():
            return []

        data = await self._get_json(f"/artist/{artist_id}/related")
        return [
            map_deezer_artist(artist)
            for artist in as_records(data.get("data"))
            if artist.get("id") is not None
        ]

    @fallback_on_error(list, "deezer_get_artist_top_tracks")
    async def get_artist_top_tracks(
        self, artist_id: str, limit: int = 5
    ) -> list[TrackRecord]:
        """Get an artist's top tracks, including preview URLs."""
        if not str(artist_id).strip():
            return []

        data = await self._get_json(f"/artist/{artist_id}/top", {"limit": limit})
        return [
            map_deezer_track(track)
            for track in as_records(data.get("data"))
            if track.get("id") is not None
        ]

    @fallback_on_error(lambda: None, "deezer_get_artist")
    async def get_artist(self, artist_id: str) -> ArtistRecord | None:
        """Get full artist details by Deezer ID."""
        if not str(artist_id).strip():
            return None

        data = await self._get_json(f"/artist/{artist_id}")
        if data.get("id") is None:
            return None
        return map_deezer_artist(data)
