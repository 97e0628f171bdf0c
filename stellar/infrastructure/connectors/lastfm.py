"""Last.fm API integration: the similarity and tag provider.

This module talks to the Last.fm web service (directly or through the app's
``/lastfm`` proxy), converting its JSON payloads into domain records. Every
call goes through the connector's own RequestQueue.

Key components:
- LastFMConnector: Similar artists, top tags, artist info, search and
  tag listings
- TAG_BLACKLIST: Folksonomy noise that is never surfaced as a genre

Last.fm reports most failures as HTTP 200 with ``{"error": <code>, "message": ...}``.
Error 29 is its rate limit signal and pauses the queue like a 429.
"""

from typing import Any, ClassVar, Self

from attrs import define
from toolz import get_in

from stellar.config import Settings, get_logger, settings as default_settings
from stellar.domain.entities import ArtistInfo, ArtistSummary, SimilarArtist
from stellar.domain.errors import ErrorKind, ProviderError
from stellar.infrastructure.connectors.base_connector import (
    ProviderConnector,
    as_records,
    fallback_on_error,
    to_int,
)
from stellar.infrastructure.connectors.request_queue import RequestQueue
from stellar.infrastructure.http import HttpTransport

logger = get_logger(__name__).bind(service="lastfm")

# Tags that are user noise, not real genres
TAG_BLACKLIST = frozenset({
    "seen live",
    "favorites",
    "favourite",
    "my music",
    "check out",
    "awesome",
    "love",
    "beautiful",
    "cool",
    "amazing",
    "epic",
    "under 2000 listeners",
    "spotify",
    "all",
    "albums i own",
})

RATE_LIMIT_ERROR_CODES = frozenset({29})


def filter_tags(tags: list[dict[str, Any]], limit: int) -> list[str]:
    """Clean raw Last.fm tag entries into genre strings.

    Drops blacklisted and empty names, drops entries with an explicit
    non-positive count, caps to ``limit`` and lowercases/trims survivors.
    """
    cleaned = []
    for tag in tags:
        name = str(tag.get("name") or "").lower().strip()
        if not name or name in TAG_BLACKLIST:
            continue
        if tag.get("count") is not None and to_int(tag["count"], default=1) <= 0:
            continue
        cleaned.append(name)
        if len(cleaned) >= limit:
            break
    return cleaned


@define(slots=True)
class LastFMConnector(ProviderConnector):
    """Last.fm API connector with domain model conversion."""

    PROVIDER: ClassVar[str] = "lastfm"

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> Self:
        """Build a connector with its own transport and queue from settings."""
        config = config or default_settings
        default_params = {"format": "json"}
        if config.api.lastfm_api_key:
            default_params["api_key"] = config.api.lastfm_api_key

        return cls(
            transport=HttpTransport(base_url=config.api.lastfm_base_url),
            queue=RequestQueue(
                name=cls.PROVIDER,
                max_concurrent=config.api.lastfm_max_concurrent,
                request_delay=config.api.lastfm_request_delay,
                default_retry_after=config.api.default_retry_after,
            ),
            default_params=default_params,
        )

    def _extract_error(self, data: dict[str, Any]) -> ProviderError | None:
        if not data.get("error"):
            return None

        code = to_int(data["error"], default=-1)
        kind = (
            ErrorKind.RATE_LIMITED
            if code in RATE_LIMIT_ERROR_CODES
            else ErrorKind.APPLICATION
        )
        return ProviderError(
            kind,
            data.get("message") or f"Last.fm error {data['error']}",
            provider=self.PROVIDER,
            code=code,
        )

    async def _call(self, method: str, **params: Any) -> dict[str, Any]:
        return await self._get_json("", {"method": method, **params})

    @fallback_on_error(list, "lastfm_get_similar_artists")
    async def get_similar_artists(
        self, artist_name: str, limit: int = 100
    ) -> list[SimilarArtist]:
        """Get up to ``limit`` similar artists scored against ``artist_name``."""
        if not artist_name or not artist_name.strip():
            return []

        data = await self._call(
            "artist.getSimilar", artist=artist_name.strip(), limit=str(limit)
        )
        similar = [
            SimilarArtist(
                name=artist["name"],
                match_score=_to_float(artist.get("match")),
                mbid=artist.get("mbid") or None,
                url=artist.get("url") or None,
            )
            for artist in as_records(get_in(["similarartists", "artist"], data))
            if artist.get("name")
        ]
        logger.debug(f"Found {len(similar)} similar artists", artist=artist_name)
        return similar

    @fallback_on_error(list, "lastfm_get_artist_tags")
    async def get_artist_tags(self, artist_name: str, limit: int = 10) -> list[str]:
        """Get clean genre tags for an artist, most used first."""
        if not artist_name or not artist_name.strip():
            return []

        data = await self._call("artist.getTopTags", artist=artist_name.strip())
        return filter_tags(as_records(get_in(["toptags", "tag"], data)), limit)

    @fallback_on_error(lambda: None, "lastfm_get_artist_info")
    async def get_artist_info(self, artist_name: str) -> ArtistInfo | None:
        """Get full artist info including stats, tags and bio summary."""
        if not artist_name or not artist_name.strip():
            return None

        data = await self._call("artist.getInfo", artist=artist_name.strip())
        artist = data.get("artist")
        if not isinstance(artist, dict) or not artist:
            return None

        return ArtistInfo(
            name=artist.get("name", artist_name),
            mbid=artist.get("mbid") or None,
            listeners=to_int(get_in(["stats", "listeners"], artist)),
            playcount=to_int(get_in(["stats", "playcount"], artist)),
            tags=[
                str(tag.get("name", "")).lower()
                for tag in as_records(get_in(["tags", "tag"], artist))
                if tag.get("name")
            ],
            bio=get_in(["bio", "summary"], artist) or "",
            url=artist.get("url") or None,
        )

    @fallback_on_error(list, "lastfm_search_artists")
    async def search_artists(self, artist_name: str, limit: int = 5) -> list[ArtistSummary]:
        """Search artists by name."""
        if not artist_name or not artist_name.strip():
            return []

        data = await self._call(
            "artist.search", artist=artist_name.strip(), limit=str(limit)
        )
        return [
            ArtistSummary(
                name=artist["name"],
                listeners=to_int(artist.get("listeners")),
                mbid=artist.get("mbid") or None,
                url=artist.get("url") or None,
            )
            for artist in as_records(get_in(["results", "artistmatches", "artist"], data))
            if artist.get("name")
        ]

    @fallback_on_error(list, "lastfm_get_top_artists_by_tag")
    async def get_top_artists_by_tag(self, tag: str, limit: int = 50) -> list[ArtistSummary]:
        """Get the top artists for a genre tag."""
        if not tag or not tag.strip():
            return []

        data = await self._call("tag.getTopArtists", tag=tag.strip(), limit=str(limit))
        return [
            ArtistSummary(
                name=artist["name"],
                listeners=to_int(
                    get_in(["stats", "listeners"], artist) or artist.get("listeners")
                ),
                mbid=artist.get("mbid") or None,
                url=artist.get("url") or None,
            )
            for artist in as_records(get_in(["topartists", "artist"], data))
            if artist.get("name")
        ]


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
