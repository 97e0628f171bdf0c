"""Unified music service combining both providers.

Last.fm supplies similarity scores and genre tags; Deezer supplies catalog
identity, imagery, fan counts and preview tracks. Names coming from Last.fm
are reconciled with Deezer through the MatchCache, so every similar-artist
listing is enriched with at most one catalog search per distinct name per
session.

All public methods degrade to empty results on provider failure.
"""

import asyncio
from collections.abc import Iterable
from typing import Self

from attrs import define, field

from stellar.config import Settings, get_logger, settings as default_settings
from stellar.domain.entities import (
    ArtistRecord,
    DiscoveredArtist,
    EnrichedArtist,
    SimilarArtist,
    TrackRecord,
)
from stellar.domain.matching import is_likely_name_only_match, normalize_name
from stellar.infrastructure.connectors import DeezerConnector, LastFMConnector

from .enrichment import EnrichmentCoordinator
from .match_cache import MatchCache

logger = get_logger(__name__).bind(service="music")

SIMILAR_LIMIT = 100
DEEP_CUT_SIMILAR_LIMIT = 30
SEARCH_TAG_LIMIT = 5


def _fallback_id(similar: SimilarArtist) -> str:
    return f"lastfm-{similar.mbid or similar.name}"


def _to_discovered(
    similar: SimilarArtist,
    catalog: ArtistRecord | None,
    match_score: float | None = None,
    **extra,
) -> DiscoveredArtist:
    return DiscoveredArtist(
        id=catalog.id if catalog else _fallback_id(similar),
        name=similar.name,
        match_score=similar.match_score if match_score is None else match_score,
        fan_count=(catalog.fan_count or 0) if catalog else 0,
        image_url=catalog.image_url if catalog else None,
        image_large_url=catalog.image_large_url if catalog else None,
        external_url=(catalog.external_url if catalog else "") or similar.url or "",
        **extra,
    )


@define(slots=True)
class MusicService:
    """Query surface over the similarity/tag and catalog/media providers."""

    lastfm: LastFMConnector
    deezer: DeezerConnector
    match_cache: MatchCache
    enrichment: EnrichmentCoordinator
    _similar_cache: dict[str, list[SimilarArtist]] = field(factory=dict, init=False)

    @classmethod
    def create(
        cls,
        lastfm: LastFMConnector,
        deezer: DeezerConnector,
        config: Settings | None = None,
    ) -> Self:
        """Wire the match cache and enrichment coordinator around two connectors."""
        config = config or default_settings
        match_cache = MatchCache(
            search=deezer.search_artists,
            search_limit=config.matching.search_limit,
            min_containment_ratio=config.matching.min_containment_ratio,
        )
        return cls(
            lastfm=lastfm,
            deezer=deezer,
            match_cache=match_cache,
            enrichment=EnrichmentCoordinator(
                match_cache=match_cache,
                batch_size=config.matching.enrichment_batch_size,
            ),
        )

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> Self:
        config = config or default_settings
        return cls.create(
            LastFMConnector.from_settings(config),
            DeezerConnector.from_settings(config),
            config,
        )

    # ------------------------------------------------------------------
    # Catalog surface
    # ------------------------------------------------------------------

    async def get_related_artists(self, artist_id: str) -> list[ArtistRecord]:
        return await self.deezer.get_related_artists(artist_id)

    async def get_artist_top_tracks(self, artist_id: str, limit: int = 5) -> list[TrackRecord]:
        return await self.deezer.get_artist_top_tracks(artist_id, limit)

    async def get_artist(self, artist_id: str) -> ArtistRecord | None:
        return await self.deezer.get_artist(artist_id)

    async def find_artist_by_name(self, name: str) -> ArtistRecord | None:
        """Best catalog match for a free-text name, or None."""
        return await self.match_cache.find_artist_by_name(name)

    async def enrich_artists_from_deezer(self, names: list[str]) -> dict[str, ArtistRecord]:
        """Catalog records for many names, keyed by normalized name."""
        return await self.enrichment.enrich(names)

    def clear_cache(self) -> None:
        """Forget similar-artist listings and every cached catalog match."""
        self._similar_cache.clear()
        self.match_cache.clear()

    # ------------------------------------------------------------------
    # Search and discovery
    # ------------------------------------------------------------------

    async def search_artists(self, query: str, limit: int = 6) -> list[DiscoveredArtist]:
        """Search the catalog and attach genre tags to each result."""
        if not query or len(query.strip()) < 2:
            return []

        artists = await self.deezer.search_artists(query, limit)
        if not artists:
            return []

        all_tags = await asyncio.gather(
            *(self.lastfm.get_artist_tags(artist.name, SEARCH_TAG_LIMIT) for artist in artists)
        )
        return [
            DiscoveredArtist(
                id=artist.id,
                name=artist.name,
                genres=tags,
                fan_count=artist.fan_count or 0,
                image_url=artist.image_url,
                image_large_url=artist.image_large_url,
                external_url=artist.external_url,
            )
            for artist, tags in zip(artists, all_tags, strict=True)
        ]

    async def _similar_for(self, artist_name: str, limit: int) -> list[SimilarArtist]:
        key = normalize_name(artist_name)
        if key not in self._similar_cache:
            self._similar_cache[key] = await self.lastfm.get_similar_artists(
                artist_name, limit
            )
        return self._similar_cache[key]

    async def discover_related_artists(
        self,
        seed_name: str,
        seed_names: Iterable[str] = (),
        limit: int = 25,
    ) -> list[DiscoveredArtist]:
        """Similar artists for one seed, without seeds or name-only matches."""
        seed_keys = {normalize_name(name) for name in seed_names}
        similar = await self._similar_for(seed_name, SIMILAR_LIMIT)

        top = [
            artist
            for artist in similar
            if normalize_name(artist.name) not in seed_keys
            and not is_likely_name_only_match(seed_name, artist.name)
        ][:limit]
        logger.debug(
            f"Kept {len(top)} of {len(similar)} similar artists", seed=seed_name
        )

        catalog = await self.enrich_artists_from_deezer([artist.name for artist in top])
        return [
            _to_discovered(artist, catalog.get(normalize_name(artist.name)))
            for artist in top
        ]

    async def discover_deep_cuts(
        self,
        intermediates: list[DiscoveredArtist],
        seed_names: Iterable[str] = (),
        limit: int = 15,
    ) -> list[DiscoveredArtist]:
        """Second-hop discovery: artists similar to previously discovered ones."""
        excluded = {normalize_name(name) for name in seed_names}
        excluded |= {normalize_name(artist.name) for artist in intermediates}
        candidates: dict[str, tuple[SimilarArtist, DiscoveredArtist]] = {}

        for intermediate in intermediates:
            if len(candidates) >= limit:
                break

            for similar in await self._similar_for(intermediate.name, DEEP_CUT_SIMILAR_LIMIT):
                key = normalize_name(similar.name)
                if key in excluded or key in candidates:
                    continue
                if is_likely_name_only_match(intermediate.name, similar.name):
                    continue

                candidates[key] = (similar, intermediate)
                if len(candidates) >= limit:
                    break

        catalog = await self.enrich_artists_from_deezer(
            [similar.name for similar, _ in candidates.values()]
        )
        return [
            _to_discovered(similar, catalog.get(key), discovered_via=via.id)
            for key, (similar, via) in candidates.items()
        ]

    async def discover_bridge_artists(
        self,
        seed_a: ArtistRecord | DiscoveredArtist,
        seed_b: ArtistRecord | DiscoveredArtist,
        limit: int = 8,
    ) -> list[DiscoveredArtist]:
        """Artists similar to both seeds, strongest combined score first."""
        similar_a = await self._similar_for(seed_a.name, SIMILAR_LIMIT)
        similar_b = {
            normalize_name(artist.name): artist
            for artist in await self._similar_for(seed_b.name, SIMILAR_LIMIT)
        }

        bridges: list[tuple[float, SimilarArtist]] = []
        for artist in similar_a:
            match_b = similar_b.get(normalize_name(artist.name))
            if match_b is None:
                continue
            if is_likely_name_only_match(
                seed_a.name, artist.name
            ) and is_likely_name_only_match(seed_b.name, artist.name):
                continue
            bridges.append((artist.match_score + match_b.match_score, artist))

        bridges.sort(key=lambda bridge: bridge[0], reverse=True)
        top = bridges[:limit]

        catalog = await self.enrich_artists_from_deezer([artist.name for _, artist in top])
        return [
            _to_discovered(
                artist,
                catalog.get(normalize_name(artist.name)),
                # Average of both seeds' scores
                match_score=combined / 2,
                is_bridge=True,
                bridges_between=(seed_a.id, seed_b.id),
            )
            for combined, artist in top
        ]

    async def find_artist_track(self, artist_name: str) -> TrackRecord | None:
        """A playable track for an artist, preferring one with a preview URL."""
        artist = await self.find_artist_by_name(artist_name)
        if artist is None:
            return None

        tracks = await self.deezer.get_artist_top_tracks(artist.id, 5)
        if not tracks:
            return None
        return next((track for track in tracks if track.preview_url), tracks[0])

    async def enrich_artists(self, names: list[str]) -> dict[str, EnrichedArtist]:
        """Catalog data and genre tags for each name, keyed by normalized name."""
        unique: dict[str, str] = {}
        for name in names:
            key = normalize_name(name) if name else ""
            if key and key not in unique:
                unique[key] = name

        catalog, tag_lists = await asyncio.gather(
            self.enrich_artists_from_deezer(list(unique.values())),
            asyncio.gather(
                *(
                    self.lastfm.get_artist_tags(name, SEARCH_TAG_LIMIT)
                    for name in unique.values()
                )
            ),
        )

        enriched: dict[str, EnrichedArtist] = {}
        for key, tags in zip(unique, tag_lists, strict=True):
            artist = catalog.get(key)
            enriched[key] = EnrichedArtist(
                id=artist.id if artist else None,
                image_url=artist.image_url if artist else None,
                image_large_url=artist.image_large_url if artist else None,
                fan_count=(artist.fan_count or 0) if artist else 0,
                external_url=artist.external_url if artist else "",
                genres=tags,
            )
        return enriched

    async def aclose(self) -> None:
        await asyncio.gather(self.lastfm.aclose(), self.deezer.aclose())
