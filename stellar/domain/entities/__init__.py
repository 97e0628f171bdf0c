"""Domain entities for Stellar."""

from .artist import (
    ArtistInfo,
    ArtistRecord,
    ArtistSummary,
    DiscoveredArtist,
    EnrichedArtist,
    SimilarArtist,
    TrackRecord,
)

__all__ = [
    "ArtistInfo",
    "ArtistRecord",
    "ArtistSummary",
    "DiscoveredArtist",
    "EnrichedArtist",
    "SimilarArtist",
    "TrackRecord",
]
