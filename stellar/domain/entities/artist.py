"""Artist and track domain entities.

Immutable records built from provider responses. Catalog records
(``ArtistRecord``, ``TrackRecord``) come from the catalog/media provider;
``SimilarArtist``, ``ArtistSummary`` and ``ArtistInfo`` come from the
similarity/tag provider.
"""

from attrs import define, field, validators


@define(frozen=True, slots=True)
class ArtistRecord:
    """Catalog artist with imagery and popularity.

    Attributes:
        id: Provider-specific artist ID (always a string)
        name: Display name as known by the provider
        external_url: Public page for the artist
        provider_id: Name of the provider the record came from
        image_url: Medium sized picture, if any
        image_large_url: Large picture, if any
        fan_count: Provider fan count, None when unknown
    """

    id: str = field(validator=validators.instance_of(str))
    name: str = field(validator=validators.instance_of(str))
    external_url: str = ""
    provider_id: str = "deezer"
    image_url: str | None = None
    image_large_url: str | None = None
    fan_count: int | None = None


@define(frozen=True, slots=True)
class TrackRecord:
    """Catalog track with an optional 30-second preview."""

    id: str
    name: str
    duration_ms: int
    album_name: str
    artist_name: str
    artist_id: str
    external_url: str
    preview_url: str | None = None
    album_image_url: str | None = None
    album_image_large_url: str | None = None


@define(frozen=True, slots=True)
class SimilarArtist:
    """Artist returned by a similarity lookup, scored 0..1 against the seed."""

    name: str
    match_score: float = 0.0
    mbid: str | None = None
    url: str | None = None


@define(frozen=True, slots=True)
class ArtistSummary:
    """Search or tag listing entry from the similarity/tag provider."""

    name: str
    listeners: int = 0
    mbid: str | None = None
    url: str | None = None


@define(frozen=True, slots=True)
class ArtistInfo:
    """Full artist profile from the similarity/tag provider."""

    name: str
    mbid: str | None = None
    listeners: int = 0
    playcount: int = 0
    tags: list[str] = field(factory=list)
    bio: str = ""
    url: str | None = None


@define(frozen=True, slots=True)
class DiscoveredArtist:
    """Unified artist produced by discovery: similarity data plus catalog data.

    ``id`` falls back to ``lastfm-<mbid or name>`` when no catalog match exists.
    """

    id: str
    name: str
    match_score: float = 0.0
    genres: list[str] = field(factory=list)
    fan_count: int = 0
    image_url: str | None = None
    image_large_url: str | None = None
    external_url: str = ""
    discovered_via: str | None = None
    is_bridge: bool = False
    bridges_between: tuple[str, str] | None = None


@define(frozen=True, slots=True)
class EnrichedArtist:
    """Catalog imagery plus genre tags for one artist name."""

    id: str | None = None
    image_url: str | None = None
    image_large_url: str | None = None
    fan_count: int = 0
    external_url: str = ""
    genres: list[str] = field(factory=list)
