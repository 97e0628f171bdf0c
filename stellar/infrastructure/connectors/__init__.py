"""Provider connectors for the similarity/tag and catalog/media services."""

from stellar.infrastructure.connectors.base_connector import (
    ProviderConnector,
    fallback_on_error,
    parse_retry_after,
)
from stellar.infrastructure.connectors.deezer import (
    DeezerConnector,
    map_deezer_artist,
    map_deezer_track,
)
from stellar.infrastructure.connectors.lastfm import (
    TAG_BLACKLIST,
    LastFMConnector,
    filter_tags,
)
from stellar.infrastructure.connectors.request_queue import RequestQueue

__all__ = [
    "TAG_BLACKLIST",
    "DeezerConnector",
    "LastFMConnector",
    "ProviderConnector",
    "RequestQueue",
    "fallback_on_error",
    "filter_tags",
    "map_deezer_artist",
    "map_deezer_track",
    "parse_retry_after",
]
