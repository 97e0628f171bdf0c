"""Application services: matching, enrichment and the unified music service."""

from .enrichment import EnrichmentCoordinator
from .match_cache import MatchCache
from .music_service import MusicService

__all__ = ["EnrichmentCoordinator", "MatchCache", "MusicService"]
