"""Batch enrichment of free-text artist names with catalog records."""

import asyncio

from attrs import define, field, validators
from toolz import partition_all

from stellar.config import get_logger
from stellar.domain.entities import ArtistRecord
from stellar.domain.matching import ABSENT, normalize_name

from .match_cache import MatchCache

logger = get_logger(__name__).bind(service="enrichment")


@define(slots=True)
class EnrichmentCoordinator:
    """Fans artist names out through the MatchCache in bounded batches.

    Each batch is awaited in full before the next one starts, so at most
    ``batch_size`` lookups are outstanding at once on top of whatever the
    provider queue admits.
    """

    match_cache: MatchCache
    batch_size: int = field(default=10, validator=validators.gt(0))

    async def enrich(self, names: list[str]) -> dict[str, ArtistRecord]:
        """Resolve names to catalog artists.

        Names are deduplicated by normalized form. Cached names are served
        first without provider calls; cached misses are left out of the
        result. Uncached names are looked up in batches.

        Returns:
            Mapping of normalized name to ArtistRecord, in order of resolution
        """
        enriched: dict[str, ArtistRecord] = {}
        uncached: dict[str, str] = {}

        for name in names:
            key = normalize_name(name) if name else ""
            if not key or key in enriched or key in uncached:
                continue

            cached = self.match_cache.get_by_key(key)
            if cached is None:
                uncached[key] = name
            elif cached is not ABSENT:
                enriched[key] = cached

        if not uncached:
            return enriched

        total_batches = (len(uncached) + self.batch_size - 1) // self.batch_size
        logger.debug(
            f"Enriching {len(uncached)} uncached artists in {total_batches} batches",
            cached=len(enriched),
        )

        for batch_number, batch in enumerate(
            partition_all(self.batch_size, uncached.items()), start=1
        ):
            results = await asyncio.gather(
                *(self.match_cache.find_artist_by_name(name) for _, name in batch),
                return_exceptions=True,
            )

            for (key, name), result in zip(batch, results, strict=True):
                if isinstance(result, Exception):
                    logger.error(
                        "Artist lookup failed",
                        artist=name,
                        error=str(result),
                        error_type=type(result).__name__,
                    )
                elif result is not None:
                    enriched[key] = result

            logger.debug(f"Batch {batch_number}/{total_batches} complete")

        return enriched
