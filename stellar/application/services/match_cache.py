"""Memoized cross-provider artist matching.

``MatchCache`` answers "which catalog artist is this free-text name?" once per
normalized name for the lifetime of the cache. Both outcomes are cached: an
accepted ``ArtistRecord`` or ``ABSENT`` (looked up, nothing acceptable), so a
miss is not retried on every call. Concurrent lookups of the same name share
one provider search.

There is no TTL or eviction; ``clear()`` is the only way to forget.
"""

import asyncio
from collections.abc import Awaitable, Callable

from attrs import define, field

from stellar.config import get_logger
from stellar.domain.entities import ArtistRecord
from stellar.domain.matching import (
    ABSENT,
    MATCH_CONFIG,
    Absent,
    normalize_name,
    select_best_match,
)

logger = get_logger(__name__).bind(service="matching")

ArtistSearch = Callable[[str, int], Awaitable[list[ArtistRecord]]]


@define(slots=True)
class MatchCache:
    """Name to catalog artist resolution with outcome memoization.

    Attributes:
        search: Catalog search returning candidates; expected to degrade to []
            on provider failure rather than raise
        search_limit: Number of candidates requested per lookup
        min_containment_ratio: Length ratio bound for containment matches
    """

    search: ArtistSearch
    search_limit: int = 5
    min_containment_ratio: float = MATCH_CONFIG["min_containment_ratio"]
    _entries: dict[str, ArtistRecord | Absent] = field(factory=dict, init=False)
    _pending: dict[str, asyncio.Task] = field(factory=dict, init=False)
    lookup_count: int = field(default=0, init=False)
    _generation: int = field(default=0, init=False)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_name(name) in self._entries

    def get(self, name: str) -> ArtistRecord | Absent | None:
        """Cached outcome for ``name``; None means not looked up yet."""
        return self.get_by_key(normalize_name(name))

    def get_by_key(self, key: str) -> ArtistRecord | Absent | None:
        """Cached outcome for an already normalized key."""
        return self._entries.get(key)

    def clear(self) -> None:
        """Forget every cached outcome.

        Lookups already in flight still answer their own callers, but their
        outcome is not cached and later lookups start a fresh search.
        """
        self._entries.clear()
        self._pending.clear()
        self._generation += 1

    async def find_artist_by_name(self, name: str) -> ArtistRecord | None:
        """Resolve a free-text artist name to the matching catalog artist.

        Returns:
            The accepted ArtistRecord, or None when nothing acceptable exists
        """
        if not name or not name.strip():
            return None

        key = normalize_name(name)
        if not key:
            return None

        cached = self._entries.get(key)
        if cached is not None:
            return cached or None

        task = self._pending.get(key)
        if task is None:
            task = asyncio.get_running_loop().create_task(
                self._lookup(name, key, self._generation)
            )
            self._pending[key] = task

        outcome = await asyncio.shield(task)
        return outcome or None

    async def _lookup(
        self, name: str, key: str, generation: int
    ) -> ArtistRecord | Absent:
        try:
            self.lookup_count += 1
            candidates = await self.search(name, self.search_limit)
            match = select_best_match(name, candidates, self.min_containment_ratio)

            outcome: ArtistRecord | Absent
            if match is None:
                outcome = ABSENT
                logger.warning(
                    f"No catalog match among {len(candidates)} candidates",
                    artist=name,
                    candidates=[candidate.name for candidate in candidates],
                )
            else:
                outcome = match.artist
                logger.debug(
                    f"Matched via {match.method.value}",
                    artist=name,
                    matched=match.artist.name,
                    catalog_id=match.artist.id,
                )

            if generation == self._generation:
                self._entries[key] = outcome
            return outcome
        finally:
            if self._pending.get(key) is asyncio.current_task():
                del self._pending[key]
