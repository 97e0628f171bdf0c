"""Pure algorithms for reconciling artist names across providers.

These functions contain no I/O and implement the rules deciding whether a
catalog candidate is the same artist as a free-text query, and whether a
similarity result only showed up because it shares a name fragment with the
seed.
"""

import re

from stellar.domain.entities import ArtistRecord

from .normalize import normalize_name
from .types import MatchMethod, MatchResult

MATCH_CONFIG = {
    # Minimum shorter/longer length ratio for containment matches
    "min_containment_ratio": 0.5,
    # Name-only filter
    "weak_token_max_length": 2,
    "partial_seed_min_length": 4,
    "partial_candidate_min_length": 3,
    "min_shared_ratio": 0.5,
}

FILLER_WORDS = frozenset({
    "the", "a", "an", "of", "and", "&", "de", "la", "el", "le", "los", "las",
    "les", "von", "van", "der", "die", "das",
})

_TOKEN_SPLIT = re.compile(r"[\s\-_.,!?&]+")
_NON_TOKEN_CHARS = re.compile(r"[^a-z0-9]")


def is_containment_match(
    query_key: str,
    candidate_key: str,
    min_ratio: float = MATCH_CONFIG["min_containment_ratio"],
) -> bool:
    """Check whether one normalized name contains the other.

    Containment is bounded by a length ratio so a short, generic query cannot
    match a much longer unrelated name ("eagles" vs "eagles tribute band").
    A ``min_ratio`` of 0.0 accepts any containment.
    """
    if not query_key or not candidate_key:
        return False
    if query_key not in candidate_key and candidate_key not in query_key:
        return False

    shorter, longer = sorted((len(query_key), len(candidate_key)))
    return shorter / longer >= min_ratio


def select_best_match(
    query: str,
    candidates: list[ArtistRecord],
    min_containment_ratio: float = MATCH_CONFIG["min_containment_ratio"],
) -> MatchResult | None:
    """Pick the candidate that is the same artist as ``query``.

    Rules, applied in order across all candidates, first match wins:
    1. Exact: normalized names are equal.
    2. Containment: one normalized name contains the other.

    Returns None when no candidate is acceptable. There is deliberately no
    "first result" fallback.
    """
    query_key = normalize_name(query)
    if not query_key:
        return None

    keyed = [(normalize_name(candidate.name), candidate) for candidate in candidates]

    for candidate_key, candidate in keyed:
        if candidate_key == query_key:
            return MatchResult(artist=candidate, method=MatchMethod.EXACT)

    for candidate_key, candidate in keyed:
        if is_containment_match(query_key, candidate_key, min_containment_ratio):
            return MatchResult(artist=candidate, method=MatchMethod.CONTAINMENT)

    return None


def _tokenize(name: str) -> list[str]:
    tokens = (_NON_TOKEN_CHARS.sub("", token) for token in _TOKEN_SPLIT.split(name))
    return [token for token in tokens if token and token not in FILLER_WORDS]


def _is_weak_token(token: str) -> bool:
    return len(token) <= MATCH_CONFIG["weak_token_max_length"] or token.isdigit()


def is_likely_name_only_match(seed_name: str, candidate_name: str) -> bool:
    """Detect a similarity result that only matched on a superficial name fragment.

    Returns True when the candidate should be rejected.
    """
    seed = seed_name.lower().strip()
    candidate = candidate_name.lower().strip()

    if seed == candidate:
        return False
    # One contains the other fully: likely a variant, keep it
    if seed in candidate or candidate in seed:
        return False

    seed_tokens = _tokenize(seed)
    candidate_tokens = _tokenize(candidate)
    if not seed_tokens or not candidate_tokens:
        return False

    shared_exact = [token for token in seed_tokens if token in candidate_tokens]
    shared_partial = [
        ct
        for ct in candidate_tokens
        if ct not in shared_exact
        and any(
            len(st) >= MATCH_CONFIG["partial_seed_min_length"]
            and len(ct) >= MATCH_CONFIG["partial_candidate_min_length"]
            and (st.startswith(ct) or ct.startswith(st))
            for st in seed_tokens
        )
    ]

    all_shared = shared_exact + shared_partial
    # No shared tokens: the match is musical, not textual
    if not all_shared:
        return False

    if all(_is_weak_token(token) for token in all_shared):
        return True

    candidate_non_shared = [ct for ct in candidate_tokens if ct not in all_shared]
    if candidate_non_shared and len(shared_exact) <= 1 and len(shared_partial) <= 1:
        shared_chars = sum(len(token) for token in all_shared)
        total_chars = sum(len(token) for token in candidate_tokens)
        if shared_chars / total_chars < MATCH_CONFIG["min_shared_ratio"]:
            return True

    return False
