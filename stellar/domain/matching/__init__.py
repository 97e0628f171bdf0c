"""Cross-provider artist matching: normalization, policy and result types."""

from .algorithms import (
    MATCH_CONFIG,
    is_containment_match,
    is_likely_name_only_match,
    select_best_match,
)
from .normalize import normalize_name
from .types import ABSENT, Absent, MatchMethod, MatchResult

__all__ = [
    "ABSENT",
    "MATCH_CONFIG",
    "Absent",
    "MatchMethod",
    "MatchResult",
    "is_containment_match",
    "is_likely_name_only_match",
    "normalize_name",
    "select_best_match",
]
