"""Pure domain types for cross-provider artist matching."""

from enum import Enum, StrEnum, auto
from typing import Literal

from attrs import define

from stellar.domain.entities import ArtistRecord


class _Absent(Enum):
    ABSENT = auto()

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


# Cached negative outcome: looked up, nothing acceptable found
ABSENT = _Absent.ABSENT
Absent = Literal[_Absent.ABSENT]


class MatchMethod(StrEnum):
    """How a candidate was accepted."""

    EXACT = auto()
    CONTAINMENT = auto()


@define(frozen=True, slots=True)
class MatchResult:
    """Accepted candidate together with the rule that accepted it."""

    artist: ArtistRecord
    method: MatchMethod
