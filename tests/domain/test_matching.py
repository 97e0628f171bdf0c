"""Tests for artist name normalization and match selection."""

import pytest

from stellar.domain.matching import (
    ABSENT,
    MatchMethod,
    is_containment_match,
    is_likely_name_only_match,
    normalize_name,
    select_best_match,
)
from tests.conftest import make_artist


class TestNormalizeName:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("The Beatles", "beatles"),
            ("beatles", "beatles"),
            ("  THE   Beatles ", "beatles"),
            ("Guns N' Roses", "guns n roses"),
            ("Guns N’ Roses", "guns n roses"),
            ("Godspeed You! Black Emperor", "godspeed you black emperor"),
            ("AC/DC", "acdc"),
            ("Sigur  Rós", "sigur rós"),
            ("Theatre of Tragedy", "theatre of tragedy"),
            ("", ""),
            ("!!!", ""),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_name(raw) == expected

    def test_same_artist_spellings_share_a_key(self):
        assert normalize_name("The Beatles") == normalize_name("beatles")


class TestSelectBestMatch:
    def test_exact_match_wins_over_earlier_containment(self):
        candidates = [
            make_artist("2", "Boris with Merzbow"),
            make_artist("1", "Boris"),
        ]

        result = select_best_match("Boris", candidates)

        assert result is not None
        assert result.artist.id == "1"
        assert result.method is MatchMethod.EXACT

    def test_exact_match_ignores_punctuation(self):
        candidates = [make_artist("7", "Godspeed You! Black Emperor")]

        result = select_best_match("godspeed you black emperor", candidates)

        assert result is not None
        assert result.artist.id == "7"

    def test_containment_match_within_ratio(self):
        result = select_best_match("Boris", [make_artist("3", "Boris (band)")])

        assert result is not None
        assert result.method is MatchMethod.CONTAINMENT

    def test_containment_below_ratio_is_rejected(self):
        candidates = [make_artist("9", "The Eagles Tribute Band")]

        assert select_best_match("Eagles", candidates) is None

    def test_zero_ratio_accepts_any_containment(self):
        candidates = [make_artist("9", "The Eagles Tribute Band")]

        result = select_best_match("Eagles", candidates, min_containment_ratio=0.0)

        assert result is not None
        assert result.artist.id == "9"

    def test_no_first_result_fallback(self):
        candidates = [make_artist("1", "Slowdive"), make_artist("2", "Ride")]

        assert select_best_match("Mogwai", candidates) is None

    def test_empty_inputs(self):
        assert select_best_match("Mogwai", []) is None
        assert select_best_match("!!!", [make_artist("1", "Mogwai")]) is None


class TestContainment:
    def test_requires_substring(self):
        assert not is_containment_match("slowdive", "ride")

    def test_empty_keys_never_match(self):
        assert not is_containment_match("", "ride")
        assert not is_containment_match("ride", "")


class TestNameOnlyFilter:
    def test_variant_names_are_kept(self):
        assert not is_likely_name_only_match("Boris", "Boris with Merzbow")

    def test_unrelated_names_are_kept(self):
        assert not is_likely_name_only_match("Radiohead", "Portishead")

    def test_weak_shared_token_is_rejected(self):
        assert is_likely_name_only_match("DJ Shadow", "DJ Krush")

    def test_small_shared_fraction_is_rejected(self):
        assert is_likely_name_only_match("Boards of Canada", "Canada Dry Ginger")

    def test_identical_names_are_kept(self):
        assert not is_likely_name_only_match("Low", "low")


def test_absent_is_falsy():
    assert not ABSENT
    assert ABSENT is not None
