"""Unit tests for Levenshtein distance and fuzzy term lookup."""

from __future__ import annotations

import pytest

from vortex_search.search.fuzzy import (
    MAX_EDIT_DISTANCE,
    find_closest_term,
    find_fuzzy_matches,
    levenshtein_distance,
)


@pytest.mark.unit
class TestLevenshteinDistance:
    @pytest.mark.parametrize(
        ("s1", "s2", "expected"),
        [
            ("kitten", "sitting", 3),
            ("fiannce", "finance", 2),
            ("cmoputer", "computer", 2),
            ("flaw", "lawn", 2),
            ("same", "same", 0),
            ("", "abc", 3),
            ("abc", "", 3),
            ("", "", 0),
        ],
    )
    def test_distance(self, s1: str, s2: str, expected: int) -> None:
        assert levenshtein_distance(s1, s2) == expected

    def test_is_symmetric(self) -> None:
        assert levenshtein_distance("computer", "compute") == levenshtein_distance("compute", "computer") == 1

    def test_early_exit_caps_result(self) -> None:
        assert levenshtein_distance("abc", "xyz", max_distance=1) == 2

    def test_length_gap_exceeding_max_short_circuits(self) -> None:
        assert levenshtein_distance("a", "abcdef", max_distance=2) == 3

    def test_max_distance_does_not_change_results_within_bound(self) -> None:
        assert levenshtein_distance("fiannce", "finance", max_distance=2) == 2


@pytest.mark.unit
class TestFindFuzzyMatches:
    def test_sorted_by_distance_then_term(self) -> None:
        vocabulary = {"finance", "fiance", "fence", "apple"}

        matches = find_fuzzy_matches("finnce", vocabulary)

        assert matches == [("fiance", 1), ("finance", 1), ("fence", 2)]

    def test_exact_match_has_zero_distance(self) -> None:
        assert find_fuzzy_matches("apple", ["apple", "ample"]) == [("apple", 0), ("ample", 1)]

    def test_empty_query_or_negative_distance(self) -> None:
        assert find_fuzzy_matches("", ["apple"]) == []
        assert find_fuzzy_matches("apple", ["apple"], max_distance=-1) == []


@pytest.mark.unit
class TestFindClosestTerm:
    def test_corrects_transposition_within_two_edits(self) -> None:
        assert find_closest_term("fiannce", {"finance", "money", "invest"}) == ("finance", 2)

    def test_distance_three_is_rejected(self) -> None:
        assert find_closest_term("fxxxnce", {"finance"}) is None

    def test_distance_two_is_accepted(self) -> None:
        assert find_closest_term("fxxance", {"finance"}) == ("finance", 2)

    def test_tie_goes_to_alphabetically_smallest(self) -> None:
        assert find_closest_term("dart", {"cart", "bart"}) == ("bart", 1)

    def test_prefers_smaller_distance_over_alphabetical_order(self) -> None:
        assert find_closest_term("carts", {"aardvarks", "cart"}) == ("cart", 1)

    def test_empty_vocabulary(self) -> None:
        assert find_closest_term("anything", set()) is None

    def test_custom_max_distance(self) -> None:
        assert find_closest_term("fiannce", {"finance"}, max_distance=1) is None
        assert MAX_EDIT_DISTANCE == 2
