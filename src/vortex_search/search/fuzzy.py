"""Fuzzy matching for typo-tolerant search.

Unknown query tokens are compared against every term in the vocabulary with
the Levenshtein edit distance. The closest term within ``MAX_EDIT_DISTANCE``
replaces the token. The scan is linear in the vocabulary size, which is fine
for the small corpora this engine targets.
"""

from __future__ import annotations

from collections.abc import Iterable


MAX_EDIT_DISTANCE = 2


def levenshtein_distance(s1: str, s2: str, max_distance: int | None = None) -> int:
    """Calculate the Levenshtein (edit) distance between two strings.

    Uses dynamic programming for O(m*n) time complexity, with optional
    early termination when distance exceeds max_distance.

    Args:
        s1: First string.
        s2: Second string.
        max_distance: If provided, return max_distance+1 early when
            distance is guaranteed to exceed this threshold.

    Returns:
        The minimum number of single-character edits (insertions,
        deletions, substitutions) needed to change s1 into s2.
        If max_distance is set and exceeded, returns max_distance+1.

    Examples:
        >>> levenshtein_distance("kitten", "sitting")
        3
        >>> levenshtein_distance("fiannce", "finance")
        2
        >>> levenshtein_distance("", "abc")
        3
    """
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    # Shorter string as columns
    if len(s1) > len(s2):
        s1, s2 = s2, s1

    m, n = len(s1), len(s2)

    if max_distance is not None and n - m > max_distance:
        return max_distance + 1

    prev_row = list(range(m + 1))
    curr_row = [0] * (m + 1)

    for j in range(1, n + 1):
        curr_row[0] = j
        row_min = curr_row[0]
        for i in range(1, m + 1):
            cost = 0 if s1[i - 1] == s2[j - 1] else 1
            curr_row[i] = min(
                prev_row[i] + 1,  # deletion
                curr_row[i - 1] + 1,  # insertion
                prev_row[i - 1] + cost,  # substitution
            )
            row_min = min(row_min, curr_row[i])

        if max_distance is not None and row_min > max_distance:
            return max_distance + 1

        prev_row, curr_row = curr_row, prev_row

    return prev_row[m]


def find_fuzzy_matches(
    query_term: str,
    vocabulary: Iterable[str],
    max_distance: int = MAX_EDIT_DISTANCE,
) -> list[tuple[str, int]]:
    """Find terms in vocabulary within ``max_distance`` edits of the query term.

    Returns:
        List of (matching_term, edit_distance) tuples, sorted by edit
        distance and then alphabetically. Exact matches have distance 0.
    """
    if not query_term or max_distance < 0:
        return []

    matches: list[tuple[str, int]] = []
    for term in vocabulary:
        if abs(len(query_term) - len(term)) > max_distance:
            continue
        distance = levenshtein_distance(query_term, term, max_distance)
        if distance <= max_distance:
            matches.append((term, distance))

    matches.sort(key=lambda match: (match[1], match[0]))
    return matches


def find_closest_term(
    word: str,
    vocabulary: Iterable[str],
    max_distance: int = MAX_EDIT_DISTANCE,
) -> tuple[str, int] | None:
    """Return the vocabulary term closest to ``word`` and its distance.

    Ties at the minimum distance go to the alphabetically smallest term so
    the result does not depend on set iteration order. Returns ``None`` when
    nothing is within ``max_distance`` (inclusive).
    """
    matches = find_fuzzy_matches(word, vocabulary, max_distance)
    if not matches:
        return None
    return matches[0]
