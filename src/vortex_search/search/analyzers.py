"""Text analysis for the search engine.

Raw text goes through a fixed pipeline before it reaches the index or the
ranking model:

1. ``normalize`` lowercases, turns dashes/underscores into spaces, drops
   everything that is not ``[a-z0-9]`` or whitespace and collapses spaces.
2. Stopwords are removed.
3. ``stem`` strips one suffix using an ordered rule table.
4. Adjacent stems are joined into bigrams which are appended after the
   unigrams.

The same analyzer is used for documents and for queries, so stemmed and
bigram query terms line up with the indexed ones.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
import re


# fmt: off
DEFAULT_STOPWORDS: frozenset[str] = frozenset(
    [
        "a", "about", "above", "after", "again", "against", "all", "am", "an", "and", "any", "are", "as", "at",
        "be", "because", "been", "before", "being", "below", "between", "both", "but", "by", "cannot", "could",
        "did", "do", "does", "doing", "down", "during", "each", "few", "for", "from", "further", "had", "has",
        "have", "having", "he", "her", "here", "hers", "herself", "him", "himself", "his", "how", "i", "if", "in",
        "into", "is", "it", "its", "itself", "me", "more", "most", "my", "myself", "no", "nor", "not", "of", "off",
        "on", "once", "only", "or", "other", "ought", "our", "ours", "ourselves", "out", "over", "own", "same",
        "she", "should", "so", "some", "such", "than", "that", "the", "their", "theirs", "them", "themselves",
        "then", "there", "these", "they", "this", "those", "through", "to", "too", "under", "until", "up", "very",
        "was", "we", "were", "what", "when", "where", "which", "while", "who", "whom", "why", "with", "would",
        "you", "your", "yours", "yourself", "yourselves",
        # conversational fillers
        "hey", "hello", "hi", "please", "tell", "say", "ask", "kindly", "ok", "okay", "alright", "thanks",
        "thank", "greetings",
    ]
)
# fmt: on

# Order matters: the first matching suffix wins and only one rule is applied.
SUFFIX_RULES: tuple[tuple[str, str], ...] = (
    ("ational", "ate"),
    ("tional", "tion"),
    ("enci", "ence"),
    ("anci", "ance"),
    ("izer", "ize"),
    ("bli", "ble"),
    ("alli", "al"),
    ("entli", "ent"),
    ("eli", "e"),
    ("ousli", "ous"),
    ("ization", "ize"),
    ("ation", "ate"),
    ("ator", "ate"),
    ("alism", "al"),
    ("iveness", "ive"),
    ("fulness", "ful"),
    ("ousness", "ous"),
    ("aliti", "al"),
    ("iviti", "ive"),
    ("biliti", "ble"),
    ("logi", "log"),
    ("ing", ""),
    ("ed", ""),
    ("es", ""),
    ("s", ""),
    ("ly", ""),
)

MIN_STEM_LENGTH = 3

_SEPARATOR_PATTERN = re.compile(r"[-_]")
_INVALID_CHAR_PATTERN = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Lowercase ``text`` and reduce it to ``[a-z0-9]`` words separated by single spaces."""

    lowered = _SEPARATOR_PATTERN.sub(" ", text.lower())
    stripped = _INVALID_CHAR_PATTERN.sub("", lowered)
    return _WHITESPACE_PATTERN.sub(" ", stripped).strip()


def stem(word: str, rules: Sequence[tuple[str, str]] = SUFFIX_RULES) -> str:
    """Strip the first matching suffix from ``word``.

    Words shorter than three characters are returned unchanged, as are words
    that match no rule. Rules are never applied repeatedly.

    Examples:
        >>> stem("relational")
        'relate'
        >>> stem("jumps")
        'jump'
        >>> stem("is")
        'is'
    """
    if len(word) < MIN_STEM_LENGTH:
        return word
    for suffix, replacement in rules:
        if word.endswith(suffix):
            return word[: -len(suffix)] + replacement
    return word


def generate_ngrams(tokens: Sequence[str], n: int) -> list[str]:
    """Return every run of ``n`` adjacent tokens joined by a single space."""

    if len(tokens) < n:
        return []
    return [" ".join(tokens[i : i + n]) for i in range(len(tokens) - n + 1)]


class TextAnalyzer:
    """Turns raw text into the token sequence used for indexing and querying."""

    def __init__(
        self,
        *,
        stopwords: Iterable[str] | None = None,
        stemmer: Callable[[str], str] = stem,
        ngram_size: int = 2,
    ) -> None:
        self.stopwords = frozenset(stopwords) if stopwords is not None else DEFAULT_STOPWORDS
        self.stemmer = stemmer
        self.ngram_size = ngram_size

    def words(self, text: str) -> list[str]:
        """Return stemmed unigrams in their original order."""
        return [self.stemmer(word) for word in normalize(text).split(" ") if word and word not in self.stopwords]

    def __call__(self, text: str) -> list[str]:
        unigrams = self.words(text)
        return unigrams + generate_ngrams(unigrams, self.ngram_size)


_DEFAULT_ANALYZER = TextAnalyzer()


def tokenize(text: str) -> list[str]:
    """Tokenize ``text`` with the default stopwords and stemmer."""
    return _DEFAULT_ANALYZER(text)
