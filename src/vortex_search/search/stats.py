"""BM25 ranking model.

``BM25Model`` keeps the corpus-wide statistics (document frequencies,
document lengths and the running average length) and scores a single
(term, document) pair. The pure helpers ``calculate_idf`` and ``bm25`` hold
the formulas so they can be tested without building a model.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import math
from typing import Any


DEFAULT_K1 = 1.5
DEFAULT_B = 0.75


def calculate_idf(doc_freq: int, total_docs: int) -> float:
    """Return the BM25 inverse document frequency.

    ``ln((N - df + 0.5) / (df + 0.5) + 1)``. The ``+ 1`` inside the log keeps
    the value positive even for a term present in every document.
    """

    return math.log((total_docs - doc_freq + 0.5) / (doc_freq + 0.5) + 1)


def bm25(tf: int, doc_length: int, avg_doc_length: float, *, k1: float = DEFAULT_K1, b: float = DEFAULT_B) -> float:
    """Compute the BM25 term weight without IDF."""

    if tf <= 0:
        return 0.0
    denominator = tf + k1 * (1 - b + b * (doc_length / avg_doc_length))
    return (tf * (k1 + 1)) / denominator


@dataclass
class BM25Model:
    """Corpus statistics plus the BM25 scoring function.

    ``train`` must be called exactly once per ingested document. Invariants
    after every call: ``avg_doc_len == total_doc_len / total_docs`` and
    ``doc_freqs[t] <= total_docs``.
    """

    k1: float = DEFAULT_K1
    b: float = DEFAULT_B
    doc_freqs: dict[str, int] = field(default_factory=dict)
    doc_lengths: dict[str, int] = field(default_factory=dict)
    total_docs: int = 0
    total_doc_len: int = 0
    avg_doc_len: float = 0.0
    vocabulary: set[str] = field(default_factory=set)

    def train(self, doc_id: str, tokens: Sequence[str]) -> None:
        """Fold one document's tokens into the corpus statistics."""
        self.total_docs += 1
        self.doc_lengths[doc_id] = len(tokens)
        self.total_doc_len += len(tokens)
        self.avg_doc_len = self.total_doc_len / self.total_docs

        for token in set(tokens):
            self.vocabulary.add(token)
            self.doc_freqs[token] = self.doc_freqs.get(token, 0) + 1

    def idf(self, term: str) -> float:
        return calculate_idf(self.doc_freqs.get(term, 0), self.total_docs)

    def score(self, term: str, doc_id: str, doc_tokens: Sequence[str]) -> float:
        """Score ``term`` against one document; 0.0 when the term is absent."""
        tf = doc_tokens.count(term)
        if tf == 0:
            return 0.0
        weight = bm25(tf, self.doc_lengths[doc_id], self.avg_doc_len, k1=self.k1, b=self.b)
        return self.idf(term) * weight

    def score_terms(self, terms: Sequence[str], doc_id: str, doc_tokens: Sequence[str]) -> float:
        """Sum ``score`` over ``terms``, counting each entry of ``terms`` separately."""
        frequencies = Counter(doc_tokens)
        total = 0.0
        for term in terms:
            tf = frequencies.get(term, 0)
            if tf == 0:
                continue
            weight = bm25(tf, self.doc_lengths[doc_id], self.avg_doc_len, k1=self.k1, b=self.b)
            total += self.idf(term) * weight
        return total

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the snapshot field names."""
        return {
            "k1": self.k1,
            "b": self.b,
            "docFreqs": [[term, count] for term, count in self.doc_freqs.items()],
            "docLengths": [[doc_id, length] for doc_id, length in self.doc_lengths.items()],
            "totalDocs": self.total_docs,
            "totalDocLen": self.total_doc_len,
            "avgDocLen": self.avg_doc_len,
            "vocab": sorted(self.vocabulary),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BM25Model:
        return cls(
            k1=float(data["k1"]),
            b=float(data["b"]),
            doc_freqs={str(term): int(count) for term, count in data["docFreqs"]},
            doc_lengths={str(doc_id): int(length) for doc_id, length in data["docLengths"]},
            total_docs=int(data["totalDocs"]),
            total_doc_len=int(data["totalDocLen"]),
            avg_doc_len=float(data["avgDocLen"]),
            vocabulary={str(term) for term in data["vocab"]},
        )
