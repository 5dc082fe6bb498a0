"""Unit tests for the BM25 formulas and corpus statistics."""

from __future__ import annotations

import math

import pytest

from vortex_search.search.stats import DEFAULT_B, DEFAULT_K1, BM25Model, bm25, calculate_idf


@pytest.mark.unit
class TestFormulas:
    def test_idf_single_document_containing_term(self) -> None:
        assert calculate_idf(1, 1) == pytest.approx(math.log(4 / 3))

    def test_idf_is_positive_for_term_in_every_document(self) -> None:
        assert calculate_idf(10, 10) > 0

    def test_idf_decreases_as_term_gets_common(self) -> None:
        assert calculate_idf(1, 10) > calculate_idf(5, 10) > calculate_idf(10, 10)

    def test_bm25_zero_frequency(self) -> None:
        assert bm25(0, 10, 10.0) == 0.0

    def test_bm25_average_length_document(self) -> None:
        # dl == avgdl collapses the length norm to 1
        assert bm25(1, 10, 10.0) == pytest.approx((1 * 2.5) / (1 + 1.5))

    def test_bm25_penalizes_longer_documents(self) -> None:
        assert bm25(2, 5, 10.0) > bm25(2, 20, 10.0)

    def test_bm25_without_length_normalization(self) -> None:
        assert bm25(3, 5, 10.0, b=0.0) == bm25(3, 50, 10.0, b=0.0)

    def test_defaults(self) -> None:
        assert DEFAULT_K1 == 1.5
        assert DEFAULT_B == 0.75


@pytest.mark.unit
class TestBM25Model:
    def test_train_updates_statistics(self) -> None:
        model = BM25Model()

        model.train("d1", ["apple", "apple", "fruit"])
        model.train("d2", ["banana", "fruit"])

        assert model.total_docs == 2
        assert model.total_doc_len == 5
        assert model.avg_doc_len == pytest.approx(2.5)
        assert model.doc_lengths == {"d1": 3, "d2": 2}
        assert model.doc_freqs == {"apple": 1, "fruit": 2, "banana": 1}
        assert model.vocabulary == {"apple", "fruit", "banana"}

    def test_doc_freq_never_exceeds_total_docs(self) -> None:
        model = BM25Model()
        for i in range(4):
            model.train(f"d{i}", ["common", "common", f"unique{i}"])

        assert all(count <= model.total_docs for count in model.doc_freqs.values())
        assert model.doc_freqs["common"] == 4

    def test_empty_document_counts_towards_average(self) -> None:
        model = BM25Model()

        model.train("d1", ["one", "two"])
        model.train("d2", [])

        assert model.total_docs == 2
        assert model.avg_doc_len == pytest.approx(1.0)
        assert model.doc_lengths["d2"] == 0

    def test_score_single_document(self) -> None:
        model = BM25Model()
        model.train("d1", ["apple"])

        assert model.score("apple", "d1", ["apple"]) == pytest.approx(math.log(4 / 3))

    def test_score_absent_term_is_zero(self) -> None:
        model = BM25Model()
        model.train("d1", ["apple"])

        assert model.score("pear", "d1", ["apple"]) == 0.0

    def test_score_terms_matches_summed_scores(self) -> None:
        model = BM25Model()
        tokens = ["apple", "red", "apple", "fruit"]
        model.train("d1", tokens)
        model.train("d2", ["banana", "fruit"])

        terms = ["apple", "fruit", "pear"]
        expected = sum(model.score(term, "d1", tokens) for term in terms)

        assert model.score_terms(terms, "d1", tokens) == pytest.approx(expected)

    def test_score_terms_counts_repeated_terms(self) -> None:
        model = BM25Model()
        model.train("d1", ["apple"])

        single = model.score_terms(["apple"], "d1", ["apple"])

        assert model.score_terms(["apple", "apple"], "d1", ["apple"]) == pytest.approx(2 * single)

    def test_dict_round_trip_preserves_statistics(self) -> None:
        model = BM25Model(k1=1.2, b=0.5)
        model.train("d1", ["apple", "fruit"])
        model.train("d2", ["banana"])

        data = model.to_dict()
        restored = BM25Model.from_dict(data)

        assert set(data) == {"k1", "b", "docFreqs", "docLengths", "totalDocs", "totalDocLen", "avgDocLen", "vocab"}
        assert data["vocab"] == ["apple", "banana", "fruit"]
        assert restored == model
