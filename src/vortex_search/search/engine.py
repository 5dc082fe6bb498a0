"""In-memory inverted index with BM25 ranking.

``SearchEngine`` owns three structures that always change together:

* the document store, an append-only list whose positions ("slots") are
  referenced from the index,
* the inverted index, token -> list of slots,
* the ``BM25Model`` corpus statistics.

Ingestion runs ``text -> tokens -> {index update, model update}``. A query runs
``text -> tokens -> corrected tokens -> expanded tokens -> candidate slots ->
summed BM25 scores -> sorted results``.

The engine is synchronous and not thread-safe. Hosts that share one engine
across threads must serialize ``add_document``/``upsert_document``/``load``;
``search`` and ``save`` only read.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
import logging
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

from vortex_search.observability.metrics import (
    INDEX_DOC_COUNT,
    INDEX_VOCABULARY_SIZE,
    QUERY_CORRECTIONS,
    SEARCH_LATENCY,
    SEARCH_QUERIES,
    track_latency,
)
from vortex_search.observability.tracing import create_span
from vortex_search.search.analyzers import TextAnalyzer
from vortex_search.search.events import (
    CorrectionApplied,
    DocumentIndexed,
    EventSink,
    QueryExpanded,
    SearchEvent,
    SnapshotLoaded,
    SnapshotMissing,
    SnapshotSaved,
)
from vortex_search.search.fuzzy import MAX_EDIT_DISTANCE, find_closest_term
from vortex_search.search.models import Document, SearchResult
from vortex_search.search.snapshot import EngineSnapshot, read_snapshot, write_snapshot
from vortex_search.search.stats import DEFAULT_B, DEFAULT_K1, BM25Model
from vortex_search.search.synonyms import SynonymExpander


if TYPE_CHECKING:
    from collections.abc import Sequence

    from vortex_search.config import Settings


logger = logging.getLogger(__name__)

# Titles are repeated in the indexed text to triple their term frequency.
TITLE_REPEAT = 3


@dataclass(frozen=True)
class QueryPlan:
    """Every stage of query processing for one query string."""

    query: str
    tokens: tuple[str, ...]
    corrected: tuple[str, ...]
    terms: tuple[str, ...]
    corrections: Mapping[str, tuple[str, int]] = field(default_factory=lambda: MappingProxyType({}))

    def is_empty(self) -> bool:
        return not self.corrected

    @property
    def added_terms(self) -> tuple[str, ...]:
        """Terms contributed by synonym expansion."""
        seen = set(self.corrected)
        return tuple(term for term in self.terms if term not in seen)


def _index_tokens(index: dict[str, list[int]], slot: int, tokens: Iterable[str]) -> None:
    for token in dict.fromkeys(tokens):
        index.setdefault(token, []).append(slot)


class SearchEngine:
    """Document store, inverted index and BM25 model behind one API."""

    def __init__(
        self,
        *,
        name: str = "default",
        k1: float = DEFAULT_K1,
        b: float = DEFAULT_B,
        analyzer: TextAnalyzer | None = None,
        synonym_expander: SynonymExpander | None = None,
        enable_fuzzy: bool = True,
        max_edit_distance: int = MAX_EDIT_DISTANCE,
        enable_synonyms: bool = True,
        snapshot_path: str | Path | None = None,
        event_sink: EventSink | None = None,
    ) -> None:
        self.name = name
        self.analyzer = analyzer or TextAnalyzer()
        self.synonym_expander = synonym_expander or SynonymExpander(stemmer=self.analyzer.stemmer)
        self.enable_fuzzy = enable_fuzzy
        self.max_edit_distance = max_edit_distance
        self.enable_synonyms = enable_synonyms
        self.snapshot_path = Path(snapshot_path) if snapshot_path is not None else None
        self.event_sink = event_sink

        self._documents: list[Document] = []
        self._index: dict[str, list[int]] = {}
        self._model = BM25Model(k1=k1, b=b)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        name: str = "default",
        stopwords: Iterable[str] | None = None,
        synonyms: Mapping[str, Sequence[str]] | None = None,
        event_sink: EventSink | None = None,
    ) -> SearchEngine:
        """Build an engine from validated settings, optionally with custom word tables."""
        analyzer = TextAnalyzer(stopwords=stopwords)
        return cls(
            name=name,
            k1=settings.bm25_k1,
            b=settings.bm25_b,
            analyzer=analyzer,
            synonym_expander=SynonymExpander(synonyms, stemmer=analyzer.stemmer),
            enable_fuzzy=settings.enable_fuzzy,
            max_edit_distance=settings.max_edit_distance,
            enable_synonyms=settings.enable_synonyms,
            snapshot_path=settings.snapshot_path,
            event_sink=event_sink,
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def documents(self) -> tuple[Document, ...]:
        return tuple(self._documents)

    @property
    def document_count(self) -> int:
        return len(self._documents)

    @property
    def vocabulary_size(self) -> int:
        return len(self._model.vocabulary)

    @property
    def model(self) -> BM25Model:
        return self._model

    def postings(self, token: str) -> tuple[int, ...]:
        """Return the document slots indexed under ``token``."""
        return tuple(self._index.get(token, ()))

    def get_document(self, doc_id: str) -> Document | None:
        """Return the first stored document with ``doc_id``."""
        return next((document for document in self._documents if document.id == doc_id), None)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def add_document(self, doc_id: str, title: str, body: str) -> Document:
        """Index a document.

        Ids are not checked for uniqueness: adding an existing id stores a
        second, independent record and both can be returned by ``search``.
        Use ``upsert_document`` to replace instead.
        """
        with create_span("search.index", attributes={"search.doc_id": doc_id}) as span:
            document = self._build_document(doc_id, title, body)
            slot = len(self._documents)
            self._documents.append(document)
            self._model.train(document.id, document.tokens)
            _index_tokens(self._index, slot, document.tokens)
            span.set_attribute("search.token_count", len(document.tokens))

        logger.debug("Indexed document %s into slot %d (%d tokens)", doc_id, slot, len(document.tokens))
        self._refresh_gauges()
        self._emit(DocumentIndexed(doc_id=doc_id, slot=slot, token_count=len(document.tokens)))
        return document

    def upsert_document(self, doc_id: str, title: str, body: str) -> Document:
        """Insert a document or replace every stored record that has ``doc_id``.

        The replacement takes the slot of the first existing record; the
        index and the model are then rebuilt from the store.
        """
        slots = [slot for slot, document in enumerate(self._documents) if document.id == doc_id]
        if not slots:
            return self.add_document(doc_id, title, body)

        with create_span("search.index", attributes={"search.doc_id": doc_id, "search.upsert": True}) as span:
            document = self._build_document(doc_id, title, body)
            duplicates = set(slots[1:])
            documents = [
                document if slot == slots[0] else existing
                for slot, existing in enumerate(self._documents)
                if slot not in duplicates
            ]
            self._rebuild(documents)
            span.set_attribute("search.token_count", len(document.tokens))

        logger.debug("Replaced document %s in slot %d (%d duplicates dropped)", doc_id, slots[0], len(duplicates))
        self._refresh_gauges()
        self._emit(DocumentIndexed(doc_id=doc_id, slot=slots[0], token_count=len(document.tokens)))
        return document

    def _build_document(self, doc_id: str, title: str, body: str) -> Document:
        full_text = " ".join([title] * TITLE_REPEAT + [body])
        return Document(id=doc_id, title=title, body=body, tokens=tuple(self.analyzer(full_text)))

    def _rebuild(self, documents: list[Document]) -> None:
        model = BM25Model(k1=self._model.k1, b=self._model.b)
        index: dict[str, list[int]] = {}
        for slot, document in enumerate(documents):
            model.train(document.id, document.tokens)
            _index_tokens(index, slot, document.tokens)
        self._documents, self._index, self._model = documents, index, model

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    def tokenize_query(self, query: str) -> QueryPlan:
        """Run tokenization, fuzzy correction and synonym expansion without scoring."""

        tokens = self.analyzer(query)
        resolved: dict[str, tuple[str, int] | None] = {}
        corrected: list[str] = []
        for token in tokens:
            if token in self._index or not self.enable_fuzzy:
                corrected.append(token)
                continue
            if token not in resolved:
                resolved[token] = find_closest_term(token, self._model.vocabulary, self.max_edit_distance)
            match = resolved[token]
            corrected.append(match[0] if match else token)

        if self.enable_synonyms:
            terms = self.synonym_expander.expand_ordered(corrected)
        else:
            terms = list(dict.fromkeys(corrected))

        corrections = {token: match for token, match in resolved.items() if match is not None}
        return QueryPlan(
            query=query,
            tokens=tuple(tokens),
            corrected=tuple(corrected),
            terms=tuple(terms),
            corrections=MappingProxyType(corrections),
        )

    def search(self, query: str, *, limit: int | None = None) -> list[SearchResult]:
        """Return documents matching ``query``, best first.

        A query that reduces to no tokens returns an empty list. Ties are
        broken by ascending document slot. ``limit`` caps the result count.
        """
        with (
            create_span("search.query", attributes={"search.query": query[:100]}) as span,
            track_latency(SEARCH_LATENCY, index=self.name),
        ):
            plan = self.tokenize_query(query)
            self._report_plan(plan)

            if plan.is_empty():
                SEARCH_QUERIES.labels(index=self.name, outcome="empty").inc()
                span.set_attribute("search.result_count", 0)
                return []

            results = self._rank(plan.terms)
            if limit is not None:
                results = results[: max(limit, 0)]

            SEARCH_QUERIES.labels(index=self.name, outcome="hit" if results else "miss").inc()
            span.set_attribute("search.term_count", len(plan.terms))
            span.set_attribute("search.result_count", len(results))
            return results

    def _report_plan(self, plan: QueryPlan) -> None:
        for original, (corrected, distance) in plan.corrections.items():
            logger.debug("Corrected query token %r to %r (distance %d)", original, corrected, distance)
            QUERY_CORRECTIONS.labels(index=self.name).inc()
            self._emit(CorrectionApplied(original=original, corrected=corrected, distance=distance))

        if plan.added_terms:
            logger.debug("Expanded query with %d synonym terms", len(plan.added_terms))
            self._emit(QueryExpanded(before=plan.corrected, after=plan.terms))

    def _rank(self, terms: Sequence[str]) -> list[SearchResult]:
        candidates: set[int] = set()
        for term in terms:
            candidates.update(self._index.get(term, ()))

        scored: list[tuple[int, float]] = []
        for slot in sorted(candidates):
            document = self._documents[slot]
            score = self._model.score_terms(terms, document.id, document.tokens)
            if score > 0:
                scored.append((slot, score))

        scored.sort(key=lambda item: (-item[1], item[0]))
        return [SearchResult.from_document(self._documents[slot], score) for slot, score in scored]

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, path: str | Path | None = None) -> Path:
        """Write a full snapshot. ``OSError`` from the filesystem propagates."""
        target = self._resolve_snapshot_path(path)
        with create_span("search.snapshot.save", attributes={"search.snapshot.path": str(target)}):
            snapshot = EngineSnapshot.from_state(self._documents, self._index, self._model)
            written = write_snapshot(target, snapshot)

        logger.info("Engine saved to %s (%d documents)", written, len(self._documents))
        self._emit(SnapshotSaved(path=written, document_count=len(self._documents)))
        return written

    def load(self, path: str | Path | None = None) -> bool:
        """Replace the whole engine state with a snapshot.

        Returns ``False`` and leaves the state untouched when nothing exists
        at ``path``. Raises ``SnapshotError`` for malformed content, also
        without touching the state.
        """
        source = self._resolve_snapshot_path(path)
        with create_span("search.snapshot.load", attributes={"search.snapshot.path": str(source)}) as span:
            snapshot = read_snapshot(source)
            span.set_attribute("search.snapshot.found", snapshot is not None)
            if snapshot is None:
                logger.warning("No saved index found at %s", source)
                self._emit(SnapshotMissing(path=source))
                return False

            self._documents, self._index, self._model = snapshot.to_state()

        logger.info("Engine loaded from %s (%d documents)", source, len(self._documents))
        self._refresh_gauges()
        self._emit(SnapshotLoaded(path=source, document_count=len(self._documents)))
        return True

    def _resolve_snapshot_path(self, path: str | Path | None) -> Path:
        if path is not None:
            return Path(path)
        if self.snapshot_path is None:
            raise ValueError("No snapshot path given and no default snapshot_path configured")
        return self.snapshot_path

    # ------------------------------------------------------------------

    def _refresh_gauges(self) -> None:
        INDEX_DOC_COUNT.labels(index=self.name).set(len(self._documents))
        INDEX_VOCABULARY_SIZE.labels(index=self.name).set(len(self._model.vocabulary))

    def _emit(self, event: SearchEvent) -> None:
        if self.event_sink is not None:
            self.event_sink(event)
