"""Full-state JSON snapshots of a search engine.

A snapshot holds the three engine structures in one document::

    {
      "documents": [{"id", "title", "body", "tokens"}, ...],   # store order
      "index": [[token, [slot, ...]], ...],
      "model": {"k1", "b", "docFreqs", "docLengths", "totalDocs",
                "totalDocLen", "avgDocLen", "vocab"}
    }

Reading validates the whole payload before anything is handed back to the
engine, so a malformed file never leaves the engine half-replaced. Writing
goes through a temporary sibling file that is renamed over the target.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import logging
from pathlib import Path
from typing import Any

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from vortex_search.search.models import Document
from vortex_search.search.stats import BM25Model


logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """Raised when a snapshot file exists but cannot be parsed or validated."""


class DocumentRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    title: str
    body: str
    tokens: list[str] = Field(default_factory=list)


class ModelRecord(BaseModel):
    """Serialized ``BM25Model`` state using the camelCase snapshot keys."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    k1: float
    b: float
    doc_freqs: list[tuple[str, int]] = Field(alias="docFreqs")
    doc_lengths: list[tuple[str, int]] = Field(alias="docLengths")
    total_docs: int = Field(alias="totalDocs", ge=0)
    total_doc_len: int = Field(alias="totalDocLen", ge=0)
    avg_doc_len: float = Field(alias="avgDocLen", ge=0.0)
    vocab: list[str]

    @model_validator(mode="after")
    def _check_doc_freqs(self) -> ModelRecord:
        for term, count in self.doc_freqs:
            if count < 0 or count > self.total_docs:
                raise ValueError(f"docFreq for {term!r} is {count}, outside 0..{self.total_docs}")
        return self


class EngineSnapshot(BaseModel):
    """Validated, immutable view of a complete engine state."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    documents: list[DocumentRecord]
    index: list[tuple[str, list[int]]]
    model: ModelRecord

    @model_validator(mode="after")
    def _check_consistency(self) -> EngineSnapshot:
        doc_count = len(self.documents)
        if self.model.total_docs != doc_count:
            raise ValueError(f"model.totalDocs is {self.model.total_docs}, store has {doc_count} documents")

        known_lengths = {doc_id for doc_id, _length in self.model.doc_lengths}
        missing = {record.id for record in self.documents} - known_lengths
        if missing:
            raise ValueError(f"model.docLengths has no entry for {sorted(missing)}")

        for token, slots in self.index:
            for slot in slots:
                if slot < 0 or slot >= doc_count:
                    raise ValueError(f"index entry {token!r} points at slot {slot}, store has {doc_count} documents")
        return self

    @classmethod
    def from_state(
        cls,
        documents: Sequence[Document],
        index: Mapping[str, Sequence[int]],
        model: BM25Model,
    ) -> EngineSnapshot:
        return cls.model_validate(
            {
                "documents": [document.to_dict() for document in documents],
                "index": [[token, list(slots)] for token, slots in index.items()],
                "model": model.to_dict(),
            }
        )

    def to_state(self) -> tuple[list[Document], dict[str, list[int]], BM25Model]:
        """Build fresh engine structures; nothing is shared with the snapshot."""
        documents = [Document.from_dict(record.model_dump()) for record in self.documents]
        index = {token: list(slots) for token, slots in self.index}
        model = BM25Model.from_dict(self.model.model_dump(by_alias=True))
        return documents, index, model

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def write_snapshot(path: str | Path, snapshot: EngineSnapshot) -> Path:
    """Serialize ``snapshot`` to ``path`` atomically. ``OSError`` propagates."""

    target = Path(path)
    tmp_path = target.with_suffix(target.suffix + ".tmp") if target.suffix else target.with_name(target.name + ".tmp")
    serialized = orjson.dumps(snapshot.to_payload(), option=orjson.OPT_INDENT_2)
    try:
        tmp_path.write_bytes(serialized)
        tmp_path.replace(target)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
    logger.debug("Wrote snapshot %s (%d bytes)", target, len(serialized))
    return target


def read_snapshot(path: str | Path) -> EngineSnapshot | None:
    """Parse and validate the snapshot at ``path``.

    Returns ``None`` when the file does not exist. Raises ``SnapshotError``
    when the content is not valid JSON or does not match the snapshot layout.
    """

    source = Path(path)
    if not source.exists():
        return None

    data = source.read_bytes()
    try:
        payload = orjson.loads(data)
    except orjson.JSONDecodeError as exc:
        raise SnapshotError(f"Snapshot {source} is not valid JSON: {exc}") from exc

    try:
        return EngineSnapshot.model_validate(payload)
    except ValidationError as exc:
        raise SnapshotError(f"Snapshot {source} has an invalid layout: {exc.error_count()} error(s)") from exc
