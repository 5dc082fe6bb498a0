"""Diagnostic events emitted by the search engine.

The engine never prints. Hosts that want to show "did you mean" hints or
expansion details pass an ``event_sink`` callable and receive one of the
frozen event objects below. Ranking results are identical with or without a
sink attached.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass
import logging
from pathlib import Path


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentIndexed:
    doc_id: str
    slot: int
    token_count: int


@dataclass(frozen=True)
class CorrectionApplied:
    """An unknown query token was replaced by the closest vocabulary term."""

    original: str
    corrected: str
    distance: int


@dataclass(frozen=True)
class QueryExpanded:
    """Synonym expansion added tokens to the query."""

    before: tuple[str, ...]
    after: tuple[str, ...]

    @property
    def added(self) -> tuple[str, ...]:
        original = set(self.before)
        return tuple(token for token in self.after if token not in original)


@dataclass(frozen=True)
class SnapshotSaved:
    path: Path
    document_count: int


@dataclass(frozen=True)
class SnapshotLoaded:
    path: Path
    document_count: int


@dataclass(frozen=True)
class SnapshotMissing:
    """``load`` found nothing at ``path``; engine state was left untouched."""

    path: Path


SearchEvent = DocumentIndexed | CorrectionApplied | QueryExpanded | SnapshotSaved | SnapshotLoaded | SnapshotMissing
EventSink = Callable[[SearchEvent], None]


class LoggingEventSink:
    """Event sink that forwards every event to a logger as a structured record."""

    def __init__(self, target: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self._logger = target or logger
        self._level = level

    def __call__(self, event: SearchEvent) -> None:
        name = type(event).__name__
        self._logger.log(self._level, "search event %s", name, extra={"event": name, **asdict(event)})
