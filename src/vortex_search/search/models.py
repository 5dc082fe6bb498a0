"""Search data models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict


@dataclass(frozen=True, slots=True)
class Document:
    """A stored document together with the tokens it was indexed under."""

    id: str
    title: str
    body: str
    tokens: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "tokens": list(self.tokens),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Document:
        """Create from dictionary."""
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            body=str(data["body"]),
            tokens=tuple(data.get("tokens", ())),
        )


class SearchResult(BaseModel):
    """A ranked hit: the original document fields plus its BM25 score."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    body: str
    score: float

    @classmethod
    def from_document(cls, document: Document, score: float) -> SearchResult:
        return cls(id=document.id, title=document.title, body=document.body, score=score)
