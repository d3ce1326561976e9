"""The document batch carried through the import pipeline."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

Document = dict[str, Any]
DocumentGroups = dict[str, list[Document]]


class BatchError(ValueError):
    """Raised when raw batch data violates the batch invariants."""


@dataclass
class AdventureBatch:
    """Documents to create and documents to update, grouped by document type.

    Stages mutate the groups in place. A document id may appear once across
    both collections.
    """

    to_create: DocumentGroups = field(default_factory=dict)
    to_update: DocumentGroups = field(default_factory=dict)

    def __post_init__(self) -> None:
        seen: set[tuple[str, str]] = set()
        for groups in (self.to_create, self.to_update):
            for doc_type, docs in groups.items():
                for doc in docs:
                    doc_id = doc.get("_id")
                    if doc_id is None:
                        continue
                    key = (doc_type, doc_id)
                    if key in seen:
                        raise BatchError(f"{doc_type} {doc_id} appears more than once in the batch")
                    seen.add(key)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AdventureBatch:
        """Build a batch from the ``{"toCreate": ..., "toUpdate": ...}`` wire shape."""
        return cls(
            to_create={k: list(v) for k, v in (data.get("toCreate") or {}).items()},
            to_update={k: list(v) for k, v in (data.get("toUpdate") or {}).items()},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "toCreate": self.to_create,
            "toUpdate": self.to_update,
            "documentCount": self.document_count,
        }

    def collections(self) -> tuple[DocumentGroups, DocumentGroups]:
        return self.to_create, self.to_update

    def documents(self, doc_type: str) -> Iterator[Document]:
        """Iterate one document type across both collections, creates first."""
        for groups in self.collections():
            yield from groups.get(doc_type, [])

    @property
    def document_count(self) -> int:
        return sum(len(docs) for groups in self.collections() for docs in groups.values())
