"""
Schema definitions for knowledge base indexing.

Documents are mapped to IndexRecords, the shape written to the vector store,
and search hits come back as RetrievedDocuments.
"""

from dataclasses import dataclass, field
from typing import Any

CONTENT_FIELD = "content"
METADATA_FIELD = "metadata"
VECTOR_FIELD = "vector"
DISTANCE_FIELD = "distance"


@dataclass(frozen=True)
class Document:
    """
    A logical document to be indexed.

    Files are not chunked: one file becomes one Document.
    """

    id: str
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FieldValue:
    """
    A field of an IndexRecord.

    If ``embed_key`` is set, the embedding of ``value`` is stored in the
    vector field with that name.
    """

    value: str
    embed_key: str | None = None


@dataclass(frozen=True)
class IndexRecord:
    key: str
    fields: dict[str, FieldValue]

    def embed_fields(self) -> dict[str, FieldValue]:
        """Fields whose value needs to be embedded."""
        return {
            name: value
            for name, value in self.fields.items()
            if value.embed_key is not None
        }

    def plain_fields(self) -> dict[str, str]:
        return {name: value.value for name, value in self.fields.items()}

    def with_vectors(self, vectors: dict[str, list[float]]) -> "EmbeddedRecord":
        """Create a new EmbeddedRecord with vectors keyed by vector field name."""
        return EmbeddedRecord(key=self.key, fields=self.fields, vectors=vectors)


@dataclass(frozen=True)
class EmbeddedRecord(IndexRecord):
    """An IndexRecord with its embeddings attached, ready to be written."""

    vectors: dict[str, list[float]] = field(default_factory=dict)


@dataclass
class RetrievedDocument:
    id: str
    content: str
    metadata: dict[str, str] = field(default_factory=dict)
