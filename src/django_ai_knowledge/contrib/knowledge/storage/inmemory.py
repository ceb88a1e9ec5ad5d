import logging
from dataclasses import dataclass, field
from typing import Sequence

from django_ai_knowledge.exceptions import DimensionMismatchError, KnowledgeBaseNotFound

from ..schema import DISTANCE_FIELD, VECTOR_FIELD, EmbeddedRecord
from .base import BaseStorageQuerySet, StorageProvider

logger = logging.getLogger(__name__)


def cosine_distance(a, b) -> float:
    import numpy as np

    norm = np.linalg.norm(a) * np.linalg.norm(b)
    if not norm:
        return 1.0
    return float(1 - np.dot(a, b) / norm)


class InMemoryQuerySet(BaseStorageQuerySet["InMemoryProvider"]):
    def run_query(self):
        import numpy as np

        index_name, embedding = self.get_search_params()
        index = self.storage_provider.get_index(index_name)

        query_vector = np.asarray(embedding, dtype=float)
        if query_vector.shape[0] != index.dimensions:
            raise DimensionMismatchError(
                f"Query vector has {query_vector.shape[0]} dimensions, "
                f"index '{index_name}' expects {index.dimensions}"
            )

        scored = []
        for record in index.records.values():
            vector = record.vectors.get(self.vector_field)
            if vector is None:
                continue
            distance = cosine_distance(query_vector, np.asarray(vector, dtype=float))
            scored.append((distance, record))

        scored.sort(key=lambda pair: pair[0])

        offset = self.offset or 0
        limit = self.limit or 10
        for distance, record in scored[offset : offset + limit]:
            fields = {**record.plain_fields(), DISTANCE_FIELD: str(distance)}
            yield self.model(key=record.key, fields=self.select_fields(fields))


@dataclass
class InMemoryIndex:
    dimensions: int
    vector_fields: tuple[str, ...]
    records: dict[str, EmbeddedRecord] = field(default_factory=dict)


class InMemoryProvider(StorageProvider):
    """Simple in-memory storage for testing and development."""

    base_queryset_cls = InMemoryQuerySet

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.indexes: dict[str, InMemoryIndex] = {}

    def get_index(self, name: str) -> InMemoryIndex:
        try:
            return self.indexes[name]
        except KeyError:
            raise KnowledgeBaseNotFound(f"Index '{name}' does not exist") from None

    def create_index(
        self,
        name: str,
        dimensions: int,
        *,
        vector_fields: Sequence[str] = (VECTOR_FIELD,),
    ) -> bool:
        if name in self.indexes:
            existing = self.indexes[name].dimensions
            if existing != dimensions:
                raise DimensionMismatchError(
                    f"Index '{name}' already exists with {existing} dimensions, "
                    f"not {dimensions}"
                )
            return False

        self.indexes[name] = InMemoryIndex(
            dimensions=dimensions, vector_fields=tuple(vector_fields)
        )
        logger.info(f"Created in-memory index {name} ({dimensions} dimensions)")
        return True

    def index_exists(self, name: str) -> bool:
        return name in self.indexes

    def get_index_dimensions(self, name: str) -> int:
        return self.get_index(name).dimensions

    def delete_index(self, name: str) -> None:
        self.get_index(name)
        del self.indexes[name]

    def write(self, name: str, records: Sequence[EmbeddedRecord]) -> None:
        index = self.get_index(name)
        for record in records:
            for vector_field, vector in record.vectors.items():
                if len(vector) != index.dimensions:
                    raise DimensionMismatchError(
                        f"Record {record.key} has a {len(vector)}-dimensional "
                        f"'{vector_field}' vector, index '{name}' expects "
                        f"{index.dimensions}"
                    )
            index.records[record.key] = record
