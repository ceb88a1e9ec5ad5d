import logging
import uuid
from typing import Sequence

from qdrant_client import QdrantClient
from qdrant_client.http import models as qdrant_models
from qdrant_client.models import Distance

from django_ai_knowledge.exceptions import DimensionMismatchError, KnowledgeBaseNotFound

from ..schema import DISTANCE_FIELD, VECTOR_FIELD, EmbeddedRecord
from .base import BaseStorageQuerySet, StorageHit, StorageProvider, storage_errors

logger = logging.getLogger(__name__)

# Payload key holding the record key, as Qdrant point ids must be UUIDs
KEY_PAYLOAD_FIELD = "record_key"


def point_id_for_key(key: str) -> str:
    """Deterministic point id, so writing a key twice replaces the point."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, key))


class QdrantQuerySet(BaseStorageQuerySet["QdrantProvider"]):
    def get_instance(self, point) -> StorageHit:
        payload = dict(point.payload or {})
        key = payload.pop(KEY_PAYLOAD_FIELD, str(point.id))
        fields = {name: str(value) for name, value in payload.items()}
        # Collections use cosine distance, for which Qdrant scores similarity
        fields[DISTANCE_FIELD] = str(1 - point.score)
        return self.model(key=key, fields=self.select_fields(fields))

    def get_payload_selector(self) -> bool | list[str]:
        if self.return_fields is None:
            return True
        return [
            name for name in self.return_fields if name != DISTANCE_FIELD
        ] + [KEY_PAYLOAD_FIELD]

    def run_query(self):
        index_name, embedding = self.get_search_params()
        client = self.storage_provider.client

        if self.offset:
            raise NotImplementedError(
                "Offsets are not supported for the Qdrant provider"
            )

        with storage_errors(f"failed to search index {index_name}"):
            response = client.query_points(
                collection_name=index_name,
                query=embedding,
                using=self.vector_field,
                limit=self.limit or 10,
                with_payload=self.get_payload_selector(),
            )

        for point in response.points:
            yield self.get_instance(point)


class QdrantProvider(StorageProvider):
    """Vector storage using Qdrant, one collection per knowledge base."""

    base_queryset_cls = QdrantQuerySet

    def __init__(
        self,
        *,
        host: str | None = None,
        port: int = 6333,
        api_key: str | None = None,
        location: str | None = None,
        client: QdrantClient | None = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        if client is not None:
            self.client = client
        elif location is not None:
            # e.g. ":memory:" for a local, non-persistent collection store
            self.client = QdrantClient(location=location)
        else:
            self.client = QdrantClient(url=host, port=port, api_key=api_key)

    def create_index(
        self,
        name: str,
        dimensions: int,
        *,
        vector_fields: Sequence[str] = (VECTOR_FIELD,),
    ) -> bool:
        with storage_errors(f"failed to init index {name}"):
            if self.client.collection_exists(name):
                existing = self.get_index_dimensions(name)
                if existing != dimensions:
                    raise DimensionMismatchError(
                        f"Collection '{name}' already exists with {existing} "
                        f"dimensions, not {dimensions}"
                    )
                return False

            self.client.create_collection(
                collection_name=name,
                vectors_config={
                    vector_field: qdrant_models.VectorParams(
                        size=dimensions, distance=Distance.COSINE
                    )
                    for vector_field in vector_fields
                },
            )

        logger.info(f"Created Qdrant collection {name} ({dimensions} dimensions)")
        return True

    def index_exists(self, name: str) -> bool:
        with storage_errors(f"failed to look up index {name}"):
            return self.client.collection_exists(name)

    def get_index_dimensions(self, name: str) -> int:
        with storage_errors(f"failed to describe index {name}"):
            vectors = self.client.get_collection(name).config.params.vectors

        if isinstance(vectors, dict):
            params = vectors.get(VECTOR_FIELD) or next(iter(vectors.values()))
            return params.size
        return vectors.size

    def delete_index(self, name: str) -> None:
        if not self.index_exists(name):
            raise KnowledgeBaseNotFound(f"Collection '{name}' does not exist")

        with storage_errors(f"failed to delete index {name}"):
            self.client.delete_collection(collection_name=name)

        logger.info(f"Deleted Qdrant collection {name}")

    def write(self, name: str, records: Sequence[EmbeddedRecord]) -> None:
        points = [
            qdrant_models.PointStruct(
                id=point_id_for_key(record.key),
                vector=record.vectors,
                payload={**record.plain_fields(), KEY_PAYLOAD_FIELD: record.key},
            )
            for record in records
        ]
        if not points:
            return

        with storage_errors(f"failed to write to index {name}"):
            self.client.upsert(collection_name=name, points=points)
