"""
Indexing pipeline: turns files into documents and stores them, embedded, in
a knowledge base.

Typical use::

    indexer = build_index("handbook.md", "text-embedding-3-small")
    index_file(indexer, "uploads/alice/handbook.md")
"""

import logging
import os
from typing import Iterable, Sequence

from django_ai_knowledge import conf
from django_ai_knowledge.exceptions import (
    EmbeddingProviderError,
    KnowledgeBaseError,
    KnowledgeBaseNotFound,
    MalformedInputError,
    NotFoundError,
)

from .embedding import EmbeddingTransformer, create_embedding_transformer
from .mapper import DocumentMapper
from .schema import Document, EmbeddedRecord, IndexRecord
from .storage.base import StorageProvider

logger = logging.getLogger(__name__)

# Files are indexed whole, so every file is stored under the same document id
FILE_DOCUMENT_ID = "doc_1"


class Indexer:
    """Stores documents in one knowledge base, embedding them on the way in."""

    def __init__(
        self,
        *,
        storage_provider: StorageProvider,
        index_name: str,
        embedding_transformer: EmbeddingTransformer,
        mapper: DocumentMapper,
        batch_size: int = 10,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self.storage_provider = storage_provider
        self.index_name = index_name
        self.embedding_transformer = embedding_transformer
        self.mapper = mapper
        self.batch_size = batch_size

    @property
    def knowledge_base(self) -> str:
        return self.mapper.knowledge_base

    def embed_records(self, records: Sequence[IndexRecord]) -> list[EmbeddedRecord]:
        """Embed every embed-target field of the given records."""
        targets = [
            (record_index, value.embed_key, value.value)
            for record_index, record in enumerate(records)
            for value in record.embed_fields().values()
        ]
        embeddings = self.embedding_transformer.embed_texts(
            [text for _, _, text in targets], batch_size=self.batch_size
        )
        if len(embeddings) != len(targets):
            raise EmbeddingProviderError(
                f"Expected {len(targets)} embeddings, got {len(embeddings)}"
            )

        vectors: list[dict[str, list[float]]] = [{} for _ in records]
        for (record_index, embed_key, _), embedding in zip(
            targets, embeddings, strict=True
        ):
            vectors[record_index][embed_key] = embedding

        return [
            record.with_vectors(record_vectors)
            for record, record_vectors in zip(records, vectors, strict=True)
        ]

    def store(self, documents: Iterable[Document]) -> list[str]:
        """Map, embed and write documents. Returns the keys written."""
        records = [self.mapper.map(document) for document in documents]
        if not records:
            logger.warning(f"No documents to store in {self.index_name}")
            return []

        keys = []
        for i in range(0, len(records), self.batch_size):
            batch = self.embed_records(records[i : i + self.batch_size])
            self.storage_provider.write(self.index_name, batch)
            keys.extend(record.key for record in batch)
            logger.debug(f"Wrote {len(batch)} records to {self.index_name}")

        logger.info(f"Stored {len(keys)} document(s) in {self.index_name}")
        return keys


def create_knowledge_base(
    name: str,
    dimensions: int | None = None,
    *,
    storage_provider: StorageProvider | None = None,
) -> bool:
    """Create the index backing a knowledge base.

    Returns False if it already exists with the same dimension.
    """
    storage_provider = storage_provider or conf.get_storage_provider()
    if dimensions is None:
        dimensions = conf.get_setting("EMBEDDING_DIMENSIONS", required=True)

    return storage_provider.create_index(conf.get_index_name(name), dimensions)


def delete_knowledge_base(
    name: str, *, storage_provider: StorageProvider | None = None
) -> bool:
    """Delete a knowledge base and everything indexed in it.

    Returns False if the knowledge base doesn't exist.
    """
    storage_provider = storage_provider or conf.get_storage_provider()
    try:
        storage_provider.delete_index(conf.get_index_name(name))
    except KnowledgeBaseNotFound:
        logger.info(f"Knowledge base {name} does not exist, nothing to delete")
        return False

    logger.info(f"Deleted knowledge base {name}")
    return True


def build_index(
    knowledge_base: str,
    embedding_model: str | None = None,
    *,
    storage_provider: StorageProvider | None = None,
    embedding_transformer: EmbeddingTransformer | None = None,
    batch_size: int | None = None,
) -> Indexer:
    """Prepare a knowledge base for indexing and return its Indexer.

    Builds the embedder (unless one is given), checks that its output matches
    the configured vector dimension, and creates the knowledge base index.
    """
    storage_provider = storage_provider or conf.get_storage_provider()
    dimensions = conf.get_setting("EMBEDDING_DIMENSIONS", required=True)

    if embedding_transformer is None:
        embedding_transformer = create_embedding_transformer(embedding_model)

    if conf.get_setting("VALIDATE_DIMENSIONS"):
        embedding_transformer.check_dimensions(dimensions)

    create_knowledge_base(
        knowledge_base, dimensions, storage_provider=storage_provider
    )

    return Indexer(
        storage_provider=storage_provider,
        index_name=conf.get_index_name(knowledge_base),
        embedding_transformer=embedding_transformer,
        mapper=DocumentMapper(knowledge_base),
        batch_size=batch_size or conf.get_setting("BATCH_SIZE"),
    )


def read_document(file_path: str | os.PathLike) -> Document:
    """Read a whole file into a single Document."""
    try:
        with open(file_path, "rb") as f:
            raw = f.read()
    except FileNotFoundError as e:
        raise NotFoundError(f"failed to read file {file_path}: not found") from e
    except OSError as e:
        raise KnowledgeBaseError(f"failed to read file {file_path}: {e}") from e

    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedInputError(f"File {file_path} is not valid UTF-8 text") from e

    return Document(
        id=FILE_DOCUMENT_ID,
        content=content,
        metadata={"source": os.fspath(file_path)},
    )


def index_file(indexer: Indexer, file_path: str | os.PathLike) -> str:
    """Index a file into the indexer's knowledge base. Returns the record key."""
    logger.info(f"Indexing {file_path} into {indexer.knowledge_base}")
    document = read_document(file_path)

    try:
        (key,) = indexer.store([document])
    except MalformedInputError:
        raise
    except KnowledgeBaseError as e:
        raise type(e)(f"failed to store document: {e}") from e

    return key
