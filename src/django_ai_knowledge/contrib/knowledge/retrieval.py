import logging
from typing import Callable, Sequence

from django_ai_knowledge import conf
from django_ai_knowledge.exceptions import KnowledgeBaseError, MalformedInputError

from .embedding import EmbeddingTransformer, create_embedding_transformer
from .schema import (
    CONTENT_FIELD,
    DISTANCE_FIELD,
    METADATA_FIELD,
    VECTOR_FIELD,
    RetrievedDocument,
)
from .storage.base import StorageHit, StorageProvider
from .uploads import resolve_knowledge_base

logger = logging.getLogger(__name__)

DEFAULT_RETURN_FIELDS = (CONTENT_FIELD, METADATA_FIELD, DISTANCE_FIELD)


def hit_to_document(hit: StorageHit) -> RetrievedDocument:
    """Reshape a search hit: ``content`` becomes the document content and
    every other returned field becomes metadata."""
    document = RetrievedDocument(id=hit.key, content="")
    for name, value in hit.fields.items():
        if name == CONTENT_FIELD:
            document.content = value
        else:
            document.metadata[name] = value
    return document


class Retriever:
    """Similarity search over one knowledge base."""

    def __init__(
        self,
        *,
        storage_provider: StorageProvider,
        index_name: str,
        embedding_transformer: EmbeddingTransformer,
        top_k: int = 5,
        vector_field: str = VECTOR_FIELD,
        return_fields: Sequence[str] = DEFAULT_RETURN_FIELDS,
        converter: Callable[[StorageHit], RetrievedDocument] = hit_to_document,
    ):
        self.storage_provider = storage_provider
        self.index_name = index_name
        self.embedding_transformer = embedding_transformer
        self.top_k = top_k
        self.vector_field = vector_field
        self.return_fields = tuple(return_fields)
        self.converter = converter

    def retrieve(self, query: str) -> list[RetrievedDocument]:
        """Return up to ``top_k`` documents closest to the query, closest first.

        Raises:
            MalformedInputError: If the query is blank.
            KnowledgeBaseError: If embedding or searching fails.
        """
        if not query or not query.strip():
            raise MalformedInputError("Search query cannot be empty")

        try:
            query_embedding = self.embedding_transformer.embed_string(query)
            hits = self.storage_provider.search(
                self.index_name,
                query_embedding,
                top_k=self.top_k,
                return_fields=self.return_fields,
                vector_field=self.vector_field,
            )
        except KnowledgeBaseError as e:
            raise type(e)(f"failed to retrieve documents: {e}") from e

        if not hits:
            logger.warning(f"No documents found in {self.index_name}")

        return [self.converter(hit) for hit in hits]


def build_query(
    owner: str,
    *,
    knowledge_base: str | None = None,
    storage_provider: StorageProvider | None = None,
    embedding_transformer: EmbeddingTransformer | None = None,
) -> Retriever:
    """Build a Retriever over the owner's knowledge base.

    Without an explicit ``knowledge_base`` the owner's uploaded file names it.
    """
    if knowledge_base is None:
        knowledge_base = resolve_knowledge_base(owner)

    if embedding_transformer is None:
        embedding_transformer = create_embedding_transformer()

    logger.info(f"Querying knowledge base {knowledge_base} for {owner}")
    return Retriever(
        storage_provider=storage_provider or conf.get_storage_provider(),
        index_name=conf.get_index_name(knowledge_base),
        embedding_transformer=embedding_transformer,
        top_k=conf.get_setting("TOP_K"),
    )


def retrieve(retriever: Retriever, query: str) -> list[RetrievedDocument]:
    return retriever.retrieve(query)
