from .embedding import (
    CoreEmbeddingTransformer,
    EmbeddingTransformer,
)
from .indexing import (
    Indexer,
    build_index,
    create_knowledge_base,
    delete_knowledge_base,
    index_file,
)
from .mapper import DocumentMapper
from .prompt import build_prompt
from .retrieval import (
    Retriever,
    build_query,
    retrieve,
)
from .schema import (
    Document,
    IndexRecord,
    RetrievedDocument,
)
from .services import ingest_upload

__all__ = [
    "CoreEmbeddingTransformer",
    "Document",
    "DocumentMapper",
    "EmbeddingTransformer",
    "IndexRecord",
    "Indexer",
    "RetrievedDocument",
    "Retriever",
    "build_index",
    "build_prompt",
    "build_query",
    "create_knowledge_base",
    "delete_knowledge_base",
    "index_file",
    "ingest_upload",
    "retrieve",
]
