import logging
from typing import IO

from django_ai_knowledge import conf
from django_ai_knowledge.exceptions import KnowledgeBaseError, UploadNotFound

from .indexing import build_index, delete_knowledge_base, index_file
from .storage.base import StorageProvider
from .uploads import remove_uploads, resolve_knowledge_base, write_upload

logger = logging.getLogger(__name__)


def ingest_upload(
    owner: str,
    filename: str,
    content: bytes | IO[bytes],
    *,
    embedding_model: str | None = None,
    storage_provider: StorageProvider | None = None,
    **index_kwargs,
) -> str:
    """Replace the owner's upload and knowledge base with a new file.

    The previous upload and knowledge base are only removed once the new file
    is indexed, so a failed ingest leaves the owner's knowledge base usable.
    Returns the key of the indexed record.
    """
    storage_provider = storage_provider or conf.get_storage_provider()

    try:
        previous = resolve_knowledge_base(owner)
    except UploadNotFound:
        previous = None

    is_new = not storage_provider.index_exists(conf.get_index_name(filename))
    indexer = build_index(
        filename,
        embedding_model,
        storage_provider=storage_provider,
        **index_kwargs,
    )

    path = write_upload(owner, filename, content)
    try:
        key = index_file(indexer, path)
    except KnowledgeBaseError:
        if filename != previous:
            path.unlink(missing_ok=True)
            if is_new:
                delete_knowledge_base(filename, storage_provider=storage_provider)
        raise

    remove_uploads(owner, keep=filename)
    if previous is not None and previous != filename:
        logger.info(f"Dropping previous knowledge base {previous} of {owner}")
        delete_knowledge_base(previous, storage_provider=storage_provider)

    return key
