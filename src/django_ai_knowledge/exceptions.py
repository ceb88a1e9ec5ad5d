from django.core.exceptions import ImproperlyConfigured


class KnowledgeBaseError(Exception):
    """Base class for errors raised while indexing or querying knowledge bases."""


class ConfigurationError(KnowledgeBaseError, ImproperlyConfigured):
    """Missing or invalid settings, credentials or embedder configuration."""


class DimensionMismatchError(ConfigurationError):
    """Configured vector dimension does not match the index or the embedder."""


class EmbeddingProviderError(KnowledgeBaseError):
    """The embedding provider could not be reached or returned a bad response."""


class StorageError(KnowledgeBaseError):
    """The vector store could not be reached or rejected an operation."""


class NotFoundError(KnowledgeBaseError, LookupError):
    pass


class KnowledgeBaseNotFound(NotFoundError):
    pass


class UploadNotFound(NotFoundError):
    pass


class MalformedInputError(KnowledgeBaseError, ValueError):
    pass
