import logging
from abc import ABC, abstractmethod
from typing import Sequence

from django_ai_knowledge import conf
from django_ai_knowledge.exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingProviderError,
)
from django_ai_knowledge.llm import LLMService

logger = logging.getLogger(__name__)

DIMENSION_PROBE = "dimension probe"


class EmbeddingTransformer(ABC):
    """Base class for embedding transformers which turn text into vectors."""

    @property
    def transformer_id(self) -> str:
        """Get unique identifier for this transformer."""
        return self.__class__.__name__

    @abstractmethod
    def embed_string(self, text: str) -> list[float]:
        """Embed a single string."""
        pass

    @abstractmethod
    def embed_texts(
        self, texts: Sequence[str], *, batch_size: int = 100
    ) -> list[list[float]]:
        """Embed multiple strings, returning vectors in input order."""
        pass

    def check_dimensions(self, expected: int) -> int:
        """Embed a probe string and fail if the vector length isn't ``expected``."""
        actual = len(self.embed_string(DIMENSION_PROBE))
        if actual != expected:
            raise DimensionMismatchError(
                f"Embedder {self.transformer_id} produces {actual}-dimensional "
                f"vectors but {expected} dimensions are configured"
            )
        return actual


class CoreEmbeddingTransformer(EmbeddingTransformer):
    """Embedding transformer that uses the any-llm embeddings API."""

    def __init__(self, llm_service: LLMService):
        self.llm_service = llm_service

    @property
    def transformer_id(self) -> str:
        return f"core_{self.llm_service.service_id}"

    def _embed(self, inputs: str | list[str]) -> list[list[float]]:
        try:
            response = self.llm_service.embedding(inputs)
        except Exception as e:
            raise EmbeddingProviderError(
                f"failed to embed text with {self.llm_service.model}: {e}"
            ) from e

        vectors = [item.embedding for item in response.data]
        if not vectors or any(not vector for vector in vectors):
            raise EmbeddingProviderError(
                f"Embedding provider returned no vectors for {self.llm_service.model}"
            )
        return vectors

    def embed_string(self, text: str) -> list[float]:
        return self._embed(text)[0]

    def embed_texts(
        self, texts: Sequence[str], *, batch_size: int = 100
    ) -> list[list[float]]:
        """Embed texts in batches of ``batch_size``.

        Raises:
            EmbeddingProviderError: If the provider fails or the number of
                vectors returned doesn't match the batch.
        """
        if not texts:
            return []

        vectors: list[list[float]] = []
        for i in range(0, len(texts), batch_size):
            batch = list(texts[i : i + batch_size])
            embeddings = self._embed(batch)
            if len(embeddings) != len(batch):
                raise EmbeddingProviderError(
                    f"Expected {len(batch)} embeddings, got {len(embeddings)}"
                )
            vectors.extend(embeddings)
            logger.debug(f"Embedded batch of {len(batch)} texts")

        return vectors


def create_embedding_transformer(
    embedding_model: str | None = None,
) -> CoreEmbeddingTransformer:
    """Build an embedding transformer from the AI_KNOWLEDGE settings.

    The base URL and provider come from settings and the API key from the
    environment variable named by ``API_KEY_ENV_VAR``.
    """
    model = embedding_model or conf.get_setting("EMBEDDING_MODEL", required=True)
    provider = conf.get_setting("EMBEDDING_PROVIDER", required=True)

    try:
        llm_service = LLMService.create(
            provider=provider,
            model=model,
            api_key=conf.get_api_key(),
            api_base=conf.get_setting("EMBEDDING_BASE_URL"),
        )
    except Exception as e:
        raise ConfigurationError(f"failed to create embedder: {e}") from e

    logger.info(f"Created {provider} embedder for model {model}")
    return CoreEmbeddingTransformer(llm_service=llm_service)
