"""
Settings for django-ai-knowledge.

All settings live in a single ``AI_KNOWLEDGE`` dict in the Django settings
module, merged over ``DEFAULTS``::

    AI_KNOWLEDGE = {
        "EMBEDDING_PROVIDER": "openai",
        "EMBEDDING_BASE_URL": "https://api.openai.com/v1",
        "EMBEDDING_MODEL": "text-embedding-3-small",
        "EMBEDDING_DIMENSIONS": 1536,
        "STORAGE": {
            "BACKEND": "django_ai_knowledge.contrib.knowledge.storage.qdrant.QdrantProvider",
            "OPTIONS": {"host": "http://localhost", "api_key": None},
        },
    }
"""

import functools
import logging
import os
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver
from django.utils.module_loading import import_string

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from .contrib.knowledge.storage.base import StorageProvider

logger = logging.getLogger(__name__)

SETTINGS_NAME = "AI_KNOWLEDGE"

DEFAULTS: dict[str, Any] = {
    "EMBEDDING_PROVIDER": "openai",
    "EMBEDDING_BASE_URL": None,
    "EMBEDDING_MODEL": None,
    "EMBEDDING_DIMENSIONS": None,
    # Name of the environment variable holding the provider API key
    "API_KEY_ENV_VAR": "OPENAI_API_KEY",
    "VALIDATE_DIMENSIONS": True,
    "INDEX_PREFIX": "rag_",
    "BATCH_SIZE": 10,
    "TOP_K": 5,
    "UPLOADS_DIR": "uploads",
    "STORAGE": {
        "BACKEND": "django_ai_knowledge.contrib.knowledge.storage.inmemory.InMemoryProvider",
        "OPTIONS": {},
    },
}


def get_config() -> dict[str, Any]:
    """Return the effective configuration, user values over defaults."""
    user_config = getattr(settings, SETTINGS_NAME, None) or {}
    return {**DEFAULTS, **user_config}


def get_setting(name: str, *, required: bool = False) -> Any:
    config = get_config()
    if name not in config:
        raise ConfigurationError(f"Unknown {SETTINGS_NAME} setting '{name}'")

    value = config[name]
    if required and value in (None, ""):
        raise ConfigurationError(
            f"{SETTINGS_NAME}['{name}'] must be set in your Django settings"
        )
    return value


def get_api_key() -> str | None:
    """Read the embedding provider API key from the configured environment variable."""
    return os.environ.get(get_setting("API_KEY_ENV_VAR")) or None


def get_index_name(knowledge_base: str) -> str:
    """Storage index name for a knowledge base."""
    return f"{get_setting('INDEX_PREFIX')}{knowledge_base}"


@functools.cache
def get_storage_provider() -> "StorageProvider":
    """Return the shared storage provider configured in ``STORAGE``.

    The provider wraps a long-lived store connection, so it is built once and
    reused by every pipeline that isn't handed one explicitly.
    """
    storage = get_setting("STORAGE", required=True)
    try:
        backend = storage["BACKEND"]
    except (KeyError, TypeError) as e:
        raise ConfigurationError(
            f"{SETTINGS_NAME}['STORAGE'] must define a 'BACKEND'"
        ) from e

    try:
        provider_cls = import_string(backend)
    except ImportError as e:
        raise ConfigurationError(f"Could not import storage backend '{backend}'") from e

    logger.info(f"Initialising storage provider {backend}")
    return provider_cls(**storage.get("OPTIONS", {}))


@receiver(setting_changed)
def reset_storage_provider(*, setting, **kwargs):
    if setting == SETTINGS_NAME:
        get_storage_provider.cache_clear()
