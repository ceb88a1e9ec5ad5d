from unittest import mock

import pytest
from any_llm import AnyLLM
from testapp.fakes import KeywordEmbeddingTransformer, fake_any_llm_client

from django_ai_knowledge.conf import get_storage_provider
from django_ai_knowledge.contrib.knowledge.storage.inmemory import InMemoryProvider


@pytest.fixture(autouse=True)
def reset_shared_storage_provider():
    get_storage_provider.cache_clear()
    yield
    get_storage_provider.cache_clear()


@pytest.fixture
def storage_provider():
    return InMemoryProvider()


@pytest.fixture
def embedding_transformer():
    return KeywordEmbeddingTransformer()


@pytest.fixture
def fake_any_llm():
    """Patch any-llm so configured embedders talk to a fake client."""
    client = fake_any_llm_client()
    with mock.patch.object(AnyLLM, "create", return_value=client) as create:
        create.client = client
        yield create


@pytest.fixture
def uploads_dir(settings, tmp_path):
    path = tmp_path / "uploads"
    settings.AI_KNOWLEDGE = {**settings.AI_KNOWLEDGE, "UPLOADS_DIR": str(path)}
    return path
