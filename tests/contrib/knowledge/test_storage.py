from unittest import mock

import pytest

from django_ai_knowledge.contrib.knowledge.schema import EmbeddedRecord, FieldValue
from django_ai_knowledge.contrib.knowledge.storage.base import storage_errors
from django_ai_knowledge.contrib.knowledge.storage.inmemory import (
    InMemoryProvider,
    cosine_distance,
)
from django_ai_knowledge.exceptions import (
    DimensionMismatchError,
    KnowledgeBaseNotFound,
    StorageError,
)


def create_embedded_record(key="test:1", content="Test content", vector=None):
    """Helper to create an embedded record for testing."""
    return EmbeddedRecord(
        key=key,
        fields={
            "content": FieldValue(value=content, embed_key="vector"),
            "metadata": FieldValue(value="test.txt"),
        },
        vectors={"vector": vector or [0.1, 0.2, 0.3]},
    )


@pytest.fixture
def provider():
    provider = InMemoryProvider()
    provider.create_index("test_index", 3)
    return provider


class TestInMemoryProvider:
    """Tests for the InMemoryProvider."""

    def test_create_index(self):
        provider = InMemoryProvider()

        assert provider.create_index("test_index", 3) is True
        assert provider.index_exists("test_index")
        assert provider.get_index_dimensions("test_index") == 3

    def test_create_existing_index(self, provider):
        """Creating an index twice with the same dimension is a no-op."""
        provider.write("test_index", [create_embedded_record()])

        assert provider.create_index("test_index", 3) is False
        assert len(provider.get_index("test_index").records) == 1

    def test_create_existing_index_other_dimension(self, provider):
        with pytest.raises(DimensionMismatchError):
            provider.create_index("test_index", 1536)

    def test_write_records(self, provider):
        record1 = create_embedded_record(key="test:1", content="Record 1")
        record2 = create_embedded_record(key="test:2", content="Record 2")

        provider.write("test_index", [record1, record2])

        records = provider.get_index("test_index").records
        assert len(records) == 2
        assert records["test:1"] is record1
        assert records["test:2"] is record2

    def test_write_replaces_same_key(self, provider):
        provider.write("test_index", [create_embedded_record(content="old")])
        provider.write("test_index", [create_embedded_record(content="new")])

        records = provider.get_index("test_index").records
        assert len(records) == 1
        assert records["test:1"].fields["content"].value == "new"

    def test_write_wrong_dimension(self, provider):
        with pytest.raises(DimensionMismatchError):
            provider.write("test_index", [create_embedded_record(vector=[1.0, 2.0])])

        assert provider.get_index("test_index").records == {}

    def test_write_missing_index(self):
        with pytest.raises(KnowledgeBaseNotFound):
            InMemoryProvider().write("missing", [create_embedded_record()])

    def test_delete_index(self, provider):
        provider.write("test_index", [create_embedded_record()])

        provider.delete_index("test_index")

        assert not provider.index_exists("test_index")

    def test_delete_missing_index(self):
        with pytest.raises(KnowledgeBaseNotFound):
            InMemoryProvider().delete_index("missing")

    def test_indexes_are_isolated(self, provider):
        provider.create_index("other_index", 3)
        provider.write("test_index", [create_embedded_record()])

        assert provider.get_index("other_index").records == {}

    def test_hit_class_generation(self):
        """Test hit_cls property generates correct class."""
        provider = InMemoryProvider()
        hit_class = provider.hit_cls

        assert hit_class.__name__ == "InMemoryHit"
        assert hit_class.Meta.storage_provider is provider

    def test_objects_property(self):
        """Test objects property returns queryable interface."""
        provider = InMemoryProvider()

        query_builder = provider.objects
        assert hasattr(query_builder, "filter")

    @mock.patch("numpy.dot")
    @mock.patch("numpy.linalg.norm")
    def test_queryset_run_query(self, mock_norm, mock_dot, provider):
        """Test InMemoryQuerySet run_query with mocked numpy."""
        mock_dot.return_value = 0.5
        mock_norm.return_value = 1.0
        provider.write("test_index", [create_embedded_record()])

        queryset = provider.objects.filter(
            index="test_index", embedding=[0.4, 0.5, 0.6]
        )
        results = list(queryset)

        assert len(results) == 1
        assert results[0].key == "test:1"
        assert results[0].fields == {
            "content": "Test content",
            "metadata": "test.txt",
            "distance": "0.5",
        }
        mock_dot.assert_called_once()

    def test_search_orders_by_distance(self, provider):
        provider.write(
            "test_index",
            [
                create_embedded_record(key="far", vector=[0.0, 0.0, 1.0]),
                create_embedded_record(key="near", vector=[1.0, 0.1, 0.0]),
                create_embedded_record(key="exact", vector=[1.0, 0.0, 0.0]),
            ],
        )

        hits = provider.search("test_index", [1.0, 0.0, 0.0])

        assert [hit.key for hit in hits] == ["exact", "near", "far"]
        assert float(hits[0].fields["distance"]) == pytest.approx(0.0, abs=1e-9)
        assert float(hits[2].fields["distance"]) == pytest.approx(1.0)

    def test_search_top_k(self, provider):
        provider.write(
            "test_index",
            [create_embedded_record(key=f"test:{i}") for i in range(8)],
        )

        assert len(provider.search("test_index", [0.1, 0.2, 0.3], top_k=5)) == 5
        assert len(provider.search("test_index", [0.1, 0.2, 0.3], top_k=20)) == 8

    def test_search_return_fields(self, provider):
        provider.write("test_index", [create_embedded_record()])

        (hit,) = provider.search(
            "test_index", [0.1, 0.2, 0.3], return_fields=["content", "distance"]
        )

        assert set(hit.fields) == {"content", "distance"}

    def test_search_wrong_dimension(self, provider):
        with pytest.raises(DimensionMismatchError):
            provider.search("test_index", [1.0, 0.0])

    def test_search_requires_index_filter(self, provider):
        with pytest.raises(ValueError):
            list(provider.objects.filter(embedding=[0.1, 0.2, 0.3]))

    def test_search_rejects_unknown_filters(self, provider):
        with pytest.raises((NotImplementedError, ValueError)):
            list(
                provider.objects.filter(
                    index="test_index", embedding=[0.1, 0.2, 0.3], source="a.txt"
                )
            )


def test_cosine_distance_zero_vector():
    assert cosine_distance([0.0, 0.0], [1.0, 0.0]) == 1.0


def test_storage_errors_wraps_client_failures():
    with pytest.raises(StorageError, match="failed to write: boom"):
        with storage_errors("failed to write"):
            raise RuntimeError("boom")


def test_storage_errors_keeps_domain_errors():
    with pytest.raises(KnowledgeBaseNotFound):
        with storage_errors("failed to write"):
            raise KnowledgeBaseNotFound("missing")
