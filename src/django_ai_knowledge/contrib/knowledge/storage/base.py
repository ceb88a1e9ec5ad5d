from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import ClassVar, Generic, Iterable, Iterator, Sequence, TypeVar

from queryish import Queryish, VirtualModel

from django_ai_knowledge.exceptions import KnowledgeBaseError, StorageError

from ..schema import VECTOR_FIELD, EmbeddedRecord

StorageProviderType = TypeVar("StorageProviderType", bound="StorageProvider")


@contextmanager
def storage_errors(message: str):
    """Re-raise store client failures as StorageError, prefixed with ``message``."""
    try:
        yield
    except KnowledgeBaseError:
        raise
    except Exception as e:
        raise StorageError(f"{message}: {e}") from e


class BaseStorageQuerySet(Queryish, Generic[StorageProviderType]):
    """Base Queryish QuerySet for similarity searches against one index.

    Searches are expressed as ``objects.filter(index=..., embedding=...)``;
    slicing sets the number of hits returned.
    """

    # Defaults to None even though this isn't a valid type as Queryish
    # uses 'hasattr' to check if it can copy a Meta attribute from the Virtual Model.
    # The value is filled in on the QuerySet class generated for each provider.
    storage_provider: StorageProviderType = None  # type: ignore
    model: type["StorageHit"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.return_fields: tuple[str, ...] | None = None
        self.vector_field: str = VECTOR_FIELD

    def returning(self, *fields: str) -> "BaseStorageQuerySet":
        """Only return the given fields on each hit."""
        clone = self.clone()
        clone.return_fields = fields
        return clone

    def using(self, vector_field: str) -> "BaseStorageQuerySet":
        """Search against the named vector field."""
        clone = self.clone()
        clone.vector_field = vector_field
        return clone

    def get_search_params(self) -> tuple[str, list[float]]:
        if not self.storage_provider:
            raise ValueError("Storage provider is required")

        filter_map = {filter[0]: filter[1] for filter in self.filters}

        index_name = filter_map.pop("index", None)
        if index_name is None:
            raise ValueError("index filter is required")

        embedding = filter_map.pop("embedding", None)
        if embedding is None:
            raise ValueError("embedding filter is required")

        if filter_map:
            raise NotImplementedError(
                f"Filtering on {sorted(filter_map)} is not supported"
            )

        if self.ordering:
            raise NotImplementedError("Ordering is not supported for querying")

        return index_name, list(embedding)

    def select_fields(self, fields: dict[str, str]) -> dict[str, str]:
        if self.return_fields is None:
            return fields
        return {name: fields[name] for name in self.return_fields if name in fields}

    def run_query(self) -> Iterator["StorageHit"]:
        """Execute the query and return the results, closest first."""
        raise NotImplementedError


class StorageHit(VirtualModel):
    """A search hit: the record key and the returned field values.

    Subclasses are generated dynamically by StorageProviders.
    """

    base_query_class = BaseStorageQuerySet
    pk_field_name = "key"

    key: str
    fields: dict[str, str]

    class Meta:
        fields = ["key", "fields"]
        storage_provider: "StorageProvider"

    def __str__(self):
        return self.key


class StorageProvider(ABC):
    """Base class for vector storage backends.

    A provider wraps one long-lived store connection and manages any number
    of named indexes, one per knowledge base.
    """

    base_queryset_cls: ClassVar[type[BaseStorageQuerySet]]

    def __init__(self, **kwargs):
        pass

    @property
    def hit_cls(self) -> type[StorageHit]:
        """Build a hit class bound to this storage provider."""
        meta = type(
            "Meta",
            (StorageHit.Meta,),
            {
                "storage_provider": self,
            },
        )

        hit_class_name = f"{self.__class__.__name__}Hit"
        if self.__class__.__name__.endswith("Provider"):
            hit_class_name = self.__class__.__name__.replace("Provider", "Hit")

        return type(
            hit_class_name,
            (StorageHit,),
            {"Meta": meta, "base_query_class": self.base_queryset_cls},
        )

    @property
    def objects(self) -> BaseStorageQuerySet:
        return self.hit_cls.objects

    @abstractmethod
    def create_index(
        self,
        name: str,
        dimensions: int,
        *,
        vector_fields: Sequence[str] = (VECTOR_FIELD,),
    ) -> bool:
        """Create an index for vectors of the given dimension.

        Returns False if the index already exists with the same dimension.

        Raises:
            DimensionMismatchError: If the index exists with another dimension.
        """
        ...

    @abstractmethod
    def index_exists(self, name: str) -> bool: ...

    @abstractmethod
    def get_index_dimensions(self, name: str) -> int: ...

    @abstractmethod
    def delete_index(self, name: str) -> None:
        """Drop an index and every record in it.

        Raises:
            KnowledgeBaseNotFound: If the index doesn't exist.
        """
        ...

    @abstractmethod
    def write(self, name: str, records: Iterable[EmbeddedRecord]) -> None:
        """Store records in an index, replacing records with the same key."""
        ...

    def search(
        self,
        name: str,
        vector: list[float],
        *,
        top_k: int = 5,
        return_fields: Sequence[str] | None = None,
        vector_field: str = VECTOR_FIELD,
    ) -> list[StorageHit]:
        """Return the ``top_k`` records closest to ``vector``, closest first."""
        queryset = self.objects.filter(index=name, embedding=vector).using(
            vector_field
        )
        if return_fields is not None:
            queryset = queryset.returning(*return_fields)
        return list(queryset[:top_k])
