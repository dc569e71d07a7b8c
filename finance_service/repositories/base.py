"""
Repository interface (Abstract Base Class).

Defines the contract for entity persistence and retrieval independent of
the underlying document store. Predicates are store filter documents.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

Predicate = Dict[str, Any]
SortSpec = Sequence[Tuple[str, int]]


class IRepository(ABC, Generic[T]):
    """
    Abstract repository for a single entity collection.

    This interface defines all data access methods without
    implementation details, enabling dependency inversion.
    """

    @abstractmethod
    async def get_by_id(self, entity_id: str) -> Optional[T]:
        """
        Find an entity by identifier.

        Args:
            entity_id: Native ObjectId string or plain identifier

        Returns:
            Entity if found, None otherwise
        """
        pass

    @abstractmethod
    async def first_or_default(self, predicate: Predicate) -> Optional[T]:
        """Return the first entity matching the predicate, or None."""
        pass

    @abstractmethod
    async def find(self, predicate: Predicate) -> List[T]:
        """Return every entity matching the predicate."""
        pass

    @abstractmethod
    async def get_all(self) -> List[T]:
        """Return every entity in the collection."""
        pass

    @abstractmethod
    async def count(self, predicate: Optional[Predicate] = None) -> int:
        """Count entities matching the predicate (all when omitted)."""
        pass

    @abstractmethod
    async def exists(self, predicate: Predicate) -> bool:
        """Whether any entity matches the predicate."""
        pass

    @abstractmethod
    async def add(self, entity: T) -> T:
        """
        Insert an entity.

        Returns:
            The stored entity carrying its assigned identifier
        """
        pass

    @abstractmethod
    async def update(self, entity: T) -> T:
        """
        Replace the stored entity with the same identifier.

        Raises:
            EntityNotFoundException: If no document matched
        """
        pass

    @abstractmethod
    async def delete(self, entity_id: str) -> bool:
        """
        Delete an entity by identifier.

        Returns:
            True if a document was deleted, False if nothing matched
        """
        pass

    @abstractmethod
    async def delete_many(self, predicate: Predicate) -> int:
        """Delete matching entities and return how many were removed."""
        pass

    @abstractmethod
    async def find_with_pagination(
        self,
        predicate: Predicate,
        page_number: int,
        page_size: int,
        sort: Optional[SortSpec] = None,
    ) -> List[T]:
        """
        Return one page of matching entities.

        Args:
            predicate: Store filter
            page_number: 1-based page index
            page_size: Entities per page
            sort: Caller-supplied ordering; the repository defines none

        Returns:
            Entities on the requested page
        """
        pass
