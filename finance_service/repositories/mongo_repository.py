"""
MongoDB implementation of the generic repository.

Wraps one async collection handle. Store failures are translated into
domain exceptions so no driver error type leaves this module.
"""

from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Dict, Iterator, List, Optional, Type

from pymongo.errors import DuplicateKeyError, PyMongoError

from ..domain.exceptions import (
    AlreadyExistsException,
    EntityNotFoundException,
    InvalidArgumentException,
    StoreException,
)
from ..logging_config import get_logger
from ..metrics import track_repository_operation
from .base import IRepository, Predicate, SortSpec, T
from .identifiers import PLAIN_ID_FIELD, IdentifierKind, resolve_identifier

logger = get_logger(__name__)


class MongoRepository(IRepository[T]):
    """Generic CRUD and query operations over a single collection."""

    def __init__(self, collection: Any, entity_type: Type[T], session: Any = None):
        """
        Initialize repository.

        Args:
            collection: Async collection handle
            entity_type: Entity class providing to_document/from_document
            session: Optional client session shared with a unit of work
        """
        if collection is None:
            raise InvalidArgumentException("collection")
        self.collection = collection
        self.entity_type = entity_type
        self.session = session
        self.entity_name = entity_type.__name__
        self.collection_name = getattr(collection, "name", self.entity_name)

    @contextmanager
    def _store_call(self, operation: str) -> Iterator[None]:
        try:
            yield
        except DuplicateKeyError as e:
            track_repository_operation(self.collection_name, operation, False)
            key_value = (e.details or {}).get("keyValue", {})
            logger.warning(
                "Duplicate key rejected",
                collection=self.collection_name,
                operation=operation,
                key=str(key_value),
            )
            raise AlreadyExistsException(self.entity_name, str(key_value)) from e
        except PyMongoError as e:
            track_repository_operation(self.collection_name, operation, False)
            logger.error(
                "Store operation failed",
                collection=self.collection_name,
                operation=operation,
                error=str(e),
            )
            raise StoreException(operation, str(e)) from e
        else:
            track_repository_operation(self.collection_name, operation, True)

    def _to_entity(self, document: Optional[Dict[str, Any]]) -> Optional[T]:
        if document is None:
            return None
        return self.entity_type.from_document(document)

    def _to_entities(self, documents: Optional[List[Dict[str, Any]]]) -> List[T]:
        # An absent page is treated as zero rows.
        return [self.entity_type.from_document(doc) for doc in documents or [] if doc]

    @staticmethod
    def _require_predicate(predicate: Optional[Predicate]) -> Predicate:
        if predicate is None:
            raise InvalidArgumentException("predicate")
        return predicate

    async def get_by_id(self, entity_id: str) -> Optional[T]:
        """Find an entity by native or plain identifier."""
        query = resolve_identifier(entity_id).as_query()
        with self._store_call("get_by_id"):
            document = await self.collection.find_one(query, session=self.session)
        return self._to_entity(document)

    async def first_or_default(self, predicate: Predicate) -> Optional[T]:
        query = self._require_predicate(predicate)
        with self._store_call("first_or_default"):
            document = await self.collection.find_one(query, session=self.session)
        return self._to_entity(document)

    async def find(self, predicate: Predicate) -> List[T]:
        query = self._require_predicate(predicate)
        with self._store_call("find"):
            cursor = self.collection.find(query, session=self.session)
            documents = await cursor.to_list(length=None) if cursor is not None else None
        return self._to_entities(documents)

    async def get_all(self) -> List[T]:
        return await self.find({})

    async def count(self, predicate: Optional[Predicate] = None) -> int:
        with self._store_call("count"):
            total = await self.collection.count_documents(
                predicate or {}, session=self.session
            )
        return int(total or 0)

    async def exists(self, predicate: Predicate) -> bool:
        query = self._require_predicate(predicate)
        with self._store_call("exists"):
            document = await self.collection.find_one(
                query, {"_id": 1}, session=self.session
            )
        return document is not None

    async def add(self, entity: T) -> T:
        """
        Insert an entity.

        A caller-chosen identifier is stored as-is (ObjectId strings become
        the native key); otherwise the store assigns one.
        """
        if entity is None:
            raise InvalidArgumentException("entity")

        document = entity.to_document()
        if entity.id:
            resolved = resolve_identifier(entity.id)
            document[resolved.field] = resolved.value

        with self._store_call("add"):
            result = await self.collection.insert_one(document, session=self.session)

        if not entity.id:
            entity = replace(entity, id=str(result.inserted_id))
        logger.debug("Entity added", collection=self.collection_name, id=entity.id)
        return entity

    async def update(self, entity: T) -> T:
        """Replace the stored document; fails when nothing matched."""
        if entity is None:
            raise InvalidArgumentException("entity")
        if not entity.id:
            raise InvalidArgumentException("id", "is required for update")

        resolved = resolve_identifier(entity.id)
        document = entity.to_document()
        if resolved.kind is IdentifierKind.PLAIN:
            document[PLAIN_ID_FIELD] = resolved.value

        with self._store_call("update"):
            result = await self.collection.replace_one(
                resolved.as_query(), document, upsert=False, session=self.session
            )

        if result is None or result.matched_count == 0:
            raise EntityNotFoundException(self.entity_name, entity.id)
        return entity

    async def delete(self, entity_id: str) -> bool:
        query = resolve_identifier(entity_id).as_query()
        with self._store_call("delete"):
            result = await self.collection.delete_one(query, session=self.session)
        return result is not None and result.deleted_count > 0

    async def delete_many(self, predicate: Predicate) -> int:
        query = self._require_predicate(predicate)
        with self._store_call("delete_many"):
            result = await self.collection.delete_many(query, session=self.session)
        return 0 if result is None else int(result.deleted_count)

    async def find_with_pagination(
        self,
        predicate: Predicate,
        page_number: int,
        page_size: int,
        sort: Optional[SortSpec] = None,
    ) -> List[T]:
        query = self._require_predicate(predicate)
        if page_number < 1:
            raise InvalidArgumentException("page_number", "must be greater than 0")
        if page_size < 1:
            raise InvalidArgumentException("page_size", "must be greater than 0")

        skip = (page_number - 1) * page_size
        with self._store_call("find_with_pagination"):
            cursor = self.collection.find(query, session=self.session)
            if sort:
                cursor = cursor.sort(list(sort))
            cursor = cursor.skip(skip).limit(page_size)
            documents = await cursor.to_list(length=None)
        return self._to_entities(documents)
