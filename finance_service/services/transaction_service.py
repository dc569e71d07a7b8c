"""
Transaction service.

Applies validation and per-user ownership around the transaction
repository. When given the category repository it also checks that a
transaction points at a category of the same owner.
"""

from dataclasses import replace
from typing import List, Optional

from pymongo import DESCENDING

from ..domain.entities import Category, Transaction
from ..domain.exceptions import (
    EntityNotFoundException,
    EntityValidationException,
    InvalidArgumentException,
)
from ..logging_config import get_logger
from ..repositories.base import IRepository
from ..repositories.identifiers import owned_filter
from ..validators import TransactionValidator, ensure_valid

logger = get_logger(__name__)

ENTITY = "Transaction"


def _require(value: Optional[str], name: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidArgumentException(name)
    return value


class TransactionService:
    """Validation and ownership scoping for transactions."""

    def __init__(
        self,
        repository: IRepository[Transaction],
        validator: Optional[TransactionValidator] = None,
        category_repository: Optional[IRepository[Category]] = None,
    ):
        if repository is None:
            raise InvalidArgumentException("repository")
        self.repository = repository
        self.validator = validator or TransactionValidator()
        self.category_repository = category_repository

    async def _ensure_category(self, transaction: Transaction) -> None:
        if self.category_repository is None:
            return
        query = owned_filter(transaction.category_id, transaction.owner_id)
        if not await self.category_repository.exists(query):
            raise EntityValidationException(
                {"category_id": ["Category does not exist"]}, entity=ENTITY
            )

    async def get_all(self, user_id: str) -> List[Transaction]:
        """All transactions owned by the user."""
        _require(user_id, "user_id")
        return await self.repository.find({"owner_id": user_id})

    async def get_by_id(self, transaction_id: str, user_id: str) -> Optional[Transaction]:
        """Return the transaction if the user owns it, else None."""
        return await self.repository.first_or_default(owned_filter(transaction_id, user_id))

    async def get_by_user(self, user_id: str) -> List[Transaction]:
        _require(user_id, "user_id")
        return await self.repository.find({"owner_id": user_id})

    async def get_by_category(self, category_id: str) -> List[Transaction]:
        """Transactions filed under a category, whoever owns them."""
        _require(category_id, "category_id")
        return await self.repository.find({"category_id": category_id})

    async def get_page(
        self, user_id: str, page_number: int = 1, page_size: int = 20
    ) -> List[Transaction]:
        """One page of the user's transactions, newest first."""
        _require(user_id, "user_id")
        return await self.repository.find_with_pagination(
            {"owner_id": user_id},
            page_number,
            page_size,
            sort=[("occurred_at", DESCENDING)],
        )

    async def create(self, transaction: Transaction) -> Transaction:
        """
        Validate and insert a transaction.

        Any identifier on the input is discarded; the store assigns one.
        """
        if transaction is None:
            raise InvalidArgumentException("transaction")
        ensure_valid(self.validator, transaction, ENTITY)
        await self._ensure_category(transaction)

        created = await self.repository.add(replace(transaction, id=None))
        logger.info(
            "Transaction created", transaction_id=created.id, owner_id=created.owner_id
        )
        return created

    async def update(
        self, transaction_id: str, transaction: Transaction, user_id: str
    ) -> Transaction:
        """
        Fully replace a transaction the user owns.

        Raises:
            EntityValidationException: If the payload is invalid
            EntityNotFoundException: If the user owns no such transaction
        """
        _require(transaction_id, "id")
        _require(user_id, "user_id")
        if transaction is None:
            raise InvalidArgumentException("transaction")

        candidate = replace(transaction, owner_id=user_id)
        ensure_valid(self.validator, candidate, ENTITY)

        existing = await self.get_by_id(transaction_id, user_id)
        if existing is None:
            raise EntityNotFoundException(ENTITY, transaction_id)

        await self._ensure_category(candidate)
        updated = await self.repository.update(replace(candidate, id=existing.id))
        logger.info("Transaction updated", transaction_id=updated.id, owner_id=user_id)
        return updated

    async def delete(self, transaction_id: str, user_id: str) -> None:
        """
        Delete a transaction the user owns.

        Raises:
            EntityNotFoundException: If the user owns no such transaction
        """
        existing = await self.get_by_id(transaction_id, user_id)
        if existing is None:
            raise EntityNotFoundException(ENTITY, transaction_id)

        if not await self.repository.delete(existing.id):
            raise EntityNotFoundException(ENTITY, transaction_id)
        logger.info("Transaction deleted", transaction_id=transaction_id, owner_id=user_id)
