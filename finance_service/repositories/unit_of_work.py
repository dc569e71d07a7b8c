"""
Unit of work over a MongoDB client session.

Coordinates the three repositories so several writes can commit or roll
back together. Without an explicit transaction every repository call is
committed on its own.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from pymongo.errors import PyMongoError

from ..domain.entities import Category, Transaction, User
from ..domain.exceptions import StoreException
from ..logging_config import get_logger
from .mongo_repository import MongoRepository

logger = get_logger(__name__)


class UnitOfWork:
    """Repositories sharing one client session."""

    def __init__(self, context: Any) -> None:
        """
        Args:
            context: MongoContext providing the client and collections
        """
        self.context = context
        self.session: Optional[Any] = None
        self._categories: Optional[MongoRepository[Category]] = None
        self._transactions: Optional[MongoRepository[Transaction]] = None
        self._users: Optional[MongoRepository[User]] = None

    @property
    def categories(self) -> MongoRepository[Category]:
        if self._categories is None:
            self._categories = MongoRepository(
                self.context.categories, Category, session=self.session
            )
        return self._categories

    @property
    def transactions(self) -> MongoRepository[Transaction]:
        if self._transactions is None:
            self._transactions = MongoRepository(
                self.context.transactions, Transaction, session=self.session
            )
        return self._transactions

    @property
    def users(self) -> MongoRepository[User]:
        if self._users is None:
            self._users = MongoRepository(self.context.users, User, session=self.session)
        return self._users

    @property
    def in_transaction(self) -> bool:
        return self.session is not None and bool(self.session.in_transaction)

    def _bind_session(self) -> None:
        for repository in (self._categories, self._transactions, self._users):
            if repository is not None:
                repository.session = self.session

    async def begin(self) -> None:
        """Start a session (if needed) and open a transaction on it."""
        try:
            if self.session is None:
                self.session = self.context.client.start_session()
                self._bind_session()
            await self.session.start_transaction()
        except PyMongoError as e:
            logger.error("Could not begin transaction", error=str(e))
            raise StoreException("begin_transaction", str(e)) from e
        logger.debug("Transaction started")

    async def commit(self) -> None:
        """Commit the open transaction; a no-op when none is open."""
        if not self.in_transaction:
            return
        try:
            await self.session.commit_transaction()
        except PyMongoError as e:
            logger.error("Transaction commit failed", error=str(e))
            raise StoreException("commit_transaction", str(e)) from e
        logger.debug("Transaction committed")

    async def rollback(self) -> None:
        """Abort the open transaction; a no-op when none is open."""
        if not self.in_transaction:
            return
        try:
            await self.session.abort_transaction()
        except PyMongoError as e:
            logger.error("Transaction rollback failed", error=str(e))
            raise StoreException("abort_transaction", str(e)) from e
        logger.debug("Transaction rolled back")

    async def close(self) -> None:
        """End the session, aborting any transaction still open."""
        if self.session is None:
            return
        session, self.session = self.session, None
        self._bind_session()
        await session.end_session()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["UnitOfWork"]:
        """
        Run a block atomically.

        Example:
            async with uow.transaction():
                await uow.categories.add(category)
                await uow.transactions.add(transaction)
        """
        await self.begin()
        try:
            yield self
        except BaseException:
            try:
                await self.rollback()
            except StoreException as e:
                logger.error("Rollback failed, keeping the original error", error=str(e))
            raise
        else:
            await self.commit()

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
