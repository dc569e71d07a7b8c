"""
Database connection management for the finance service.

Provides the MongoDB client, the collection handles used by the
repositories and the index declarations.
"""

from typing import Any, Optional

from pymongo import ASCENDING, DESCENDING, AsyncMongoClient, IndexModel
from pymongo.errors import PyMongoError

from .config import Settings, settings
from .domain.exceptions import StoreException
from .logging_config import get_logger

logger = get_logger(__name__)

CATEGORIES_COLLECTION = "categories"
TRANSACTIONS_COLLECTION = "transactions"
USERS_COLLECTION = "users"


class MongoContext:
    """
    Owns the MongoDB client and exposes one handle per collection.

    Attributes:
        client: AsyncMongoClient (safe for concurrent use)
        database: Database handle for the configured database
    """

    def __init__(self, config: Optional[Settings] = None, client: Any = None) -> None:
        """
        Initialize the context.

        Args:
            config: Settings to read the connection string and database from
            client: Pre-built client, mainly for tests
        """
        self.config = config or settings
        self.client = client or AsyncMongoClient(self.config.MONGODB_URL, tz_aware=True)
        self.database = self.client[self.config.MONGODB_DATABASE]
        logger.info("Mongo context created", database=self.config.MONGODB_DATABASE)

    @property
    def database_name(self) -> str:
        return self.config.MONGODB_DATABASE

    @property
    def categories(self) -> Any:
        return self.database[CATEGORIES_COLLECTION]

    @property
    def transactions(self) -> Any:
        return self.database[TRANSACTIONS_COLLECTION]

    @property
    def users(self) -> Any:
        return self.database[USERS_COLLECTION]

    async def ping(self) -> bool:
        """Check that the server answers."""
        try:
            await self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning("Database ping failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the client connection pool."""
        await self.client.close()
        logger.info("Mongo client closed")


async def create_indexes(context: MongoContext) -> None:
    """
    Create or verify the indexes every collection relies on.

    Args:
        context: Mongo context whose collections get the indexes

    Raises:
        StoreException: If the store rejects an index definition
    """
    try:
        await context.users.create_indexes(
            [
                IndexModel(
                    [("username", ASCENDING)],
                    name="idx_user_username_unique",
                    unique=True,
                ),
                IndexModel([("role", ASCENDING)], name="idx_user_role"),
            ]
        )
        logger.info("User indexes created", collection=USERS_COLLECTION)

        await context.categories.create_indexes(
            [
                IndexModel([("owner_id", ASCENDING)], name="idx_category_owner"),
                IndexModel(
                    [("owner_id", ASCENDING), ("name", ASCENDING)],
                    name="idx_category_owner_name_unique",
                    unique=True,
                ),
            ]
        )
        logger.info("Category indexes created", collection=CATEGORIES_COLLECTION)

        await context.transactions.create_indexes(
            [
                IndexModel([("owner_id", ASCENDING)], name="idx_transaction_owner"),
                IndexModel([("category_id", ASCENDING)], name="idx_transaction_category"),
                IndexModel([("occurred_at", DESCENDING)], name="idx_transaction_date_desc"),
                IndexModel(
                    [("owner_id", ASCENDING), ("occurred_at", DESCENDING)],
                    name="idx_transaction_owner_date",
                ),
            ]
        )
        logger.info("Transaction indexes created", collection=TRANSACTIONS_COLLECTION)
    except PyMongoError as e:
        logger.error("Index creation failed", error=str(e))
        raise StoreException("create_indexes", str(e)) from e
