"""
Dependency wiring for the finance service.

Builds repositories, validators, the credential manager and the entity
services from one Mongo context, and resolves the calling user from an
Authorization header for whatever transport sits on top.
"""

from dataclasses import dataclass
from typing import Optional

from .config import Settings, settings
from .database import MongoContext, create_indexes
from .domain.entities import Category, Clock, Transaction, User, utc_now
from .domain.exceptions import UnauthorizedException
from .logging_config import get_logger, setup_logging
from .repositories.mongo_repository import MongoRepository
from .repositories.unit_of_work import UnitOfWork
from .security import CredentialManager
from .services import CategoryService, TransactionService, UserService
from .validators import CategoryValidator, TransactionValidator, UserValidator

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    """Everything a request handler needs, built once at startup."""

    context: MongoContext
    credentials: CredentialManager
    categories: CategoryService
    transactions: TransactionService
    users: UserService

    @classmethod
    def from_context(
        cls,
        context: MongoContext,
        config: Optional[Settings] = None,
        clock: Clock = utc_now,
    ) -> "ServiceContainer":
        """
        Wire services over the context's collections.

        Raises:
            ConfigurationException: If no token signing key is configured
        """
        config = config or settings
        credentials = CredentialManager(config, clock=clock)

        category_repository = MongoRepository(context.categories, Category)
        transaction_repository = MongoRepository(context.transactions, Transaction)
        user_repository = MongoRepository(context.users, User)

        return cls(
            context=context,
            credentials=credentials,
            categories=CategoryService(category_repository, CategoryValidator()),
            transactions=TransactionService(
                transaction_repository,
                TransactionValidator(clock=clock),
                category_repository=category_repository,
            ),
            users=UserService(user_repository, credentials, UserValidator()),
        )

    def unit_of_work(self) -> UnitOfWork:
        return UnitOfWork(self.context)


async def build_container(config: Optional[Settings] = None) -> ServiceContainer:
    """Connect to MongoDB, ensure indexes and wire the services."""
    config = config or settings
    setup_logging(config.LOG_LEVEL, config.LOG_JSON)
    context = MongoContext(config)
    if config.MONGODB_CREATE_INDEXES:
        await create_indexes(context)
    container = ServiceContainer.from_context(context, config)
    logger.info("Service container ready", database=context.database_name)
    return container


def get_token_from_header(authorization: Optional[str]) -> str:
    """
    Extract the bearer token from an Authorization header.

    Raises:
        UnauthorizedException: If the header is missing or malformed
    """
    if not authorization:
        raise UnauthorizedException("Authorization header required")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise UnauthorizedException("Invalid authorization header format")

    return parts[1]


def get_current_user_id(
    authorization: Optional[str], credentials: CredentialManager
) -> str:
    """User id from the subject claim of a verified bearer token."""
    return credentials.subject(get_token_from_header(authorization))
