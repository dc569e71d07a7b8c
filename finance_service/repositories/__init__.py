"""
Repository layer - Data access abstractions.

This layer provides interfaces for data persistence and retrieval,
hiding implementation details from the business logic.
"""

from .base import IRepository
from .identifiers import IdentifierFilter, IdentifierKind, owned_filter, resolve_identifier
from .mongo_repository import MongoRepository
from .unit_of_work import UnitOfWork

__all__ = [
    "IRepository",
    "IdentifierFilter",
    "IdentifierKind",
    "MongoRepository",
    "UnitOfWork",
    "owned_filter",
    "resolve_identifier",
]
