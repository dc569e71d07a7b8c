"""Services package."""

from .category_service import CategoryService
from .transaction_service import TransactionService
from .user_service import UserService, normalize_username

__all__ = [
    "CategoryService",
    "TransactionService",
    "UserService",
    "normalize_username",
]
