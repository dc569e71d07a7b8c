"""
Validation rules for finance entities.

Each validator checks every rule independently and reports all
violations as (field, message) pairs; an empty list means valid.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, DecimalException, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional

from bson import Decimal128

from .domain.entities import Category, Clock, EntryKind, Role, Transaction, User, utc_now
from .domain.exceptions import EntityValidationException
from .logging_config import get_logger
from .metrics import validation_failures_total

logger = get_logger(__name__)

ENTRY_KINDS = frozenset(kind.value for kind in EntryKind)
ROLES = frozenset(role.value for role in Role)


@dataclass(frozen=True)
class FieldError:
    """A single rule violation."""

    field: str
    message: str


def _value(raw: Any) -> Any:
    return raw.value if isinstance(raw, Enum) else raw


def _blank(raw: Optional[str]) -> bool:
    return raw is None or not str(raw).strip()


def error_map(errors: List[FieldError]) -> Dict[str, List[str]]:
    """Group violations by field, keeping rule order."""
    grouped: Dict[str, List[str]] = {}
    for error in errors:
        grouped.setdefault(error.field, []).append(error.message)
    return grouped


class CategoryValidator:
    """Rules for categories."""

    NAME_MAX_LENGTH = 50

    def validate(self, category: Category) -> List[FieldError]:
        errors: List[FieldError] = []

        if _blank(category.name):
            errors.append(FieldError("name", "Category name is required"))
        elif len(category.name) > self.NAME_MAX_LENGTH:
            errors.append(
                FieldError("name", f"Name must not exceed {self.NAME_MAX_LENGTH} characters")
            )

        kind = _value(category.kind)
        if _blank(kind):
            errors.append(FieldError("kind", "Kind is required"))
        elif kind not in ENTRY_KINDS:
            errors.append(FieldError("kind", "Kind must be 'Ingreso' or 'Gasto'"))

        if _blank(category.owner_id):
            errors.append(FieldError("owner_id", "Owner is required"))

        return errors


class TransactionValidator:
    """
    Rules for transactions.

    The timestamp rule compares against the injected clock, sampled on
    every call so a long-lived validator never uses a stale "now".
    """

    DESCRIPTION_MAX_LENGTH = 200

    def __init__(self, clock: Clock = utc_now):
        self.clock = clock

    def validate(self, transaction: Transaction) -> List[FieldError]:
        errors: List[FieldError] = []

        kind = _value(transaction.kind)
        if _blank(kind):
            errors.append(FieldError("kind", "Transaction kind is required"))
        elif kind not in ENTRY_KINDS:
            errors.append(FieldError("kind", "Kind must be 'Ingreso' or 'Gasto'"))

        errors.extend(self._validate_amount(transaction.amount))

        if len(transaction.description or "") > self.DESCRIPTION_MAX_LENGTH:
            errors.append(
                FieldError(
                    "description",
                    f"Description must not exceed {self.DESCRIPTION_MAX_LENGTH} characters",
                )
            )

        if _blank(transaction.category_id):
            errors.append(FieldError("category_id", "Category is required"))

        if _blank(transaction.owner_id):
            errors.append(FieldError("owner_id", "Owner is required"))

        errors.extend(self._validate_occurred_at(transaction.occurred_at))

        return errors

    @staticmethod
    def _validate_amount(amount: Any) -> List[FieldError]:
        if amount is None:
            return [FieldError("amount", "Amount is required")]
        if isinstance(amount, bool):
            return [FieldError("amount", "Amount must be a number")]
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError):
            return [FieldError("amount", "Amount must be a number")]
        if not value.is_finite() or value <= 0:
            return [FieldError("amount", "Amount must be greater than 0")]
        try:
            Decimal128(value)
        except (DecimalException, ValueError):
            return [FieldError("amount", "Amount is out of range")]
        return []

    def _validate_occurred_at(self, occurred_at: Any) -> List[FieldError]:
        if occurred_at is None:
            return [FieldError("occurred_at", "Date is required")]
        if not isinstance(occurred_at, datetime):
            return [FieldError("occurred_at", "Date must be a timestamp")]
        if occurred_at.tzinfo is None:
            occurred_at = occurred_at.replace(tzinfo=timezone.utc)
        if occurred_at > self.clock():
            return [FieldError("occurred_at", "Date cannot be in the future")]
        return []


class UserValidator:
    """Rules for user accounts. The password must already be hashed."""

    USERNAME_MIN_LENGTH = 3
    USERNAME_MAX_LENGTH = 50
    USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_\-]+$")

    def validate(self, user: User) -> List[FieldError]:
        errors: List[FieldError] = []
        username = user.username or ""

        if _blank(username):
            errors.append(FieldError("username", "Username is required"))
        else:
            if len(username) < self.USERNAME_MIN_LENGTH:
                errors.append(
                    FieldError(
                        "username",
                        f"Username must be at least {self.USERNAME_MIN_LENGTH} characters",
                    )
                )
            if len(username) > self.USERNAME_MAX_LENGTH:
                errors.append(
                    FieldError(
                        "username",
                        f"Username must not exceed {self.USERNAME_MAX_LENGTH} characters",
                    )
                )
            if not self.USERNAME_PATTERN.match(username):
                errors.append(
                    FieldError(
                        "username",
                        "Username may only contain letters, digits, hyphens and underscores",
                    )
                )

        if _blank(user.password_hash):
            errors.append(FieldError("password_hash", "Password is required"))

        role = _value(user.role)
        if _blank(role):
            errors.append(FieldError("role", "Role is required"))
        elif role not in ROLES:
            errors.append(FieldError("role", "Role must be 'admin' or 'usuario'"))

        return errors


def ensure_valid(validator: Any, entity: Any, entity_name: str) -> None:
    """
    Run a validator and raise when anything is violated.

    Raises:
        EntityValidationException: With every violated field and message
    """
    errors = validator.validate(entity)
    if errors:
        grouped = error_map(errors)
        validation_failures_total.labels(entity=entity_name).inc()
        logger.info("Validation failed", entity=entity_name, fields=sorted(grouped))
        raise EntityValidationException(grouped, entity=entity_name)
