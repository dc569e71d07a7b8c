"""
Domain entities for personal finance tracking.

Categories and transactions are owned by a single user; users hold the
salted password credential and the administrative activation flag.
Each entity knows how to map itself to and from its stored document.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Optional

from bson import Decimal128
from pydantic import BaseModel, ConfigDict

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: the current time in UTC."""
    return datetime.now(timezone.utc)


class EntryKind(str, Enum):
    """Whether money comes in or goes out."""

    INCOME = "Ingreso"
    EXPENSE = "Gasto"


class Role(str, Enum):
    """Account roles."""

    ADMIN = "admin"
    USER = "usuario"


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def _document_id(document: Dict[str, Any]) -> Optional[str]:
    # Records created with a plain identifier keep it in "id"; the rest
    # are addressed by the store-assigned ObjectId.
    if document.get("id"):
        return str(document["id"])
    raw = document.get("_id")
    return None if raw is None else str(raw)


@dataclass
class Category:
    """A user-defined income or expense category."""

    name: str
    kind: str
    owner_id: str
    id: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        return {"name": self.name, "kind": _plain(self.kind), "owner_id": self.owner_id}

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Category":
        return cls(
            id=_document_id(document),
            name=document.get("name", ""),
            kind=document.get("kind", ""),
            owner_id=document.get("owner_id", ""),
        )


@dataclass
class Transaction:
    """A single monetary movement filed under a category."""

    kind: str
    amount: Decimal
    category_id: str
    owner_id: str
    occurred_at: Optional[datetime]
    description: str = ""
    id: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        amount = self.amount
        if amount is not None and not isinstance(amount, Decimal128):
            amount = Decimal128(Decimal(str(amount)))
        return {
            "kind": _plain(self.kind),
            "amount": amount,
            "description": self.description or "",
            "category_id": self.category_id,
            "occurred_at": self.occurred_at,
            "owner_id": self.owner_id,
        }

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Transaction":
        amount = document.get("amount")
        if isinstance(amount, Decimal128):
            amount = amount.to_decimal()
        elif amount is not None:
            amount = Decimal(str(amount))

        occurred_at = document.get("occurred_at")
        if isinstance(occurred_at, datetime) and occurred_at.tzinfo is None:
            occurred_at = occurred_at.replace(tzinfo=timezone.utc)

        return cls(
            id=_document_id(document),
            kind=document.get("kind", ""),
            amount=amount,
            description=document.get("description") or "",
            category_id=document.get("category_id", ""),
            occurred_at=occurred_at,
            owner_id=document.get("owner_id", ""),
        )


@dataclass
class User:
    """
    An account able to sign in.

    ``password_hash`` holds ``rounds:base64(salt):base64(derived_key)``, never the
    cleartext password.
    """

    username: str
    password_hash: str
    active: bool = False
    role: str = Role.USER.value
    id: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "password_hash": self.password_hash,
            "active": self.active,
            "role": _plain(self.role),
        }

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "User":
        return cls(
            id=_document_id(document),
            username=document.get("username", ""),
            password_hash=document.get("password_hash", ""),
            active=bool(document.get("active", False)),
            role=document.get("role", Role.USER.value),
        )


class CategoryPatch(BaseModel):
    """
    Fields a partial category update may change.

    A field counts as supplied only when it was set explicitly, so an
    empty string sent by the caller is applied (and then rejected by
    validation) while an omitted field keeps its stored value. The owner
    is not patchable; unknown keys such as ``owner_id`` are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    kind: Optional[str] = None

    def supplied(self) -> Dict[str, Any]:
        """Explicitly supplied fields and their values."""
        return {field: _plain(getattr(self, field)) for field in self.model_fields_set}

    def apply_to(self, category: Category) -> Category:
        """Return a copy of ``category`` with the supplied fields overwritten."""
        return replace(category, **self.supplied())
