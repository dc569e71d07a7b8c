"""
Identifier resolution for stored documents.

External identifiers are opaque strings. Production records are keyed by
the store's native ObjectId; fixture records may carry any plain string in
the ``id`` field. Resolution tries the native format first and falls back
to the plain field.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from bson import ObjectId

from ..domain.exceptions import InvalidArgumentException

NATIVE_ID_FIELD = "_id"
PLAIN_ID_FIELD = "id"


class IdentifierKind(str, Enum):
    """How an identifier addresses a document."""

    NATIVE = "native"
    PLAIN = "plain"


@dataclass(frozen=True)
class IdentifierFilter:
    """Resolved identifier: which field to match and with what value."""

    kind: IdentifierKind
    field: str
    value: Any

    def as_query(self) -> Dict[str, Any]:
        return {self.field: self.value}


def parse_native_id(identifier: str) -> Optional[ObjectId]:
    """Return the ObjectId for a 24-hex-character string, else None."""
    if isinstance(identifier, str) and ObjectId.is_valid(identifier):
        return ObjectId(identifier)
    return None


def resolve_identifier(identifier: Optional[str]) -> IdentifierFilter:
    """
    Map an external identifier to a store filter.

    Args:
        identifier: Opaque identifier string

    Returns:
        NATIVE filter on ``_id`` for ObjectId strings, PLAIN filter on
        ``id`` otherwise

    Raises:
        InvalidArgumentException: If the identifier is empty
    """
    if identifier is None or not str(identifier).strip():
        raise InvalidArgumentException("id")

    native = parse_native_id(identifier)
    if native is not None:
        return IdentifierFilter(IdentifierKind.NATIVE, NATIVE_ID_FIELD, native)
    return IdentifierFilter(IdentifierKind.PLAIN, PLAIN_ID_FIELD, str(identifier))


def owned_filter(identifier: Optional[str], owner_id: Optional[str]) -> Dict[str, Any]:
    """
    Filter matching a record only when it has this id AND this owner.

    A record owned by someone else simply does not match, so it is
    indistinguishable from a missing one.
    """
    if owner_id is None or not str(owner_id).strip():
        raise InvalidArgumentException("owner_id")
    query = resolve_identifier(identifier).as_query()
    query["owner_id"] = owner_id
    return query
