"""
Tagged results for service calls.

Services raise domain exceptions; ``capture`` turns one service call into
a ``ServiceResult`` whose ``outcome`` names exactly one case, so a
transport layer handles every case explicitly instead of catching.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Dict, Generic, List, Optional, TypeVar

from ..logging_config import get_logger
from .exceptions import (
    AlreadyExistsException,
    EntityNotFoundException,
    EntityValidationException,
    FinanceServiceException,
    InvalidArgumentException,
    UnauthorizedException,
)

logger = get_logger(__name__)

T = TypeVar("T")


class Outcome(str, Enum):
    """Every way a service call can end."""

    OK = "ok"
    CREATED = "created"
    NO_CONTENT = "no_content"
    INVALID_ARGUMENT = "invalid_argument"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    ALREADY_EXISTS = "already_exists"
    INTERNAL = "internal"


_STATUS_CODES = {
    Outcome.OK: 200,
    Outcome.CREATED: 201,
    Outcome.NO_CONTENT: 204,
    Outcome.INVALID_ARGUMENT: 400,
    Outcome.VALIDATION_ERROR: 400,
    Outcome.NOT_FOUND: 404,
    Outcome.UNAUTHORIZED: 401,
    Outcome.ALREADY_EXISTS: 409,
    Outcome.INTERNAL: 500,
}

_SUCCESS = {Outcome.OK, Outcome.CREATED, Outcome.NO_CONTENT}


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """Outcome of a service call plus its value or error payload."""

    outcome: Outcome
    value: Optional[T] = None
    message: Optional[str] = None
    code: Optional[str] = None
    errors: Optional[Dict[str, List[str]]] = None

    @property
    def is_success(self) -> bool:
        return self.outcome in _SUCCESS

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self.outcome]

    def unwrap(self) -> T:
        """Return the value, or raise if the call did not succeed."""
        if not self.is_success:
            raise ValueError(f"Cannot unwrap a {self.outcome.value} result: {self.message}")
        return self.value

    @classmethod
    def ok(cls, value: Any = None, outcome: Outcome = Outcome.OK) -> "ServiceResult":
        return cls(outcome=outcome, value=value)

    @classmethod
    def from_exception(cls, exc: FinanceServiceException) -> "ServiceResult":
        if isinstance(exc, EntityValidationException):
            outcome = Outcome.VALIDATION_ERROR
        elif isinstance(exc, InvalidArgumentException):
            outcome = Outcome.INVALID_ARGUMENT
        elif isinstance(exc, EntityNotFoundException):
            outcome = Outcome.NOT_FOUND
        elif isinstance(exc, UnauthorizedException):
            outcome = Outcome.UNAUTHORIZED
        elif isinstance(exc, AlreadyExistsException):
            outcome = Outcome.ALREADY_EXISTS
        else:
            outcome = Outcome.INTERNAL

        if outcome is Outcome.INTERNAL:
            return cls(outcome=outcome, message="Internal error", code=exc.code)
        return cls(
            outcome=outcome,
            message=exc.message,
            code=exc.code,
            errors=getattr(exc, "errors", None),
        )


async def capture(
    call: Awaitable[T], success: Outcome = Outcome.OK
) -> ServiceResult[T]:
    """
    Await a service call and tag how it ended.

    Args:
        call: Awaitable returned by a service method
        success: Outcome to report when the call returns normally

    Returns:
        ServiceResult; a None value from a lookup becomes NOT_FOUND
    """
    try:
        value = await call
    except FinanceServiceException as e:
        return ServiceResult.from_exception(e)
    except Exception:
        logger.exception("Unexpected error in service call")
        return ServiceResult(outcome=Outcome.INTERNAL, message="Internal error")

    if value is None and success is not Outcome.NO_CONTENT:
        return ServiceResult(
            outcome=Outcome.NOT_FOUND, message="Not found", code="ENTITY_NOT_FOUND"
        )
    return ServiceResult.ok(value, outcome=success)
