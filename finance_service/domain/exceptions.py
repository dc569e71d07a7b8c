"""
Custom exceptions for the finance service domain.

These exceptions represent domain-level errors and are independent
of infrastructure concerns (HTTP, MongoDB, etc.). Each carries a stable
``code`` that a transport layer can expose to clients.
"""

from typing import Dict, List, Optional


class FinanceServiceException(Exception):
    """Base exception for all finance service errors."""

    code = "DOMAIN_ERROR"

    def __init__(
        self, message: str, details: Optional[dict] = None, code: Optional[str] = None
    ):
        self.message = message
        self.details = details or {}
        if code:
            self.code = code
        super().__init__(self.message)


class InvalidArgumentException(FinanceServiceException, ValueError):
    """Raised when a required input is missing or empty, before any I/O."""

    code = "INVALID_ARGUMENT"

    def __init__(self, argument: str, reason: str = "is required"):
        super().__init__(
            message=f"Argument '{argument}' {reason}",
            details={"argument": argument, "reason": reason},
        )
        self.argument = argument


class EntityValidationException(FinanceServiceException):
    """Raised when an entity violates one or more field rules."""

    code = "VALIDATION_ERROR"

    def __init__(self, errors: Dict[str, List[str]], entity: Optional[str] = None):
        message = "Validation failed"
        if entity:
            message = f"Validation failed for {entity}"
        fields = ", ".join(errors)
        if fields:
            message += f": {fields}"
        super().__init__(message=message, details={"entity": entity, "errors": errors})
        self.errors = errors


class EntityNotFoundException(FinanceServiceException):
    """
    Raised when an entity does not exist.

    Also raised when the entity exists but belongs to another user, so
    callers cannot learn about records they do not own.
    """

    code = "ENTITY_NOT_FOUND"

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            message=f"{entity} with id '{entity_id}' was not found",
            details={"entity": entity, "id": entity_id},
        )
        self.entity = entity
        self.entity_id = entity_id


class UnauthorizedException(FinanceServiceException):
    """Raised on invalid credentials, inactive accounts or rejected tokens."""

    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message)


class AlreadyExistsException(FinanceServiceException):
    """Raised when creating an entity that collides with an existing one."""

    code = "ALREADY_EXISTS"

    def __init__(self, entity: str, key: str, code: Optional[str] = None):
        super().__init__(
            message=f"{entity} '{key}' already exists",
            details={"entity": entity, "key": key},
            code=code,
        )


class StoreException(FinanceServiceException):
    """Raised when the document store fails unexpectedly."""

    code = "STORE_ERROR"

    def __init__(self, operation: str, reason: Optional[str] = None):
        message = f"Store operation '{operation}' failed"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message, details={"operation": operation, "reason": reason}
        )
        self.operation = operation


class ConfigurationException(FinanceServiceException):
    """Raised at startup when required configuration is missing."""

    code = "CONFIGURATION_ERROR"

    def __init__(self, setting: str, reason: str = "is not configured"):
        super().__init__(
            message=f"Setting '{setting}' {reason}",
            details={"setting": setting, "reason": reason},
        )
