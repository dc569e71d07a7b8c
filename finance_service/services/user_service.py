"""
User service.

Registration, login and account activation. Usernames are trimmed and
lower-cased before every lookup. Login failures are indistinguishable
to the caller; only the logs record the precise cause.
"""

import secrets
from dataclasses import replace
from typing import Optional

from ..domain.entities import Role, User
from ..domain.exceptions import (
    AlreadyExistsException,
    EntityNotFoundException,
    InvalidArgumentException,
    UnauthorizedException,
)
from ..logging_config import get_logger
from ..metrics import auth_login_total, auth_register_total
from ..repositories.base import IRepository
from ..security import CredentialManager
from ..validators import UserValidator, ensure_valid

logger = get_logger(__name__)

ENTITY = "User"
INVALID_CREDENTIALS = "Invalid credentials"


def normalize_username(username: Optional[str]) -> str:
    """Trim and lower-case a username; empty input is rejected."""
    if username is None or not username.strip():
        raise InvalidArgumentException("username")
    return username.strip().lower()


class UserService:
    """Account registration and authentication."""

    def __init__(
        self,
        repository: IRepository[User],
        credentials: CredentialManager,
        validator: Optional[UserValidator] = None,
    ):
        if repository is None:
            raise InvalidArgumentException("repository")
        if credentials is None:
            raise InvalidArgumentException("credentials")
        self.repository = repository
        self.credentials = credentials
        self.validator = validator or UserValidator()
        self._decoy_credential: Optional[str] = None

    def _burn_verification(self, password: str) -> None:
        # Unknown and inactive accounts pay the same KDF cost as a wrong password.
        if self._decoy_credential is None:
            self._decoy_credential = self.credentials.hash_password(secrets.token_urlsafe(16))
        self.credentials.verify_password(password, self._decoy_credential)

    async def get_by_username(self, username: str) -> Optional[User]:
        return await self.repository.first_or_default(
            {"username": normalize_username(username)}
        )

    async def register(
        self, username: str, password: str, role: str = Role.USER.value
    ) -> User:
        """
        Register a new, inactive account.

        Args:
            username: Desired username (normalized before use)
            password: Plain text password, hashed before storage
            role: "admin" or "usuario"

        Returns:
            The stored user

        Raises:
            InvalidArgumentException: If username or password is empty
            AlreadyExistsException: If the normalized username is taken
            EntityValidationException: If the account fails validation
        """
        username = normalize_username(username)
        if not password or not password.strip():
            raise InvalidArgumentException("password")

        logger.info("Attempting to register user", username=username)

        # Check-then-insert: the unique username index catches a racing insert.
        if await self.repository.exists({"username": username}):
            auth_register_total.labels(status="duplicate").inc()
            logger.warning("Registration failed - username already exists", username=username)
            raise AlreadyExistsException(ENTITY, username, code="USER_ALREADY_EXISTS")

        user = User(
            username=username,
            password_hash=self.credentials.hash_password(password),
            active=False,
            role=getattr(role, "value", role),
        )
        ensure_valid(self.validator, user, ENTITY)

        try:
            created = await self.repository.add(user)
        except AlreadyExistsException as e:
            auth_register_total.labels(status="duplicate").inc()
            raise AlreadyExistsException(ENTITY, username, code="USER_ALREADY_EXISTS") from e

        auth_register_total.labels(status="success").inc()
        logger.info("User registered", username=username, user_id=created.id)
        return created

    async def login(self, username: str, password: str) -> str:
        """
        Authenticate and issue an access token.

        Raises:
            InvalidArgumentException: If username or password is empty
            UnauthorizedException: Unknown user, inactive account or wrong
                password, all with the same message
        """
        username = normalize_username(username)
        if not password:
            raise InvalidArgumentException("password")

        user = await self.repository.first_or_default({"username": username})
        if user is None:
            logger.warning("Login failed - user not found", username=username)
            self._burn_verification(password)
            auth_login_total.labels(status="failed").inc()
            raise UnauthorizedException(INVALID_CREDENTIALS)

        if not user.active:
            logger.warning("Login failed - account inactive", username=username)
            self._burn_verification(password)
            auth_login_total.labels(status="failed").inc()
            raise UnauthorizedException(INVALID_CREDENTIALS)

        if not self.credentials.verify_password(password, user.password_hash):
            logger.warning("Login failed - invalid password", username=username)
            auth_login_total.labels(status="failed").inc()
            raise UnauthorizedException(INVALID_CREDENTIALS)

        auth_login_total.labels(status="success").inc()
        logger.info("User logged in", username=username, user_id=user.id)
        return self.credentials.issue_token(user)

    async def is_active(self, username: str) -> bool:
        """Whether the account exists and is active."""
        user = await self.get_by_username(username)
        return bool(user and user.active)

    async def set_active(self, username: str, active: bool = True) -> User:
        """
        Activate or deactivate an account (administrative action).

        Raises:
            EntityNotFoundException: If the user does not exist
        """
        user = await self.get_by_username(username)
        if user is None:
            raise EntityNotFoundException(ENTITY, normalize_username(username))

        updated = await self.repository.update(replace(user, active=active))
        logger.info("User activation changed", username=updated.username, active=active)
        return updated
