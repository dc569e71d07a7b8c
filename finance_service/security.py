"""
Security utilities for authentication.

Provides salted password hashing with the bcrypt-pbkdf key-derivation
function and signed JWT access tokens.
"""

import base64
import binascii
import hmac
import secrets
from datetime import timedelta
from typing import Any, Dict, Optional

import bcrypt
import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from .config import Settings, settings
from .domain.entities import Clock, User, utc_now
from .domain.exceptions import (
    ConfigurationException,
    InvalidArgumentException,
    UnauthorizedException,
)
from .logging_config import get_logger

logger = get_logger(__name__)

CREDENTIAL_SEPARATOR = ":"


# ==================== PASSWORD HASHING ====================


def _derive(password: str, salt: bytes, key_bytes: int, rounds: int) -> bytes:
    return bcrypt.kdf(
        password=password.encode("utf-8"),
        salt=salt,
        desired_key_bytes=key_bytes,
        rounds=rounds,
        ignore_few_rounds=True,
    )


def hash_password(
    password: str, rounds: int = 100, salt_bytes: int = 16, key_bytes: int = 32
) -> str:
    """
    Hash a password with a fresh random salt.

    Args:
        password: Plain text password
        rounds: bcrypt-pbkdf work factor
        salt_bytes: Salt length (at least 16)
        key_bytes: Derived key length

    Returns:
        Credential string ``rounds:base64(salt):base64(key)``
    """
    if not password:
        raise InvalidArgumentException("password")
    salt = secrets.token_bytes(max(salt_bytes, 16))
    try:
        key = _derive(password, salt, key_bytes, rounds)
    except UnicodeEncodeError as e:
        raise InvalidArgumentException("password", "must be valid text") from e
    return CREDENTIAL_SEPARATOR.join(
        [
            str(rounds),
            base64.b64encode(salt).decode("ascii"),
            base64.b64encode(key).decode("ascii"),
        ]
    )


def verify_password(password: str, stored: str) -> bool:
    """
    Verify a password against a stored credential.

    Re-derives the key with the stored salt and rounds and compares in
    constant time.

    Args:
        password: Plain text password to verify
        stored: Credential produced by hash_password

    Returns:
        True if password matches, False otherwise
    """
    if not password or not stored:
        return False

    parts = stored.split(CREDENTIAL_SEPARATOR)
    if len(parts) != 3:
        return False

    try:
        rounds = int(parts[0])
        salt = base64.b64decode(parts[1], validate=True)
        expected = base64.b64decode(parts[2], validate=True)
        if rounds < 1 or not salt or not expected:
            return False
        candidate = _derive(password, salt, len(expected), rounds)
    except (ValueError, binascii.Error) as e:
        logger.warning("Stored credential is malformed", error=str(e))
        return False

    return hmac.compare_digest(candidate, expected)


# ==================== CREDENTIAL MANAGER ====================


class CredentialManager:
    """
    Hashes passwords and issues access tokens.

    The signing key, issuer and audience come from configuration; a
    missing signing key is a startup error.
    """

    def __init__(self, config: Optional[Settings] = None, clock: Clock = utc_now):
        self.config = config or settings
        self.clock = clock
        if not self.config.jwt_configured:
            raise ConfigurationException("JWT_SECRET_KEY")

    def hash_password(self, password: str) -> str:
        return hash_password(
            password,
            rounds=self.config.PASSWORD_KDF_ROUNDS,
            salt_bytes=self.config.PASSWORD_SALT_BYTES,
            key_bytes=self.config.PASSWORD_KEY_BYTES,
        )

    def verify_password(self, password: str, stored: str) -> bool:
        return verify_password(password, stored)

    def issue_token(self, user: User) -> str:
        """
        Create a signed, time-bounded access token for a user.

        Args:
            user: Authenticated user

        Returns:
            Encoded JWT carrying the user id, username and role
        """
        now = self.clock()
        expire = now + timedelta(minutes=self.config.ACCESS_TOKEN_EXPIRE_MINUTES)

        payload: Dict[str, Any] = {
            "sub": user.id or "",
            "unique_name": user.username,
            "role": getattr(user.role, "value", user.role) or "usuario",
            "iat": now,
            "exp": expire,
        }
        if self.config.JWT_ISSUER:
            payload["iss"] = self.config.JWT_ISSUER
        if self.config.JWT_AUDIENCE:
            payload["aud"] = self.config.JWT_AUDIENCE

        token = jwt.encode(
            payload, self.config.JWT_SECRET_KEY, algorithm=self.config.JWT_ALGORITHM
        )
        logger.debug("Access token issued", user_id=user.id, expires_at=expire.isoformat())
        return token

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Decode and validate an access token.

        Raises:
            UnauthorizedException: If the token is expired, tampered with, or
                issued for another issuer or audience
        """
        if not token:
            raise UnauthorizedException("Missing token")
        try:
            return jwt.decode(
                token,
                self.config.JWT_SECRET_KEY,
                algorithms=[self.config.JWT_ALGORITHM],
                issuer=self.config.JWT_ISSUER or None,
                audience=self.config.JWT_AUDIENCE or None,
                options={"require": ["exp", "sub"]},
            )
        except ExpiredSignatureError:
            logger.debug("Access token expired")
            raise UnauthorizedException("Token expired")
        except InvalidTokenError as e:
            logger.warning("Invalid access token", error=str(e))
            raise UnauthorizedException("Invalid token")

    def subject(self, token: str) -> str:
        """Return the user id a valid token was issued for."""
        user_id = self.decode_token(token).get("sub")
        if not user_id:
            raise UnauthorizedException("Token has no subject")
        return user_id
