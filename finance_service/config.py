"""
Configuration management for the finance service.

Loads and validates environment variables for the application.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    """

    # Service Configuration
    APP_NAME: str = "Finance Service"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # MongoDB Configuration
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "finanzas"
    MONGODB_CREATE_INDEXES: bool = True

    # JWT Configuration
    # No usable default: an empty key stops the credential manager from starting.
    JWT_SECRET_KEY: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = ""
    JWT_AUDIENCE: str = ""
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=480, ge=1)

    # Password Hashing (bcrypt-pbkdf)
    PASSWORD_KDF_ROUNDS: int = Field(default=100, ge=1)
    PASSWORD_SALT_BYTES: int = Field(default=16, ge=16)
    PASSWORD_KEY_BYTES: int = Field(default=32, ge=16, le=512)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def jwt_configured(self) -> bool:
        """Whether a token signing key is available."""
        return bool(self.JWT_SECRET_KEY.strip())


# Global settings instance
settings = Settings()
