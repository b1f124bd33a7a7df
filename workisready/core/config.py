"""
workisready/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, upload paths, SMTP, etc.)
- Validates configuration on startup
- Environment-specific settings
"""

from pathlib import Path

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal

from utils.constants import MAX_SAMPLE_WORK


PACKAGE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = "development"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="workisready",
        description="MongoDB database name"
    )

    # Public URLs
    APP_URL: str = Field(
        default="http://localhost:8000",
        description="Public base URL of this API (used in email links)"
    )
    FRONTEND_URL: str = Field(
        default="http://localhost:3000",
        description="Public base URL of the web client (password reset links)"
    )

    # Media uploads
    UPLOAD_DIR: str = Field(
        default="uploads",
        description="Directory where uploaded media is written"
    )
    MAX_UPLOAD_SIZE_MB: int = Field(
        default=5,
        description="Maximum size of a single uploaded file in megabytes"
    )
    SAMPLE_WORK_LIMIT: int = Field(
        default=10,
        description="Maximum number of sample-work files per provider"
    )

    # Listing
    DEFAULT_PAGE_SIZE: int = Field(default=20, description="Default page size for list endpoints")
    MAX_PAGE_SIZE: int = Field(default=100, description="Upper bound for page size")

    # Taxonomy
    CATEGORIES_FILE: str = Field(
        default=str(PACKAGE_DIR / "data" / "categories.json"),
        description="Main-category to sub-category mapping file"
    )

    # Sessions
    SESSION_TTL_DAYS: int = Field(
        default=7,
        description="Lifetime of a login token in days"
    )
    VERIFICATION_TOKEN_HOURS: int = Field(
        default=24,
        description="Lifetime of an email verification link in hours"
    )
    RESET_TOKEN_MINUTES: int = Field(
        default=10,
        description="Lifetime of a password reset link in minutes"
    )

    # Email (SMTP)
    SMTP_HOST: Optional[str] = Field(default=None, description="SMTP server host")
    SMTP_PORT: int = Field(default=587, description="SMTP server port")
    SMTP_USER: Optional[str] = Field(default=None, description="SMTP username")
    SMTP_PASSWORD: Optional[str] = Field(default=None, description="SMTP password")
    SMTP_USE_TLS: bool = Field(default=True, description="Use STARTTLS when sending")
    EMAIL_FROM: str = Field(
        default="WorkisReady <no-reply@workisready.com>",
        description="Sender address for outgoing email"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    # Security
    SECRET_KEY: str = Field(
        default="change-me-in-production",
        description="Application secret key used as password pepper"
    )

    @validator("SECRET_KEY")
    def validate_secret_key(cls, v, values):
        """Ensure secret key is changed in production."""
        if values.get("ENVIRONMENT") == "production" and v == "change-me-in-production":
            raise ValueError("SECRET_KEY must be changed in production environment")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def email_enabled(self) -> bool:
        return bool(self.SMTP_HOST)

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    if not Path(settings.CATEGORIES_FILE).is_file():
        errors.append(f"CATEGORIES_FILE not found: {settings.CATEGORIES_FILE}")

    if not 1 <= settings.SAMPLE_WORK_LIMIT <= MAX_SAMPLE_WORK:
        errors.append(f"SAMPLE_WORK_LIMIT must be between 1 and {MAX_SAMPLE_WORK}")

    # Production-specific validations
    if settings.is_production and not settings.email_enabled:
        errors.append("SMTP_HOST is required in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
