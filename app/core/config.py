"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, secrets, gateways, storage)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal


DEFAULT_JWT_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="printquote",
        description="MongoDB database name"
    )
    MONGODB_MAX_POOL_SIZE: int = Field(default=50, ge=1)
    MONGODB_CONNECT_RETRIES: int = Field(default=3, ge=1)

    # Authentication
    JWT_SECRET: str = Field(
        default=DEFAULT_JWT_SECRET,
        description="Secret used to sign access tokens"
    )
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_EXPIRE_MINUTES: int = Field(
        default=60 * 24 * 30,
        description="Access token lifetime in minutes"
    )
    JWT_COOKIE_EXPIRE_DAYS: int = Field(
        default=30,
        description="Auth cookie lifetime in days"
    )
    COOKIE_NAME: str = Field(default="token")
    EMAIL_VERIFICATION_EXPIRE_MINUTES: int = Field(
        default=30,
        description="Lifetime of an email verification code"
    )

    # Accounting
    DEFAULT_HOURS_BALANCE: float = Field(
        default=4,
        description="Hours credited to every newly registered account"
    )

    # Email (SMTP)
    SMTP_HOST: Optional[str] = Field(
        default=None,
        description="SMTP host; when unset emails are written to the log"
    )
    SMTP_PORT: int = Field(default=587)
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    EMAIL_FROM: str = Field(default="PrintQuote <no-reply@printquote.local>")
    SUPPORT_EMAIL: str = Field(default="support@printquote.local")
    FRONTEND_URL: str = Field(
        default="http://localhost:3000",
        description="Frontend base URL used in email links"
    )

    # File storage
    STORAGE_ROOT: str = Field(
        default="media",
        description="Directory holding uploads/ and completed_files/"
    )
    MAX_MODEL_FILE_SIZE: int = Field(
        default=1024 * 1024 * 1024,
        description="Upper size limit for model and deliverable files (bytes)"
    )
    MAX_PO_FILE_SIZE: int = Field(
        default=10 * 1024 * 1024,
        description="Upper size limit for purchase order documents (bytes)"
    )
    STRICT_COMPLETION: bool = Field(
        default=False,
        description="Only allow completing quotations that are ongoing"
    )

    # Payment gateways
    RAZORPAY_KEY_ID: Optional[str] = None
    RAZORPAY_KEY_SECRET: Optional[str] = None
    RAZORPAY_BASE_URL: str = Field(default="https://api.razorpay.com")
    RAZORPAY_CURRENCY: str = Field(default="INR")
    PAYPAL_CLIENT_ID: Optional[str] = None
    PAYPAL_CLIENT_SECRET: Optional[str] = None
    PAYPAL_MODE: Literal["sandbox", "live"] = "sandbox"
    PAYPAL_CURRENCY: str = Field(default="USD")
    PAYMENT_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Timeout for payment gateway requests"
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
        default="/api/v1",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    @validator("JWT_SECRET")
    def validate_jwt_secret(cls, v, values):
        """Ensure the signing secret is changed in production."""
        if values.get("ENVIRONMENT") == "production" and v == DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET must be changed in production environment")
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
    def paypal_base_url(self) -> str:
        if self.PAYPAL_MODE == "live":
            return "https://api-m.paypal.com"
        return "https://api-m.sandbox.paypal.com"

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"
        extra = "ignore"


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

    if not settings.STORAGE_ROOT:
        errors.append("STORAGE_ROOT is required")

    # Production-specific validations
    if settings.is_production:
        if not settings.SMTP_HOST:
            errors.append("SMTP_HOST is required in production")
        if not settings.RAZORPAY_KEY_SECRET and not settings.PAYPAL_CLIENT_SECRET:
            errors.append("At least one payment gateway must be configured in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
