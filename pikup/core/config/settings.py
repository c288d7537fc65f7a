"""Application settings with Pydantic validation."""

from typing import Any, Optional

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ...constants import DEFAULT_CURRENCY, Intervals, Limits, Timeouts


class PikupSettings(BaseSettings):
    """Booking core settings with validation and environment variable support."""

    # Environment
    env: str = Field(
        default="production", description="Environment (production, staging, development, testing)"
    )

    @model_validator(mode="before")
    @classmethod
    def default_env_for_pytest(cls, data: Any) -> Any:
        """Auto-detect testing environment when running under pytest."""
        import sys

        if not isinstance(data, dict):
            return data

        if ("env" not in data or not data.get("env")) and "pytest" in sys.modules:
            data["env"] = "testing"

        return data

    # Remote services
    api_base_url: str = Field(
        default="https://pikup-server.onrender.com",
        description="Base URL of the pricing, insurance and payment service",
    )
    booking_store_url: str = Field(
        default="https://pikup-server.onrender.com/store",
        description="Base URL of the booking document store",
    )
    api_token: Optional[SecretStr] = Field(
        default=None, description="Bearer token sent to the remote services"
    )
    http_timeout_seconds: float = Field(
        default=float(Timeouts.HTTP_REQUEST_SECONDS), gt=0, description="Total HTTP timeout"
    )

    # Payment
    default_currency: str = Field(default=DEFAULT_CURRENCY, description="ISO currency code")
    allow_dev_payment_fallback: bool = Field(
        default=False,
        description=(
            "Fabricate payment intents when the payment service is unreachable. "
            "Development only; rejected in production and staging."
        ),
    )

    # Insurance
    insurance_opt_out_allowed: bool = Field(
        default=True, description="Whether customers may switch item coverage off"
    )

    # Delivery tracking
    status_poll_interval_seconds: float = Field(
        default=Intervals.STATUS_POLL_DEFAULT,
        ge=Intervals.STATUS_POLL_MIN,
        le=Intervals.STATUS_POLL_MAX,
        description="Seconds between delivery status polls",
    )
    status_poll_max_failures: int = Field(
        default=Limits.STATUS_POLL_MAX_FAILURES,
        ge=1,
        description="Consecutive failed polls before the poller gives up",
    )
    status_fetch_attempts: int = Field(
        default=Limits.STATUS_FETCH_ATTEMPTS, ge=1, le=10, description="Attempts per poll tick"
    )
    status_fetch_retry_delay_seconds: float = Field(
        default=Intervals.STATUS_FETCH_RETRY_DELAY,
        ge=0,
        description="Base delay between attempts inside one poll tick",
    )

    # Logging
    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_json: bool = Field(default=True, description="Write the file log as JSON lines")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value."""
        allowed = ["production", "development", "testing", "staging"]
        if v.lower() not in allowed:
            raise ValueError(f'ENV must be one of: {", ".join(allowed)}')
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f'LOG_LEVEL must be one of: {", ".join(allowed)}')
        return v_upper

    @field_validator("default_currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Currency codes are three letters, stored lowercase."""
        if len(v) != 3 or not v.isalpha():
            raise ValueError("DEFAULT_CURRENCY must be a three letter ISO code")
        return v.lower()

    @field_validator("api_base_url", "booking_store_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Require an http(s) URL without trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Service URLs must start with http:// or https://")
        return v.rstrip("/")

    @model_validator(mode="after")
    def forbid_payment_fallback_outside_development(self) -> "PikupSettings":
        """
        Reject the fabricated payment path outside development and testing.

        Raises:
            ValueError: If the fallback is enabled in production or staging
        """
        if self.allow_dev_payment_fallback and self.env in ("production", "staging"):
            raise ValueError(
                "ALLOW_DEV_PAYMENT_FALLBACK cannot be enabled in production or staging"
            )
        return self

    @property
    def dev_payment_fallback_enabled(self) -> bool:
        """True only when the fallback is switched on in a development environment."""
        return self.allow_dev_payment_fallback and self.env == "development"

    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env == "development"

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env == "production"


# Singleton instance
_settings: Optional[PikupSettings] = None


def get_settings() -> PikupSettings:
    """
    Get application settings singleton.

    Returns:
        PikupSettings instance

    Raises:
        ValidationError: If required settings are missing or invalid
    """
    global _settings
    if _settings is None:
        _settings = PikupSettings()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
