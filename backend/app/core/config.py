# backend/app/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import BRAND_NAME


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


_DEFAULT_SECRET_KEY = SecretStr("dev-only-secret-key-change-me")


class Settings(BaseSettings):
    environment: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Deployment environment name",
    )

    # Auth (tokens are issued elsewhere; we only verify them)
    secret_key: SecretStr = Field(
        default=_DEFAULT_SECRET_KEY,
        description="Shared secret used to verify identity tokens",
    )
    algorithm: str = "HS256"

    # Database
    database_url: str = Field(
        default="sqlite:///./bookings.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = False

    # Stripe Configuration
    stripe_secret_key: SecretStr = Field(
        default=SecretStr(""),
        description="Stripe secret key for backend API calls",
    )
    stripe_currency: str = Field(default="usd", description="Default currency for payments")
    stripe_timeout_seconds: int = Field(default=8, description="Per-request Stripe timeout")

    # Booking rules
    marketplace_timezone: str = Field(
        default="America/New_York",
        description="Timezone used to interpret service_date/service_time",
    )
    quota_period_days: int = Field(
        default=30,
        ge=1,
        description="Rolling window (days) used to count a customer's bookings against the tier",
    )
    discount_codes_enabled: bool = Field(
        default=False,
        description="Discount codes are not supported yet; requests carrying one are rejected",
    )
    pending_booking_ttl_hours: int = Field(
        default=48,
        ge=0,
        description="Pending bookings older than this are expired by the sweep (0 disables)",
    )
    pending_sweep_interval_minutes: int = Field(
        default=30,
        ge=1,
        description="How often celery beat runs the stale pending sweep",
    )

    # Notifications
    notifications_enabled: bool = True
    from_email: str = f"{BRAND_NAME} <bookings@bossofclean.com>"
    resend_api_key: Optional[str] = Field(
        default=None,
        alias="RESEND_API_KEY",
        description="API key for Resend provider (optional)",
    )
    sms_enabled: bool = False
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[SecretStr] = None
    twilio_phone_number: Optional[str] = None
    frontend_url: str = "http://localhost:3000"

    # Celery broker
    redis_url: str = Field(default="redis://localhost:6379/0", description="Celery broker URL")

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("marketplace_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        import pytz

        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @property
    def stripe_configured(self) -> bool:
        return bool(self.stripe_secret_key.get_secret_value())


settings = Settings()
