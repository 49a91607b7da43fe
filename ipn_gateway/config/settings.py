"""Application settings using Pydantic for environment-based configuration."""
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application Configuration
    app_name: str = Field(default="ipn-gateway", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = Field(default="INFO", description="Logging level")
    debug: bool = Field(default=False, description="Debug mode")

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Notification sink
    notify_webhook_url: Optional[str] = Field(
        default=None, description="Chat webhook URL; unset disables notifications"
    )
    notify_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Timeout for chat webhook calls (seconds)"
    )
    provider_dashboard_url: str = Field(
        default="https://nowpayments.io/dashboard",
        description="Payment provider dashboard linked from notifications",
    )

    # IPN verification and validation
    ipn_secret: Optional[str] = Field(
        default=None, description="HMAC-SHA512 shared secret; unset skips verification"
    )
    ipn_signature_header: str = Field(
        default="x-nowpayments-sig", description="Header carrying the IPN signature"
    )
    ipn_source: str = Field(default="nowpayments", description="Source tag stored with archives")
    ipn_required_fields: str = Field(
        default="payment_id", description="Required IPN fields (comma-separated)"
    )
    ipn_success_statuses: str = Field(
        default="finished,confirmed,success",
        description="Payment statuses that fire the completion hooks (comma-separated)",
    )

    # Object storage
    storage_access_key: Optional[str] = Field(default=None, description="Storage access key id")
    storage_secret_key: Optional[str] = Field(default=None, description="Storage secret key")
    storage_bucket: Optional[str] = Field(default=None, description="Archive bucket name")
    storage_region: str = Field(default="ap-singapore", description="Archive bucket region")
    storage_endpoint_url: Optional[str] = Field(
        default=None, description="Endpoint override for S3-compatible providers"
    )
    ipn_archive_prefix: str = Field(
        default="nowpayments/payments", description="Key prefix for archived IPN records"
    )
    unsubscribe_archive_prefix: str = Field(
        default="newsletter/unsubscribes", description="Key prefix for unsubscribe records"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()

    @field_validator("ipn_required_fields")
    @classmethod
    def validate_required_fields(cls, v: str) -> str:
        """payment_id is always part of the required set."""
        fields = _split_csv(v)
        if "payment_id" not in fields:
            fields.insert(0, "payment_id")
        return ",".join(fields)

    @field_validator(
        "notify_webhook_url", "ipn_secret", "storage_access_key", "storage_secret_key",
        "storage_bucket", "storage_endpoint_url",
    )
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty environment values as unset."""
        if v is None or not v.strip():
            return None
        return v.strip()

    def get_required_fields_list(self) -> List[str]:
        """Parse required IPN fields from comma-separated string."""
        return _split_csv(self.ipn_required_fields)

    def get_success_statuses_list(self) -> List[str]:
        """Parse success statuses from comma-separated string."""
        return [status.lower() for status in _split_csv(self.ipn_success_statuses)]

    @property
    def notifications_enabled(self) -> bool:
        return self.notify_webhook_url is not None

    @property
    def signature_required(self) -> bool:
        return self.ipn_secret is not None

    @property
    def storage_configured(self) -> bool:
        """Archival needs both credentials and a bucket."""
        return bool(self.storage_access_key and self.storage_secret_key and self.storage_bucket)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
