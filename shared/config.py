"""
Shared configuration management for the studio permission engine.
"""

from typing import Optional

from pydantic import Field, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ConfigurationError


class PermissionSettings(BaseSettings):
    """Settings read from the environment (``PERMISSIONS_*``) or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="PERMISSIONS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    service_name: str = Field(default="permissions")

    # Business-hours checks read the hour in this zone
    business_timezone: str = Field(default="UTC")

    # Security event sink; logged locally when unset
    audit_sink_url: Optional[str] = Field(default=None)
    audit_timeout_seconds: float = Field(default=2.0, gt=0)

    # Observability
    metrics_enabled: bool = Field(default=True)

    @field_validator("business_timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self.business_timezone)


def get_settings(**overrides) -> PermissionSettings:
    """Get engine settings, optionally overriding individual values."""
    try:
        return PermissionSettings(**overrides)
    except PydanticValidationError as e:
        raise ConfigurationError(
            "Invalid engine configuration",
            details={"errors": [
                {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
                for err in e.errors()
            ]}
        ) from e
