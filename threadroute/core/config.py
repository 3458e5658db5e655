from typing import Any

from loguru import logger
from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from threadroute.core.durations import format_duration, parse_duration
from threadroute.core.logging import normalize_log_level
from threadroute.datastructures.type_aliases import DurationSeconds, HostName

_DURATION_FIELDS = (
    "route_grace_period",
    "device_expiration",
    "reconcile_interval",
    "refresh_interval",
    "browse_timeout",
    "session_max_age",
    "settle_delay",
)


class RouteUpdaterSettings(BaseSettings):
    """Route updater daemon configuration settings.

    Every field can be set from the environment variable named in its alias;
    field names are accepted as keyword arguments too.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_ignore_empty=True,
        populate_by_name=True,
    )

    router_hostname: HostName = Field(
        "unifi.local",
        validation_alias="UBIQUITY_ROUTER_HOSTNAME",
        description="Hostname of the UniFi gateway.",
    )
    username: str = Field(
        "ubnt",
        validation_alias="UBIQUITY_USERNAME",
        description="Login user for the router management API.",
    )
    password: str = Field(
        "ubnt",
        validation_alias="UBIQUITY_PASSWORD",
        description="Login password for the router management API.",
    )
    enabled: bool = Field(
        False,
        validation_alias="UBIQUITY_ENABLED",
        description="Push static routes to the router when true.",
    )
    insecure_ssl: bool = Field(
        False,
        validation_alias="UBIQUITY_INSECURE_SSL",
        description="Skip TLS certificate verification for the router API.",
    )
    site: str = Field(
        "default",
        validation_alias="UBIQUITY_SITE",
        description="Controller site the static routes belong to.",
    )
    gateway_device: str = Field(
        "",
        validation_alias="UBIQUITY_GATEWAY_DEVICE",
        description="MAC address of the gateway device placed on created routes.",
    )
    route_grace_period: DurationSeconds = Field(
        600.0,
        validation_alias="ROUTE_GRACE_PERIOD",
        description="How long an undesired route is kept before deletion.",
    )
    device_expiration: DurationSeconds = Field(
        1800.0,
        validation_alias="DEVICE_EXPIRATION",
        description="Discovery entries not seen for this long are pruned.",
    )
    reconcile_interval: DurationSeconds = Field(
        5.0,
        validation_alias="RECONCILE_INTERVAL",
        description="Interval between route generation and reconciliation passes.",
    )
    refresh_interval: DurationSeconds = Field(
        300.0,
        validation_alias="REFRESH_INTERVAL",
        description="Interval between one-shot discovery re-scans.",
    )
    browse_timeout: DurationSeconds = Field(
        10.0,
        validation_alias="BROWSE_TIMEOUT",
        description="Length of a one-shot discovery scan.",
    )
    session_max_age: DurationSeconds = Field(
        300.0,
        validation_alias="SESSION_MAX_AGE",
        description="Router credentials older than this are refreshed.",
    )
    settle_delay: DurationSeconds = Field(
        2.0,
        validation_alias="SETTLE_DELAY",
        description="Pause after submitting additions so the router can index them.",
    )
    log_level: str = Field(
        "INFO",
        validation_alias="LOG_LEVEL",
        description="DEBUG, INFO, WARN/WARNING or ERROR.",
    )

    @field_validator("enabled", "insecure_ssl", mode="before")
    @classmethod
    def _literal_true(cls, value: Any) -> bool:
        # Only the exact string "true" switches a flag on.
        if isinstance(value, str):
            return value == "true"
        return bool(value)

    @field_validator(*_DURATION_FIELDS, mode="before")
    @classmethod
    def _parse_duration(cls, value: Any, info: ValidationInfo) -> DurationSeconds:
        default = cls.model_fields[info.field_name].default
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        if isinstance(value, str):
            try:
                return parse_duration(value)
            except ValueError:
                pass
        logger.warning(
            "Invalid {} value {!r}, using default {}",
            info.field_name,
            value,
            format_duration(default),
        )
        return default

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> str:
        return normalize_log_level(value if isinstance(value, str) else None)

    @property
    def api_base_url(self) -> str:
        return f"https://{self.router_hostname}"

    def describe(self) -> dict[str, str]:
        """Effective settings for display, with the password masked."""
        values: dict[str, str] = {}
        for name in type(self).model_fields:
            value = getattr(self, name)
            if name == "password":
                values[name] = "*" * len(value) if value else ""
            elif name in _DURATION_FIELDS:
                values[name] = format_duration(value)
            else:
                values[name] = str(value)
        values["api_base_url"] = self.api_base_url
        return values
