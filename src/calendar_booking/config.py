"""Configuration management for Calendar Booking application."""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.calendar import Calendar, Tenant, TenantCalendarGrant
from .models.policy import CalendarSettings
from .repository.memory import InMemoryBookingRepository
from .utils.exceptions import ConfigurationError, NotFoundError

load_dotenv()

logger = logging.getLogger(__name__)


class M365Config(BaseSettings):
    """Microsoft 365 configuration used to reach the owners' calendars."""

    tenant_id: Optional[str] = Field(None, validation_alias="M365_TENANT_ID")
    client_id: Optional[str] = Field(None, validation_alias="M365_CLIENT_ID")
    client_secret: Optional[str] = Field(None, validation_alias="M365_CLIENT_SECRET")
    authority: Optional[str] = Field(None, validation_alias="M365_AUTHORITY")
    # Bookings write events, so read-write is always needed
    scopes: list[str] = Field(default=["Calendars.ReadWrite"])

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_parse_none_str="",  # Treat empty string as None
    )


class AppConfig(BaseSettings):
    """Application configuration."""

    m365: M365Config = Field(default_factory=M365Config)

    # Token cache
    token_cache_path: Path = Field(
        default=Path(".token_cache"), validation_alias="TOKEN_CACHE_PATH"
    )
    token_cache_encrypted: bool = Field(
        default=True, validation_alias="TOKEN_CACHE_ENCRYPTED"
    )

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(default=None, validation_alias="LOG_FILE")

    # Booking directory (calendars, tenants, grants, settings)
    booking_directory: Path = Field(
        default=Path("booking_directory.yaml"), validation_alias="BOOKING_DIRECTORY"
    )

    # Availability
    events_max_results: int = Field(default=50, gt=0, validation_alias="EVENTS_MAX_RESULTS")
    apply_buffer_time: bool = Field(default=False, validation_alias="APPLY_BUFFER_TIME")
    enforce_advance_booking: bool = Field(
        default=False, validation_alias="ENFORCE_ADVANCE_BOOKING"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


class BookingDirectory:
    """Calendars, tenants, grants and settings loaded from YAML."""

    def __init__(self, config_path: Path = Path("booking_directory.yaml")):
        self.config_path = config_path
        self.calendars: list[Calendar] = []
        self.tenants: list[Tenant] = []
        self.grants: list[TenantCalendarGrant] = []
        self.calendar_settings: dict[str, CalendarSettings] = {}
        self.tenant_settings: dict[str, CalendarSettings] = {}

        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
            self._load(data)
        else:
            logger.warning(f"Booking directory {config_path} not found, starting empty")

    def _load(self, data: dict[str, Any]) -> None:
        try:
            for calendar_id, cal_data in (data.get("calendars") or {}).items():
                cal_data = dict(cal_data or {})
                settings = cal_data.pop("settings", None)
                self.calendars.append(Calendar(id=str(calendar_id), **cal_data))
                if settings is not None:
                    self.calendar_settings[str(calendar_id)] = CalendarSettings(**settings)

            for tenant_id, tenant_data in (data.get("tenants") or {}).items():
                tenant_data = dict(tenant_data or {})
                settings = tenant_data.pop("settings", None)
                self.tenants.append(Tenant(id=str(tenant_id), **tenant_data))
                if settings is not None:
                    self.tenant_settings[str(tenant_id)] = CalendarSettings(**settings)

            for grant_data in data.get("grants") or []:
                self.grants.append(TenantCalendarGrant(**grant_data))

        except (TypeError, ValidationError) as e:
            raise ConfigurationError(
                f"Invalid booking directory {self.config_path}: {e}"
            ) from e

    def build_repository(self) -> InMemoryBookingRepository:
        """
        Create a repository populated with the directory contents.

        Raises:
            ConfigurationError: If records are duplicated or dangling
        """
        repository = InMemoryBookingRepository()
        try:
            for calendar in self.calendars:
                repository.add_calendar(calendar)
            for tenant in self.tenants:
                repository.add_tenant(tenant)
            for grant in self.grants:
                if repository.get_grant(grant.tenant_id, grant.calendar_id):
                    raise ConfigurationError(
                        f"Duplicate grant for tenant {grant.tenant_id} "
                        f"on calendar {grant.calendar_id}"
                    )
                repository.save_grant(grant)
            for calendar_id, settings in self.calendar_settings.items():
                repository.save_calendar_settings(calendar_id, settings)
            for tenant_id, settings in self.tenant_settings.items():
                repository.save_tenant_settings(tenant_id, settings)
        except NotFoundError as e:
            raise ConfigurationError(f"Invalid booking directory {self.config_path}: {e}") from e

        logger.info(
            f"Loaded {len(self.calendars)} calendars, {len(self.tenants)} tenants "
            f"and {len(self.grants)} grants"
        )
        return repository


# Global config instance
config = AppConfig()
