"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from elcron.exceptions import ConfigError


def _section_config(prefix: str) -> SettingsConfigDict:
    """Sub-settings read both the environment and .env under their own prefix."""
    return SettingsConfigDict(
        env_prefix=prefix,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class SchedulerSettings(BaseSettings):
    """Hourly scheduler parameters."""

    model_config = _section_config("SCHEDULER_")

    publication_hour: int = 14  # local hour when next-day prices are available
    error_backoff_seconds: float = 60.0
    halt_on_empty_queue: bool = True

    @field_validator("publication_hour")
    @classmethod
    def _check_hour(cls, value: int) -> int:
        if not 0 <= value <= 23:
            raise ValueError("publication_hour must be between 0 and 23")
        return value


class FeedSettings(BaseSettings):
    """ENTSO-E transparency platform connection settings."""

    model_config = _section_config("FEED_")

    base_url: str = "https://web-api.tp.entsoe.eu/api"
    fetch_timeout_seconds: float = 30.0


class JobSettings(BaseSettings):
    """Job file location and command execution options.

    The job file is re-read every cycle, so edits take effect at the
    next hour without a restart.
    """

    model_config = _section_config("JOBS_")

    path: str = "elcron"
    dry_run: bool = False
    command_timeout_seconds: float | None = None


class StorageSettings(BaseSettings):
    """Price history database configuration."""

    model_config = _section_config("STORAGE_")

    enabled: bool = True
    db_path: str = "elcron.db"


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings.

    API_KEY and AREA have no defaults: a missing value fails validation
    at startup.

    A section set through the nested form (SCHEDULER__PUBLICATION_HOUR)
    replaces that whole section; otherwise the section is built when the
    settings are loaded from its own prefixed variables
    (SCHEDULER_PUBLICATION_HOUR).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    api_key: SecretStr
    area: str
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    feed: FeedSettings = Field(default_factory=FeedSettings)
    jobs: JobSettings = Field(default_factory=JobSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @field_validator("api_key")
    @classmethod
    def _check_api_key(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("API_KEY must not be empty")
        return value

    @field_validator("area")
    @classmethod
    def _check_area(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("AREA must not be empty")
        return value


def load_settings(**overrides) -> AppSettings:  # type: ignore[no-untyped-def]
    """Load AppSettings from the environment and .env file.

    Raises:
        ConfigError: If API_KEY or AREA is missing, or any value is invalid.
    """
    try:
        return AppSettings(**overrides)
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in err["loc"]).upper() for err in e.errors()
        )
        raise ConfigError(f"Invalid or missing settings: {fields}") from e
