"""Runtime settings loaded from `.env` and environment variables."""

from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from dynaform.errors import DynaformError


class SettingsError(DynaformError):
    """Raised when settings cannot be loaded or validated."""


class Settings(BaseSettings):
    """Package settings.

    Every value can be overridden through a `DYNAFORM_`-prefixed environment
    variable, e.g. `DYNAFORM_LOG_LEVEL=DEBUG`.
    """

    model_config = SettingsConfigDict(
        env_prefix="DYNAFORM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Logging level, e.g. 'INFO', 'DEBUG'.")
    log_json: bool = Field(default=True, description="Enable JSON formatted logs.")
    log_file: Optional[str] = Field(default=None, description="File path for log output.")

    textarea_rows: int = Field(default=3, ge=1, description="Visible rows of a textarea without 'rows'.")
    select_placeholder: str = Field(
        default="Select an option",
        description="Placeholder of a select field without its own placeholder.",
    )
    required_marker: str = Field(default="*", description="Marker appended to required field labels.")
    event_log_size: Optional[int] = Field(
        default=500,
        ge=1,
        description="Most recent session events a controller keeps; unset keeps every event.",
    )
    submit_failure_notice: str = Field(
        default="Error submitting form. Please try again.",
        description="Form-level notice shown when the submit sink fails.",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process.

    Raises:
        SettingsError: If the environment holds an invalid value.
    """
    try:
        return Settings()
    except ValidationError as exc:
        raise SettingsError(f"Failed to load settings: {exc}") from exc


__all__ = [
    "Settings",
    "SettingsError",
    "get_settings",
]
