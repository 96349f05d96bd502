"""Application configuration loaded from environment variables."""

from __future__ import annotations

from datetime import tzinfo
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pydantic
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

from diary.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    # Hosted backend (required)
    supabase_url: str = Field(
        ..., validation_alias=AliasChoices("SUPABASE_URL", "VITE_SUPABASE_URL")
    )
    supabase_anon_key: str = Field(
        ...,
        validation_alias=AliasChoices("SUPABASE_ANON_KEY", "VITE_SUPABASE_ANON_KEY"),
    )

    # Notes table
    notes_table: str = Field("notas", validation_alias="NOTES_TABLE")
    request_timeout: float = Field(10.0, gt=0, validation_alias="REQUEST_TIMEOUT")

    # Sign-up policy of the identity service
    require_email_confirmation: bool = Field(
        True, validation_alias="REQUIRE_EMAIL_CONFIRMATION"
    )

    # Presentation
    display_locale: Literal["es", "en"] = Field("es", validation_alias="DISPLAY_LOCALE")
    # IANA name such as "Europe/Madrid"; unset means the server's local time
    display_timezone: Optional[str] = Field(None, validation_alias="DISPLAY_TIMEZONE")

    # Observability
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    metrics_port: Optional[int] = Field(None, validation_alias="METRICS_PORT")

    @field_validator("supabase_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError("must be an http(s) URL")
        return value

    @field_validator("supabase_anon_key")
    @classmethod
    def _non_empty_key(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("display_timezone")
    @classmethod
    def _known_zone(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @property
    def timezone(self) -> Optional[tzinfo]:
        return ZoneInfo(self.display_timezone) if self.display_timezone else None


def load_settings(**overrides) -> Settings:
    """Read settings, turning validation failures into ``ConfigurationError``.

    The application cannot reach its backend without the service URL and
    key, so a missing value is fatal.
    """
    try:
        return Settings(**overrides)
    except pydantic.ValidationError as exc:
        fields = ", ".join(
            ".".join(str(part) for part in err["loc"]) or "settings"
            for err in exc.errors()
        )
        raise ConfigurationError(
            f"Invalid or missing configuration: {fields}. "
            "Set SUPABASE_URL and SUPABASE_ANON_KEY in the environment or .env."
        ) from exc
