"""Runtime settings loaded from the environment (and an optional .env file)."""

import json
import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from .exceptions import ConfigError

load_dotenv()

DEFAULT_API_URL = "https://api.teamup.com"
DEFAULT_LINK_FIELD = "zoom_link"

TRUE_VALUES = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Explicit configuration passed into the updater, client and builder."""

    api_key: str = Field("", description="Teamup API key (Teamup-Token header)")
    calendar_id: str = Field("", description="Calendar key used in API paths")
    api_url: str = DEFAULT_API_URL
    link_field: str = Field(DEFAULT_LINK_FIELD, description="Custom field receiving the link")
    subcalendar_links: dict[str, str] = Field(
        default_factory=dict,
        description="Sub-calendar id -> link content",
    )
    request_timeout: float = Field(10.0, gt=0)
    delivery_timeout: float = Field(25.0, gt=0, description="Upper bound for one webhook delivery")
    patch_fallback: bool = False
    enable_logging: bool = False
    log_level: str = "info"
    port: int = 3000

    @field_validator("subcalendar_links", mode="before")
    @classmethod
    def _stringify_keys(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k).strip(): v for k, v in value.items()}
        return value

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings from environment variables."""
        env = os.environ if environ is None else environ

        raw_links = env.get("SUB_CALENDAR_LINKS", "").strip()
        links: dict[str, str] = {}
        if raw_links:
            try:
                links = json.loads(raw_links)
            except ValueError as e:
                raise ConfigError(f"SUB_CALENDAR_LINKS is not valid JSON: {e}") from e
            if not isinstance(links, dict):
                raise ConfigError("SUB_CALENDAR_LINKS must be a JSON object")

        return cls(
            api_key=env.get("TEAMUP_API_KEY", ""),
            calendar_id=env.get("CALENDAR_ID", ""),
            api_url=env.get("TEAMUP_API_URL", DEFAULT_API_URL),
            link_field=env.get("LINK_FIELD", DEFAULT_LINK_FIELD),
            subcalendar_links=links,
            request_timeout=float(env.get("REQUEST_TIMEOUT", "10")),
            delivery_timeout=float(env.get("DELIVERY_TIMEOUT", "25")),
            patch_fallback=env.get("PATCH_FALLBACK", "").lower() in TRUE_VALUES,
            enable_logging=env.get("ENABLE_LOGGING", "").lower() in TRUE_VALUES,
            log_level=env.get("LOG_LEVEL", "info"),
            port=int(env.get("PORT", "3000")),
        )

    def require_credentials(self) -> None:
        """Raise ConfigError unless the API key and calendar id are both set."""
        if not self.calendar_id:
            raise ConfigError("CALENDAR_ID environment variable is not set")
        if not self.api_key:
            raise ConfigError("TEAMUP_API_KEY environment variable is not set")

    def link_for(self, subcalendar_id: Any) -> str | None:
        """Return the configured link for a sub-calendar, if any."""
        if subcalendar_id is None:
            return None
        return self.subcalendar_links.get(str(subcalendar_id).strip()) or None

    def is_managed(self, subcalendar_id: Any) -> bool:
        return self.link_for(subcalendar_id) is not None


# Singleton pattern for easy access
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the process-wide Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
