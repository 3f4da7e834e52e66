"""Settings for the Aviato availability & conversation engine."""

from __future__ import annotations

from datetime import tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
    if env_names:
        alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
        return Field(default=default, validation_alias=alias)
    return Field(default=default)


class Settings(BaseSettings):
    environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
    service_name: str = _env_field("aviato-core", "SERVICE_NAME")
    git_commit: str = _env_field("unknown", "GIT_COMMIT", "COMMIT_SHA", "SOURCE_VERSION")

    obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
    obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")
    obs_metrics_enabled: bool = _env_field(True, "OBS_METRICS_ENABLED")

    redis_url: str = _env_field("redis://localhost:6379/0", "REDIS_URL")
    # "memory" keeps the session in-process only; "redis" persists the three session records
    persistence_backend: str = _env_field("memory", "PERSISTENCE_BACKEND")
    persistence_key_prefix: str = _env_field("aviato", "PERSISTENCE_KEY_PREFIX")

    # IANA zone used for brown-mode "current local day"; empty means the host zone
    local_timezone: str = _env_field("", "LOCAL_TIMEZONE", "TZ_NAME")
    # Display-only refresh of remaining/expired timers
    timer_poll_interval_seconds: float = _env_field(1.0, "TIMER_POLL_INTERVAL_SECONDS")

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("persistence_backend", mode="before")
    def _normalise_backend(cls, value):  # type: ignore[override]
        if value in (None, ""):
            return "memory"
        text = str(value).strip().lower()
        return text if text in ("memory", "redis") else "memory"

    def tz(self) -> Optional[tzinfo]:
        """Return the configured zone, or None to use the host local zone."""
        name = (self.local_timezone or "").strip()
        if not name:
            return None
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            return None


def _normalise_level(level: str) -> str:
    return level.upper()


settings = Settings()
settings.obs_log_level = _normalise_level(settings.obs_log_level)

