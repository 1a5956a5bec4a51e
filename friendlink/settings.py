"""Settings for the friendlink client with observability configuration."""

from __future__ import annotations

from typing import Any, Optional, Tuple

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
    if env_names:
        alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
        return Field(default=default, validation_alias=alias)
    return Field(default=default)


class Settings(BaseSettings):
    api_base_url: str = _env_field("http://localhost:5000", "FRIENDS_API_BASE_URL", "API_BASE_URL")
    socket_url: Optional[str] = _env_field(None, "FRIENDS_SOCKET_URL")
    socket_namespace: str = _env_field("/", "FRIENDS_SOCKET_NAMESPACE")
    socket_transports: Any = _env_field(("websocket", "polling"), "FRIENDS_SOCKET_TRANSPORTS")
    http_timeout_seconds: float = _env_field(10.0, "HTTP_TIMEOUT_SECONDS")

    # Device storage the login flow writes; this client only reads it
    session_store_path: str = _env_field(".friendlink/storage.json", "SESSION_STORE_PATH")
    session_store_key: str = _env_field("userData", "SESSION_STORE_KEY")

    avatar_placeholder_url: str = _env_field("https://via.placeholder.com/50", "AVATAR_PLACEHOLDER_URL")

    environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
    service_name: str = _env_field("friendlink-client", "SERVICE_NAME")
    obs_enabled: bool = _env_field(True, "OBS_ENABLED")
    obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
    obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("socket_transports", mode="before")
    def _split_transports(cls, value):  # type: ignore[override]
        if value in (None, ""):
            return ("websocket", "polling")
        if isinstance(value, str):
            return tuple(part.strip() for part in value.split(",") if part.strip())
        if isinstance(value, (list, tuple, set)):
            return tuple(str(item).strip() for item in value if str(item).strip())
        return ("websocket", "polling")

    def resolved_socket_url(self) -> str:
        return self.socket_url or self.api_base_url

    def transports(self) -> Tuple[str, ...]:
        return tuple(self.socket_transports)


def _normalise_level(level: str) -> str:
    return level.upper()


settings = Settings()
settings.obs_log_level = _normalise_level(settings.obs_log_level)
