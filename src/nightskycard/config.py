"""Environment-driven settings for the proxy service and the chart panel.

Both settings classes use Pydantic's ``BaseSettings`` so values are read from
the environment (and a local ``.env`` file when present) and validated on
construction. Missing credentials are kept as ``None`` so the proxy can answer
with a 500 instead of failing at startup.
"""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ASTRONOMY_API_URL = "https://api.astronomyapi.com/api/v2/studio/star-chart"
DEFAULT_PORT = 5050

_SETTINGS_CONFIG = SettingsConfigDict(
    env_file=".env",
    case_sensitive=False,
    extra="ignore",
    env_ignore_empty=True,
    populate_by_name=True,
    frozen=True,
)


class ProxySettings(BaseSettings):
    """Settings for the credential-injecting proxy."""

    model_config = _SETTINGS_CONFIG

    app_id: str | None = Field(default=None, validation_alias="ASTRONOMY_APP_ID")
    app_secret: str | None = Field(
        default=None,
        validation_alias="ASTRONOMY_APP_SECRET",
    )
    upstream_url: str = Field(
        default=ASTRONOMY_API_URL,
        validation_alias="ASTRONOMY_API_URL",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        validation_alias="ASTRONOMY_API_TIMEOUT",
    )
    port: int = Field(
        default=DEFAULT_PORT,
        ge=1,
        le=65535,
        validation_alias="PORT",
    )

    @property
    def has_credentials(self) -> bool:
        return bool(self.app_id) and bool(self.app_secret)

    @classmethod
    def from_env(cls) -> "ProxySettings":
        return cls()


class ClientSettings(BaseSettings):
    """Where the panel finds the proxy and keeps its URL cache."""

    model_config = _SETTINGS_CONFIG

    proxy_url: str = Field(
        default=f"http://localhost:{DEFAULT_PORT}",
        validation_alias="NIGHTSKY_PROXY_URL",
    )
    cache_path: Path = Field(
        default=Path(".cache") / "starchart.json",
        validation_alias="NIGHTSKY_CACHE_PATH",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        validation_alias="NIGHTSKY_PROXY_TIMEOUT",
    )

    @classmethod
    def from_env(cls) -> "ClientSettings":
        return cls()


def log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").upper()
