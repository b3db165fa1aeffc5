from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
DATA_DIR = Path(__file__).resolve().parent.parent / "data"
CONFIG_FILE = "supported_versions.yaml"

ENV_OVERRIDES = {
    "SUPPORTED_VERSIONS_CLOUD_URL": "cloud_url",
    "SUPPORTED_VERSIONS_CACHE_PATH": "cache_path",
    "SUPPORTED_VERSIONS_BUILTIN_PATH": "builtin_path",
    "SUPPORTED_VERSIONS_PUBLIC_KEY_PATH": "public_key_path",
    "SUPPORTED_VERSIONS_REQUEST_TIMEOUT": "request_timeout",
}


def _default_cache_path() -> Path:
    return Path(__file__).resolve().parents[2] / "state" / "supported-versions.json"


class Settings(BaseModel):
    cloud_url: str = "https://releases.rocket.chat/v2/server/supportedVersions"
    cache_path: Path = Field(default_factory=_default_cache_path)
    builtin_path: Path = DATA_DIR / "supportedVersions.jwt"
    public_key_path: Path | None = None
    request_timeout: float = 30.0

    # per-source fetch retries inside one check
    fetch_attempts: int = 3
    fetch_retry_delay: float = 2.0

    # scheduler, in seconds
    debounce_delay: float = 5.0
    throttle_interval: float = 30.0
    retry_delays: list[float] = Field(default_factory=lambda: [0.0, 5.0, 15.0])
    max_retry_attempts: int = 3
    failure_threshold: int = 3

    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"])

    def read_public_key(self) -> str | None:
        """Return the configured verification key, or None for the embedded one."""

        if self.public_key_path is None:
            return None
        return self.public_key_path.read_text(encoding="utf-8")


def _load_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fp:
        return yaml.safe_load(fp) or {}


def load_settings(config_path: Path | None = None) -> Settings:
    """Build settings from defaults, the YAML config file and the environment."""

    values = _load_config_file(config_path or CONFIG_DIR / CONFIG_FILE)

    for env_name, field_name in ENV_OVERRIDES.items():
        env_value = os.getenv(env_name)
        if env_value:
            values[field_name] = env_value

    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    if origins:
        values["cors_origins"] = origins

    return Settings(**values)
