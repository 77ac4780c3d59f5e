from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, validator

from r2manager.exceptions import ConfigurationError
from r2manager.storage.endpoint import DeriveFromBucket, EndpointSpec, ExplicitUrl

# Load .env file from project root
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


class StorageSettings(BaseModel):
    bucket: str
    endpoint_url: str | None = None
    region: str | None = None
    access_key_env: str = "R2_ACCESS_KEY_ID"
    secret_key_env: str = "R2_SECRET_ACCESS_KEY"

    @validator("bucket")
    def _bucket_not_empty(cls, value: str) -> str:  # noqa: D401
        if not value.strip():
            raise ValueError("bucket must not be empty")
        return value

    @validator("endpoint_url", "region", pre=True)
    def _blank_is_unset(cls, value: Any) -> str | None:  # noqa: D401
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def endpoint(self) -> EndpointSpec:
        if self.endpoint_url:
            return ExplicitUrl(self.endpoint_url)
        return DeriveFromBucket()

    @property
    def access_key(self) -> str:
        return self._read_env(self.access_key_env)

    @property
    def secret_key(self) -> str:
        return self._read_env(self.secret_key_env)

    @staticmethod
    def _read_env(name: str) -> str:
        value = os.getenv(name)
        if not value:
            raise ConfigurationError(
                f"Environment variable '{name}' is required for storage credentials",
                {"env": name},
            )
        return value


class LoggingSettings(BaseModel):
    level: str = "INFO"
    json_format: bool = False
    file: Path | None = None

    @validator("level")
    def _normalize_level(cls, value: str) -> str:  # noqa: D401
        return value.upper()


class Settings(BaseModel):
    storage: StorageSettings
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from YAML configuration file.

        Args:
            path: Optional path to configuration file. If not provided, uses
                R2MANAGER_CONFIG environment variable or defaults to config/default.yaml.

        Returns:
            Settings instance with loaded configuration.

        Raises:
            FileNotFoundError: If configuration file does not exist.
            ValueError: If configuration is invalid.
        """
        config_path = path or Path(os.getenv("R2MANAGER_CONFIG", "config/default.yaml"))
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        with config_path.open("r", encoding="utf-8") as fp:
            payload = yaml.safe_load(fp) or {}
        try:
            return cls(**payload)
        except Exception as exc:
            raise ValueError(f"Invalid configuration: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings(path: str | None = None) -> Settings:
    return Settings.load(Path(path) if path else None)


__all__ = [
    "Settings",
    "StorageSettings",
    "LoggingSettings",
    "get_settings",
]
