"""Plugin configuration loading and validation."""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, ClassVar, Dict, Iterable, Literal

import yaml
from pydantic import AnyUrl, Field, PositiveFloat
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_LOCATIONS: tuple[Path, ...] = (
    Path("./config/tilepad-obs.yaml"),
    Path("./config/tilepad-obs.yml"),
    Path("./config/tilepad-obs.json"),
)


class PluginSettings(BaseSettings):
    """Validated settings for the OBS plugin runtime."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="TILEPAD_OBS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Host link
    connect_url: AnyUrl = Field(
        default="ws://127.0.0.1:59371/plugins/ws",
        description="Tilepad host websocket endpoint for plugin registration.",
    )
    plugin_id: str = Field(
        default="com.jacobtread.tilepad.obs",
        description="Plugin identifier announced to the host on registration.",
    )
    transport: Literal["dummy", "websocket"] = Field(
        default="websocket",
        description="Transport implementation used for the OBS connection.",
    )

    # OBS connection reliability
    connect_timeout_seconds: PositiveFloat = Field(
        default=5.0,
        description="Upper bound for a single OBS connect + identify attempt.",
    )
    retry_interval_seconds: PositiveFloat = Field(
        default=10.0,
        description="Fixed delay between background reconnect attempts.",
    )
    request_timeout_seconds: PositiveFloat = Field(
        default=10.0,
        description="Seconds to wait for an OBS request response before giving up.",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum log level for the plugin process.",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        if isinstance(value, str):
            return value.upper()
        return value

    config_path: Path | None = Field(
        default=None,
        description="Resolved path to the on-disk config that seeded the settings.",
        exclude=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[PluginSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            cls._file_settings_source,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    @staticmethod
    def _file_settings_source(settings_cls: type[PluginSettings] | None = None) -> Dict[str, Any]:
        candidates: Iterable[Path] = PluginSettings._resolve_candidate_paths()

        for path in candidates:
            data = PluginSettings._load_file(path)
            if data is not None:
                data.setdefault("config_path", path)
                return data
        return {}

    @staticmethod
    def _resolve_candidate_paths() -> Iterable[Path]:
        explicit = os.getenv("TILEPAD_OBS_CONFIG_FILE")
        if explicit:
            yield Path(explicit).expanduser()
        yield from DEFAULT_CONFIG_LOCATIONS

    @staticmethod
    def _load_file(path: Path) -> Dict[str, Any] | None:
        if not path.is_file():
            return None
        suffix = path.suffix.lower()
        try:
            with path.open("r", encoding="utf-8") as handle:
                if suffix in {".yaml", ".yml"}:
                    raw = yaml.safe_load(handle)
                elif suffix == ".json":
                    raw = json.load(handle)
                else:
                    return None
        except OSError as exc:
            raise RuntimeError(f"Failed to read plugin config file {path}") from exc
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise ValueError(f"Invalid plugin config file {path}") from exc

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ValueError(f"Plugin config file {path} must contain a mapping at top level.")
        return raw


@lru_cache()
def get_settings() -> PluginSettings:
    """Return memoized plugin settings."""

    return PluginSettings()
