"""Settings and declarative manager configuration."""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import appdirs

from bin_manager.constants import (
    CACHE_SUBDIR,
    DEFAULT_APP_NAME,
    DEFAULT_LOG_LEVEL,
    ENV_APP_NAME,
    ENV_DESTINATION,
    ENV_LOG_LEVEL,
)
from bin_manager.types import ManagerConfig, SourceConfig


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, usually read from the environment."""
    log_level: str = DEFAULT_LOG_LEVEL
    destination: Optional[Path] = None
    app_name: str = DEFAULT_APP_NAME

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        if environ is None:
            environ = os.environ

        log_level = environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"Invalid {ENV_LOG_LEVEL}: {log_level}")

        destination = environ.get(ENV_DESTINATION)

        return cls(
            log_level=log_level,
            destination=Path(destination).expanduser() if destination else None,
            app_name=environ.get(ENV_APP_NAME) or DEFAULT_APP_NAME,
        )


def default_destination(app_name: str = DEFAULT_APP_NAME) -> Path:
    """Per-user cache directory that holds managed binaries for an app."""
    return Path(appdirs.user_cache_dir(app_name)) / CACHE_SUBDIR


def resolve_destination(settings: Settings, app_name: Optional[str] = None) -> Path:
    if settings.destination is not None:
        return settings.destination
    return default_destination(app_name or settings.app_name)


def load_manager_config(data: Mapping[str, Any]) -> ManagerConfig:
    """Build a ManagerConfig from a plain mapping (parsed JSON/TOML).

    Raises:
        ValueError: If sources is not a list, or an entry is malformed or has no uri
    """
    raw_sources = data.get("sources") or []
    if not isinstance(raw_sources, (list, tuple)):
        raise ValueError("sources must be a list")

    sources = []
    for index, entry in enumerate(raw_sources):
        if isinstance(entry, str):
            entry = {"uri": entry}
        elif not isinstance(entry, Mapping):
            raise ValueError(f"Source #{index} must be a string or a mapping")
        uri = entry.get("uri")
        if not uri:
            raise ValueError(f"Source #{index} has no uri")
        sources.append(SourceConfig(uri=uri, os=entry.get("os"), arch=entry.get("arch")))

    return ManagerConfig(
        destination=str(data.get("destination") or "."),
        namespace=str(data.get("namespace") or ""),
        binary=str(data.get("binary") or ""),
        sources=sources,
    )
