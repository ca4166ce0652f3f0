"""Configuration utilities.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar

import yaml

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="AppConfig")

ENV_PREFIX = "ROADWEB_"


@dataclass
class AppConfig:
    """Application configuration."""

    # HTTP
    http_version: str = "1.1"

    # Routing
    root_path: str = ""
    default_conditions: Dict[str, str] = field(default_factory=dict)
    strict_url_params: bool = False
    decode_params: bool = True

    # Errors
    debug: bool = False
    propagate_exceptions: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_dict(cls: Type[T], data: Dict[str, Any]) -> T:
        """Create config from dictionary."""
        valid_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in (data or {}).items() if k in valid_fields}
        return cls(**filtered)

    @classmethod
    def from_json(cls: Type[T], path: str) -> T:
        """Load config from JSON file."""
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_yaml(cls: Type[T], path: str) -> T:
        """Load config from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_env(cls: Type[T], prefix: str = ENV_PREFIX) -> T:
        """Load config from environment variables.

        ``default_conditions`` is read as a JSON object.
        """
        data: Dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(prefix):
                continue
            config_key = key[len(prefix):].lower()

            if config_key == "default_conditions":
                data[config_key] = json.loads(value)
            elif value.lower() in ("true", "false"):
                data[config_key] = value.lower() == "true"
            else:
                data[config_key] = value

        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def merge(self, other: "AppConfig") -> "AppConfig":
        """Merge with another config.

        Values in ``other`` win unless they are still at their defaults.
        """
        defaults = type(other)().to_dict()
        data = self.to_dict()
        for key, value in other.to_dict().items():
            if value != defaults[key]:
                data[key] = value
        return type(self).from_dict(data)


def load_config(
    path: Optional[str] = None,
    env_prefix: str = ENV_PREFIX,
) -> AppConfig:
    """Load configuration from multiple sources.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (if provided)
    3. Defaults
    """
    config = AppConfig()

    if path:
        path_obj = Path(path)
        if path_obj.exists():
            if path_obj.suffix == ".json":
                config = AppConfig.from_json(path)
            elif path_obj.suffix in (".yaml", ".yml"):
                config = AppConfig.from_yaml(path)
            else:
                logger.warning(f"Unknown config format: {path}")
        else:
            logger.warning(f"Config file not found: {path}")

    env_config = AppConfig.from_env(env_prefix)
    return config.merge(env_config)


class JsonLineFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(config: Optional[AppConfig] = None) -> None:
    """Configure logging based on config."""
    config = config or AppConfig()
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    if config.log_format == "json":
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))

    logging.basicConfig(level=level, handlers=[handler])
    logging.getLogger("roadweb_core").setLevel(level)


__all__ = [
    "AppConfig",
    "load_config",
    "configure_logging",
    "JsonLineFormatter",
]
