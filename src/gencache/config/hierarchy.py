"""Configuration hierarchy — merges sources in priority order.

Precedence (later overrides earlier):
  1. Package defaults
  2. Global config   (~/.gencache/config.yaml)
  3. Project config   (./gencache.yaml, searched upward)
  4. Environment variables (AWS_REGION, AWS_BEARER_TOKEN_BEDROCK, GENCACHE_*)
  5. Runtime arguments
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import yaml

from gencache.config.defaults import get_defaults

logger = logging.getLogger(__name__)

_GLOBAL_CONFIG_PATH = Path.home() / ".gencache" / "config.yaml"
_PROJECT_CONFIG_NAME = "gencache.yaml"

# Map of environment variables to config keys
_ENV_MAP: dict[str, str] = {
    "AWS_REGION": "region",
    "AWS_BEARER_TOKEN_BEDROCK": "api_key",
    "GENCACHE_ENDPOINT_URL": "endpoint_url",
    "GENCACHE_REQUEST_TIMEOUT": "request_timeout",
    "GENCACHE_MAX_RETRIES": "max_retries",
    "GENCACHE_BASE_DELAY_MS": "base_delay_ms",
    "GENCACHE_MAX_DELAY_MS": "max_delay_ms",
    "GENCACHE_KEY_LENGTH": "key_length",
    "GENCACHE_CACHE_BACKEND": "cache_backend",
    "GENCACHE_CACHE_DB_PATH": "cache_db_path",
    "GENCACHE_MAX_CONCURRENT": "max_concurrent_requests",
    "GENCACHE_LOG_LEVEL": "log_level",
}

# Keys that should be parsed as specific types
_TYPE_MAP: dict[str, type] = {
    "request_timeout": float,
    "max_retries": int,
    "base_delay_ms": int,
    "max_delay_ms": int,
    "key_length": int,
    "max_concurrent_requests": int,
}

# Settings whose "unset" value is None
_OPTIONAL_KEYS = frozenset({"api_key", "endpoint_url", "max_delay_ms", "max_concurrent_requests"})


def load_config_hierarchy(**runtime_overrides: Any) -> dict[str, Any]:
    """Load and merge configuration from all sources.

    Runtime overrides set to None are ignored so unset CLI options never
    mask a configured value.
    """
    config = get_defaults()
    for path in _config_files():
        config.update(_load_yaml_config(path) or {})
    config.update(_load_env_vars())
    config.update({k: v for k, v in runtime_overrides.items() if v is not None})
    return config


def _config_files() -> Iterator[Path]:
    """Config files in ascending priority: global first, then project."""
    yield _GLOBAL_CONFIG_PATH
    project_path = _find_project_config()
    if project_path is not None:
        yield project_path


def _load_yaml_config(path: Path) -> dict[str, Any] | None:
    """Load a YAML mapping, or None when the file is missing or unusable."""
    if not path.is_file():
        return None
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Failed to load config %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, ignoring", path)
        return None
    return data


def _find_project_config() -> Path | None:
    """Nearest gencache.yaml from cwd upward."""
    cwd = Path.cwd()
    for parent in [cwd, *cwd.parents]:
        candidate = parent / _PROJECT_CONFIG_NAME
        if candidate.is_file():
            return candidate
    return None


def _load_env_vars() -> dict[str, Any]:
    return {
        config_key: _coerce_env_value(config_key, os.environ[env_key])
        for env_key, config_key in _ENV_MAP.items()
        if env_key in os.environ
    }


def _coerce_env_value(key: str, value: str) -> Any:
    """Parse an environment string for ``key``.

    ``""`` or ``none`` clears the optional settings (uncapped backoff, no
    concurrency limit, default endpoint). Unparseable numbers are logged and
    kept as strings.
    """
    if key in _OPTIONAL_KEYS and value.strip().lower() in ("", "none"):
        return None
    target_type = _TYPE_MAP.get(key)
    if target_type is None:
        return value
    try:
        return target_type(value)
    except ValueError:
        logger.warning("Cannot convert env var for '%s' to %s: %s", key, target_type.__name__, value)
        return value
