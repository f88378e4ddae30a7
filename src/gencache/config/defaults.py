"""Package-level default configuration values."""

from __future__ import annotations

from pathlib import Path
from typing import Any

# Default backend settings
DEFAULT_REGION = "us-east-1"
DEFAULT_REQUEST_TIMEOUT = 60.0

# Default retry settings
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_MS = 1000
DEFAULT_MAX_DELAY_MS = None

# Default cache settings
DEFAULT_KEY_LENGTH = 32
DEFAULT_CACHE_BACKEND = "sqlite"
DEFAULT_CACHE_DB_PATH = Path.home() / ".gencache" / "cache.db"

# Default concurrency settings (None = unlimited)
DEFAULT_MAX_CONCURRENT_REQUESTS = None

# Log level
DEFAULT_LOG_LEVEL = "WARNING"


def get_defaults() -> dict[str, Any]:
    """Return all defaults as a flat dictionary for merging."""
    return {
        "region": DEFAULT_REGION,
        "api_key": None,
        "endpoint_url": None,
        "request_timeout": DEFAULT_REQUEST_TIMEOUT,
        "max_retries": DEFAULT_MAX_RETRIES,
        "base_delay_ms": DEFAULT_BASE_DELAY_MS,
        "max_delay_ms": DEFAULT_MAX_DELAY_MS,
        "key_length": DEFAULT_KEY_LENGTH,
        "cache_backend": DEFAULT_CACHE_BACKEND,
        "cache_db_path": str(DEFAULT_CACHE_DB_PATH),
        "max_concurrent_requests": DEFAULT_MAX_CONCURRENT_REQUESTS,
        "log_level": DEFAULT_LOG_LEVEL,
    }
