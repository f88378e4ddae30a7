"""Error handling — exceptions and retry with backoff."""

from gencache.errors.exceptions import (
    RETRYABLE_STATUSES,
    GatewayError,
    PermanentUpstreamError,
    StoreError,
    TransientUpstreamError,
    UpstreamError,
    ValidationError,
    classify_status,
)

__all__ = [
    "RETRYABLE_STATUSES",
    "GatewayError",
    "ValidationError",
    "UpstreamError",
    "TransientUpstreamError",
    "PermanentUpstreamError",
    "StoreError",
    "classify_status",
]
