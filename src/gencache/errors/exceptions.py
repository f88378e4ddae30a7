"""Custom exception hierarchy for gencache."""

from __future__ import annotations

# Statuses worth retrying. 401/403 are included because signed requests can
# fail auth spuriously when routed to a different upstream edge.
RETRYABLE_STATUSES = frozenset({429, 401, 403})


class GatewayError(Exception):
    """Base exception for all gencache errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(GatewayError):
    """Request rejected before touching the cache or the backend.

    Examples: empty prompt, the ``favicon.ico`` sentinel, unknown model kind.
    """


class UpstreamError(GatewayError):
    """The generation backend failed."""

    def __init__(
        self,
        message: str = "",
        http_status: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.http_status = http_status
        self.body = body


class TransientUpstreamError(UpstreamError):
    """Retryable backend failure (429 rate limit, 401/403 auth hiccup)."""


class PermanentUpstreamError(UpstreamError):
    """Non-retryable backend failure.

    Examples: 400 validation error, 5xx, transport failure, malformed response.
    """


class StoreError(GatewayError):
    """The blob store failed to read or write."""

    def __init__(
        self,
        message: str = "",
        operation: str = "get",
        storage_key: str | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.storage_key = storage_key


def classify_status(status: int, body: str = "") -> UpstreamError:
    """Build the UpstreamError subclass matching a non-success status."""
    message = f"Backend error: {status} - {body}"
    if status in RETRYABLE_STATUSES:
        if status in (401, 403):
            message = (
                f"Backend authentication error: {status} - {body}. "
                "This may occur when requests are routed to different edge locations."
            )
        return TransientUpstreamError(message, http_status=status, body=body)
    return PermanentUpstreamError(message, http_status=status, body=body)
