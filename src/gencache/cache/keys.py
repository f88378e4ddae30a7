"""Cache key generation — content-addressed, scoped per model kind."""

from __future__ import annotations

import hashlib

from gencache.types import ModelKind

DEFAULT_KEY_LENGTH = 32
_MAX_KEY_LENGTH = hashlib.sha256().digest_size * 2


def fingerprint(text: str, length: int = DEFAULT_KEY_LENGTH) -> str:
    """Truncated SHA-256 hex digest of the UTF-8 encoded text.

    ``length`` must be even and at most 64; anything else raises ValueError
    rather than being clamped.
    """
    if length <= 0 or length % 2 or length > _MAX_KEY_LENGTH:
        raise ValueError(
            f"Key length must be an even number between 2 and {_MAX_KEY_LENGTH}, got {length}"
        )
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:length]


def scoped_key(model_kind: ModelKind | str, request_key: str) -> str:
    """Logical key for one (model kind, prompt) pair.

    Identical prompts sent to different models must never share a
    coalescing slot or a cache entry.
    """
    return f"{ModelKind(model_kind).value}:{request_key}"


def storage_key(
    model_kind: ModelKind | str,
    request_key: str,
    length: int = DEFAULT_KEY_LENGTH,
) -> str:
    """Storage key under which a generation result is cached."""
    return fingerprint(scoped_key(model_kind, request_key), length)
