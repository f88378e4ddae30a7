"""Shared Pydantic models for gencache."""

from __future__ import annotations

import time
from enum import StrEnum

from pydantic import BaseModel, Field

# ── Enums ──


class ModelKind(StrEnum):
    IMAGE = "image"
    TEXT = "text"
    CLAUDE = "claude"


class ContentKind(StrEnum):
    TEXT = "text"
    BINARY = "binary"


# ── Config models ──


class RetryConfig(BaseModel):
    max_retries: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int | None = None  # None = uncapped


# ── Runtime models ──


class StoredBlob(BaseModel):
    """Raw bytes plus metadata as held by a blob store."""

    data: bytes
    content_type: str
    metadata: dict[str, str] = Field(default_factory=dict)
    created_at: float = Field(default_factory=time.time)


class BackendResponse(BaseModel):
    status: int
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class GatewayResult(BaseModel):
    """What the gateway hands back to the dispatcher."""

    body: str | bytes
    content_type: str
    storage_key: str
    cache_hit: bool = False
    stored: bool = True


class HttpResponse(BaseModel):
    status: int = 200
    headers: dict[str, str] = Field(default_factory=dict)
    body: str | bytes = ""
