import asyncio
import base64
import json

import pytest

from gencache.cache.memory import MemoryBlobStore
from gencache.cache.store import CacheStore
from gencache.errors.exceptions import classify_status
from gencache.gateway import Gateway
from gencache.types import BackendResponse, RetryConfig


class FakeBackend:
    """Scripted backend: each call pops the next failure status, then answers with body."""

    def __init__(self, body: bytes, failures: list[int] | None = None, delay: float = 0.0):
        self.body = body
        self.failures = list(failures or [])
        self.delay = delay
        self.calls: list[tuple[str, bytes]] = []

    async def invoke_model(self, model_id: str, body: bytes) -> BackendResponse:
        self.calls.append((model_id, body))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.failures:
            status = self.failures.pop(0)
            raise classify_status(status, "scripted failure")
        return BackendResponse(status=200, body=self.body)


class FailingBlobStore(MemoryBlobStore):
    def __init__(self, fail_get: bool = False, fail_put: bool = False):
        super().__init__()
        self.fail_get = fail_get
        self.fail_put = fail_put

    async def get(self, key):
        if self.fail_get:
            raise OSError("store unavailable")
        return await super().get(key)

    async def put(self, key, data, content_type, metadata=None):
        if self.fail_put:
            raise OSError("store read-only")
        await super().put(key, data, content_type, metadata)


@pytest.fixture
def png_bytes():
    """Minimal valid PNG for testing (1x1 white pixel)."""
    return base64.b64decode(
        "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR4"
        "nGP4z8BQDwAEgAF/pooBPQAAAABJRU5ErkJggg=="
    )


@pytest.fixture
def claude_body():
    def _body(text: str) -> bytes:
        return json.dumps({"content": [{"type": "text", "text": text}]}).encode()
    return _body


@pytest.fixture
def gpt_body():
    def _body(text: str) -> bytes:
        return json.dumps({"choices": [{"message": {"content": text}}]}).encode()
    return _body


@pytest.fixture
def titan_body():
    def _body(image: bytes) -> bytes:
        return json.dumps({"images": [base64.b64encode(image).decode()]}).encode()
    return _body


@pytest.fixture
def fake_backend():
    """Factory for scripted backends."""
    return FakeBackend


@pytest.fixture
def failing_blob_store():
    """Factory for blob stores that raise on read and/or write."""
    return FailingBlobStore


@pytest.fixture
def blob_store():
    return MemoryBlobStore()


@pytest.fixture
def cache_store(blob_store):
    return CacheStore(blob_store)


@pytest.fixture
def sleeps():
    """Delays (seconds) requested by the backoff executor."""
    return []


@pytest.fixture
def make_gateway(cache_store, sleeps):
    """Build a Gateway whose backoff sleeps are recorded, not slept."""

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    def _make(backend, store=None, **kwargs):
        kwargs.setdefault("retry", RetryConfig(max_retries=3, base_delay_ms=100))
        kwargs.setdefault("sleep", fake_sleep)
        return Gateway(backend=backend, store=store or cache_store, **kwargs)

    return _make
