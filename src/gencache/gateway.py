"""Gateway — cache lookup, coalesced generation with backoff, store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from gencache.backends.adapters import DEFAULT_ADAPTERS, ModelAdapter, get_adapter
from gencache.backends.client import Backend
from gencache.cache.keys import DEFAULT_KEY_LENGTH, fingerprint, scoped_key
from gencache.cache.store import CacheEntry, CacheStore
from gencache.concurrency.coalescer import RequestCoalescer
from gencache.concurrency.limiter import ConcurrencyLimiter
from gencache.errors.exceptions import StoreError, ValidationError
from gencache.errors.retry import call_with_retry_config
from gencache.types import GatewayResult, ModelKind, RetryConfig

logger = logging.getLogger(__name__)

# Browsers request this automatically; it is never a prompt.
SENTINEL_KEY = "favicon.ico"


def validate_request_key(request_key: str) -> None:
    """Reject empty and sentinel keys before any work is done."""
    if not request_key or request_key == SENTINEL_KEY:
        raise ValidationError("Please provide a valid prompt.")


def _cached_result(entry: CacheEntry, storage_key: str) -> GatewayResult:
    return GatewayResult(
        body=entry.value,
        content_type=entry.content_type,
        storage_key=storage_key,
        cache_hit=True,
    )


class Gateway:
    """Coalescing cache gateway in front of a generation backend.

    Per request: validate, look up the cache, and on a miss generate once
    per (model kind, prompt) across all concurrent callers, store, respond.
    Cache hits never touch the coalescer.
    """

    def __init__(
        self,
        backend: Backend,
        store: CacheStore,
        adapters: dict[ModelKind, ModelAdapter] | None = None,
        retry: RetryConfig | None = None,
        coalescer: RequestCoalescer[GatewayResult] | None = None,
        limiter: ConcurrencyLimiter | None = None,
        key_length: int = DEFAULT_KEY_LENGTH,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        fingerprint("", key_length)  # fail fast on a bad key length
        self._backend = backend
        self._store = store
        self._adapters = adapters if adapters is not None else dict(DEFAULT_ADAPTERS)
        self._retry = retry or RetryConfig()
        self._coalescer = coalescer if coalescer is not None else RequestCoalescer()
        self._limiter = limiter
        self._key_length = key_length
        self._sleep = sleep

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def coalescer(self) -> RequestCoalescer[GatewayResult]:
        return self._coalescer

    def storage_key_for(self, request_key: str, model_kind: ModelKind | str) -> str:
        return fingerprint(scoped_key(model_kind, request_key), self._key_length)

    async def handle(self, request_key: str, model_kind: ModelKind | str) -> GatewayResult:
        """Return the generated (or cached) value for a prompt."""
        validate_request_key(request_key)
        adapter = get_adapter(model_kind, self._adapters)

        key = scoped_key(adapter.kind, request_key)
        storage_key = fingerprint(key, self._key_length)

        entry = await self._store.get(storage_key)
        if entry is not None:
            logger.debug("Cache HIT for %s key %s", adapter.kind.value, storage_key)
            return _cached_result(entry, storage_key)

        logger.info(
            "Cache MISS for %s key %s. Generating with %s",
            adapter.kind.value,
            storage_key,
            adapter.model_id,
        )
        return await self._coalescer.handle(
            key,
            lambda: self._generate_and_store(adapter, request_key, storage_key),
        )

    async def _generate_and_store(
        self,
        adapter: ModelAdapter,
        request_key: str,
        storage_key: str,
    ) -> GatewayResult:
        # A caller whose lookup overlapped the previous flight's write lands
        # here after that flight settled; the entry is already stored.
        entry = await self._store.get(storage_key)
        if entry is not None:
            logger.debug("Cache HIT on recheck for %s key %s", adapter.kind.value, storage_key)
            return _cached_result(entry, storage_key)

        value = await call_with_retry_config(
            lambda: self._generate_once(adapter, request_key),
            self._retry,
            sleep=self._sleep,
        )

        stored = True
        content_type = adapter.content_type
        try:
            entry = await self._store.put(
                storage_key,
                value,
                adapter.content_kind,
                content_type=adapter.content_type,
                metadata={"model-kind": adapter.kind.value, "model-id": adapter.model_id},
            )
            content_type = entry.content_type
            logger.info("Generated and cached %s key %s", adapter.kind.value, storage_key)
        except StoreError as exc:
            # The client still gets the value; the next request regenerates it.
            stored = False
            logger.error("Failed to cache %s key %s: %s", adapter.kind.value, storage_key, exc)

        return GatewayResult(
            body=value,
            content_type=content_type,
            storage_key=storage_key,
            cache_hit=False,
            stored=stored,
        )

    async def _generate_once(self, adapter: ModelAdapter, request_key: str) -> str | bytes:
        body = adapter.build_body(request_key)
        if self._limiter is None:
            response = await self._backend.invoke_model(adapter.model_id, body)
        else:
            async with self._limiter.slot():
                response = await self._backend.invoke_model(adapter.model_id, body)
        return adapter.parse(response)
