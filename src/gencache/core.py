"""Top-level entry points: GenCache, generate()."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from gencache.backends.client import BedrockClient
from gencache.cache.disk import SQLiteBlobStore
from gencache.cache.memory import MemoryBlobStore
from gencache.cache.store import BlobStore, CacheStore
from gencache.concurrency.limiter import ConcurrencyLimiter
from gencache.config.hierarchy import load_config_hierarchy
from gencache.dispatch import Dispatcher
from gencache.gateway import Gateway
from gencache.types import GatewayResult, ModelKind, RetryConfig

logger = logging.getLogger(__name__)


def build_blob_store(config: dict[str, Any]) -> BlobStore:
    """Pick the blob store named by ``cache_backend``."""
    backend = config.get("cache_backend", "sqlite")
    if backend == "memory":
        return MemoryBlobStore()
    if backend == "sqlite":
        db_path = config.get("cache_db_path")
        return SQLiteBlobStore(db_path=Path(db_path).expanduser() if db_path else None)
    raise ValueError(f"Unknown cache_backend: {backend!r} (expected 'sqlite' or 'memory')")


class GenCache:
    """Wires a Gateway from configuration and owns its resources."""

    def __init__(self, **overrides: Any) -> None:
        self._config = load_config_hierarchy(**overrides)
        cfg = self._config

        self._client = BedrockClient(
            region=cfg["region"],
            api_key=cfg.get("api_key"),
            endpoint_url=cfg.get("endpoint_url"),
            timeout=float(cfg["request_timeout"]),
        )
        self._blob_store = build_blob_store(cfg)

        max_concurrent = cfg.get("max_concurrent_requests")
        limiter = ConcurrencyLimiter(int(max_concurrent)) if max_concurrent else None

        max_delay_ms = cfg.get("max_delay_ms")
        self._gateway = Gateway(
            backend=self._client,
            store=CacheStore(self._blob_store),
            retry=RetryConfig(
                max_retries=int(cfg["max_retries"]),
                base_delay_ms=int(cfg["base_delay_ms"]),
                max_delay_ms=int(max_delay_ms) if max_delay_ms is not None else None,
            ),
            limiter=limiter,
            key_length=int(cfg["key_length"]),
        )
        self._dispatcher = Dispatcher(self._gateway)
        logger.debug(
            "GenCache ready: region=%s cache=%s max_concurrent=%s",
            cfg["region"],
            cfg["cache_backend"],
            max_concurrent,
        )

    @property
    def config(self) -> dict[str, Any]:
        return self._config

    @property
    def gateway(self) -> Gateway:
        return self._gateway

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    async def generate_async(self, prompt: str, kind: ModelKind | str) -> GatewayResult:
        return await self._gateway.handle(prompt, kind)

    async def close(self) -> None:
        await self._client.close()
        if isinstance(self._blob_store, SQLiteBlobStore):
            self._blob_store.close()


# ── Module-level convenience functions ──


def generate(prompt: str, kind: ModelKind | str = ModelKind.TEXT, **overrides: Any) -> GatewayResult:
    """Generate (or fetch from cache) a single result (sync wrapper)."""
    app = GenCache(**overrides)

    async def _run() -> GatewayResult:
        try:
            return await app.generate_async(prompt, kind)
        finally:
            await app.close()

    return asyncio.run(_run())
