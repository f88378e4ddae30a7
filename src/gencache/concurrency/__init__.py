"""Concurrency — single-flight coalescing and backend concurrency limits."""

from gencache.concurrency.coalescer import RequestCoalescer
from gencache.concurrency.limiter import ConcurrencyLimiter

__all__ = ["ConcurrencyLimiter", "RequestCoalescer"]
