"""gencache — coalescing cache gateway for generation backends."""

from gencache.core import GenCache, generate
from gencache.gateway import Gateway
from gencache.types import GatewayResult, ModelKind

__all__ = ["GatewayResult", "Gateway", "GenCache", "ModelKind", "generate"]
