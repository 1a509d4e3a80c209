"""Driver adapters exposed to the registry."""

from .base import RouterDriver  # noqa: F401
from .router_adapter import TunRouterAdapter, build_router_adapter  # noqa: F401

__all__ = [
    "RouterDriver",
    "TunRouterAdapter",
    "build_router_adapter",
]
