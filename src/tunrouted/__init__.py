"""tunrouted daemon runtime helpers."""

from .config import DaemonConfig, load_config  # noqa: F401

__all__ = [
    "DaemonConfig",
    "load_config",
]
