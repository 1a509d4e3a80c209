"""Watcher implementations used by the tunrouted daemon."""

from .file import FileConfigWatcher  # noqa: F401

__all__ = ["FileConfigWatcher"]
