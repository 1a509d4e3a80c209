"""Tiny driver registry dispatching configuration events."""

from __future__ import annotations

from typing import Dict, Union

from .drivers import RouterDriver
from .events import ConfigUpdate, InterfaceTeardown


class DriverRegistry:
    """Dispatch configuration events to registered driver adapters."""

    def __init__(self) -> None:
        self._drivers: Dict[str, RouterDriver] = {}

    def register(self, name: str, driver: RouterDriver) -> None:
        if name in self._drivers:
            raise ValueError(f"driver '{name}' already registered")
        self._drivers[name] = driver

    def unregister(self, name: str) -> None:
        self._drivers.pop(name, None)

    def handle(self, event: Union[ConfigUpdate, InterfaceTeardown]) -> None:
        if isinstance(event, ConfigUpdate):
            self._on_config_update(event)
        elif isinstance(event, InterfaceTeardown):
            self._on_teardown(event)
        else:
            raise TypeError(f"Unsupported event type: {type(event)!r}")

    def _on_config_update(self, event: ConfigUpdate) -> None:
        for driver in self._drivers.values():
            driver.on_config_update(event.config)

    def _on_teardown(self, event: InterfaceTeardown) -> None:
        for driver in self._drivers.values():
            driver.on_teardown()
