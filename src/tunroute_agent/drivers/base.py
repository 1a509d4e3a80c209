"""Abstract interfaces for drivers managed by the registry."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from tunroute.config import DesiredConfig


class RouterDriver(ABC):
    """Base class for driver adapters managed by :class:`DriverRegistry`."""

    @abstractmethod
    def on_config_update(self, config: Optional[DesiredConfig]) -> None:
        """Apply ``config`` as the desired state; ``None`` means tear down."""

    @abstractmethod
    def on_teardown(self) -> None:
        """Release the interface and any state associated with it."""
