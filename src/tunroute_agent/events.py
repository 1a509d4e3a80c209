"""Event primitives consumed by the lightweight driver registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from tunroute.config import DesiredConfig


@dataclass(frozen=True)
class ConfigUpdate:
    """Carries the full desired configuration for an interface.

    Publishers always send a complete snapshot so drivers can reconcile
    against it.  ``config=None`` asks for every address and route to be
    removed.
    """

    config: Optional[DesiredConfig]


@dataclass(frozen=True)
class InterfaceTeardown:
    """Signals that the interface is going away and should be brought down."""

    reason: str = ""
