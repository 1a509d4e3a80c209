"""Event plumbing between desired-configuration sources and the router.

Watchers publish :class:`ConfigUpdate` / :class:`InterfaceTeardown` events to a
:class:`DriverRegistry`, which fans them out to the registered driver
adapters.  The adapters own the serialization of calls into
:class:`tunroute.driver.TunRouter`.
"""

from .events import ConfigUpdate, InterfaceTeardown  # noqa: F401
from .registry import DriverRegistry  # noqa: F401

__all__ = [
    "ConfigUpdate",
    "DriverRegistry",
    "InterfaceTeardown",
]
