"""Tunnel interface address and route reconciler.

This package converges the operating system's view of one user-space tunnel
interface (its local IPv4/IPv6 address and the routes pointing at it) to a
desired configuration using ``ifconfig`` and ``route``.  It focuses on:

* diffing desired against last-applied state so only the minimal set of
  add/delete commands is issued;
* binding routes to the interface's local address of the matching family;
* keeping going when a command fails and reporting the first failure; and
* waiting, with a bounded retry policy, for a new interface to come up.

External commands all go through :class:`tunroute.executor.CommandExecutor`
so the engine can be exercised in tests with a recording fake.
"""

from .config import AppliedState, DesiredConfig, Prefix, RouterSettings  # noqa: F401
from .driver import RouterPhase, TunRouter, clean_up  # noqa: F401
from .errors import CommandError, ConfigurationError, RouterError  # noqa: F401
from .executor import CommandExecutor, CommandResult  # noqa: F401
from .readiness import RetryPolicy, wait_until_up  # noqa: F401

__all__ = [
    "AppliedState",
    "CommandError",
    "CommandExecutor",
    "CommandResult",
    "ConfigurationError",
    "DesiredConfig",
    "Prefix",
    "RetryPolicy",
    "RouterError",
    "RouterPhase",
    "RouterSettings",
    "TunRouter",
    "clean_up",
    "wait_until_up",
]
