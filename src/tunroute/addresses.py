"""Local address reconciliation for the tunnel interface."""

from __future__ import annotations

import logging
from typing import List, Optional

from .config import AddressPair, Prefix
from .errors import ErrorAccumulator
from .executor import run_logged
from .routes import ROUTE_ADD, ROUTE_DELETE, route_argv

LOG = logging.getLogger(__name__)

ALIAS_ADD = "alias"
ALIAS_DELETE = "-alias"


def alias_argv(
    ifname: str, prefix: Prefix, action: str, ifconfig: str = "ifconfig"
) -> List[str]:
    return [ifconfig, ifname, prefix.family, str(prefix), action]


def host_route_argv(prefix: Prefix, action: str, route: str = "route") -> List[str]:
    """Companion route for a point-to-point IPv4 address."""

    return route_argv(action, str(prefix), prefix.family, str(prefix.address), route)


def _replace_v4(
    executor,
    ifname: str,
    prev: Optional[Prefix],
    new: Optional[Prefix],
    errors: ErrorAccumulator,
    ifconfig: str,
    route: str,
) -> None:
    if prev is not None:
        run_logged(
            executor, alias_argv(ifname, prev, ALIAS_DELETE, ifconfig), errors, "addr del"
        )
        run_logged(
            executor, host_route_argv(prev, ROUTE_DELETE, route), errors, "route del"
        )
    if new is not None:
        run_logged(
            executor, alias_argv(ifname, new, ALIAS_ADD, ifconfig), errors, "addr add"
        )
        run_logged(
            executor, host_route_argv(new, ROUTE_ADD, route), errors, "route add"
        )


def _replace_v6(
    executor,
    ifname: str,
    prev: Optional[Prefix],
    new: Optional[Prefix],
    errors: ErrorAccumulator,
    ifconfig: str,
) -> None:
    if prev is not None:
        run_logged(
            executor, alias_argv(ifname, prev, ALIAS_DELETE, ifconfig), errors, "addr del"
        )
    if new is not None:
        run_logged(
            executor, alias_argv(ifname, new, ALIAS_ADD, ifconfig), errors, "addr add"
        )


def apply_addresses(
    executor,
    ifname: str,
    prev: AddressPair,
    desired: AddressPair,
    errors: ErrorAccumulator,
    *,
    ifconfig: str = "ifconfig",
    route: str = "route",
) -> AddressPair:
    """Move the interface from ``prev`` to ``desired`` local addresses.

    ``desired.v6`` is expected to be normalized already (see
    :func:`tunroute.config.split_local_addrs`).  Each family is only touched
    when its address changed.  A failure on one family never stops the other
    from being applied; errors are recorded in ``errors`` and ``desired`` is
    returned regardless.
    """

    if desired.v4 != prev.v4:
        LOG.info("ipv4 address on %s: %s -> %s", ifname, prev.v4, desired.v4)
        _replace_v4(executor, ifname, prev.v4, desired.v4, errors, ifconfig, route)
    else:
        LOG.debug("ipv4 address on %s unchanged (%s)", ifname, prev.v4)

    if desired.v6 != prev.v6:
        LOG.info("ipv6 address on %s: %s -> %s", ifname, prev.v6, desired.v6)
        _replace_v6(executor, ifname, prev.v6, desired.v6, errors, ifconfig)
    else:
        LOG.debug("ipv6 address on %s unchanged (%s)", ifname, prev.v6)

    return desired
