"""Route set reconciliation for the tunnel interface."""

from __future__ import annotations

import logging
from typing import AbstractSet, FrozenSet, List, Tuple

from .config import AddressPair, Prefix
from .errors import ErrorAccumulator
from .executor import run_logged

LOG = logging.getLogger(__name__)

ROUTE_ADD = "add"
ROUTE_DELETE = "delete"


def route_argv(
    action: str,
    destination: str,
    family: str,
    iface_arg: str,
    route: str = "route",
) -> List[str]:
    return [route, "-q", "-n", action, f"-{family}", destination, "-iface", iface_arg]


def route_destination(prefix: Prefix) -> str:
    """Canonical ``network/bits`` form, independent of the caller's host bits."""

    return str(prefix.masked())


def _iface_arg(prefix: Prefix, local: AddressPair, ifname: str) -> str:
    # Routes are bound to the local address of their own family; without one
    # the interface name is the only thing left to bind to.
    addr = local.for_family(prefix)
    if addr is None:
        return ifname
    return str(addr.address)


def diff_routes(
    prev: AbstractSet[Prefix], desired: AbstractSet[Prefix]
) -> Tuple[List[Prefix], List[Prefix]]:
    """Return ``(to_remove, to_add)``, each sorted for stable command order."""

    return sorted(prev - desired), sorted(desired - prev)


def apply_routes(
    executor,
    ifname: str,
    prev: AbstractSet[Prefix],
    desired: AbstractSet[Prefix],
    local: AddressPair,
    errors: ErrorAccumulator,
    *,
    route: str = "route",
) -> FrozenSet[Prefix]:
    """Delete routes no longer wanted and add the new ones.

    ``local`` must be the address pair that was just applied, since every
    route is bound to it.  All operations are attempted; failures land in
    ``errors``.  The returned set is ``desired`` whatever the outcome.
    """

    prev = frozenset(prev)
    desired = frozenset(desired)
    to_remove, to_add = diff_routes(prev, desired)
    if not to_remove and not to_add:
        LOG.debug("routes on %s already up to date (%d)", ifname, len(desired))
        return desired

    LOG.info(
        "updating routes on %s: -%d +%d", ifname, len(to_remove), len(to_add)
    )
    for prefix in to_remove:
        argv = route_argv(
            ROUTE_DELETE,
            route_destination(prefix),
            prefix.family,
            _iface_arg(prefix, local, ifname),
            route,
        )
        run_logged(executor, argv, errors, "route del")

    for prefix in to_add:
        argv = route_argv(
            ROUTE_ADD,
            route_destination(prefix),
            prefix.family,
            _iface_arg(prefix, local, ifname),
            route,
        )
        run_logged(executor, argv, errors, "route add")

    return desired
