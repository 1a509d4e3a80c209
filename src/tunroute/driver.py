"""Reconciliation driver for one tunnel interface.

:class:`TunRouter` owns the :class:`~tunroute.config.AppliedState` of a single
interface.  Every :meth:`TunRouter.reconcile` call diffs the desired
configuration against that state and issues only the ``ifconfig``/``route``
commands needed to converge.  Addresses are applied before routes because
routes are bound to the local address.

The driver is best-effort: one failing command never stops the remaining
ones, and the applied state always records what was *attempted*.  Callers
retry by reconciling again; the engine is idempotent so that is safe at any
point, including after a daemon restart.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from .addresses import apply_addresses
from .config import (
    EMPTY_CONFIG,
    AppliedState,
    DesiredConfig,
    Prefix,
    RouterSettings,
    split_local_addrs,
)
from .errors import ErrorAccumulator
from .executor import CommandExecutor
from .readiness import wait_until_up
from .routes import apply_routes

LOG = logging.getLogger(__name__)


class RouterPhase(enum.Enum):
    IDLE = "idle"
    CONFIGURED = "configured"


@dataclass
class DriverState:
    """Mutable runtime state tracked by the driver."""

    applied: AppliedState
    phase: RouterPhase = RouterPhase.IDLE


def clean_up(executor, ifname: str, ifconfig: str = "ifconfig") -> bool:
    """Bring ``ifname`` administratively down; failures are only logged."""

    argv = [ifconfig, ifname, "down"]
    LOG.info("cleanUp: %s", " ".join(argv))
    result = executor.run(argv)
    if result.error is not None:
        LOG.warning("ifconfig down failed: %s\n%s", result.error, result.text)
        return False
    return True


class TunRouter:
    """Converge one interface's addresses and routes to a desired state."""

    def __init__(
        self,
        settings: RouterSettings,
        executor=None,
    ) -> None:
        self._settings = settings
        if executor is None:
            executor = CommandExecutor(timeout=settings.command_timeout)
        self._executor = executor
        self._state = DriverState(applied=AppliedState())

    @property
    def interface(self) -> str:
        return self._settings.interface

    @property
    def state(self) -> AppliedState:
        return self._state.applied

    @property
    def phase(self) -> RouterPhase:
        return self._state.phase

    # ------------------------------------------------------------------
    # Interface lifecycle
    # ------------------------------------------------------------------
    def up(self) -> bool:
        """Bring the interface up and wait for it to report ready.

        Raises :class:`~tunroute.errors.CommandError` if ``ifconfig ... up``
        itself fails.  Returns the readiness outcome, which is advisory only.
        """

        settings = self._settings
        argv = [settings.ifconfig, self.interface]
        if settings.bootstrap_address:
            argv += ["inet", str(Prefix.parse(settings.bootstrap_address))]
        argv.append("up")
        LOG.info("Up: %s", " ".join(argv))
        result = self._executor.run(argv)
        if result.error is not None:
            LOG.error("running ifconfig failed: %s\n%s", result.error, result.text)
            raise result.error

        self._apply_sysctls()
        return wait_until_up(
            self._executor, self.interface, settings.readiness, settings.ifconfig
        )

    def _apply_sysctls(self) -> None:
        for setting in self._settings.sysctls:
            argv = [self._settings.sysctl, "-w", setting]
            result = self._executor.run(argv)
            if result.error is not None:
                LOG.warning("failed to set %s: %s", setting, result.error)
            else:
                LOG.debug("set %s", setting)

    def close(self) -> None:
        """Bring the interface down and forget the applied state."""

        clean_up(self._executor, self.interface, self._settings.ifconfig)
        self._state = DriverState(applied=AppliedState())

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------
    def reconcile(self, desired: Optional[DesiredConfig]) -> AppliedState:
        """Apply ``desired``; ``None`` tears everything down.

        Raises :class:`~tunroute.errors.ConfigurationError` without touching
        anything when ``desired`` has more than one address per family.
        Otherwise every needed command runs, the attempted state is committed
        and the first :class:`~tunroute.errors.CommandError` is raised, if any.
        """

        if desired is None:
            desired = EMPTY_CONFIG
        LOG.debug("reconcile %s: %s", self.interface, desired)

        local = split_local_addrs(desired.local_addrs)
        errors = ErrorAccumulator()
        settings = self._settings
        applied = self._state.applied

        new_local = apply_addresses(
            self._executor,
            self.interface,
            applied.addresses,
            local,
            errors,
            ifconfig=settings.ifconfig,
            route=settings.route,
        )
        new_routes = apply_routes(
            self._executor,
            self.interface,
            applied.routes,
            desired.routes,
            new_local,
            errors,
            route=settings.route,
        )

        self._state.applied = AppliedState(
            local_v4=new_local.v4,
            local_v6=new_local.v6,
            routes=new_routes,
        )
        self._state.phase = RouterPhase.CONFIGURED

        if errors:
            LOG.warning(
                "reconcile %s finished with %d failed command(s)",
                self.interface,
                len(errors.errors),
            )
            errors.raise_first()
        return self._state.applied
