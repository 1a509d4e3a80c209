"""Adapter between :class:`~tunroute.driver.TunRouter` and the registry."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

from tunroute.config import DesiredConfig
from tunroute.driver import TunRouter
from tunroute.errors import ConfigurationError, RouterError

from .base import RouterDriver

LOG = logging.getLogger(__name__)


class TunRouterAdapter(RouterDriver):
    """Serialize registry events into one router's reconcile calls.

    Errors stop at this boundary: they are logged and remembered in
    :attr:`last_error` so the publishing watcher thread keeps running.  The
    next update retries, relying on the router being idempotent.
    """

    def __init__(self, router: TunRouter, *, close_on_teardown: bool = True) -> None:
        self._router = router
        self._close_on_teardown = close_on_teardown
        self._lock = Lock()
        self.last_error: Optional[RouterError] = None

    @property
    def router(self) -> TunRouter:
        return self._router

    def on_config_update(self, config: Optional[DesiredConfig]) -> None:
        with self._lock:
            try:
                self._router.reconcile(config)
            except ConfigurationError as exc:
                LOG.error("rejected configuration for %s: %s", self._router.interface, exc)
                self.last_error = exc
            except RouterError as exc:
                LOG.warning(
                    "configuration for %s partially applied: %s",
                    self._router.interface,
                    exc,
                )
                self.last_error = exc
            else:
                self.last_error = None

    def on_teardown(self) -> None:
        with self._lock:
            if self._close_on_teardown:
                self._router.close()


def build_router_adapter(
    router: TunRouter,
    *,
    close_on_teardown: bool = True,
) -> TunRouterAdapter:
    """Helper mirroring the builder pattern used for other adapters."""

    return TunRouterAdapter(router, close_on_teardown=close_on_teardown)
