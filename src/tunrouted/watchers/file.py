"""File-based desired configuration watcher."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Event, Thread
from typing import Optional

from tunroute.config import DesiredConfig
from tunroute.errors import ConfigurationError
from tunroute_agent import DriverRegistry
from tunroute_agent.events import ConfigUpdate

LOG = logging.getLogger(__name__)


class FileConfigWatcher(Thread):
    """Poll a JSON desired-config file and publish configuration events.

    The file holds ``{"local_addrs": [...], "routes": [...]}``; a ``null``
    document, or the file disappearing after it has been seen, publishes a
    teardown.
    """

    def __init__(
        self,
        registry: DriverRegistry,
        path: Path,
        interval: float,
        stop_event: Event,
    ) -> None:
        super().__init__(daemon=True)
        self._registry = registry
        self._path = Path(path)
        self._interval = interval
        self._stop_event = stop_event
        self._seen = False
        self._state: Optional[DesiredConfig] = None

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll()
            except Exception:  # pragma: no cover - logged below
                LOG.exception("file watcher encountered an error")
            self._stop_event.wait(self._interval)

    def _publish(self, config: Optional[DesiredConfig]) -> None:
        self._registry.handle(ConfigUpdate(config))
        self._state = config
        self._seen = True

    def poll(self) -> None:
        if not self._path.exists():
            if self._seen and self._state is not None:
                LOG.info("desired config %s removed, tearing down", self._path)
                self._publish(None)
            else:
                LOG.debug("desired config %s does not exist yet", self._path)
            return

        try:
            payload = json.loads(self._path.read_text())
        except json.JSONDecodeError as exc:
            LOG.warning("failed to parse desired config %s: %s", self._path, exc)
            return

        try:
            desired = DesiredConfig.from_dict(payload)
        except ConfigurationError as exc:
            LOG.warning("invalid desired config %s: %s", self._path, exc)
            return

        if self._seen and desired == self._state:
            return

        LOG.debug("desired config updated: %s", desired)
        self._publish(desired)
