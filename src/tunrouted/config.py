"""YAML configuration loader for the tunrouted daemon."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import yaml

from tunroute.config import DEFAULT_BOOTSTRAP_ADDRESS, DEFAULT_SYSCTLS, RouterSettings
from tunroute.readiness import RetryPolicy

WATCHER_TYPES = ("file",)


@dataclass
class RouterConfig:
    interface: str
    bootstrap_address: Optional[str] = DEFAULT_BOOTSTRAP_ADDRESS
    sysctls: Sequence[str] = DEFAULT_SYSCTLS
    ready_max_attempts: int = 80
    ready_interval: float = 0.05
    command_timeout: Optional[float] = None

    def to_settings(self) -> RouterSettings:
        return RouterSettings(
            interface=self.interface,
            bootstrap_address=self.bootstrap_address,
            sysctls=tuple(self.sysctls),
            readiness=RetryPolicy(
                max_attempts=self.ready_max_attempts,
                interval=self.ready_interval,
            ),
            command_timeout=self.command_timeout,
        )


@dataclass
class WatcherConfig:
    type: str
    path: Path
    interval: float = 5.0


@dataclass
class DaemonConfig:
    router: RouterConfig
    watchers: Sequence[WatcherConfig] = field(default_factory=list)


def _parse_router(section: dict) -> RouterConfig:
    if not isinstance(section, dict):
        raise ValueError("'router' section must be a mapping")
    if not section.get("interface"):
        raise ValueError("'router' section missing 'interface'")

    readiness = section.get("readiness") or {}
    if not isinstance(readiness, dict):
        raise ValueError("'readiness' must be a mapping if provided")

    sysctls = section.get("sysctls", DEFAULT_SYSCTLS)
    if sysctls is None:
        sysctls = ()
    elif isinstance(sysctls, str) or not isinstance(sysctls, (list, tuple)):
        raise ValueError("'sysctls' must be a list")

    timeout = section.get("command_timeout")
    return RouterConfig(
        interface=str(section["interface"]),
        bootstrap_address=section.get("bootstrap_address", DEFAULT_BOOTSTRAP_ADDRESS)
        or None,
        sysctls=tuple(str(s) for s in sysctls),
        ready_max_attempts=int(readiness.get("max_attempts", 80)),
        ready_interval=float(readiness.get("interval", 0.05)),
        command_timeout=float(timeout) if timeout is not None else None,
    )


def _parse_watchers(entries: Iterable[dict]) -> List[WatcherConfig]:
    watchers: List[WatcherConfig] = []
    for entry in entries:
        if not isinstance(entry, dict) or "type" not in entry:
            raise ValueError("each watcher entry must be a mapping with a 'type'")
        watcher_type = str(entry["type"])
        if watcher_type not in WATCHER_TYPES:
            raise ValueError(f"unsupported watcher type '{watcher_type}'")
        watchers.append(
            WatcherConfig(
                type=watcher_type,
                path=Path(entry.get("path", "/var/lib/tunrouted/desired.json")),
                interval=float(entry.get("interval", 5.0)),
            )
        )
    return watchers


def load_config(path: Path) -> DaemonConfig:
    data = yaml.safe_load(path.read_text())
    if not isinstance(data, dict):
        raise ValueError("Daemon configuration must be a mapping")

    router_section = data.get("router")
    if router_section is None:
        raise ValueError("Configuration missing 'router' section")
    router = _parse_router(router_section)

    watchers_section = data.get("watchers", [])
    if not isinstance(watchers_section, list):
        raise ValueError("'watchers' section must be a list")
    watchers = _parse_watchers(watchers_section)

    return DaemonConfig(router=router, watchers=watchers)
