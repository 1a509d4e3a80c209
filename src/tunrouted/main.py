"""Entry point for the tunrouted daemon."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event

from tunroute.driver import TunRouter, clean_up
from tunroute.errors import RouterError
from tunroute.executor import CommandExecutor
from tunroute_agent import DriverRegistry, InterfaceTeardown
from tunroute_agent.drivers import build_router_adapter

from .config import load_config
from .service import ServiceError, UsageError, install_system_daemon, uninstall_system_daemon
from .watchers import FileConfigWatcher

LOG = logging.getLogger(__name__)

DEFAULT_CONFIG = Path("/etc/tunrouted.yaml")

SERVICE_COMMANDS = {
    "install-system-daemon": install_system_daemon,
    "uninstall-system-daemon": uninstall_system_daemon,
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the tunrouted daemon")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Path to the daemon configuration file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--cleanup",
        action="store_true",
        help="Bring the tunnel interface down and exit",
    )
    parser.add_argument(
        "--interface",
        default=None,
        help="Interface to clean up when no configuration file is available",
    )
    subparsers = parser.add_subparsers(dest="command")
    for name in SERVICE_COMMANDS:
        sub = subparsers.add_parser(name, help=f"{name.replace('-', ' ')}")
        sub.add_argument("extra", nargs="*", help=argparse.SUPPRESS)
    return parser


def _run_service_command(name: str, extra) -> int:
    try:
        SERVICE_COMMANDS[name](extra)
    except UsageError as exc:
        print(f"tunrouted: {exc}", file=sys.stderr)
        return 2
    except ServiceError as exc:
        print(f"tunrouted: {exc}", file=sys.stderr)
        return 1
    return 0


def _cleanup(args: argparse.Namespace) -> int:
    interface = args.interface
    if interface is None and args.config.exists():
        interface = load_config(args.config).router.interface
    if interface is None:
        interface = "tun0"
    clean_up(CommandExecutor(), interface)
    return 0


def run_daemon(config_path: Path, stop_event: Event) -> int:
    config = load_config(config_path)
    router = TunRouter(config.router.to_settings())

    try:
        router.up()
    except RouterError:
        LOG.exception("failed to bring up %s", router.interface)
        return 1

    registry = DriverRegistry()
    registry.register("tun", build_router_adapter(router))

    watchers = []
    for watcher_cfg in config.watchers:
        watcher = FileConfigWatcher(
            registry=registry,
            path=watcher_cfg.path,
            interval=watcher_cfg.interval,
            stop_event=stop_event,
        )
        # Perform an initial poll so we react immediately
        try:
            watcher.poll()
        except Exception:  # pragma: no cover - logged inside watcher
            LOG.exception("initial poll failed for watcher %s", watcher_cfg.path)
        watcher.start()
        watchers.append(watcher)

    if not watchers:
        LOG.warning("no watchers configured; daemon will idle")

    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    except KeyboardInterrupt:  # pragma: no cover - fallback if signal not set
        stop_event.set()

    for watcher in watchers:
        watcher.join()

    registry.handle(InterfaceTeardown("shutdown"))
    LOG.info("tunrouted stopped")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if args.command:
        return _run_service_command(args.command, args.extra)
    if args.cleanup:
        return _cleanup(args)

    stop_event = Event()

    def _shutdown(signum, frame):  # pragma: no cover - signal handler
        LOG.info("received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    return run_daemon(args.config, stop_event)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
