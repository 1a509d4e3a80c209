"""Install and uninstall tunrouted as an rc.d boot-time service.

This is one-shot administrative scripting: write the rc.d script, enable it in
``/etc/rc.conf`` and start it, or the reverse.  It shares no state with the
reconciliation engine.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from tunroute.executor import CommandExecutor

LOG = logging.getLogger(__name__)

SERVICE_NAME = "tunrouted"

RC_SCRIPT = """#!/bin/sh
#
# PROVIDE: tunrouted
# REQUIRE: NETWORKING
# KEYWORD: shutdown

. /etc/rc.subr

name="tunrouted"
rcvar=${name}
command="/usr/sbin/tunrouted"
command_args="--config=/etc/tunrouted.yaml"
pidfile="/var/run/tunrouted/${name}.pid"
start_precmd="tunrouted_prestart"
stop_postcmd="tunrouted_poststop"

tunrouted_prestart()
{
	mkdir -p /var/lib/tunrouted
	mkdir -p /var/run/tunrouted
	chmod 700 /var/lib/tunrouted
	chmod 755 /var/run/tunrouted

	${command} --cleanup 2>/dev/null || true
}

tunrouted_poststop()
{
	${command} --cleanup 2>/dev/null || true
}

load_rc_config $name
run_rc_command "$1"
"""


class ServiceError(Exception):
    """Installing or removing the boot-time service failed."""


class UsageError(ServiceError):
    """The service subcommand was invoked with unexpected arguments."""


@dataclass(frozen=True)
class ServicePaths:
    rc_script: Path = Path("/etc/rc.d/tunrouted")
    rc_conf: Path = Path("/etc/rc.conf")
    target_bin: Path = Path("/usr/sbin/tunrouted")
    state_dir: Path = Path("/var/lib/tunrouted")
    run_dir: Path = Path("/var/run/tunrouted")
    source_bin: Optional[Path] = None

    def executable(self) -> Path:
        if self.source_bin is not None:
            return self.source_bin
        found = shutil.which(SERVICE_NAME)
        return Path(found) if found else Path(sys.argv[0]).resolve()


DEFAULT_PATHS = ServicePaths()


def add_to_rc_conf(rc_conf: Path, line: str) -> None:
    """Append ``line`` to ``rc_conf`` unless an identical line is present."""

    try:
        content = rc_conf.read_text()
        created = False
    except FileNotFoundError:
        content = ""
        created = True

    if any(existing.strip() == line for existing in content.split("\n")):
        return

    if content and not content.endswith("\n"):
        content += "\n"
    content += line + "\n"
    rc_conf.write_text(content)
    if created:
        os.chmod(rc_conf, 0o644)


def remove_from_rc_conf(rc_conf: Path, key: str) -> None:
    """Drop every ``key=...`` line from ``rc_conf``.

    The file keeps its trailing newline, or lack of one.  A missing file
    means there is nothing to remove.
    """

    try:
        content = rc_conf.read_text()
    except FileNotFoundError:
        return

    prefix = key + "="
    kept = [
        line for line in content.split("\n") if not line.strip().startswith(prefix)
    ]
    new_content = "\n".join(kept)
    if content.endswith("\n") and not new_content.endswith("\n"):
        new_content += "\n"
    if new_content != content:
        rc_conf.write_text(new_content)


def same_file(path1: Path, path2: Path) -> bool:
    if not path2.exists():
        return False
    return os.path.samefile(path1, path2)


def copy_binary(src: Path, dst: Path) -> None:
    """Copy ``src`` over ``dst`` atomically, leaving it executable."""

    dst.parent.mkdir(parents=True, exist_ok=True)
    tmp = dst.with_name(dst.name + ".tmp")
    shutil.copyfile(src, tmp)
    os.chmod(tmp, 0o755)
    os.replace(tmp, dst)


def _rc_command(paths: ServicePaths, action: str):
    return [str(paths.rc_script), action]


def uninstall_system_daemon(
    args: Sequence[str],
    paths: ServicePaths = DEFAULT_PATHS,
    executor=None,
) -> None:
    """Stop the service, disable it in rc.conf and remove its rc.d script."""

    if args:
        raise UsageError("uninstall subcommand takes no arguments")
    executor = executor if executor is not None else CommandExecutor()

    result = executor.run(_rc_command(paths, "stop"))
    if result.error is not None:
        LOG.debug("stopping %s failed (ignored): %s", SERVICE_NAME, result.error)

    error: Optional[ServiceError] = None
    try:
        remove_from_rc_conf(paths.rc_conf, SERVICE_NAME)
    except OSError as exc:
        error = ServiceError(f"failed to disable service in {paths.rc_conf}: {exc}")

    try:
        paths.rc_script.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        if error is None:
            error = ServiceError(f"failed to remove {paths.rc_script}: {exc}")

    if error is not None:
        raise error
    LOG.info("uninstalled %s service", SERVICE_NAME)


def _install(paths: ServicePaths, executor) -> None:
    try:
        uninstall_system_daemon([], paths, executor)
    except ServiceError as exc:
        LOG.debug("best-effort uninstall failed: %s", exc)

    exe = paths.executable()
    try:
        if not same_file(exe, paths.target_bin):
            copy_binary(exe, paths.target_bin)
        paths.state_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        paths.run_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
        paths.rc_script.parent.mkdir(parents=True, exist_ok=True)
        paths.rc_script.write_text(RC_SCRIPT)
        os.chmod(paths.rc_script, 0o755)
    except OSError as exc:
        raise ServiceError(str(exc)) from exc

    try:
        add_to_rc_conf(paths.rc_conf, f"{SERVICE_NAME}=YES")
    except OSError as exc:
        raise ServiceError(
            f"failed to enable service in {paths.rc_conf}: {exc}"
        ) from exc

    result = executor.run(_rc_command(paths, "start"))
    if result.error is not None:
        raise ServiceError(
            f"error running {paths.rc_script} start: {result.error}, {result.text}"
        )


def install_system_daemon(
    args: Sequence[str],
    paths: ServicePaths = DEFAULT_PATHS,
    executor=None,
) -> None:
    """Install the binary and rc.d script, enable and start the service."""

    if args:
        raise UsageError("install subcommand takes no arguments")
    executor = executor if executor is not None else CommandExecutor()

    try:
        _install(paths, executor)
    except ServiceError as exc:
        if os.getuid() != 0:
            raise ServiceError(f"{exc}; try running tunrouted with sudo") from exc
        raise
    LOG.info("installed %s service", SERVICE_NAME)
