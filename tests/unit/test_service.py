import os
import stat
from pathlib import Path

import pytest

from tunrouted.service import (
    RC_SCRIPT,
    ServiceError,
    ServicePaths,
    UsageError,
    add_to_rc_conf,
    install_system_daemon,
    remove_from_rc_conf,
    uninstall_system_daemon,
)


def build_paths(tmp_path: Path) -> ServicePaths:
    source = tmp_path / "build" / "tunrouted"
    source.parent.mkdir()
    source.write_text("#!/bin/sh\nexit 0\n")
    return ServicePaths(
        rc_script=tmp_path / "etc" / "rc.d" / "tunrouted",
        rc_conf=tmp_path / "etc" / "rc.conf",
        target_bin=tmp_path / "usr" / "sbin" / "tunrouted",
        state_dir=tmp_path / "var" / "lib" / "tunrouted",
        run_dir=tmp_path / "var" / "run" / "tunrouted",
        source_bin=source,
    )


def test_add_to_rc_conf_appends_once(tmp_path: Path):
    rc_conf = tmp_path / "rc.conf"
    rc_conf.write_text("sshd=YES")

    add_to_rc_conf(rc_conf, "tunrouted=YES")
    add_to_rc_conf(rc_conf, "tunrouted=YES")

    assert rc_conf.read_text() == "sshd=YES\ntunrouted=YES\n"


def test_add_to_rc_conf_matches_trimmed_lines(tmp_path: Path):
    rc_conf = tmp_path / "rc.conf"
    rc_conf.write_text("  tunrouted=YES  \n")

    add_to_rc_conf(rc_conf, "tunrouted=YES")

    assert rc_conf.read_text() == "  tunrouted=YES  \n"


def test_add_to_rc_conf_creates_missing_file(tmp_path: Path):
    rc_conf = tmp_path / "rc.conf"

    add_to_rc_conf(rc_conf, "tunrouted=YES")

    assert rc_conf.read_text() == "tunrouted=YES\n"
    assert stat.S_IMODE(os.stat(rc_conf).st_mode) == 0o644


def test_add_to_rc_conf_keeps_existing_mode(tmp_path: Path):
    rc_conf = tmp_path / "rc.conf"
    rc_conf.write_text("sshd=YES\n")
    os.chmod(rc_conf, 0o600)

    add_to_rc_conf(rc_conf, "tunrouted=YES")

    assert rc_conf.read_text() == "sshd=YES\ntunrouted=YES\n"
    assert stat.S_IMODE(os.stat(rc_conf).st_mode) == 0o600


def test_remove_from_rc_conf_drops_key_lines(tmp_path: Path):
    rc_conf = tmp_path / "rc.conf"
    rc_conf.write_text("sshd=YES\ntunrouted=YES\n  tunrouted=NO\ntunrouted_flags=x\n")

    remove_from_rc_conf(rc_conf, "tunrouted")

    assert rc_conf.read_text() == "sshd=YES\ntunrouted_flags=x\n"


def test_remove_from_rc_conf_preserves_missing_trailing_newline(tmp_path: Path):
    rc_conf = tmp_path / "rc.conf"
    rc_conf.write_text("sshd=YES\ntunrouted=YES\ndhcpcd=YES")

    remove_from_rc_conf(rc_conf, "tunrouted")

    assert rc_conf.read_text() == "sshd=YES\ndhcpcd=YES"


def test_remove_from_rc_conf_keeps_newline_when_all_lines_removed(tmp_path: Path):
    rc_conf = tmp_path / "rc.conf"
    rc_conf.write_text("tunrouted=YES\n")

    remove_from_rc_conf(rc_conf, "tunrouted")

    assert rc_conf.read_text() == "\n"


def test_remove_from_rc_conf_missing_file_is_noop(tmp_path: Path):
    remove_from_rc_conf(tmp_path / "rc.conf", "tunrouted")

    assert not (tmp_path / "rc.conf").exists()


def test_install_writes_script_and_enables_service(tmp_path: Path, executor):
    paths = build_paths(tmp_path)

    install_system_daemon([], paths, executor)

    assert paths.rc_script.read_text() == RC_SCRIPT
    assert stat.S_IMODE(os.stat(paths.rc_script).st_mode) == 0o755
    assert paths.target_bin.read_text() == paths.source_bin.read_text()
    assert os.access(paths.target_bin, os.X_OK)
    assert paths.state_dir.is_dir()
    assert paths.run_dir.is_dir()
    assert paths.rc_conf.read_text() == "tunrouted=YES\n"
    assert executor.calls == [
        [str(paths.rc_script), "stop"],
        [str(paths.rc_script), "start"],
    ]


def test_install_is_repeatable(tmp_path: Path, executor):
    paths = build_paths(tmp_path)

    install_system_daemon([], paths, executor)
    install_system_daemon([], paths, executor)

    # uninstall leaves the emptied file's newline behind
    assert paths.rc_conf.read_text() == "\ntunrouted=YES\n"


def test_install_reports_start_failure(tmp_path: Path, executor):
    paths = build_paths(tmp_path)
    executor.fail_matching("start")

    with pytest.raises(ServiceError) as excinfo:
        install_system_daemon([], paths, executor)

    assert "start" in str(excinfo.value)


def test_uninstall_removes_everything(tmp_path: Path, executor):
    paths = build_paths(tmp_path)
    install_system_daemon([], paths, executor)
    paths.rc_conf.write_text("sshd=YES\ntunrouted=YES\n")
    executor.clear()
    executor.fail_matching("stop")

    uninstall_system_daemon([], paths, executor)

    assert not paths.rc_script.exists()
    assert paths.rc_conf.read_text() == "sshd=YES\n"
    assert executor.calls == [[str(paths.rc_script), "stop"]]


def test_uninstall_when_nothing_installed(tmp_path: Path, executor):
    uninstall_system_daemon([], build_paths(tmp_path), executor)


@pytest.mark.parametrize("func", [install_system_daemon, uninstall_system_daemon])
def test_service_commands_take_no_arguments(tmp_path: Path, executor, func):
    with pytest.raises(UsageError):
        func(["extra"], build_paths(tmp_path), executor)

    assert executor.calls == []
