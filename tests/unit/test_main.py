import json
from pathlib import Path
from threading import Event

import pytest

from tunrouted import main as daemon_main


class ImmediateStop(Event):
    """Stop the main loop on its first wait."""

    def wait(self, timeout=None):
        self.set()
        return True


def test_service_usage_error_exit_status(monkeypatch):
    calls = []
    monkeypatch.setitem(
        daemon_main.SERVICE_COMMANDS,
        "install-system-daemon",
        lambda args: calls.append(args) or daemon_main.install_system_daemon(args),
    )

    assert daemon_main.main(["install-system-daemon", "bogus"]) == 2
    assert calls == [["bogus"]]


def test_cleanup_uses_configured_interface(tmp_path: Path, monkeypatch, executor):
    config_path = tmp_path / "tunrouted.yaml"
    config_path.write_text("router:\n  interface: tun5\n")
    monkeypatch.setattr(daemon_main, "CommandExecutor", lambda: executor)

    assert daemon_main.main(["--config", str(config_path), "--cleanup"]) == 0
    assert executor.calls == [["ifconfig", "tun5", "down"]]


def test_cleanup_without_config_defaults_to_tun0(tmp_path: Path, monkeypatch, executor):
    monkeypatch.setattr(daemon_main, "CommandExecutor", lambda: executor)

    assert daemon_main.main(["--config", str(tmp_path / "missing.yaml"), "--cleanup"]) == 0
    assert executor.calls == [["ifconfig", "tun0", "down"]]


def test_run_daemon_applies_desired_config(tmp_path: Path, monkeypatch, executor):
    desired = tmp_path / "desired.json"
    desired.write_text(json.dumps({"local_addrs": ["100.64.1.2/32"], "routes": ["10.0.0.0/24"]}))
    config_path = tmp_path / "tunrouted.yaml"
    config_path.write_text(
        "router:\n"
        "  interface: tun0\n"
        "  sysctls: []\n"
        "  readiness:\n"
        "    max_attempts: 1\n"
        "watchers:\n"
        f"  - type: file\n    path: {desired}\n    interval: 0.01\n"
    )

    real_router = daemon_main.TunRouter
    monkeypatch.setattr(
        daemon_main, "TunRouter", lambda settings: real_router(settings, executor=executor)
    )

    assert daemon_main.run_daemon(config_path, ImmediateStop()) == 0

    assert ["ifconfig", "tun0", "inet", "100.64.1.2/32", "alias"] in executor.calls
    assert ["route", "-q", "-n", "add", "-inet", "10.0.0.0/24", "-iface", "100.64.1.2"] in executor.calls
    assert executor.calls[-1] == ["ifconfig", "tun0", "down"]


def test_run_daemon_fails_when_interface_cannot_come_up(tmp_path: Path, monkeypatch, executor):
    config_path = tmp_path / "tunrouted.yaml"
    config_path.write_text("router:\n  interface: tun0\n")
    executor.fail_matching("up")
    real_router = daemon_main.TunRouter
    monkeypatch.setattr(
        daemon_main, "TunRouter", lambda settings: real_router(settings, executor=executor)
    )

    assert daemon_main.run_daemon(config_path, ImmediateStop()) == 1


def test_parser_rejects_unknown_subcommand():
    with pytest.raises(SystemExit):
        daemon_main.build_parser().parse_args(["frobnicate"])
