from typing import Callable, List, Optional, Sequence

import pytest

from tunroute.config import RouterSettings
from tunroute.errors import CommandError
from tunroute.executor import CommandResult
from tunroute.readiness import RetryPolicy


class FakeExecutor:
    """Record argv instead of touching the OS; fail commands on request."""

    def __init__(self, output: bytes = b"tun0: flags=8051<UP>\n\tstatus: active\n"):
        self.calls: List[List[str]] = []
        self.output = output
        self._fail: List[Callable[[Sequence[str]], bool]] = []

    def fail_when(self, predicate: Callable[[Sequence[str]], bool]) -> None:
        self._fail.append(predicate)

    def fail_matching(self, *tokens: str) -> None:
        self.fail_when(lambda argv: all(t in argv for t in tokens))

    def run(self, argv: Sequence[str]) -> CommandResult:
        if not argv:
            raise ValueError("empty argv")
        argv = list(argv)
        self.calls.append(argv)
        if any(pred(argv) for pred in self._fail):
            return CommandResult(
                argv, b"boom", 1, CommandError(argv, b"boom", returncode=1)
            )
        return CommandResult(argv, self.output, 0, None)

    def clear(self) -> None:
        self.calls.clear()

    def commands(self, tool: Optional[str] = None) -> List[List[str]]:
        if tool is None:
            return list(self.calls)
        return [c for c in self.calls if c[0] == tool]


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def settings() -> RouterSettings:
    return RouterSettings(
        interface="tun0",
        sysctls=(),
        readiness=RetryPolicy(max_attempts=3, interval=0.0, sleep=lambda _: None),
    )
