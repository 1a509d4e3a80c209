"""Thin wrapper around the external configuration tools."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from .errors import CommandError

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Combined output and outcome of one command invocation."""

    argv: Sequence[str]
    output: bytes
    returncode: Optional[int] = None
    error: Optional[CommandError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def text(self) -> str:
        return self.output.decode("utf-8", errors="replace")

    def check(self) -> "CommandResult":
        if self.error is not None:
            raise self.error
        return self


class CommandExecutor:
    """Run ``argv`` to completion and capture stdout and stderr together.

    A non-zero exit status, a spawn failure or an expired timeout is reported
    through :attr:`CommandResult.error` instead of being raised; interpreting
    the output is left to the caller.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._timeout = timeout

    def run(self, argv: Sequence[str]) -> CommandResult:
        if not argv:
            # Only a caller bug can produce an empty command line.
            raise ValueError(f"invalid command {list(argv)!r}; need argv[0]")

        argv = [str(arg) for arg in argv]
        LOG.debug("Executing: %s", " ".join(argv))
        try:
            proc = subprocess.run(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=False,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as exc:
            output = exc.output or b""
            return CommandResult(
                argv,
                output,
                error=CommandError(
                    argv, output, reason=f"timed out after {self._timeout}s"
                ),
            )
        except OSError as exc:
            return CommandResult(
                argv, b"", error=CommandError(argv, b"", reason=str(exc))
            )

        output = proc.stdout or b""
        error = None
        if proc.returncode != 0:
            error = CommandError(argv, output, returncode=proc.returncode)
        return CommandResult(argv, output, proc.returncode, error)


def run_logged(executor, argv: Sequence[str], errors, action: str) -> CommandResult:
    """Run ``argv``, logging and recording a failure in ``errors``."""

    result = executor.run(argv)
    if result.error is not None:
        LOG.error(
            "%s failed: %s: %s\n%s",
            action,
            " ".join(argv),
            result.error,
            result.output.decode("utf-8", errors="replace"),
        )
        errors.record(result.error)
    return result
