"""Exception types shared by the reconciliation engine."""

from __future__ import annotations

from typing import List, Optional, Sequence


class RouterError(Exception):
    """Base class for every error raised by :mod:`tunroute`."""


class ConfigurationError(RouterError, ValueError):
    """The desired configuration cannot be applied as given.

    Raised before any command has been issued, so the operating system and the
    applied state are left untouched.
    """


class CommandError(RouterError):
    """An external configuration tool exited non-zero or could not be spawned."""

    def __init__(
        self,
        argv: Sequence[str],
        output: bytes = b"",
        returncode: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> None:
        self.argv = list(argv)
        self.output = output
        self.returncode = returncode
        self.reason = reason
        super().__init__(self._describe())

    def _describe(self) -> str:
        cmdline = " ".join(self.argv)
        if self.reason:
            return f"{cmdline}: {self.reason}"
        return f"{cmdline}: exit status {self.returncode}"


class ErrorAccumulator:
    """Collect errors from independent operations and keep the first one.

    Every planned operation still runs; callers surface :attr:`first` once the
    whole batch has been attempted.
    """

    def __init__(self) -> None:
        self._errors: List[RouterError] = []

    def record(self, error: Optional[RouterError]) -> None:
        if error is not None:
            self._errors.append(error)

    @property
    def first(self) -> Optional[RouterError]:
        return self._errors[0] if self._errors else None

    @property
    def errors(self) -> List[RouterError]:
        return list(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def raise_first(self) -> None:
        if self._errors:
            raise self._errors[0]
