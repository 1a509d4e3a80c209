"""Bounded wait for a freshly created tunnel interface to come up.

A new tun device may not be readable yet even after ``ifconfig ... up``
returned.  Reading from it too early fails with "host is down", so bring-up
polls the interface status for a short while.  Giving up is not fatal:
assigning an address afterwards re-triggers readiness on its own.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

LOG = logging.getLogger(__name__)

STATUS_DOWN_MARKER = b"status: down"


def interface_reported_up(output: bytes) -> bool:
    """Return ``True`` when ``ifconfig <iface>`` output shows no down status."""

    return len(output) > 0 and STATUS_DOWN_MARKER not in output


@dataclass(frozen=True)
class RetryPolicy:
    """How long and how often to poll, and what counts as success."""

    max_attempts: int = 80
    interval: float = 0.05
    predicate: Callable[[bytes], bool] = interface_reported_up
    sleep: Callable[[float], None] = time.sleep

    @property
    def budget(self) -> float:
        return self.max_attempts * self.interval


def wait_until_up(
    executor,
    ifname: str,
    policy: RetryPolicy = RetryPolicy(),
    ifconfig: str = "ifconfig",
) -> bool:
    """Poll ``ifconfig <ifname>`` until it reports the interface as up.

    Returns ``True`` as soon as one attempt succeeds and ``False`` once
    ``policy.max_attempts`` attempts have failed.  Never raises for a command
    failure; a timeout is logged as a warning.
    """

    check = [ifconfig, ifname]
    for attempt in range(1, policy.max_attempts + 1):
        result = executor.run(check)
        if result.error is None and policy.predicate(result.output):
            LOG.info("interface %s verified as up (attempt %d)", ifname, attempt)
            return True
        if attempt < policy.max_attempts:
            policy.sleep(policy.interval)

    LOG.warning(
        "could not verify %s is up after %d attempts (%.2fs), continuing anyway",
        ifname,
        policy.max_attempts,
        policy.budget,
    )
    return False
