"""Bounded polling.

Every wait in ``loft start`` goes through :func:`poll`: evaluate a predicate
at a fixed interval until it returns True, raises, or the timeout elapses.

The poller owns the mechanism only. A predicate that wants to tolerate a
transient failure catches it itself and returns False; anything it raises
stops the poll immediately and propagates to the caller.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from ..errors import PollTimeoutError

Predicate = Callable[[], bool]


@dataclass(frozen=True)
class PollSpec:
    """Interval/timeout pair for one wait."""

    interval: float
    timeout: float
    immediate: bool = False
    description: str = "condition"


def poll(
    predicate: Predicate,
    interval: float,
    timeout: float,
    immediate: bool = False,
    description: str = "condition",
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """Poll until ``predicate`` returns True.

    Args:
        predicate: Zero-argument callable; True means done.
        interval: Seconds between evaluations.
        timeout: Total seconds to keep trying.
        immediate: Evaluate once before the first wait.
        description: Used in the timeout message.
        sleep: Sleep function (injectable for tests).
        clock: Monotonic clock (injectable for tests).

    Returns:
        Number of evaluations it took.

    Raises:
        PollTimeoutError: If the timeout elapsed without success.
        Exception: Whatever the predicate raised, unchanged.
    """
    start = clock()
    deadline = start + timeout
    attempts = 0

    if immediate:
        attempts += 1
        if predicate():
            return attempts

    while True:
        remaining = deadline - clock()
        if remaining <= 0:
            break
        sleep(min(interval, remaining))

        attempts += 1
        if predicate():
            return attempts

    raise PollTimeoutError(
        message=f"Timed out waiting for {description}",
        elapsed_seconds=clock() - start,
    )


def poll_immediate(
    predicate: Predicate,
    interval: float,
    timeout: float,
    description: str = "condition",
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """:func:`poll` with one evaluation before the first wait."""
    return poll(
        predicate,
        interval,
        timeout,
        immediate=True,
        description=description,
        sleep=sleep,
        clock=clock,
    )


class Poller:
    """Runs :class:`PollSpec` waits with a shared sleep function and clock."""

    def __init__(
        self,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.sleep = sleep
        self.clock = clock

    def wait(self, spec: PollSpec, predicate: Predicate) -> int:
        """Poll ``predicate`` according to ``spec``."""
        return poll(
            predicate,
            spec.interval,
            spec.timeout,
            immediate=spec.immediate,
            description=spec.description,
            sleep=self.sleep,
            clock=self.clock,
        )
