"""Unit tests for the bounded poller."""

from __future__ import annotations

import pytest

from loftctl.errors import PollTimeoutError
from loftctl.start.poller import Poller, PollSpec, poll, poll_immediate


def true_on_call(n: int):
    """Predicate that returns True on its n-th evaluation."""
    calls = {"count": 0}

    def predicate() -> bool:
        calls["count"] += 1
        return calls["count"] >= n

    predicate.calls = calls  # type: ignore[attr-defined]
    return predicate


class TestPoll:
    """Tests for poll()."""

    @pytest.mark.parametrize("n", [1, 2, 5])
    def test_evaluates_exactly_n_times(self, clock, n):
        """A predicate true on call N is evaluated N times."""
        predicate = true_on_call(n)
        attempts = poll(predicate, interval=1, timeout=60, sleep=clock.sleep, clock=clock)

        assert attempts == n
        assert predicate.calls["count"] == n

    def test_waits_before_first_evaluation(self, clock):
        """The non-immediate variant sleeps one interval first."""
        predicate = true_on_call(1)
        poll(predicate, interval=3, timeout=60, sleep=clock.sleep, clock=clock)

        assert clock.sleeps == [3]

    def test_immediate_evaluates_before_sleeping(self, clock):
        """poll_immediate returns without sleeping when already true."""
        predicate = true_on_call(1)
        attempts = poll_immediate(predicate, interval=3, timeout=60, sleep=clock.sleep, clock=clock)

        assert attempts == 1
        assert clock.sleeps == []

    def test_timeout_raises(self, clock):
        """A predicate that never succeeds ends in PollTimeoutError."""
        with pytest.raises(PollTimeoutError) as exc_info:
            poll(lambda: False, interval=1, timeout=5, sleep=clock.sleep, clock=clock)

        assert exc_info.value.elapsed_seconds == 5
        assert "gave up after 5s" in str(exc_info.value)

    def test_never_sleeps_past_deadline(self, clock):
        """The last sleep is clipped to the remaining time."""
        with pytest.raises(PollTimeoutError):
            poll(lambda: False, interval=4, timeout=10, sleep=clock.sleep, clock=clock)

        assert clock.sleeps == [4, 4, 2]
        assert clock.now == 10

    def test_evaluates_once_at_deadline(self, clock):
        """A predicate that turns true exactly at the deadline still wins."""
        predicate = true_on_call(3)
        attempts = poll(predicate, interval=4, timeout=10, sleep=clock.sleep, clock=clock)

        assert attempts == 3
        assert clock.now == 10

    def test_predicate_error_propagates_immediately(self, clock):
        """An exception from the predicate stops polling at once."""
        calls = []

        def predicate() -> bool:
            calls.append(1)
            raise RuntimeError("list failed")

        with pytest.raises(RuntimeError, match="list failed"):
            poll_immediate(predicate, interval=1, timeout=60, sleep=clock.sleep, clock=clock)

        assert len(calls) == 1
        assert clock.sleeps == []


class TestPoller:
    """Tests for the Poller wrapper."""

    def test_wait_uses_spec(self, poller, clock):
        """Poller.wait honours interval, timeout and immediate from the spec."""
        spec = PollSpec(interval=2, timeout=6, immediate=True, description="thing")

        with pytest.raises(PollTimeoutError, match="Timed out waiting for thing"):
            poller.wait(spec, lambda: False)

        assert clock.sleeps == [2, 2, 2]

    def test_default_poller_uses_real_time(self):
        """Without injection the poller uses time.sleep and time.monotonic."""
        import time

        poller = Poller()
        assert poller.sleep is time.sleep
        assert poller.clock is time.monotonic
