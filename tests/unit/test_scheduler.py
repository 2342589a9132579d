"""Tests for the tick scheduler."""

import threading
import time

import pytest

from conftest import ist

from cpr_trader.scheduler import Scheduler


def wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached")
        time.sleep(0.01)


@pytest.fixture
def blocking_tick():
    started = threading.Event()
    release = threading.Event()
    calls = []

    def tick(now):
        calls.append(now)
        started.set()
        release.wait(5)

    tick.started = started
    tick.release = release
    tick.calls = calls
    yield tick
    release.set()


class TestScheduler:
    """Test at-most-one-in-flight dispatch."""

    def test_overlapping_tick_is_dropped(self, blocking_tick):
        scheduler = Scheduler(blocking_tick)

        assert scheduler.fire(ist(9, 33)) is True
        assert blocking_tick.started.wait(5)
        assert scheduler.busy

        assert scheduler.fire(ist(9, 33, 1)) is False
        assert scheduler.dropped_ticks == 1

        blocking_tick.release.set()
        wait_until(lambda: not scheduler.busy)
        scheduler.stop()
        scheduler.run()

        assert blocking_tick.calls == [ist(9, 33)]

    def test_fires_again_after_completion(self):
        calls = []
        scheduler = Scheduler(calls.append)

        scheduler.fire(ist(9, 33))
        wait_until(lambda: not scheduler.busy)
        scheduler.fire(ist(9, 33, 1))
        scheduler.stop()
        scheduler.run()

        assert calls == [ist(9, 33), ist(9, 33, 1)]
        assert scheduler.fired_ticks == 2

    def test_tick_error_releases_guard(self):
        def failing_tick(now):
            raise RuntimeError("boom")

        scheduler = Scheduler(failing_tick)

        scheduler.fire(ist(9, 33))
        wait_until(lambda: not scheduler.busy)

        assert scheduler.fire(ist(9, 33, 1)) is True
        scheduler.stop()
        scheduler.run()

    def test_fire_after_shutdown_is_refused(self):
        scheduler = Scheduler(lambda now: None)
        scheduler.stop()
        scheduler.run()

        assert scheduler.fire(ist(9, 33)) is False
        assert scheduler.busy is False

    def test_run_loop_fires_until_stopped(self):
        fired = threading.Event()
        scheduler = Scheduler(lambda now: fired.set(), interval_seconds=0.05)
        runner = threading.Thread(target=scheduler.run)

        runner.start()
        assert fired.wait(5)
        scheduler.stop()
        runner.join(5)

        assert not runner.is_alive()
        assert scheduler.fired_ticks >= 1

    def test_uses_clock_when_no_time_given(self):
        calls = []
        scheduler = Scheduler(calls.append, clock=lambda: ist(10, 0))

        scheduler.fire()
        scheduler.stop()
        scheduler.run()

        assert calls == [ist(10, 0)]
