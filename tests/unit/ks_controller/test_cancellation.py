"""Unit tests for the cancellation signal and interruptible sleep."""

import asyncio
import time

import pytest

from ks_controller.cancellation import CancellationSignal, DelayOutcome, interruptible_sleep

pytestmark = pytest.mark.unit_controller


def test_set_twice_fires_each_listener_once() -> None:
    signal = CancellationSignal()
    calls = []
    signal.on_set(lambda: calls.append("a"))
    signal.on_set(lambda: calls.append("b"))

    signal.set()
    signal.set()

    assert calls == ["a", "b"]
    assert signal.is_set()


def test_listener_registered_after_set_fires_immediately() -> None:
    signal = CancellationSignal()
    signal.set()
    calls = []

    unsubscribe = signal.on_set(lambda: calls.append("late"))
    unsubscribe()

    assert calls == ["late"]


def test_unsubscribe_prevents_notification() -> None:
    signal = CancellationSignal()
    calls = []
    unsubscribe = signal.on_set(lambda: calls.append("x"))

    unsubscribe()
    signal.set()

    assert calls == []


def test_failing_listener_does_not_block_others() -> None:
    signal = CancellationSignal()
    calls = []

    def boom() -> None:
        raise RuntimeError("listener failed")

    signal.on_set(boom)
    signal.on_set(lambda: calls.append("ok"))
    signal.set()

    assert calls == ["ok"]


def test_sleep_returns_immediately_when_already_set() -> None:
    signal = CancellationSignal()
    signal.set()

    async def scenario():
        started = time.monotonic()
        outcome = await interruptible_sleep(10, signal)
        return outcome, time.monotonic() - started

    outcome, elapsed = asyncio.run(scenario())
    assert outcome is DelayOutcome.INTERRUPTED
    assert elapsed < 0.5


def test_sleep_elapses_without_signal() -> None:
    signal = CancellationSignal()

    async def scenario():
        started = time.monotonic()
        outcome = await interruptible_sleep(0.05, signal)
        return outcome, time.monotonic() - started

    outcome, elapsed = asyncio.run(scenario())
    assert outcome is DelayOutcome.ELAPSED
    assert elapsed >= 0.04
    assert repr(signal) == "<CancellationSignal unset listeners=0>"


def test_sleep_interrupted_early_by_signal() -> None:
    signal = CancellationSignal()

    async def scenario():
        loop = asyncio.get_running_loop()
        loop.call_later(0.05, signal.set)
        started = time.monotonic()
        outcome = await interruptible_sleep(10, signal)
        return outcome, time.monotonic() - started

    outcome, elapsed = asyncio.run(scenario())
    assert outcome is DelayOutcome.INTERRUPTED
    assert elapsed < 2


def test_cancelled_sleep_leaves_no_listener() -> None:
    signal = CancellationSignal()

    async def scenario():
        task = asyncio.create_task(interruptible_sleep(10, signal))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())
    assert "listeners=0" in repr(signal)
