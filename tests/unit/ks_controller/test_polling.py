"""Unit tests for the bounded poll loop."""

import asyncio

import pytest

from ks_controller import polling
from ks_controller.cancellation import CancellationSignal
from ks_controller.polling import PollOutcome, poll, poll_until

pytestmark = pytest.mark.unit_controller


class _CountingProbe:
    def __init__(self, succeed_on: int | None = None) -> None:
        self.calls = 0
        self.succeed_on = succeed_on

    def __call__(self) -> bool:
        self.calls += 1
        return self.succeed_on is not None and self.calls >= self.succeed_on


def test_already_set_signal_never_calls_probe() -> None:
    signal = CancellationSignal()
    signal.set()
    probe = _CountingProbe(succeed_on=1)

    assert asyncio.run(poll(probe, 0.01, signal)) is PollOutcome.ABORTED
    assert probe.calls == 0


def test_succeeds_after_n_calls(monkeypatch) -> None:
    probe = _CountingProbe(succeed_on=3)
    sleeps = []
    real_sleep = polling.interruptible_sleep

    async def counting_sleep(seconds, signal):
        sleeps.append(seconds)
        return await real_sleep(seconds, signal)

    monkeypatch.setattr(polling, "interruptible_sleep", counting_sleep)

    assert asyncio.run(poll(probe, 0.01, CancellationSignal())) is PollOutcome.SUCCEEDED
    assert probe.calls == 3
    assert sleeps == [0.01, 0.01]


def test_async_probe_is_awaited() -> None:
    calls = []

    async def probe() -> bool:
        calls.append(1)
        return len(calls) == 2

    assert asyncio.run(poll(probe, 0.01, CancellationSignal())) is PollOutcome.SUCCEEDED
    assert len(calls) == 2


def test_times_out_with_always_false_probe() -> None:
    probe = _CountingProbe()

    outcome = asyncio.run(poll(probe, 0.01, CancellationSignal(), max_wait=0.05))

    assert outcome is PollOutcome.TIMED_OUT
    assert probe.calls >= 1


def test_deadline_uses_injected_clock() -> None:
    now = [0.0]

    def probe() -> bool:
        now[0] += 10
        return False

    outcome = asyncio.run(
        poll(probe, 0, CancellationSignal(), max_wait=25, clock=lambda: now[0])
    )

    assert outcome is PollOutcome.TIMED_OUT
    assert now[0] == 30


def test_signal_during_interval_aborts() -> None:
    probe = _CountingProbe()

    async def scenario():
        signal = CancellationSignal()
        asyncio.get_running_loop().call_later(0.05, signal.set)
        return await poll(probe, 10, signal, max_wait=60)

    assert asyncio.run(scenario()) is PollOutcome.ABORTED
    assert probe.calls == 1


def test_probe_exception_propagates() -> None:
    def probe() -> bool:
        raise ValueError("probe broke")

    with pytest.raises(ValueError, match="probe broke"):
        asyncio.run(poll(probe, 0.01, CancellationSignal()))


def test_poll_until_is_false_on_timeout_and_abort() -> None:
    signal = CancellationSignal()
    signal.set()

    assert asyncio.run(poll_until(_CountingProbe(), 0.01, CancellationSignal(), max_wait=0.03)) is False
    assert asyncio.run(poll_until(_CountingProbe(succeed_on=1), 0.01, signal)) is False
    assert asyncio.run(poll_until(_CountingProbe(succeed_on=2), 0.01, CancellationSignal())) is True
