"""Unit tests for the sequential pipeline runner and its state machine."""

import asyncio

import pytest

from ks_common.errors import TimeoutFailure
from ks_controller.cancellation import CancellationSignal
from ks_controller.pipeline import (
    EXIT_FAILED,
    EXIT_INTERRUPTED,
    EXIT_OK,
    PipelineClassification,
    PipelineRunner,
    PipelineState,
    PipelineStateMachine,
    PipelineStep,
)

pytestmark = pytest.mark.unit_controller


def _recording_step(name, calls, *, fail=None, best_effort=False, hook=None):
    async def action():
        calls.append(name)
        if hook:
            hook()
        if fail:
            raise fail

    return PipelineStep(name, action, best_effort=best_effort)


def test_all_steps_complete_in_order() -> None:
    calls = []
    steps = [_recording_step(n, calls) for n in ("a", "b", "c")]
    runner = PipelineRunner(steps, CancellationSignal())

    result = asyncio.run(runner.run())

    assert calls == ["a", "b", "c"]
    assert result.classification is PipelineClassification.COMPLETED
    assert result.exit_code == EXIT_OK
    assert runner.state is PipelineState.COMPLETED


def test_failure_skips_remaining_steps() -> None:
    calls = []
    steps = [
        _recording_step("a", calls),
        _recording_step("b", calls, fail=RuntimeError("b broke")),
        _recording_step("c", calls),
    ]

    result = asyncio.run(PipelineRunner(steps, CancellationSignal()).run())

    assert calls == ["a", "b"]
    assert result.classification is PipelineClassification.FAILED
    assert result.message == "b broke"
    assert result.failed_step == "b"
    assert result.exit_code == EXIT_FAILED


def test_failure_message_includes_remediation_hint() -> None:
    calls = []
    steps = [_recording_step("wait", calls, fail=TimeoutFailure("pods", 600, hint="Check capacity."))]

    result = asyncio.run(PipelineRunner(steps, CancellationSignal()).run())

    assert result.message == "Timed out after 10m waiting for pods.\nCheck capacity."


def test_best_effort_failure_does_not_halt() -> None:
    calls = []
    steps = [
        _recording_step("uninstall", calls, fail=RuntimeError("not found"), best_effort=True),
        _recording_step("install", calls),
    ]

    result = asyncio.run(PipelineRunner(steps, CancellationSignal()).run())

    assert calls == ["uninstall", "install"]
    assert result.classification is PipelineClassification.COMPLETED


def test_signal_between_steps_interrupts() -> None:
    calls = []
    signal = CancellationSignal()
    steps = [
        _recording_step("1", calls),
        _recording_step("2", calls, hook=signal.set),
        _recording_step("3", calls),
        _recording_step("4", calls),
    ]

    result = asyncio.run(PipelineRunner(steps, signal).run())

    assert calls == ["1", "2"]
    assert result.classification is PipelineClassification.INTERRUPTED
    assert result.exit_code == EXIT_INTERRUPTED


def test_step_failing_after_interrupt_is_interrupted() -> None:
    calls = []
    signal = CancellationSignal()
    steps = [_recording_step("stream", calls, fail=RuntimeError("killed"), hook=signal.set)]

    result = asyncio.run(PipelineRunner(steps, signal).run())

    assert result.classification is PipelineClassification.INTERRUPTED
    assert result.message is None


def test_signal_before_start_runs_nothing() -> None:
    calls = []
    signal = CancellationSignal()
    signal.set()
    runner = PipelineRunner([_recording_step("a", calls)], signal)

    result = asyncio.run(runner.run())

    assert calls == []
    assert result.classification is PipelineClassification.INTERRUPTED


def test_result_reached_once() -> None:
    calls = []
    runner = PipelineRunner([_recording_step("a", calls)], CancellationSignal())

    first = asyncio.run(runner.run())
    second = asyncio.run(runner.run())

    assert first is second
    assert calls == ["a"]


def test_step_start_callback_receives_index() -> None:
    seen = []
    calls = []
    steps = [_recording_step(n, calls) for n in ("a", "b")]
    runner = PipelineRunner(
        steps, CancellationSignal(), on_step_start=lambda i, step: seen.append((i, step.name))
    )

    asyncio.run(runner.run())

    assert seen == [(0, "a"), (1, "b")]


def test_state_machine_rejects_leaving_terminal_state() -> None:
    sm = PipelineStateMachine()
    sm.transition(PipelineState.RUNNING, step_index=0)
    sm.transition(PipelineState.FAILED, message="boom")

    with pytest.raises(ValueError):
        sm.transition(PipelineState.RUNNING, step_index=1)
