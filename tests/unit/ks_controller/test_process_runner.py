"""Unit tests for asyncio subprocess execution and termination."""

import asyncio
import signal
import sys

import pytest

from ks_controller.adapters.process import (
    STREAM_LINE_LIMIT,
    ChildRegistry,
    ProcessRunner,
    build_env,
)
from ks_controller.cancellation import CancellationSignal
from ks_controller.interrupts import InterruptController

pytestmark = pytest.mark.unit_controller

PY = sys.executable


def test_capture_collects_output_and_env() -> None:
    runner = ProcessRunner()
    cmd = [PY, "-c", "import os, sys; print(os.environ['KS_TEST']); print('oops', file=sys.stderr)"]

    result = asyncio.run(runner.capture(cmd, {"KS_TEST": "hello"}))

    assert result.success
    assert result.stdout.strip() == "hello"
    assert result.stderr.strip() == "oops"


def test_capture_reports_exit_code() -> None:
    result = asyncio.run(ProcessRunner().capture([PY, "-c", "raise SystemExit(3)"]))

    assert result.rc == 3
    assert not result.success


def test_missing_binary_raises_oserror() -> None:
    with pytest.raises(OSError):
        asyncio.run(ProcessRunner().capture(["ks-definitely-not-installed"]))


def test_stream_forwards_lines() -> None:
    lines = []
    runner = ProcessRunner(output_callback=lines.append)

    result = asyncio.run(
        runner.stream([PY, "-c", "print('one'); print('two')"], None, CancellationSignal())
    )

    assert lines == ["one", "two"]
    assert result.rc == 0
    assert not result.stopped


def test_stream_skipped_when_signal_already_set() -> None:
    signal = CancellationSignal()
    signal.set()
    lines = []

    result = asyncio.run(ProcessRunner(output_callback=lines.append).stream([PY, "-c", "print('x')"], None, signal))

    assert result.stopped
    assert lines == []


def test_stream_terminated_by_signal() -> None:
    lines = []
    runner = ProcessRunner(output_callback=lines.append, terminate_grace=1.0)
    script = "import time; print('ready', flush=True); time.sleep(30)"

    async def scenario():
        signal = CancellationSignal()
        asyncio.get_running_loop().call_later(0.3, signal.set)
        started = asyncio.get_running_loop().time()
        result = await runner.stream([PY, "-c", script], None, signal)
        return result, asyncio.get_running_loop().time() - started

    result, elapsed = asyncio.run(scenario())

    assert result.stopped
    assert result.rc != 0
    assert lines == ["ready"]
    assert elapsed < 10


def test_build_env_overrides_process_environment(monkeypatch) -> None:
    monkeypatch.setenv("KS_BASE", "base")

    env = build_env({"KS_EXTRA": "extra"})

    assert env["KS_BASE"] == "base"
    assert env["KS_EXTRA"] == "extra"


def test_stream_handles_line_longer_than_limit() -> None:
    lines = []
    runner = ProcessRunner(output_callback=lines.append)
    size = 2 * STREAM_LINE_LIMIT
    script = f"print('x' * {size}); print('after')"

    result = asyncio.run(runner.stream([PY, "-c", script], None, CancellationSignal()))

    assert result.rc == 0
    assert lines[-1] == "after"
    assert len(lines) > 2
    assert "".join(lines[:-1]) == "x" * size


def test_stream_keeps_partial_last_line() -> None:
    lines = []
    runner = ProcessRunner(output_callback=lines.append)
    script = "import sys; sys.stdout.write('one\\ntwo')"

    asyncio.run(runner.stream([PY, "-c", script], None, CancellationSignal()))

    assert lines == ["one", "two"]


def test_children_are_tracked_until_they_exit() -> None:
    registry = ChildRegistry()
    runner = ProcessRunner(output_callback=lambda line: None, registry=registry)
    seen = []

    async def scenario():
        task = asyncio.create_task(
            runner.stream([PY, "-c", "import time; print('up', flush=True); time.sleep(1.0)"], None, CancellationSignal())
        )
        await asyncio.sleep(0.3)
        seen.append(len(registry))
        await task
        await runner.capture([PY, "-c", "pass"])

    asyncio.run(scenario())

    assert seen == [1]
    assert len(registry) == 0


def test_force_exit_kills_child_that_ignores_sigterm() -> None:
    registry = ChildRegistry()
    ready = []
    exits = []
    script = (
        "import signal, time; signal.signal(signal.SIGTERM, signal.SIG_IGN); "
        "print('ready', flush=True); time.sleep(60)"
    )

    async def scenario():
        started = asyncio.Event()

        def on_line(line: str) -> None:
            ready.append(line)
            started.set()

        runner = ProcessRunner(output_callback=on_line, registry=registry)
        with InterruptController(
            on_first_interrupt=lambda: None,
            exit_fn=exits.append,
            kill_children=registry.kill_all,
        ) as controller:
            task = asyncio.create_task(
                runner.stream([PY, "-c", script], None, controller.signal)
            )
            await asyncio.wait_for(started.wait(), 10)
            controller.handle_interrupt()
            controller.handle_interrupt()
            return await asyncio.wait_for(task, 10)

    result = asyncio.run(scenario())

    assert ready == ["ready"]
    assert exits == [130]
    assert result.rc == -signal.SIGKILL
    assert len(registry) == 0
