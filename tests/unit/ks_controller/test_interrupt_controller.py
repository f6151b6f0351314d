"""Unit tests for SIGINT escalation."""

import asyncio
import os
import signal

import pytest

from ks_controller.cancellation import CancellationSignal
from ks_controller.interrupts import (
    InterruptController,
    InterruptDecision,
    InterruptState,
    InterruptStateMachine,
)

pytestmark = pytest.mark.unit_controller


def test_state_machine_escalates() -> None:
    sm = InterruptStateMachine()

    assert sm.on_interrupt() == InterruptDecision.REQUEST_STOP
    assert sm.state == InterruptState.INTERRUPTING
    assert sm.on_interrupt() == InterruptDecision.FORCE_EXIT
    assert sm.state == InterruptState.FORCE_EXIT


def test_first_interrupt_sets_signal_and_warns() -> None:
    exits = []
    warnings = []
    controller = InterruptController(
        on_first_interrupt=lambda: warnings.append("warned"), exit_fn=exits.append
    )

    controller.handle_interrupt()

    assert controller.signal.is_set()
    assert controller.interrupted
    assert controller.state == InterruptState.INTERRUPTING
    assert warnings == ["warned"]
    assert exits == []


def test_second_interrupt_forces_exit_130() -> None:
    exits = []
    controller = InterruptController(on_first_interrupt=lambda: None, exit_fn=exits.append)

    controller.handle_interrupt()
    controller.handle_interrupt()

    assert controller.state == InterruptState.FORCE_EXIT
    assert exits == [130]


def test_handler_failure_is_fatal() -> None:
    exits = []

    def broken_warning() -> None:
        raise RuntimeError("console gone")

    controller = InterruptController(on_first_interrupt=broken_warning, exit_fn=exits.append)

    controller.handle_interrupt()

    assert controller.state == InterruptState.FORCE_EXIT
    assert exits == [130]


def test_uses_supplied_signal() -> None:
    shared = CancellationSignal()
    controller = InterruptController(shared, on_first_interrupt=lambda: None, exit_fn=lambda code: None)

    controller.handle_interrupt()

    assert controller.signal is shared
    assert shared.is_set()


def test_os_sigint_routed_through_event_loop() -> None:
    exits = []

    async def scenario():
        with InterruptController(on_first_interrupt=lambda: None, exit_fn=exits.append) as controller:
            os.kill(os.getpid(), signal.SIGINT)
            for _ in range(50):
                if controller.signal.is_set():
                    break
                await asyncio.sleep(0.01)
            return controller

    controller = asyncio.run(scenario())
    assert controller.signal.is_set()
    assert controller.state == InterruptState.INTERRUPTING
    assert exits == []


def test_force_exit_kills_children_before_exiting() -> None:
    events = []
    controller = InterruptController(
        on_first_interrupt=lambda: None,
        exit_fn=lambda code: events.append(f"exit {code}"),
        kill_children=lambda: events.append("kill children"),
    )

    controller.handle_interrupt()
    assert events == []
    controller.handle_interrupt()

    assert events == ["kill children", "exit 130"]


def test_force_exit_still_exits_when_kill_fails() -> None:
    exits = []

    def broken_kill() -> None:
        raise OSError("no such group")

    controller = InterruptController(
        on_first_interrupt=lambda: None, exit_fn=exits.append, kill_children=broken_kill
    )

    controller.handle_interrupt()
    controller.handle_interrupt()

    assert exits == [130]


class _LoopWithoutSignals:
    def add_signal_handler(self, signum, callback):
        raise NotImplementedError

    def is_closed(self) -> bool:
        return False


def test_fallback_restores_default_when_previous_handler_unknown(monkeypatch) -> None:
    installed = []
    monkeypatch.setattr(signal, "getsignal", lambda signum: None)
    monkeypatch.setattr(signal, "signal", lambda signum, handler: installed.append((signum, handler)))
    controller = InterruptController(on_first_interrupt=lambda: None, exit_fn=lambda code: None)

    controller.install(_LoopWithoutSignals())
    controller.uninstall()

    assert installed[0] == (signal.SIGINT, controller._handle_os_signal)
    assert installed[-1] == (signal.SIGINT, signal.SIG_DFL)


def test_fallback_restores_previous_handler(monkeypatch) -> None:
    installed = []

    def previous(signum, frame) -> None:
        return None

    monkeypatch.setattr(signal, "getsignal", lambda signum: previous)
    monkeypatch.setattr(signal, "signal", lambda signum, handler: installed.append((signum, handler)))
    controller = InterruptController(on_first_interrupt=lambda: None, exit_fn=lambda code: None)

    controller.install(_LoopWithoutSignals())
    controller.uninstall()

    assert installed[-1] == (signal.SIGINT, previous)
