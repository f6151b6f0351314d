"""SIGINT (Ctrl+C) handling for pipeline runs."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from contextlib import AbstractContextManager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from ks_controller.adapters.process import kill_live_children
from ks_controller.cancellation import CancellationSignal
from ks_controller.pipeline import EXIT_INTERRUPTED

logger = logging.getLogger(__name__)


class InterruptState(str, Enum):
    """Interrupt escalation states."""

    IDLE = "idle"
    INTERRUPTING = "interrupting"
    FORCE_EXIT = "force_exit"


class InterruptDecision(str, Enum):
    """Decision returned by the interrupt state machine."""

    REQUEST_STOP = "request_stop"
    FORCE_EXIT = "force_exit"


@dataclass(slots=True)
class InterruptStateMachine:
    """First Ctrl+C asks for a graceful stop, the second one force-quits."""

    state: InterruptState = InterruptState.IDLE

    def on_interrupt(self) -> InterruptDecision:
        if self.state == InterruptState.IDLE:
            self.state = InterruptState.INTERRUPTING
            return InterruptDecision.REQUEST_STOP
        self.state = InterruptState.FORCE_EXIT
        return InterruptDecision.FORCE_EXIT


def _default_warn() -> None:
    logger.warning("Interrupted: Ctrl+C received, cleaning up...")
    logger.warning("Press Ctrl+C again to force quit.")


class InterruptController(AbstractContextManager["InterruptController"]):
    """Own the run's top-level signal and bind SIGINT to it.

    The handler is registered on the event loop so it runs at a scheduling
    point, never in the middle of a check-then-act sequence. Force exit kills
    the process group of every live child, then skips every pending cleanup,
    including the compensating uninstall.
    """

    def __init__(
        self,
        signal_: Optional[CancellationSignal] = None,
        *,
        on_first_interrupt: Callable[[], None] = _default_warn,
        exit_fn: Callable[[int], Any] = os._exit,
        kill_children: Callable[[], None] = kill_live_children,
        signum: int = signal.SIGINT,
    ) -> None:
        self.signal = signal_ or CancellationSignal()
        self._sm = InterruptStateMachine()
        self._on_first = on_first_interrupt
        self._exit = exit_fn
        self._kill_children = kill_children
        self._signum = signum
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._prev_handler: Any = None
        self._installed_on_loop = False
        self._installed_on_os = False

    @property
    def state(self) -> InterruptState:
        return self._sm.state

    @property
    def interrupted(self) -> bool:
        return self._sm.state != InterruptState.IDLE

    def install(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Bind the OS interrupt to `handle_interrupt` for the given loop."""
        self._loop = loop or asyncio.get_running_loop()
        try:
            self._loop.add_signal_handler(self._signum, self.handle_interrupt)
            self._installed_on_loop = True
            return
        except (NotImplementedError, RuntimeError):
            # Windows loops and non-main threads cannot own signal handlers.
            pass
        self._prev_handler = signal.getsignal(self._signum)
        signal.signal(self._signum, self._handle_os_signal)
        self._installed_on_os = True

    def uninstall(self) -> None:
        if self._loop is None:
            return
        if self._installed_on_loop:
            self._loop.remove_signal_handler(self._signum)
            self._installed_on_loop = False
        elif self._installed_on_os:
            # getsignal returns None for handlers not installed from Python.
            previous = self._prev_handler if self._prev_handler is not None else signal.SIG_DFL
            signal.signal(self._signum, previous)
            self._prev_handler = None
            self._installed_on_os = False
        self._loop = None

    def __enter__(self) -> "InterruptController":
        self.install()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.uninstall()

    def _handle_os_signal(self, signum: int, frame: Any) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            self.handle_interrupt()
            return
        loop.call_soon_threadsafe(self.handle_interrupt)

    def handle_interrupt(self) -> None:
        """Escalate one interrupt. Never raises: failures force an exit."""
        try:
            decision = self._sm.on_interrupt()
            if decision == InterruptDecision.REQUEST_STOP:
                self.signal.set()
                self._on_first()
                return
        except Exception:
            logger.critical("Interrupt handler failed", exc_info=True)
            self._sm.state = InterruptState.FORCE_EXIT
        else:
            logger.warning("Second interrupt received, exiting without cleanup")
        try:
            self._kill_children()
        except Exception:
            logger.critical("Failed to kill child processes", exc_info=True)
        self._exit(EXIT_INTERRUPTED)
