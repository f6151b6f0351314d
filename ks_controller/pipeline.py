"""Sequential step runner with failed/interrupted classification."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Sequence

from ks_common.errors import KSError
from ks_controller.cancellation import CancellationSignal

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INTERRUPTED = 130  # 128 + SIGINT

StepAction = Callable[[], Awaitable[None]]
StepCallback = Callable[[int, "PipelineStep"], None]


class PipelineState(str, Enum):
    """Lifecycle states of a single pipeline run."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    INTERRUPTED = "interrupted"


class PipelineClassification(str, Enum):
    """Terminal classification reported to the invoking layer."""

    COMPLETED = "completed"
    FAILED = "failed"
    INTERRUPTED = "interrupted"

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self]


_EXIT_CODES = {
    PipelineClassification.COMPLETED: EXIT_OK,
    PipelineClassification.FAILED: EXIT_FAILED,
    PipelineClassification.INTERRUPTED: EXIT_INTERRUPTED,
}

_TERMINAL_STATES = {
    PipelineState.COMPLETED: PipelineClassification.COMPLETED,
    PipelineState.FAILED: PipelineClassification.FAILED,
    PipelineState.INTERRUPTED: PipelineClassification.INTERRUPTED,
}

_ALLOWED_TRANSITIONS = {
    PipelineState.NOT_STARTED: {
        PipelineState.RUNNING,
        PipelineState.COMPLETED,
        PipelineState.INTERRUPTED,
    },
    PipelineState.RUNNING: {
        PipelineState.RUNNING,
        PipelineState.COMPLETED,
        PipelineState.FAILED,
        PipelineState.INTERRUPTED,
    },
    PipelineState.COMPLETED: set(),
    PipelineState.FAILED: set(),
    PipelineState.INTERRUPTED: set(),
}


class PipelineStateMachine:
    """Tracks the run state; terminal states are reached exactly once."""

    def __init__(self) -> None:
        self._state = PipelineState.NOT_STARTED
        self._step_index: Optional[int] = None
        self._message: Optional[str] = None

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def step_index(self) -> Optional[int]:
        return self._step_index

    @property
    def message(self) -> Optional[str]:
        return self._message

    def is_terminal(self) -> bool:
        return self._state in _TERMINAL_STATES

    def transition(
        self,
        new_state: PipelineState,
        *,
        step_index: Optional[int] = None,
        message: Optional[str] = None,
    ) -> PipelineState:
        """Attempt a state transition; raise ValueError if invalid."""
        allowed = _ALLOWED_TRANSITIONS[self._state]
        if new_state not in allowed:
            raise ValueError(f"Invalid transition {self._state} -> {new_state}")
        self._state = new_state
        if step_index is not None:
            self._step_index = step_index
        self._message = message
        return self._state


@dataclass(frozen=True)
class PipelineStep:
    """A named unit of work; best-effort steps never halt the run."""

    name: str
    action: StepAction
    best_effort: bool = False
    label: Optional[str] = None


@dataclass(frozen=True)
class PipelineResult:
    classification: PipelineClassification
    message: Optional[str] = None
    failed_step: Optional[str] = None

    @property
    def exit_code(self) -> int:
        return self.classification.exit_code


def describe_failure(exc: BaseException) -> str:
    """Render an exception as the operator-facing failure message."""
    if isinstance(exc, KSError):
        return exc.describe()
    return str(exc) or exc.__class__.__name__


class PipelineRunner:
    """Run steps strictly in order against a shared cancellation signal.

    The first hard failure ends the run as FAILED. A tripped signal ends it
    as INTERRUPTED, including when the step that was in flight raised
    because its external process was torn down by the interrupt.
    """

    def __init__(
        self,
        steps: Sequence[PipelineStep],
        signal: CancellationSignal,
        on_step_start: Optional[StepCallback] = None,
    ) -> None:
        self._steps = list(steps)
        self._signal = signal
        self._on_step_start = on_step_start
        self._machine = PipelineStateMachine()
        self._result: Optional[PipelineResult] = None

    @property
    def state(self) -> PipelineState:
        return self._machine.state

    @property
    def result(self) -> Optional[PipelineResult]:
        return self._result

    async def run(self) -> PipelineResult:
        if self._result is not None:
            return self._result
        for index, step in enumerate(self._steps):
            if self._signal.is_set():
                return self._finish(PipelineState.INTERRUPTED)
            self._machine.transition(PipelineState.RUNNING, step_index=index)
            if self._on_step_start:
                self._on_step_start(index, step)
            logger.debug("Running step %d: %s", index + 1, step.name)
            try:
                await step.action()
            except Exception as exc:
                if self._signal.is_set():
                    logger.info("Step %s ended by interrupt: %s", step.name, exc)
                    return self._finish(PipelineState.INTERRUPTED)
                if step.best_effort:
                    logger.warning("Best-effort step %s failed: %s", step.name, exc)
                    continue
                logger.error("Step %s failed: %s", step.name, exc)
                return self._finish(
                    PipelineState.FAILED,
                    message=describe_failure(exc),
                    failed_step=step.name,
                )
        if self._signal.is_set():
            return self._finish(PipelineState.INTERRUPTED)
        return self._finish(PipelineState.COMPLETED)

    def _finish(
        self,
        state: PipelineState,
        *,
        message: Optional[str] = None,
        failed_step: Optional[str] = None,
    ) -> PipelineResult:
        self._machine.transition(state, message=message)
        self._result = PipelineResult(
            classification=_TERMINAL_STATES[state],
            message=message,
            failed_step=failed_step,
        )
        return self._result
