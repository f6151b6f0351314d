"""Cooperative cancellation primitives for the pipeline event loop."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class CancellationSignal:
    """
    One-way cooperative stop flag with listener notification.

    Consumers check `is_set()` at their checkpoints, or register a listener
    with `on_set()` to be woken when the flag trips. Every mutation happens
    on the event loop thread, so no locking is needed; by convention a signal
    has exactly one owner allowed to call `set()`.
    """

    def __init__(self) -> None:
        self._set = False
        self._listeners: list[Listener] = []

    def is_set(self) -> bool:
        return self._set

    def set(self) -> None:
        """Trip the signal and fire every pending listener once."""
        if self._set:
            return
        self._set = True
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            self._fire(listener)

    def on_set(self, listener: Listener) -> Callable[[], None]:
        """Register `listener`; returns a callable that deregisters it.

        When the signal is already set the listener runs immediately and the
        returned callable is a no-op.
        """
        if self._set:
            self._fire(listener)
            return _noop
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    @staticmethod
    def _fire(listener: Listener) -> None:
        try:
            listener()
        except Exception:
            logger.warning("Cancellation listener %r failed", listener, exc_info=True)

    def __repr__(self) -> str:
        state = "set" if self._set else "unset"
        return f"<CancellationSignal {state} listeners={len(self._listeners)}>"


def _noop() -> None:
    return None


class DelayOutcome(str, Enum):
    """How an interruptible sleep ended."""

    ELAPSED = "elapsed"
    INTERRUPTED = "interrupted"


async def interruptible_sleep(seconds: float, signal: CancellationSignal) -> DelayOutcome:
    """Sleep for `seconds`, returning early when `signal` trips.

    Both exits cancel the timer and drop the listener, including when the
    awaiting task is itself cancelled.
    """
    if signal.is_set():
        return DelayOutcome.INTERRUPTED

    loop = asyncio.get_running_loop()
    waiter: asyncio.Future[DelayOutcome] = loop.create_future()

    def _resolve(outcome: DelayOutcome) -> None:
        if not waiter.done():
            waiter.set_result(outcome)

    timer = loop.call_later(max(seconds, 0.0), _resolve, DelayOutcome.ELAPSED)
    unsubscribe = signal.on_set(lambda: _resolve(DelayOutcome.INTERRUPTED))
    try:
        return await waiter
    finally:
        timer.cancel()
        unsubscribe()
