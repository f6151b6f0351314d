"""Bounded poll loop with cancellation and deadline exits."""

from __future__ import annotations

import inspect
import time
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from ks_controller.cancellation import CancellationSignal, DelayOutcome, interruptible_sleep

Probe = Callable[[], Union[bool, Awaitable[bool]]]


class PollOutcome(str, Enum):
    """Why a poll loop stopped."""

    SUCCEEDED = "succeeded"
    ABORTED = "aborted"
    TIMED_OUT = "timed_out"


async def poll(
    probe: Probe,
    interval: float,
    signal: CancellationSignal,
    max_wait: Optional[float] = None,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> PollOutcome:
    """
    Call `probe` every `interval` seconds until it returns a truthy value.

    The deadline (`max_wait` seconds) is measured from loop entry and expires
    independently of the signal. Exceptions raised by `probe` propagate
    unchanged; there is no retry-on-error here.
    """
    started = clock()
    while not signal.is_set():
        if max_wait is not None and clock() - started >= max_wait:
            return PollOutcome.TIMED_OUT
        result = probe()
        if inspect.isawaitable(result):
            result = await result
        if result:
            return PollOutcome.SUCCEEDED
        if await interruptible_sleep(interval, signal) is DelayOutcome.INTERRUPTED:
            return PollOutcome.ABORTED
    return PollOutcome.ABORTED


async def poll_until(
    probe: Probe,
    interval: float,
    signal: CancellationSignal,
    max_wait: Optional[float] = None,
) -> bool:
    """Boolean form of `poll`: True only when the probe succeeded.

    A False result with `signal` unset means the deadline passed.
    """
    return await poll(probe, interval, signal, max_wait) is PollOutcome.SUCCEEDED
