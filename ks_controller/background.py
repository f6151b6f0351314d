"""Supervised background work bound to its own cancellation scope."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ks_controller.cancellation import CancellationSignal

logger = logging.getLogger(__name__)

BackgroundWork = Callable[[CancellationSignal], Awaitable[None]]


class BackgroundTask:
    """Run work concurrently with the pipeline and join it on `stop()`.

    The task owns a private `CancellationSignal`; stopping it never touches
    the pipeline signal and vice versa. Failures are logged and kept on
    `exception`, never raised into the pipeline.
    """

    def __init__(self, work: BackgroundWork, name: str = "background") -> None:
        self.name = name
        self.signal = CancellationSignal()
        self._work = work
        self._task: Optional[asyncio.Task[None]] = None
        self._exception: BaseException | None = None
        self._stopped = False

    @classmethod
    def start(cls, work: BackgroundWork, name: str = "background") -> "BackgroundTask":
        """Create the task and schedule it on the running loop."""
        task = cls(work, name=name)
        task._launch()
        return task

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def exception(self) -> BaseException | None:
        return self._exception

    def _launch(self) -> None:
        if self._task is not None:
            return
        logger.debug("Starting background task %s", self.name)
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"ks-{self.name}"
        )

    async def _run(self) -> None:
        try:
            await self._work(self.signal)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._exception = exc
            logger.warning("Background task %s failed: %s", self.name, exc, exc_info=True)

    async def stop(self) -> None:
        """Trip the task's signal and wait until the work has returned."""
        self._stopped = True
        self.signal.set()
        if self._task is None:
            return
        # wait() joins without re-raising the task's outcome or cancelling it.
        await asyncio.wait({self._task})
        logger.debug("Background task %s joined", self.name)
