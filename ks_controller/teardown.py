"""Fixed-order teardown after the monitored phase."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from ks_controller.background import BackgroundTask
from ks_controller.cancellation import CancellationSignal
from ks_controller.interrupts import InterruptState

logger = logging.getLogger(__name__)

CompensatingAction = Callable[[CancellationSignal], Awaitable[None]]


class TeardownCoordinator:
    """Stop background work, then compensate if the run was interrupted.

    Background teardown always precedes the compensating action. The
    compensating action gets a fresh signal nobody will ever set, runs at
    most once per run, and its failure is only logged.
    """

    def __init__(
        self,
        interrupt_state: Callable[[], InterruptState],
        compensate: Optional[CompensatingAction] = None,
    ) -> None:
        self._interrupt_state = interrupt_state
        self._compensate = compensate
        self._compensated = False

    @property
    def compensated(self) -> bool:
        return self._compensated

    async def teardown(self, background: Optional[BackgroundTask]) -> None:
        if background is not None:
            await background.stop()
        await self.compensate_if_interrupted()

    async def compensate_if_interrupted(self) -> bool:
        """Run the compensating action once when an interrupt was received."""
        if self._compensated or self._compensate is None:
            return False
        if self._interrupt_state() == InterruptState.IDLE:
            return False
        self._compensated = True
        try:
            await self._compensate(CancellationSignal())
        except Exception as exc:
            logger.error("Compensating cleanup failed: %s", exc, exc_info=True)
        return True
