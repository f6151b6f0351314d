"""kubectl status, log streaming and watch adapter."""

from __future__ import annotations

import logging
from typing import Optional

from ks_common.errors import ProbeFailure
from ks_controller.adapters.process import ProcessRunner
from ks_controller.cancellation import CancellationSignal
from ks_controller.models.contracts import Env
from ks_controller.ui_interfaces import NoOpUIAdapter, UIAdapter

logger = logging.getLogger(__name__)


class KubectlClient:
    """Pod status probe, log streamer and status watcher backed by kubectl."""

    def __init__(self, runner: Optional[ProcessRunner] = None, ui: Optional[UIAdapter] = None) -> None:
        self._runner = runner or ProcessRunner()
        self._ui = ui or NoOpUIAdapter()

    async def probe(self, namespace: str, selector: str, env: Env) -> str:
        cmd = ["kubectl", "get", "pods", "-n", namespace, "-l", selector, "--no-headers"]
        try:
            result = await self._runner.capture(cmd, env)
        except OSError as exc:
            raise ProbeFailure(f"kubectl get pods failed: {exc}", cause=exc) from exc
        if not result.success:
            raise ProbeFailure(
                f"kubectl get pods exited {result.rc}: {result.stderr.strip()}",
                context={"namespace": namespace, "selector": selector},
            )
        return result.stdout

    async def stream(
        self, namespace: str, selector: str, env: Env, signal: CancellationSignal
    ) -> None:
        """Follow logs of every pod matching `selector` until they finish."""
        cmd = [
            "kubectl", "logs", "-f", "-n", namespace, "-l", selector,
            "--all-containers", "--ignore-errors=true",
        ]
        self._ui.show_command(" ".join(cmd))
        result = await self._runner.stream(cmd, env, signal)
        logger.debug("kubectl logs for %s exited rc=%s stopped=%s", selector, result.rc, result.stopped)

    async def watch(self, namespace: str, env: Env, signal: CancellationSignal) -> None:
        """Print pod status changes in the namespace until stopped."""
        result = await self._runner.stream(
            ["kubectl", "get", "pod", "-n", namespace, "-w"], env, signal
        )
        logger.debug("kubectl watch exited rc=%s stopped=%s", result.rc, result.stopped)

    async def show(
        self, namespace: str, selector: str, env: Env, signal: CancellationSignal
    ) -> None:
        """Print the current pod table for `selector`."""
        cmd = ["kubectl", "get", "pods", "-n", namespace, "-l", selector]
        self._ui.show_command(" ".join(cmd))
        await self._runner.stream(cmd, env, signal)
