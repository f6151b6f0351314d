"""Lifecycle monitoring after the load test release is installed."""

from __future__ import annotations

import logging
import time
from typing import Optional

from ks_common.errors import ProbeFailure, TimeoutFailure
from ks_controller.background import BackgroundTask
from ks_controller.cancellation import CancellationSignal
from ks_controller.models.contracts import Env, LogStreamer, StatusProbe, StatusWatcher
from ks_controller.models.config import DEFAULT_POLL_INTERVAL
from ks_controller.polling import poll_until
from ks_controller.readiness import any_ready, parse_observations
from ks_controller.teardown import TeardownCoordinator
from ks_controller.ui_interfaces import NoOpUIAdapter, UIAdapter

logger = logging.getLogger(__name__)

POD_TIMEOUT_HINT = "Check cluster capacity, image pull status, and node selectors."


class LifecycleMonitor:
    """Watch pods, wait for runners then reporter, and stream their logs.

    The background pod watch starts first and is always joined by the
    teardown coordinator, whatever happens in between.
    """

    def __init__(
        self,
        status_probe: StatusProbe,
        log_streamer: LogStreamer,
        status_watcher: StatusWatcher,
        teardown: TeardownCoordinator,
        ui: Optional[UIAdapter] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self._probe = status_probe
        self._streamer = log_streamer
        self._watcher = status_watcher
        self._teardown = teardown
        self._ui = ui or NoOpUIAdapter()
        self.poll_interval = poll_interval

    async def monitor(
        self,
        namespace: str,
        env: Env,
        runner_label: str,
        reporter_label: str,
        timeout: float,
        signal: CancellationSignal,
    ) -> None:
        self._ui.show_step("Step 5a:", "Starting background pod watch...")
        self._ui.show_command(f"kubectl get pod -n {namespace} -w")
        background = BackgroundTask.start(
            lambda watch_signal: self._watcher.watch(namespace, env, watch_signal),
            name="pod-watch",
        )
        try:
            stages = (
                ("Step 5b:", "runner", runner_label, "runners completed"),
                ("Step 5c:", "reporter", reporter_label, "reporter completed"),
            )
            for label, role, selector, done in stages:
                self._ui.show_step(label, f"Waiting for {role} pods...")
                self._ui.show_command(
                    f"kubectl get pods -n {namespace} -l {selector} --no-headers"
                    f"  (polling every {self.poll_interval:g}s)"
                )
                await self.wait_for_pods(namespace, selector, env, timeout, signal)
                if signal.is_set():
                    return

                self._ui.show_step(label, f"Streaming {role} logs...")
                await self._streamer.stream(namespace, selector, env, signal)
                if signal.is_set():
                    return
                self._ui.show_success(f"{role} logs stream ended ({done})")
        finally:
            await self._teardown.teardown(background)

    async def wait_for_pods(
        self,
        namespace: str,
        selector: str,
        env: Env,
        timeout: float,
        signal: CancellationSignal,
    ) -> bool:
        """Poll until one pod matching `selector` has streamable logs.

        Output is echoed only when it changes. Returns False when cancelled;
        raises TimeoutFailure when `timeout` seconds pass first.
        """
        started = time.monotonic()
        last_output = ""
        no_pods_shown = False

        async def _probe() -> bool:
            nonlocal last_output, no_pods_shown
            elapsed = round(time.monotonic() - started)
            try:
                output = (await self._probe.probe(namespace, selector, env)).strip()
            except ProbeFailure as exc:
                logger.warning("Pod status query failed, retrying: %s", exc)
                output = ""

            if not output:
                if not no_pods_shown:
                    self._ui.show_info(f"  [{elapsed}s] no pods yet")
                    no_pods_shown = True
                last_output = ""
                return False

            if output != last_output:
                last_output = output
                no_pods_shown = False
                for line in output.splitlines():
                    self._ui.show_info(f"  [{elapsed}s] {line.strip()}")

            pods = parse_observations(output)
            if any_ready(pods):
                summary = ", ".join(f"{pod.name} ({pod.status})" for pod in pods)
                self._ui.show_success(f"pods ready: {summary}")
                return True
            return False

        if await poll_until(_probe, self.poll_interval, signal, timeout):
            return True
        if signal.is_set():
            return False
        raise TimeoutFailure(f"pods matching '{selector}'", timeout, hint=POD_TIMEOUT_HINT)
