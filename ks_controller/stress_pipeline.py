"""Load test pipeline: authenticate, kubeconfig, uninstall, install, monitor."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional

from ks_controller.adapters import (
    AwsVaultCredentialProvider,
    EksKubeconfigUpdater,
    HelmClient,
    KubectlClient,
    ProcessRunner,
    values_file,
)
from ks_controller.cancellation import CancellationSignal
from ks_controller.interrupts import InterruptController
from ks_controller.models.config import DEFAULT_CONFIG, StressConfig, check_helm_collisions
from ks_controller.models.contracts import (
    ClusterConfigUpdater,
    CredentialProvider,
    LogStreamer,
    PackageInstaller,
    PackageUninstaller,
    StatusDisplay,
    StatusProbe,
    StatusWatcher,
)
from ks_controller.monitor import LifecycleMonitor
from ks_controller.pipeline import (
    PipelineClassification,
    PipelineResult,
    PipelineRunner,
    PipelineStep,
)
from ks_controller.teardown import CompensatingAction, TeardownCoordinator
from ks_controller.ui_interfaces import NoOpUIAdapter, UIAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineSpec:
    """What to run: a validated config plus per-invocation options."""

    config: StressConfig
    image_tag: str
    dry_run: bool = False
    config_path: Path = Path(DEFAULT_CONFIG)


@dataclass(frozen=True)
class RunOutcome:
    classification: PipelineClassification
    exit_code: int
    message: Optional[str] = None

    @classmethod
    def from_result(cls, result: PipelineResult) -> "RunOutcome":
        return cls(
            classification=result.classification,
            exit_code=result.exit_code,
            message=result.message,
        )


@dataclass
class Toolset:
    """The external collaborators a pipeline drives."""

    credentials: CredentialProvider
    cluster: ClusterConfigUpdater
    uninstaller: PackageUninstaller
    installer: PackageInstaller
    status_probe: StatusProbe
    log_streamer: LogStreamer
    status_watcher: StatusWatcher
    status_display: StatusDisplay

    @classmethod
    def default(cls, ui: UIAdapter, runner: Optional[ProcessRunner] = None) -> "Toolset":
        runner = runner or ProcessRunner()
        helm = HelmClient(runner, ui)
        kubectl = KubectlClient(runner, ui)
        return cls(
            credentials=AwsVaultCredentialProvider(runner, ui),
            cluster=EksKubeconfigUpdater(runner, ui),
            uninstaller=helm,
            installer=helm,
            status_probe=kubectl,
            log_streamer=kubectl,
            status_watcher=kubectl,
            status_display=kubectl,
        )


@dataclass
class RunContext:
    """State handed from one step to the next within a run."""

    env: Optional[Dict[str, str]] = None

    def require_env(self) -> Dict[str, str]:
        if self.env is None:
            raise RuntimeError("AWS credentials have not been obtained yet")
        return self.env


class StressPipeline:
    """Build and execute pipeline runs under one interrupt controller."""

    def __init__(
        self,
        tools: Toolset,
        interrupts: InterruptController,
        ui: Optional[UIAdapter] = None,
    ) -> None:
        self.tools = tools
        self.interrupts = interrupts
        self.ui = ui or NoOpUIAdapter()

    @property
    def signal(self) -> CancellationSignal:
        return self.interrupts.signal

    # -- steps -----------------------------------------------------------

    def _access_steps(self, cfg: StressConfig, ctx: RunContext) -> List[PipelineStep]:
        async def authenticate() -> None:
            ctx.env = await self.tools.credentials.obtain(cfg.profile)

        async def update_kubeconfig() -> None:
            await self.tools.cluster.update(cfg.cluster, cfg.region, ctx.require_env())

        return [
            PipelineStep("Authenticating with AWS vault...", authenticate),
            PipelineStep("Updating EKS kubeconfig...", update_kubeconfig),
        ]

    def build_run_steps(
        self, spec: PipelineSpec, ctx: RunContext, teardown: TeardownCoordinator
    ) -> List[PipelineStep]:
        cfg = spec.config

        async def uninstall_previous() -> None:
            await self.tools.uninstaller.uninstall(
                cfg.namespace, cfg.release, dry_run=spec.dry_run, env=ctx.require_env()
            )

        async def install() -> None:
            if cfg.helm:
                for key in check_helm_collisions(cfg.helm):
                    self.ui.show_warning(f"helm values key '{key}' will be overridden by --set")
            with values_file(cfg.helm) as path:
                await self.tools.installer.install(
                    cfg.namespace,
                    cfg.release,
                    cfg.chart,
                    values_file=path,
                    set_flags=cfg.helm_set_flags(spec.image_tag),
                    dry_run=spec.dry_run,
                    env=ctx.require_env(),
                )
            suffix = " (dry-run)" if spec.dry_run else ""
            self.ui.show_success(
                f'release "{cfg.release}" installed{suffix} '
                f"(image: {spec.image_tag}, sim: {cfg.simulation_short})"
            )

        async def monitor() -> None:
            lifecycle = LifecycleMonitor(
                self.tools.status_probe,
                self.tools.log_streamer,
                self.tools.status_watcher,
                teardown,
                ui=self.ui,
                poll_interval=cfg.poll_interval,
            )
            await lifecycle.monitor(
                cfg.namespace,
                ctx.require_env(),
                cfg.runner_label,
                cfg.reporter_label,
                cfg.pod_timeout,
                self.signal,
            )

        steps = self._access_steps(cfg, ctx)
        steps.append(
            PipelineStep("Uninstalling previous helm release...", uninstall_previous, best_effort=True)
        )
        steps.append(PipelineStep("Installing load test helm chart...", install))
        if not spec.dry_run:
            steps.append(PipelineStep("Monitoring Gatling lifecycle...", monitor))
        return steps

    def build_status_steps(self, cfg: StressConfig, ctx: RunContext) -> List[PipelineStep]:
        async def show_status() -> None:
            for selector in (cfg.runner_label, cfg.reporter_label):
                if self.signal.is_set():
                    return
                await self.tools.status_display.show(
                    cfg.namespace, selector, ctx.require_env(), self.signal
                )

        return self._access_steps(cfg, ctx) + [
            PipelineStep("Current pod status", show_status, label="Status:")
        ]

    def build_logs_steps(self, cfg: StressConfig, ctx: RunContext) -> List[PipelineStep]:
        async def stream_runner_logs() -> None:
            await self.tools.log_streamer.stream(
                cfg.namespace, cfg.runner_label, ctx.require_env(), self.signal
            )

        return self._access_steps(cfg, ctx) + [
            PipelineStep("Streaming runner logs...", stream_runner_logs, label="Logs:")
        ]

    def build_clean_steps(
        self, cfg: StressConfig, ctx: RunContext, dry_run: bool
    ) -> List[PipelineStep]:
        async def uninstall() -> None:
            await self.tools.uninstaller.uninstall(
                cfg.namespace, cfg.release, dry_run=dry_run, env=ctx.require_env()
            )

        return self._access_steps(cfg, ctx) + [
            PipelineStep("Uninstalling helm release...", uninstall, label="Clean:")
        ]

    # -- execution -------------------------------------------------------

    def _compensation(self, spec: PipelineSpec, ctx: RunContext) -> CompensatingAction:
        cfg = spec.config

        async def uninstall_release(_signal: CancellationSignal) -> None:
            if spec.dry_run or ctx.env is None:
                logger.info("Nothing to clean up (dry_run=%s)", spec.dry_run)
                return
            self.ui.show_warning("Cleanup: uninstalling helm release...")
            await self.tools.uninstaller.uninstall(
                cfg.namespace, cfg.release, dry_run=False, env=ctx.env
            )

        return uninstall_release

    async def execute(
        self,
        steps: List[PipelineStep],
        teardown: Optional[TeardownCoordinator] = None,
    ) -> RunOutcome:
        """Run `steps`; an interrupted run gets its compensating cleanup."""

        def _announce(index: int, step: PipelineStep) -> None:
            self.ui.show_step(step.label or f"Step {index + 1}:", step.name)

        result = await PipelineRunner(steps, self.signal, on_step_start=_announce).run()
        if result.classification is PipelineClassification.INTERRUPTED and teardown is not None:
            await teardown.compensate_if_interrupted()
        if result.classification is PipelineClassification.FAILED:
            logger.debug("Pipeline failed at %s", result.failed_step)
        return RunOutcome.from_result(result)

    async def run(self, spec: PipelineSpec) -> RunOutcome:
        ctx = RunContext()
        teardown = TeardownCoordinator(
            lambda: self.interrupts.state, self._compensation(spec, ctx)
        )
        outcome = await self.execute(self.build_run_steps(spec, ctx, teardown), teardown)
        if spec.dry_run and outcome.classification is PipelineClassification.COMPLETED:
            self.ui.show_info("Skipping pod monitoring (dry-run).")
        return outcome

    async def status(self, cfg: StressConfig) -> RunOutcome:
        return await self.execute(self.build_status_steps(cfg, RunContext()))

    async def logs(self, cfg: StressConfig) -> RunOutcome:
        return await self.execute(self.build_logs_steps(cfg, RunContext()))

    async def clean(self, cfg: StressConfig, dry_run: bool = False) -> RunOutcome:
        return await self.execute(self.build_clean_steps(cfg, RunContext(), dry_run))


PipelineAction = Callable[[StressPipeline], Awaitable[RunOutcome]]


def _warn_interrupted(ui: UIAdapter) -> Callable[[], None]:
    def _warn() -> None:
        ui.show_warning("Interrupted: Ctrl+C received, cleaning up...")
        ui.show_warning("Press Ctrl+C again to force quit.")

    return _warn


async def execute_mode(
    action: PipelineAction,
    *,
    tools: Optional[Toolset] = None,
    ui: Optional[UIAdapter] = None,
) -> RunOutcome:
    """Run one mode with SIGINT bound to a fresh cancellation signal."""
    ui = ui or NoOpUIAdapter()
    with InterruptController(on_first_interrupt=_warn_interrupted(ui)) as interrupts:
        pipeline = StressPipeline(tools or Toolset.default(ui), interrupts, ui)
        return await action(pipeline)


async def run(
    spec: PipelineSpec,
    *,
    tools: Optional[Toolset] = None,
    ui: Optional[UIAdapter] = None,
) -> RunOutcome:
    """Run the full pipeline: the exposed entry point of the controller."""
    return await execute_mode(lambda pipeline: pipeline.run(spec), tools=tools, ui=ui)
