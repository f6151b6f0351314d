from __future__ import annotations

from pathlib import Path

import typer

from ks_controller import PipelineSpec, execute_mode
from ks_controller.models.config import DEFAULT_CONFIG
from ks_ui.cli.commands.run_helpers import load_config_or_exit, run_outcome
from ks_ui.presenters.plan import build_run_plan_table
from ks_ui.wiring.dependencies import UIContext

_CONFIG_HELP = "Config file to load."


def register_run_command(
    app: typer.Typer,
    ctx: UIContext,
) -> None:
    """Register the load test run command on the given Typer app."""

    @app.command("run")
    def run(
        image_tag: str = typer.Option(
            ...,
            "--image-tag",
            help="Image tag of the load test build to deploy.",
        ),
        config: Path = typer.Option(
            Path(DEFAULT_CONFIG),
            "--config",
            "-c",
            help=_CONFIG_HELP,
        ),
        dry_run: bool = typer.Option(
            False,
            "--dry-run",
            help="Pass --dry-run to helm and skip pod monitoring.",
        ),
    ) -> None:
        """Install the load test chart and follow it to completion."""
        if not image_tag.strip():
            ctx.ui.show_error("--image-tag must not be empty")
            raise typer.Exit(1)
        cfg = load_config_or_exit(ctx, config)
        spec = PipelineSpec(config=cfg, image_tag=image_tag, dry_run=dry_run, config_path=config)
        plan = build_run_plan_table(spec)
        ctx.ui.show_table(plan.title, plan.columns, plan.rows)
        run_outcome(
            ctx,
            execute_mode(lambda pipeline: pipeline.run(spec), tools=ctx.toolset, ui=ctx.ui),
        )


def register_cluster_commands(
    app: typer.Typer,
    ctx: UIContext,
) -> None:
    """Register status, logs and clean, which inspect or clean up a release."""

    @app.command("status")
    def status(
        config: Path = typer.Option(Path(DEFAULT_CONFIG), "--config", "-c", help=_CONFIG_HELP),
    ) -> None:
        """Show runner and reporter pod status."""
        cfg = load_config_or_exit(ctx, config)
        run_outcome(
            ctx, execute_mode(lambda pipeline: pipeline.status(cfg), tools=ctx.toolset, ui=ctx.ui)
        )

    @app.command("logs")
    def logs(
        config: Path = typer.Option(Path(DEFAULT_CONFIG), "--config", "-c", help=_CONFIG_HELP),
    ) -> None:
        """Stream runner logs of an in-progress or completed run."""
        cfg = load_config_or_exit(ctx, config)
        run_outcome(
            ctx, execute_mode(lambda pipeline: pipeline.logs(cfg), tools=ctx.toolset, ui=ctx.ui)
        )

    @app.command("clean")
    def clean(
        config: Path = typer.Option(Path(DEFAULT_CONFIG), "--config", "-c", help=_CONFIG_HELP),
        dry_run: bool = typer.Option(False, "--dry-run", help="Pass --dry-run to helm."),
    ) -> None:
        """Uninstall the helm release."""
        cfg = load_config_or_exit(ctx, config)
        run_outcome(
            ctx,
            execute_mode(
                lambda pipeline: pipeline.clean(cfg, dry_run=dry_run),
                tools=ctx.toolset,
                ui=ctx.ui,
            ),
        )
