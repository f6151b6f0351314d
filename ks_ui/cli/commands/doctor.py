from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from ks_controller.models.config import DEFAULT_CONFIG
from ks_ui.presenters.doctor import render_doctor_report
from ks_ui.wiring.dependencies import UIContext


def register_doctor_command(app: typer.Typer, ctx: UIContext) -> None:
    """Register the prerequisite check command."""

    @app.command("doctor")
    def doctor(
        config: Path = typer.Option(Path(DEFAULT_CONFIG), "--config", "-c", help="Config file to validate."),
    ) -> None:
        """Check prerequisites (aws-vault, kubectl, helm), the config and AWS credentials."""
        report = asyncio.run(ctx.doctor_service.check_all(config))
        ok = render_doctor_report(ctx.ui, report)
        if not ok:
            raise typer.Exit(1)
