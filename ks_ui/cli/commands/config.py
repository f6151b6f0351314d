from __future__ import annotations

from pathlib import Path

import typer

from ks_common.errors import ConfigurationError
from ks_controller.models.config import DEFAULT_CONFIG, write_template
from ks_ui.wiring.dependencies import UIContext


def register_init_command(app: typer.Typer, ctx: UIContext) -> None:
    """Register the config scaffolding command."""

    @app.command("init")
    def init(
        config: Path = typer.Option(
            Path(DEFAULT_CONFIG),
            "--config",
            "-c",
            help="Where to write the config template.",
        ),
    ) -> None:
        """Write a stress.yaml template to edit with your project values."""
        try:
            write_template(config)
        except ConfigurationError as exc:
            ctx.ui.show_error(exc.describe())
            raise typer.Exit(1)
        ctx.ui.show_success(f"Created {config}")
        ctx.ui.show_info("Edit it with your project values.")
