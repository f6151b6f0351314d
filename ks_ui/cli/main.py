"""
Command-line interface for kube-stress.

Runs Gatling load tests on EKS: authenticate through aws-vault, reinstall the
load test helm release, then follow the runner and reporter pods to completion.
"""

from __future__ import annotations

from typing import Optional

import typer

from ks_common import __version__
from ks_ui.cli.commands.config import register_init_command
from ks_ui.cli.commands.doctor import register_doctor_command
from ks_ui.cli.commands.run import register_cluster_commands, register_run_command
from ks_ui.wiring.dependencies import UIContext, configure_logging

ctx_store = UIContext()

app = typer.Typer(help="Run Gatling load tests on EKS through helm.", no_args_is_help=True)


@app.callback(invoke_without_command=True)
def entry(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging."),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also write logs to this file."),
) -> None:
    """Global entry point configuring logging."""
    configure_logging(debug=debug, log_file=log_file, force=True)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("version")
def version() -> None:
    """Print the stress version."""
    typer.echo(f"stress v{__version__}")


register_run_command(app, ctx_store)
register_cluster_commands(app, ctx_store)
register_init_command(app, ctx_store)
register_doctor_command(app, ctx_store)


def main() -> None:
    """Console script entrypoint (Typer app)."""
    app()


if __name__ == "__main__":
    main()
