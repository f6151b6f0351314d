from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Awaitable

import typer

from ks_common.errors import ConfigurationError
from ks_controller import PipelineClassification, RunOutcome, StressConfig
from ks_ui.wiring.dependencies import UIContext


def load_config_or_exit(ctx: UIContext, config: Path) -> StressConfig:
    """Load and validate the config, printing the problem and exiting 1 on error."""
    try:
        return StressConfig.load(config)
    except ConfigurationError as exc:
        ctx.ui.show_error(exc.describe())
        raise typer.Exit(1)


def finish(ctx: UIContext, outcome: RunOutcome) -> None:
    """Report a pipeline outcome and exit with its code."""
    if outcome.classification is PipelineClassification.FAILED:
        ctx.ui.show_error(outcome.message or "Pipeline failed.")
    elif outcome.classification is PipelineClassification.INTERRUPTED:
        ctx.ui.show_warning("Interrupted.")
    if outcome.exit_code != 0:
        raise typer.Exit(outcome.exit_code)


def run_outcome(ctx: UIContext, pending: Awaitable[RunOutcome]) -> None:
    finish(ctx, asyncio.run(pending))
