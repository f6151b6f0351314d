"""Controller facade for the load test pipeline.

Re-exports the orchestration entry points so the CLI does not reach into
individual modules.
"""

from ks_controller.cancellation import CancellationSignal
from ks_controller.models.config import StressConfig
from ks_controller.pipeline import PipelineClassification
from ks_controller.stress_pipeline import (
    PipelineSpec,
    RunOutcome,
    StressPipeline,
    Toolset,
    execute_mode,
    run,
)

__all__ = [
    "CancellationSignal",
    "PipelineClassification",
    "PipelineSpec",
    "RunOutcome",
    "StressConfig",
    "StressPipeline",
    "Toolset",
    "execute_mode",
    "run",
]
