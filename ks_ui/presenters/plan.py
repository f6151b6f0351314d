"""Presenter for Run Plans."""

from __future__ import annotations

from ks_controller.stress_pipeline import PipelineSpec
from ks_ui.models import TableModel


def build_run_plan_table(spec: PipelineSpec) -> TableModel:
    """Summarize what a run is about to do, one setting per row."""
    cfg = spec.config
    rows = [
        ["Config", str(spec.config_path)],
        ["Profile", cfg.profile],
        ["Cluster", f"{cfg.cluster} ({cfg.region})"],
        ["Namespace", cfg.namespace],
        ["Release", cfg.release],
        ["Chart", cfg.chart],
        ["Image", f"{cfg.repository}/{cfg.image}:{spec.image_tag}"],
        ["Simulation", cfg.simulation],
        ["Helm values", f"{len(cfg.helm)} top-level keys" if cfg.helm else "none"],
        ["Pod timeout", f"{cfg.pod_timeout:g}s"],
        ["Mode", "dry-run" if spec.dry_run else "live"],
    ]
    return TableModel(title="Run Plan", columns=["Setting", "Value"], rows=rows)
