"""Presenter for Doctor Reports."""

from __future__ import annotations

from typing import List

from ks_controller.services import DoctorReport
from ks_controller.ui_interfaces import UIAdapter
from ks_ui.models import TableModel


def build_doctor_tables(report: DoctorReport) -> List[TableModel]:
    """Transform a DoctorReport into a list of TableModels."""
    tables = []
    for group in report.groups:
        rows = [
            [item.label, "✓" if item.ok else "✗", item.detail]
            for item in group.items
        ]
        tables.append(
            TableModel(
                title=group.title,
                columns=["Item", "Status", "Details"],
                rows=rows,
            )
        )
    return tables


def render_doctor_report(ui: UIAdapter, report: DoctorReport) -> bool:
    """
    Render a doctor report to the provided UI.

    Returns True when all required checks passed.
    """
    for table in build_doctor_tables(report):
        ui.show_table(table.title, table.columns, table.rows)

    for msg in report.info_messages:
        ui.show_info(msg)
    for msg in report.warnings:
        ui.show_warning(msg)

    if report.total_failures > 0:
        ui.show_error(f"Found {report.total_failures} failures.")
        return False

    ui.show_success("All checks passed.")
    return True
