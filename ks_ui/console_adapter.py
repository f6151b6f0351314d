"""Rich console implementation of the controller UIAdapter."""

from __future__ import annotations

from typing import Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ks_controller.ui_interfaces import UIAdapter
from ks_ui import theme
from ks_ui.models import TableModel


def build_rich_table(model: TableModel, *, show_lines: bool = False) -> Table:
    """Build a Rich Table from a TableModel."""
    table = Table(
        title=model.title,
        show_lines=show_lines,
        box=box.ROUNDED,
        border_style=theme.RICH_BORDER_STYLE,
        header_style=theme.RICH_ACCENT_BOLD,
        title_style=theme.RICH_ACCENT_BOLD,
    )
    for column in model.columns:
        table.add_column(column)
    for row in model.rows:
        table.add_row(*(escape(str(cell)) for cell in row))
    return table


class RichUIAdapter(UIAdapter):
    """Print controller progress to a rich Console.

    Messages are escaped before templating: pod names, selectors and
    command lines regularly contain square brackets.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def _emit(self, level: str, message: str) -> None:
        template = theme.PRESENTER_TEMPLATES.get(level, "{message}")
        self.console.print(template.format(message=escape(message)), highlight=False)

    def show_step(self, label: str, message: str) -> None:
        self.console.print(
            theme.PRESENTER_TEMPLATES["step"].format(label=escape(label), message=escape(message)),
            highlight=False,
        )

    def show_command(self, command: str) -> None:
        self._emit("command", command)

    def show_info(self, message: str) -> None:
        self._emit("info", message)

    def show_success(self, message: str) -> None:
        self._emit("success", message)

    def show_warning(self, message: str) -> None:
        self._emit("warning", message)

    def show_error(self, message: str) -> None:
        self._emit("error", message)

    def show_table(self, title: str, columns: Sequence[str], rows: list[Sequence[str]]) -> None:
        model = TableModel(title=title, columns=list(columns), rows=[list(r) for r in rows])
        self.console.print(build_rich_table(model))
