"""Controller-level UI contracts and no-op implementations."""

from __future__ import annotations

from typing import Protocol, Sequence


class UIAdapter(Protocol):
    """Minimal interface for the operator-facing run output."""

    def show_step(self, label: str, message: str) -> None:
        """Render a pipeline step banner (e.g. "Step 1:")."""

    def show_command(self, command: str) -> None:
        """Render a shell command that is about to run."""

    def show_info(self, message: str) -> None:
        """Render a low-emphasis informational line."""

    def show_success(self, message: str) -> None:
        """Render a success line."""

    def show_warning(self, message: str) -> None:
        """Render a warning line."""

    def show_error(self, message: str) -> None:
        """Render an error line."""

    def show_table(self, title: str, columns: Sequence[str], rows: list[Sequence[str]]) -> None:
        """Render a simple table."""


class NoOpUIAdapter(UIAdapter):
    """UI adapter that drops every message."""

    def show_step(self, label: str, message: str) -> None:
        pass

    def show_command(self, command: str) -> None:
        pass

    def show_info(self, message: str) -> None:
        pass

    def show_success(self, message: str) -> None:
        pass

    def show_warning(self, message: str) -> None:
        pass

    def show_error(self, message: str) -> None:
        pass

    def show_table(self, title: str, columns: Sequence[str], rows: list[Sequence[str]]) -> None:
        pass
