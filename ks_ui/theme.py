from __future__ import annotations

RICH_ACCENT = "blue"
RICH_ACCENT_BOLD = f"bold {RICH_ACCENT}"
RICH_BORDER_STYLE = RICH_ACCENT
COMMAND_STYLE = "dim"

PRESENTER_TEMPLATES: dict[str, str] = {
    "info": "[blue]ℹ[/blue] {message}",
    "warning": "[yellow]⚠ {message}[/yellow]",
    "error": "[red]✖ {message}[/red]",
    "success": "[green]✔ {message}[/green]",
    "step": f"[{RICH_ACCENT_BOLD}]{{label}}[/{RICH_ACCENT_BOLD}] {{message}}",
    "command": f"[{COMMAND_STYLE}]  $ {{message}}[/{COMMAND_STYLE}]",
}
