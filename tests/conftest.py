from collections import Counter

from rich.console import Console
from rich.table import Table

MARKERS = ("unit_common", "unit_controller", "unit_ui")
OUTCOMES = ("passed", "failed", "skipped")


def pytest_terminal_summary(terminalreporter, exitstatus, config):
    """Print a per-marker outcome table after the run."""
    counts: Counter = Counter()
    for outcome in OUTCOMES:
        for report in terminalreporter.stats.get(outcome, []):
            if report.when != "call" and not (report.when == "setup" and report.skipped):
                continue
            for marker in MARKERS:
                if marker in report.keywords:
                    counts[marker, outcome] += 1

    if not counts:
        return

    table = Table(title="Tests by marker", header_style="bold magenta")
    table.add_column("Marker", style="cyan")
    for outcome, style in zip(OUTCOMES, ("green", "red", "yellow")):
        table.add_column(outcome.capitalize(), justify="right", style=style)
    for marker in MARKERS:
        row = [str(counts[marker, outcome]) for outcome in OUTCOMES]
        if any(value != "0" for value in row):
            table.add_row(marker, *row)

    Console().print(table)
