"""Table rendering utilities for run results."""

from rich.table import Table

from blueprints.core.units import OutcomeStatus, RunResult

_STATUS_STYLES = {
    OutcomeStatus.SUCCEEDED: "green",
    OutcomeStatus.FAILED: "red",
    OutcomeStatus.SKIPPED: "yellow",
}


def create_run_table(result: RunResult) -> Table:
    """Create a table with one row per deployment unit.

    Args:
        result: Finished orchestration run

    Returns:
        Rich Table with unit outcomes
    """
    table = Table(title=f"Add-on run: {result.status.value}", caption=result.summary())

    table.add_column("Unit", style="cyan")
    table.add_column("Status")
    table.add_column("Duration", justify="right")
    table.add_column("Details", style="white")

    for unit_id, outcome in result.outcomes.items():
        style = _STATUS_STYLES[outcome.status]
        details = "" if outcome.ok else outcome.describe()
        duration = f"{outcome.duration:.1f}s" if outcome.status is not OutcomeStatus.SKIPPED else "-"
        table.add_row(unit_id, f"[{style}]{outcome.status.value}[/{style}]", duration, details)

    return table
