"""Rich summary of a resolve pass.

Renders one row per capability (verdict, definition, what it contributed or
what is missing) followed by the staging outcomes. Used by the CLI after the
timestamped diagnostics have been printed.
"""

from typing import Optional

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from .capability_model import CapabilityTable
from .models import StageStatus
from .resolver import ResolveResult

_STATUS_STYLES = {
    StageStatus.COPIED: "green",
    StageStatus.CREATED: "green",
    StageStatus.UP_TO_DATE: "dim",
    StageStatus.SOURCE_MISSING: "yellow",
    StageStatus.FAILED: "red",
}


def build_capability_table(table: CapabilityTable, result: ResolveResult) -> Table:
    grid = Table(title=f"Capabilities ({table.name}, {result.platform})", expand=False)
    grid.add_column("Capability")
    grid.add_column("Definition")
    grid.add_column("Status")
    grid.add_column("Details")

    for capability in table.capabilities:
        probe_result = result.result_for(capability.id)
        value = result.config.definitions.get(capability.definition, 0)
        definition = f"{capability.definition}={value}"

        if probe_result.enabled:
            status = Text("enabled", style="bold green")
            details = ", ".join(probe_result.discovered_modules + probe_result.companion_modules + tuple(p.name for p in probe_result.libraries))
        elif probe_result.skipped_reason:
            status = Text("skipped", style="dim")
            details = probe_result.skipped_reason
        else:
            status = Text("disabled", style="bold yellow")
            details = "\n".join(probe_result.missing)

        grid.add_row(capability.label, definition, status, details)

    return grid


def build_staging_table(result: ResolveResult) -> Optional[Table]:
    if not result.stage_outcomes:
        return None

    grid = Table(title="Staging", expand=False)
    grid.add_column("Path")
    grid.add_column("Result")
    for outcome in result.stage_outcomes:
        label = outcome.status.value.replace("_", " ")
        if outcome.error:
            label = f"{label}: {outcome.error}"
        grid.add_row(str(outcome.destination), Text(label, style=_STATUS_STYLES[outcome.status]))
    return grid


def render_summary(table: CapabilityTable, result: ResolveResult, console: Optional[Console] = None) -> None:
    """Print the capability and staging summary."""
    console = console or Console()
    parts = [build_capability_table(table, result)]
    staging = build_staging_table(result)
    if staging is not None:
        parts.append(staging)
    console.print(Group(*parts))
