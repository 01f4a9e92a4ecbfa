"""``recoverctl help`` — usage and the list of available workflows.

The help pseudo-workflow has no side effects: no privilege check, no
log file, no configuration and no build area.
"""

from __future__ import annotations

from rich.table import Table
from rich.text import Text

from recoverctl.cli import exit_codes
from recoverctl.cli.console import console
from recoverctl.cli.options import build_parser
from recoverctl.core.dispatcher import WorkflowRegistry


def run_help(registry: WorkflowRegistry) -> int:
    """Print usage, options and registered workflows; return SUCCESS."""
    parser = build_parser()
    console.print(Text(parser.format_help().rstrip()))
    console.print()

    table = Table(
        title="Available workflows",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Workflow", style="bold", min_width=12)
    table.add_column("Description")

    for workflow in registry:
        table.add_row(workflow.name, Text(workflow.description or "-"))

    if len(registry):
        console.print(table)
    else:
        console.print("[yellow]No workflows are installed.[/yellow]")
    return exit_codes.SUCCESS
