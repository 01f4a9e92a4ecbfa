"""``recoverctl dump`` — show the resolved configuration.

Read-only: it neither touches the build area nor honours simulate
mode, because it has nothing to simulate.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from rich.console import Console
from rich.table import Table
from rich.text import Text

from recoverctl.core.dispatcher import WorkflowContext

logger = logging.getLogger(__name__)


def dump_workflow(context: WorkflowContext, args: Sequence[str]) -> int | None:
    """Dump the configuration and system information."""
    configuration = context.configuration
    wanted = set(args)
    unknown = sorted(wanted.difference(configuration))
    if unknown:
        logger.error("Unknown configuration variables: %s", ", ".join(unknown))
        return 1

    table = Table(
        title="recoverctl configuration",
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    table.add_column("Variable", style="bold", min_width=16)
    table.add_column("Value")

    for name in sorted(wanted or configuration):
        value = configuration[name]
        shown = " ".join(value) if isinstance(value, tuple) else value
        table.add_row(name, Text(shown))

    console = Console()
    console.print(table)
    if not wanted:
        console.print("[dim]Config files:[/dim]")
        for path in configuration.sources:
            console.print(f"  {path}", markup=False)
    logger.info("Dumped %d configuration variables", table.row_count)
    return None
