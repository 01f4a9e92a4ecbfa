"""CLI application entry point for recoverctl.

This module is the **sole error boundary** for the application.  It
catches :class:`~recoverctl.exceptions.RecoverctlError`,
``KeyboardInterrupt`` and any unexpected ``Exception`` that escape before
logging is live, renders them via Rich on stderr and returns well-defined
exit codes.  Once a session has taken its log live, errors are logged by
:class:`~recoverctl.cli.session.Session` itself and only the exit code
comes back here.

Architecture notes
------------------
* No business logic lives here; work is delegated to the session, the
  core layer and the infrastructure layer.
* This module is the only place that translates between the domain world
  and the OS process exit code.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence

from recoverctl.cli import exit_codes
from recoverctl.cli.console import console
from recoverctl.exceptions import RecoverctlError


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: Sequence[str] | None = None) -> int:
    """Run the recoverctl CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.

    Returns
    -------
    int
        OS process exit code.
    """
    from recoverctl.cli.options import parse_invocation
    from recoverctl.workflows import default_registry

    invocation = parse_invocation(argv)
    registry = default_registry()

    if invocation.is_help:
        from recoverctl.cli.help import run_help

        return run_help(registry)

    from recoverctl.cli.session import Session

    return Session(invocation, registry).run()


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point."""
    try:
        code = main()
        sys.exit(code)
    except RecoverctlError as exc:
        console.print(f"[bold red]ERROR:[/bold red] {exc}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        sys.exit(exc.exit_code)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
