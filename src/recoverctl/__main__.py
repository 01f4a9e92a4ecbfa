"""Allow ``python -m recoverctl`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m recoverctl`` behaves identically to the ``recoverctl``
console script.
"""

from __future__ import annotations

from recoverctl.cli.app import cli

if __name__ == "__main__":
    cli()
