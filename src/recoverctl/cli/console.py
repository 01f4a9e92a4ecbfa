"""Rich console used for output that must not go through logging.

Usage errors, privilege errors and the ``help`` workflow all happen
before a log target exists, so they are rendered straight to stderr.
"""

from __future__ import annotations

from rich.console import Console

console = Console(stderr=True, highlight=False)
