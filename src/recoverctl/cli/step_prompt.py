"""Interactive confirmation for step-by-step mode (``-S``).

questionary is imported lazily so that non-interactive runs never pay
for it and a missing installation only matters when ``-S`` is used.
"""

from __future__ import annotations

import logging
from typing import Any

from recoverctl.exceptions import PrerequisiteMissingError

logger = logging.getLogger(__name__)


def _import_questionary() -> Any:
    """Import questionary lazily for interactive confirmation."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise PrerequisiteMissingError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


def confirm_step(message: str) -> bool:
    """Ask the user whether to continue with the step in *message*.

    Returns
    -------
    bool
        ``True`` to continue.  Declining, Esc and Ctrl+C all count as
        ``False``.
    """
    questionary = _import_questionary()
    answer: bool | None = questionary.confirm(message, default=True).ask()
    logger.debug("Step-by-step: %s -> %s", message, answer)
    return bool(answer)
