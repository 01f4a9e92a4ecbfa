"""Exit classification for the completion record.

Pure helpers: decide how a finished run is reported.  The caller does
the log copy and the system-log write.
"""

from __future__ import annotations

import enum
from pathlib import Path

CHANGED_WORKFLOW = "checklayout"
CHANGED_EXIT_CODE = 1


class ExitOutcome(enum.Enum):
    SUCCESS = "success"
    CHANGED = "changed"
    FAILURE = "failure"


def classify_exit(workflow: str, exit_code: int) -> ExitOutcome:
    """Classify *exit_code* of *workflow*.

    ``checklayout`` returning :data:`CHANGED_EXIT_CODE` means the disk
    layout changed and a new rescue image is needed, which is not an
    error.
    """
    if exit_code == 0:
        return ExitOutcome.SUCCESS
    if workflow == CHANGED_WORKFLOW and exit_code == CHANGED_EXIT_CODE:
        return ExitOutcome.CHANGED
    return ExitOutcome.FAILURE


def completion_message(program: str, workflow: str, exit_code: int) -> str:
    """Return the single system-log summary line for a finished run."""
    outcome = classify_exit(workflow, exit_code)
    if outcome is ExitOutcome.SUCCESS:
        return f"{program} {workflow} finished with zero exit code"
    if outcome is ExitOutcome.CHANGED:
        return f"{program} {workflow} finished: layout has changed, re-run required"
    return f"{program} {workflow} failed with exit code {exit_code}"


def needs_log_copy(live_log: Path, final_log: Path) -> bool:
    """Whether the live log must be copied to the configured location."""
    return live_log.resolve() != final_log.resolve()
