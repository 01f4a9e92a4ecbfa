"""Single-instance guard for exclusive workflows.

Exclusion is based on enumerating running processes, not on file
locks.  There is a window between the enumeration and the moment this
process becomes visible to others; two instances started in that window
can both pass.  That race is accepted.
"""

from __future__ import annotations

from pathlib import Path

from recoverctl.core.protocols import ProcessTable
from recoverctl.exceptions import AlreadyRunningError


def ensure_single_instance(
    process_table: ProcessTable,
    program: Path,
    own_pid: int,
) -> None:
    """Raise :class:`AlreadyRunningError` if another *program* is running.

    Parameters
    ----------
    process_table:
        Enumeration backend.
    program:
        Resolved path of the running executable or script.
    own_pid:
        PID of the current process; it is never counted as "another".
    """
    others = sorted(
        pid for pid in process_table.pids_running(program) if pid != own_pid
    )
    if others:
        raise AlreadyRunningError(
            f"{program.name} is already running (PID {', '.join(map(str, others))}),"
            " not starting again.",
            hint="Wait for the running instance to finish.",
        )
