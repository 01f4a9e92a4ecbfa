"""Protocols (interfaces) consumed by the core layer.

Infrastructure adapters and workflow modules satisfy these structurally.
The session wires in the concrete implementations; core modules only
ever see the protocols.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from recoverctl.core.dispatcher import WorkflowContext
    from recoverctl.core.os_identity import OsIdentity


class ProcessTable(Protocol):
    """Contract for process enumeration backends."""

    def pids_running(self, program: Path) -> list[int]:
        """Return the PIDs of processes currently executing *program*.

        Raises
        ------
        PrerequisiteMissingError
            When the process table cannot be read at all.
        """
        ...  # pragma: no cover


class OsDetector(Protocol):
    """Contract for OS / vendor / version / architecture detection."""

    def detect(self) -> OsIdentity:
        """Return identifiers used to pick distribution config files."""
        ...  # pragma: no cover


class WorkflowHandler(Protocol):
    """Contract for workflow implementations.

    A handler receives the per-run :class:`WorkflowContext` and the
    passthrough arguments.  Returning ``None`` means success; an ``int``
    becomes the exit code.  Handlers own their failure and retry policy.
    """

    def __call__(
        self,
        context: WorkflowContext,
        args: Sequence[str],
    ) -> int | None:
        ...  # pragma: no cover
