"""Infrastructure: process enumeration backed by psutil.

A Python program runs as the interpreter, so "processes executing the
same program" means processes whose executable is the program, and
Python interpreters started on the program's script, on any script
named ``recoverctl`` or with ``-m recoverctl``.  Other processes that
merely name the file (``less``, ``flock``, editors) do not count.

Rules
-----
* No ``print()`` — callers handle user-facing output.
* psutil errors are mapped to :class:`PrerequisiteMissingError`.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterator
from pathlib import Path

import psutil

from recoverctl.exceptions import PrerequisiteMissingError

_HINT = "Make sure /proc is mounted and readable."

PROGRAM_MODULE = __name__.split(".")[0]
"""Module name for ``python -m`` launches."""

_PYTHON_NAME = re.compile(r"python[\d.]*$")

# Interpreter options that consume the following argument.
_OPTIONS_WITH_VALUE = frozenset({"-W", "-X"})


class PsutilProcessTable:
    """psutil implementation of :class:`~recoverctl.core.protocols.ProcessTable`."""

    def pids_running(self, program: Path) -> list[int]:
        """Return PIDs of processes executing *program*.

        Processes that vanish or deny access while being inspected are
        skipped.

        Raises
        ------
        PrerequisiteMissingError
            If the process table cannot be enumerated.
        """
        target = program.resolve()
        pids: list[int] = []
        try:
            for proc in psutil.process_iter(["pid", "exe", "cmdline"]):
                if _matches(target, proc.info.get("exe"), proc.info.get("cmdline")):
                    pids.append(proc.info["pid"])
        except (psutil.Error, OSError) as exc:
            raise PrerequisiteMissingError(
                f"Cannot enumerate running processes: {exc}",
                hint=_HINT,
            ) from exc
        return pids


def _same_file(candidate: str, target: Path) -> bool:
    try:
        return Path(candidate).resolve() == target
    except (OSError, RuntimeError):
        return False


def _is_python(path: str | None) -> bool:
    if not path:
        return False
    return _PYTHON_NAME.match(Path(path).name) is not None


def _launched(args: Iterator[str]) -> tuple[str, str] | None:
    """Return ``("module", name)`` or ``("script", path)`` for interpreter *args*."""
    for arg in args:
        if arg == "-m":
            return "module", next(args, "")
        if arg.startswith("-m"):
            return "module", arg[2:]
        if arg in _OPTIONS_WITH_VALUE:
            next(args, None)
            continue
        if arg == "-" or arg.startswith("-c"):
            return None
        if arg.startswith("-"):
            continue
        return "script", arg
    return None


def _matches(target: Path, exe: str | None, cmdline: list[str] | None) -> bool:
    """Whether a process with *exe* and *cmdline* is running *target*."""
    if exe and _same_file(exe, target):
        return True
    if not cmdline:
        return False
    if _same_file(cmdline[0], target):
        return True
    if not (_is_python(exe) or _is_python(cmdline[0])):
        return False
    launched = _launched(iter(cmdline[1:]))
    if launched is None:
        return False
    kind, value = launched
    if kind == "module":
        return value == PROGRAM_MODULE
    # the console script and `python -m` share the program name
    return Path(value).name == PROGRAM_MODULE or _same_file(value, target)


def require_process_table() -> PsutilProcessTable:
    """Probe the process enumeration facility and return a table.

    Raises
    ------
    PrerequisiteMissingError
        If psutil cannot list processes on this system.
    """
    try:
        pids = psutil.pids()
    except (psutil.Error, OSError) as exc:
        raise PrerequisiteMissingError(
            f"Process enumeration is not available: {exc}",
            hint=_HINT,
        ) from exc
    if os.getpid() not in pids:
        raise PrerequisiteMissingError(
            "Process enumeration does not report the current process.",
            hint=_HINT,
        )
    return PsutilProcessTable()
