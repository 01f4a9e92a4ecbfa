"""Concurrency classification and live log-target selection.

Membership in two static name lists decides whether an invocation may
run next to other instances; the class in turn decides which file the
run logs to while it is alive.

Known limitation
----------------
Every lockless workflow logs to the same ``<base>.lockless`` file, so
two lockless runs at the same time interleave their output.  This is
accepted behaviour and must not be widened to per-process names.
"""

from __future__ import annotations

import os
from collections.abc import Collection
from pathlib import Path

from recoverctl.core.models import ConcurrencyClass, ConcurrencyDecision

LOCKLESS_WORKFLOWS: frozenset[str] = frozenset(
    {"checklayout", "dump", "shell", "udev"}
)
"""Workflows that skip the single-instance guard and share one log file."""

SIMULTANEOUS_RUNNABLE_WORKFLOWS: frozenset[str] = frozenset(
    {"dump", "format", "mkopalpba", "opaladmin", "validate"}
)
"""Workflows that skip the single-instance guard with a per-PID log file."""

LOCKLESS_SUFFIX = ".lockless"


def base_log_path(log_dir: Path, hostname: str) -> Path:
    """Return the default log file path for *hostname* under *log_dir*."""
    return log_dir / f"recoverctl-{hostname}.log"


def per_process_log_path(base: Path, pid: int) -> Path:
    """Splice *pid* in front of the final suffix of *base*.

    ``/var/log/x/recoverctl-host.log`` becomes
    ``/var/log/x/recoverctl-host.4711.log``.  A base without a suffix
    simply gets ``.<pid>`` appended.
    """
    if not base.suffix:
        return base.with_name(f"{base.name}.{pid}")
    return base.with_name(f"{base.stem}.{pid}{base.suffix}")


def classify(
    workflow: str,
    base_log: Path,
    *,
    lockless: Collection[str] = LOCKLESS_WORKFLOWS,
    simultaneous: Collection[str] = SIMULTANEOUS_RUNNABLE_WORKFLOWS,
    pid: int | None = None,
) -> ConcurrencyDecision:
    """Decide the concurrency class and live log target for *workflow*.

    The lockless list is consulted first; a name that is also in the
    simultaneous list ends up :attr:`ConcurrencyClass.SIMULTANEOUS_NAMED`.
    """
    concurrency_class = ConcurrencyClass.EXCLUSIVE
    log_target = base_log

    if workflow in lockless:
        concurrency_class = ConcurrencyClass.LOCKLESS
        log_target = base_log.with_name(base_log.name + LOCKLESS_SUFFIX)

    if workflow in simultaneous:
        concurrency_class = ConcurrencyClass.SIMULTANEOUS_NAMED
        log_target = per_process_log_path(
            base_log, os.getpid() if pid is None else pid,
        )

    return ConcurrencyDecision(
        concurrency_class=concurrency_class,
        log_target=log_target,
    )
