"""Domain models for recoverctl.

Stage outputs are **frozen** dataclasses: once a stage returns, nothing
downstream can alter what it decided.  The only mutable record is
:class:`InvocationContext`, which collects those outputs and the exit
status, and guards its set-once fields explicitly.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Union

from recoverctl.exceptions import ConfigurationError, ContextFrozenError

ConfigValue = Union[str, tuple[str, ...]]

HELP_WORKFLOW = "help"

FROZEN_SETTINGS: frozenset[str] = frozenset(
    {"CONFIG_DIR", "VAR_DIR", "LOG_DIR", "KERNEL_VERSION", "SHARE_DIR"}
)
"""Settings that no file sourced after resolution may change."""

_TRUE_WORDS = frozenset({"1", "y", "yes", "true", "on"})


# ---------------------------------------------------------------------------
# Parsed invocation
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class InvocationOptions:
    """Recognised command-line flags and their values."""

    verbose: bool = False
    debug: bool = False
    debug_trace: bool = False
    trace_loggers: tuple[str, ...] = ()
    simulate: bool = False
    step_by_step: bool = False
    config_dir: Path | None = None
    kernel_version: str | None = None
    append_config: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Invocation:
    """Result of option parsing: what was asked for, and with what."""

    workflow: str
    args: tuple[str, ...] = ()
    options: InvocationOptions = field(default_factory=InvocationOptions)
    argv: tuple[str, ...] = ()
    """The raw argument vector, kept for the startup banner."""

    @property
    def is_help(self) -> bool:
        return self.workflow == HELP_WORKFLOW


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------

class ConcurrencyClass(enum.Enum):
    """Whether an invocation may run alongside other instances."""

    EXCLUSIVE = "exclusive"
    LOCKLESS = "lockless"
    SIMULTANEOUS_NAMED = "simultaneous"


@dataclass(frozen=True, slots=True)
class ConcurrencyDecision:
    """Concurrency class plus the live log target it implies."""

    concurrency_class: ConcurrencyClass
    log_target: Path

    @property
    def needs_guard(self) -> bool:
        return self.concurrency_class is ConcurrencyClass.EXCLUSIVE


# ---------------------------------------------------------------------------
# Configuration snapshot
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class Configuration(Mapping[str, ConfigValue]):
    """Immutable result of configuration layering.

    Values are either strings or tuples of strings (array settings).
    :meth:`derive` is the only way to obtain a modified copy, and it
    refuses to touch :data:`FROZEN_SETTINGS`.
    """

    _values: Mapping[str, ConfigValue]
    sources: tuple[Path, ...] = ()
    """Files that were actually applied, in application order."""

    def __post_init__(self) -> None:
        object.__setattr__(self, "_values", MappingProxyType(dict(self._values)))

    def __getitem__(self, name: str) -> ConfigValue:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def get_str(self, name: str, default: str = "") -> str:
        """Return *name* as a string; arrays are joined with spaces."""
        value = self._values.get(name)
        if value is None:
            return default
        if isinstance(value, tuple):
            return " ".join(value)
        return value

    def get_list(self, name: str) -> tuple[str, ...]:
        """Return *name* as a tuple; a scalar becomes a one-item tuple."""
        value = self._values.get(name)
        if value is None or value == "":
            return ()
        if isinstance(value, tuple):
            return value
        return (value,)

    def is_true(self, name: str) -> bool:
        """Interpret *name* the way shell config files spell booleans."""
        return self.get_str(name).strip().lower() in _TRUE_WORDS

    def derive(self, **updates: ConfigValue) -> Configuration:
        """Return a copy with *updates* applied.

        Raises
        ------
        ConfigurationError
            If any key in *updates* is a frozen setting.
        """
        forbidden = sorted(FROZEN_SETTINGS.intersection(updates))
        if forbidden:
            raise ConfigurationError(
                f"Read-only settings cannot be changed: {', '.join(forbidden)}",
            )
        merged = dict(self._values)
        merged.update(updates)
        return Configuration(merged, self.sources)


# ---------------------------------------------------------------------------
# Build workspace
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class WorkspacePaths:
    """Locations inside a per-invocation build workspace."""

    build_dir: Path
    rootfs_dir: Path
    tmp_dir: Path


# ---------------------------------------------------------------------------
# Invocation context
# ---------------------------------------------------------------------------

class InvocationContext:
    """Mutable record threaded through every bootstrap stage.

    ``workflow`` and ``log_target`` may be assigned exactly once;
    a second assignment raises :class:`ContextFrozenError`.
    ``exit_failure`` starts out ``True`` and is only cleared once the
    workflow step has run without a fatal error, so any uncontrolled
    termination before that point counts as failure.
    """

    def __init__(self, invocation: Invocation) -> None:
        self.invocation: Invocation = invocation
        self._workflow: str | None = None
        self._log_target: Path | None = None
        self.concurrency: ConcurrencyDecision | None = None
        self.base_log_path: Path | None = None
        self.exit_code: int = 0
        self.exit_failure: bool = True
        self.recovery_mode: bool = False
        self.config_directory: Path | None = None
        self.var_directory: Path | None = None
        self.log_directory: Path | None = None
        self.share_directory: Path | None = None
        self.configuration: Configuration | None = None
        self.workspace: WorkspacePaths | None = None

    @property
    def options(self) -> InvocationOptions:
        return self.invocation.options

    @property
    def args(self) -> tuple[str, ...]:
        return self.invocation.args

    @property
    def workflow(self) -> str:
        if self._workflow is None:
            raise ContextFrozenError("Workflow has not been resolved yet.")
        return self._workflow

    @workflow.setter
    def workflow(self, name: str) -> None:
        if self._workflow is not None:
            raise ContextFrozenError(
                f"Workflow is already resolved to '{self._workflow}'.",
            )
        if not name:
            raise ContextFrozenError("Workflow name must not be empty.")
        self._workflow = name

    @property
    def log_target(self) -> Path:
        if self._log_target is None:
            raise ContextFrozenError("Log target has not been assigned yet.")
        return self._log_target

    @log_target.setter
    def log_target(self, path: Path) -> None:
        if self._log_target is not None:
            raise ContextFrozenError(
                f"Log target is already set to {self._log_target}.",
            )
        self._log_target = path

    def final_exit_code(self) -> int:
        """Exit code to hand to the OS, honouring the failure flag."""
        if self.exit_failure and self.exit_code == 0:
            return 1
        return self.exit_code
