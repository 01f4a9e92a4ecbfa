"""Custom exception hierarchy for recoverctl.

Every fatal condition maps to a subclass of :class:`RecoverctlError`.
Each class carries the process exit code it stands for, so the CLI
error boundary never has to guess.

Hierarchy
---------
RecoverctlError
├── UsageError
├── PrivilegeError
├── PrerequisiteMissingError
├── AlreadyRunningError
├── ConfigurationError
├── WorkspaceCreationError
├── WorkflowFailedError
├── StepDeclinedError
├── TerminationSignal
└── ContextFrozenError
"""

from __future__ import annotations

import signal


class RecoverctlError(Exception):
    """Base exception for all recoverctl errors.

    Raising one of these after logging is live is the equivalent of a
    fatal ``Error`` call: the exception unwinds every scoped resource
    (build workspace, signal handlers) and the finalizer still runs.
    """

    exit_code: int = 1

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Before logging is live ------------------------------------------------

class UsageError(RecoverctlError):
    """Raised for unknown flags, missing option values and similar."""


class PrivilegeError(RecoverctlError):
    """Raised when the process lacks root privileges."""


class PrerequisiteMissingError(RecoverctlError):
    """Raised when a required external facility or tool is unavailable."""


class AlreadyRunningError(RecoverctlError):
    """Raised when another exclusive instance is already running."""


# --- After logging is live -------------------------------------------------

class ConfigurationError(RecoverctlError):
    """Raised for a bad config directory or disallowed config content."""


class WorkspaceCreationError(RecoverctlError):
    """Raised when the build workspace cannot be created."""


class WorkflowFailedError(RecoverctlError):
    """Raised by a workflow handler to end the run with *exit_code*."""

    def __init__(
        self,
        message: str,
        *,
        exit_code: int = 1,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.exit_code = exit_code


class StepDeclinedError(RecoverctlError):
    """Raised when the user declines a step in step-by-step mode."""


class TerminationSignal(RecoverctlError):
    """Raised from a signal handler so scoped cleanup can unwind."""

    def __init__(self, signum: int) -> None:
        name = signal.Signals(signum).name
        super().__init__(f"Terminated by signal {name}")
        self.signum: int = signum
        self.exit_code = 128 + signum


class ContextFrozenError(RecoverctlError):
    """Raised when a set-once invocation field is assigned twice."""

    exit_code = 2
