"""Smoke tests — verify scaffold wiring.

These tests prove that:
* The CLI entry point is importable and callable.
* The exception hierarchy is correctly structured.
* Version is accessible.
* Exit codes are defined.
"""

from __future__ import annotations

import signal
from unittest.mock import patch

import pytest

from recoverctl import __version__
from recoverctl.cli import exit_codes
from recoverctl.cli.app import cli, main
from recoverctl.exceptions import (
    AlreadyRunningError,
    ConfigurationError,
    ContextFrozenError,
    PrerequisiteMissingError,
    PrivilegeError,
    RecoverctlError,
    StepDeclinedError,
    TerminationSignal,
    UsageError,
    WorkflowFailedError,
    WorkspaceCreationError,
)


# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------

class TestVersion:
    def test_version_is_string(self) -> None:
        assert isinstance(__version__, str)

    def test_version_is_semver_like(self) -> None:
        parts = __version__.split(".")
        assert len(parts) == 3
        assert all(part.isdigit() for part in parts)


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------

class TestExceptions:
    @pytest.mark.parametrize(
        "exc_class",
        [
            UsageError,
            PrivilegeError,
            PrerequisiteMissingError,
            AlreadyRunningError,
            ConfigurationError,
            WorkspaceCreationError,
            WorkflowFailedError,
            StepDeclinedError,
            ContextFrozenError,
        ],
    )
    def test_all_exceptions_inherit_from_base(
        self, exc_class: type[RecoverctlError]
    ) -> None:
        assert issubclass(exc_class, RecoverctlError)

    def test_hint_is_stored(self) -> None:
        err = RecoverctlError("boom", hint="try this")
        assert str(err) == "boom"
        assert err.hint == "try this"

    def test_hint_defaults_to_none(self) -> None:
        assert RecoverctlError("boom").hint is None

    def test_default_exit_code_is_one(self) -> None:
        assert UsageError("bad").exit_code == 1

    def test_workflow_failure_carries_exit_code(self) -> None:
        err = WorkflowFailedError("no", exit_code=7)
        assert err.exit_code == 7

    def test_termination_signal_exit_code(self) -> None:
        err = TerminationSignal(signal.SIGTERM)
        assert err.exit_code == 128 + signal.SIGTERM
        assert "SIGTERM" in str(err)

    def test_frozen_context_is_internal_error(self) -> None:
        assert ContextFrozenError("twice").exit_code == exit_codes.UNEXPECTED_ERROR


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

class TestExitCodes:
    def test_values(self) -> None:
        assert exit_codes.SUCCESS == 0
        assert exit_codes.UNEXPECTED_ERROR == 2
        assert exit_codes.KEYBOARD_INTERRUPT == 130


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

class TestMain:
    def test_no_arguments_shows_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == exit_codes.SUCCESS
        assert "Available workflows" in capsys.readouterr().err

    def test_help_lists_dump(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--help"]) == exit_codes.SUCCESS
        assert "dump" in capsys.readouterr().err

    def test_help_has_no_side_effects(self) -> None:
        with patch("recoverctl.cli.session.Session") as session_cls:
            assert main(["-h", "dump"]) == exit_codes.SUCCESS
        session_cls.assert_not_called()

    def test_version_exits_zero(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_unknown_option_is_usage_error(self) -> None:
        with pytest.raises(UsageError):
            main(["--no-such-flag", "dump"])

    def test_workflow_runs_in_session(self) -> None:
        with patch("recoverctl.cli.session.Session") as session_cls:
            session_cls.return_value.run.return_value = 3
            assert main(["-v", "dump"]) == 3
        invocation = session_cls.call_args.args[0]
        assert invocation.workflow == "dump"
        assert invocation.options.verbose is True


class TestCliBoundary:
    def test_success_exit(self) -> None:
        with patch("recoverctl.cli.app.main", return_value=0):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == 0

    def test_domain_error_uses_its_exit_code(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        error = PrivilegeError("needs root", hint="use sudo")
        with patch("recoverctl.cli.app.main", side_effect=error):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "ERROR:" in err
        assert "needs root" in err
        assert "use sudo" in err

    def test_keyboard_interrupt(self) -> None:
        with patch("recoverctl.cli.app.main", side_effect=KeyboardInterrupt):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == exit_codes.KEYBOARD_INTERRUPT

    def test_unexpected_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("recoverctl.cli.app.main", side_effect=RuntimeError("kaput")):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == exit_codes.UNEXPECTED_ERROR
        assert "RuntimeError: kaput" in capsys.readouterr().err
