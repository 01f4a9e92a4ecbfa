"""Tests for command-line parsing (cli/options.py)."""

from __future__ import annotations

from pathlib import Path

import pytest

from recoverctl.cli.options import DEFAULT_TRACE_LOGGERS, parse_invocation
from recoverctl.core.models import HELP_WORKFLOW
from recoverctl.exceptions import UsageError


# ---------------------------------------------------------------------------
# Workflow and arguments
# ---------------------------------------------------------------------------

class TestWorkflowSelection:
    def test_no_workflow_means_help(self) -> None:
        invocation = parse_invocation([])
        assert invocation.workflow == HELP_WORKFLOW
        assert invocation.is_help

    def test_help_flag_wins_over_workflow(self) -> None:
        invocation = parse_invocation(["--help", "mkrescue"])
        assert invocation.is_help
        assert invocation.args == ()

    def test_workflow_and_passthrough_args(self) -> None:
        invocation = parse_invocation(["-v", "dump", "OUTPUT", "-x", "--flag"])
        assert invocation.workflow == "dump"
        assert invocation.args == ("OUTPUT", "-x", "--flag")

    def test_double_dash_ends_options(self) -> None:
        invocation = parse_invocation(["--", "dump"])
        assert invocation.workflow == "dump"

    def test_raw_argv_is_kept(self) -> None:
        invocation = parse_invocation(["-s", "dump"])
        assert invocation.argv == ("-s", "dump")


# ---------------------------------------------------------------------------
# Flags
# ---------------------------------------------------------------------------

class TestFlags:
    def test_defaults(self) -> None:
        options = parse_invocation(["dump"]).options
        assert not options.verbose
        assert not options.debug
        assert not options.debug_trace
        assert not options.simulate
        assert not options.step_by_step
        assert options.config_dir is None
        assert options.kernel_version is None
        assert options.append_config == ()

    def test_debug_implies_verbose(self) -> None:
        options = parse_invocation(["-d", "dump"]).options
        assert options.debug and options.verbose
        assert not options.debug_trace

    def test_trace_implies_debug(self) -> None:
        options = parse_invocation(["-D", "dump"]).options
        assert options.debug_trace and options.debug and options.verbose
        assert options.trace_loggers == DEFAULT_TRACE_LOGGERS

    def test_debugscripts_names_loggers(self) -> None:
        options = parse_invocation(["--debugscripts", "urllib3, psutil", "dump"]).options
        assert options.debug_trace
        assert options.trace_loggers == ("urllib3", "psutil")

    def test_simulate_and_step_by_step(self) -> None:
        options = parse_invocation(["-s", "-S", "dump"]).options
        assert options.simulate and options.step_by_step

    def test_combined_short_flags(self) -> None:
        options = parse_invocation(["-sv", "dump"]).options
        assert options.simulate and options.verbose

    def test_config_dir(self) -> None:
        options = parse_invocation(["-c", "/srv/conf", "dump"]).options
        assert options.config_dir == Path("/srv/conf")

    def test_kernel_version(self) -> None:
        options = parse_invocation(["-r", "6.1.0-13-amd64", "dump"]).options
        assert options.kernel_version == "6.1.0-13-amd64"

    def test_append_config_is_split_and_repeatable(self) -> None:
        options = parse_invocation(["-C", "a,b", "-C", "c d", "dump"]).options
        assert options.append_config == ("a", "b", "c", "d")


# ---------------------------------------------------------------------------
# Usage errors
# ---------------------------------------------------------------------------

class TestUsageErrors:
    def test_unknown_option(self) -> None:
        with pytest.raises(UsageError):
            parse_invocation(["--bogus", "dump"])

    def test_missing_value(self) -> None:
        with pytest.raises(UsageError):
            parse_invocation(["-c"])

    def test_option_like_value_is_rejected(self) -> None:
        with pytest.raises(UsageError, match="-c requires an argument"):
            parse_invocation(["--config-dir=-d", "dump"])

    def test_usage_error_has_hint(self) -> None:
        with pytest.raises(UsageError) as exc_info:
            parse_invocation(["--bogus"])
        assert exc_info.value.hint is not None
        assert "--help" in exc_info.value.hint
