"""Command-line option parsing.

Turns the raw argument vector into a frozen
:class:`~recoverctl.core.models.Invocation`.  The only ways this module
ends the process are ``--version`` (``SystemExit(0)`` from argparse) and
:class:`~recoverctl.exceptions.UsageError`, which the CLI error boundary
turns into exit code 1.
"""

from __future__ import annotations

import argparse
import re
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import NoReturn

from recoverctl.core.models import HELP_WORKFLOW, Invocation, InvocationOptions
from recoverctl.exceptions import UsageError
from recoverctl.version import __version__

PROG = "recoverctl"

DEFAULT_TRACE_LOGGERS: tuple[str, ...] = ("root",)
"""Loggers traced by ``-D`` when no ``--debugscripts`` argument is given."""

# dest -> flag shown in error messages, for options that take a value
_VALUE_OPTIONS: dict[str, str] = {
    "config_dir": "-c",
    "config_append": "-C",
    "trace_argument": "--debugscripts",
    "kernel_version": "-r",
}


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting with status 2."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(
            message,
            hint=f"Use '{self.prog} --help' for more information.",
        )


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser."""
    parser = _Parser(
        prog=PROG,
        usage=f"{PROG} [-h|--help] [-V|--version] [-dsSv] [-D|--debugscripts SET]"
        " [-c DIR] [-C CONFIG] [-r KERNEL] [--] WORKFLOW [ARGS...]",
        description="Bootstrap and dispatch disaster-recovery workflows.",
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument(
        "-h", "--help", action="store_true", help="Show help and the available workflows.",
    )
    parser.add_argument(
        "-V", "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose mode.",
    )
    parser.add_argument(
        "-c", "--config-dir", dest="config_dir", metavar="DIR",
        help="Alternative configuration directory.",
    )
    parser.add_argument(
        "-C", "--config-append", dest="config_append", metavar="CONFIG",
        action="append", default=[],
        help="Additional config files, absolute or relative to the config directory.",
    )
    parser.add_argument(
        "-d", "--debug", action="store_true", help="Debug mode (implies -v).",
    )
    parser.add_argument(
        "-D", "--debugscripts-all", dest="debug_trace", action="store_true",
        help="Debug mode with tracing of all loggers (implies -d).",
    )
    parser.add_argument(
        "--debugscripts", dest="trace_argument", metavar="SET",
        help="Like -D but trace only the given loggers (comma or space separated).",
    )
    parser.add_argument(
        "-s", "--simulate", action="store_true", help="Simulation mode.",
    )
    parser.add_argument(
        "-S", "--step-by-step", dest="step_by_step", action="store_true",
        help="Confirm each step before it runs.",
    )
    parser.add_argument(
        "-r", "--kernel-version", dest="kernel_version", metavar="KERNEL",
        help="Kernel version to use instead of the running one.",
    )
    parser.add_argument("workflow", nargs="?", default=None, help="Workflow to run.")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="Workflow arguments.")
    return parser


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _split_items(values: Sequence[str]) -> tuple[str, ...]:
    """Split each value on commas and whitespace, dropping empty parts."""
    items: list[str] = []
    for value in values:
        items.extend(part for part in re.split(r"[,\s]+", value) if part)
    return tuple(items)


def _reject_option_like_values(namespace: argparse.Namespace) -> None:
    """Refuse values that look like another option (e.g. ``-c -d``)."""
    for dest, flag in _VALUE_OPTIONS.items():
        value = getattr(namespace, dest)
        values = value if isinstance(value, list) else [value]
        for item in values:
            if item is not None and item.startswith("-"):
                raise UsageError(
                    f"option {flag} requires an argument, got option-like '{item}'",
                    hint=f"Use '{PROG} --help' for more information.",
                )


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def parse_invocation(argv: Sequence[str] | None = None) -> Invocation:
    """Parse *argv* (default ``sys.argv[1:]``) into an :class:`Invocation`.

    Raises
    ------
    UsageError
        For unknown options, missing or option-like values.
    SystemExit
        For ``--version``, after printing the version.
    """
    raw = tuple(sys.argv[1:] if argv is None else argv)
    namespace = build_parser().parse_args(list(raw))
    _reject_option_like_values(namespace)

    trace_loggers: tuple[str, ...] = ()
    if namespace.trace_argument is not None:
        trace_loggers = _split_items([namespace.trace_argument]) or DEFAULT_TRACE_LOGGERS
    elif namespace.debug_trace:
        trace_loggers = DEFAULT_TRACE_LOGGERS

    debug_trace = bool(trace_loggers)
    debug = namespace.debug or debug_trace
    options = InvocationOptions(
        verbose=namespace.verbose or debug,
        debug=debug,
        debug_trace=debug_trace,
        trace_loggers=trace_loggers,
        simulate=namespace.simulate,
        step_by_step=namespace.step_by_step,
        config_dir=Path(namespace.config_dir) if namespace.config_dir else None,
        kernel_version=namespace.kernel_version,
        append_config=_split_items(namespace.config_append),
    )

    if namespace.help or not namespace.workflow:
        return Invocation(workflow=HELP_WORKFLOW, options=options, argv=raw)
    return Invocation(
        workflow=namespace.workflow,
        args=tuple(namespace.args),
        options=options,
        argv=raw,
    )
