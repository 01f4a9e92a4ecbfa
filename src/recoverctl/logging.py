"""Logging helpers used by the recoverctl CLI and workflows.

The live log file receives everything; the console only shows what the
user should see.  The shell-era logging verbs map onto stdlib logging
as follows:

=================  ==================================================
``Log``            ``logger.info(msg)``
``LogPrint``       ``logger.info(msg, extra=PRINT)`` (console if verbose)
``LogPrintError``  ``logger.warning(msg)`` / ``logger.error(msg)``
``Debug``          ``logger.debug(msg)`` (file only, needs ``-d``)
``LogToSyslog``    ``logging.getLogger(SYSLOG_LOGGER).info(msg)``
``Error``          raise a :class:`~recoverctl.exceptions.RecoverctlError`
=================  ==================================================
"""

from __future__ import annotations

import logging
import os
import platform
import sys
from collections.abc import Sequence
from logging.handlers import SysLogHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from recoverctl.exceptions import ConfigurationError

# pylint: disable=too-few-public-methods

PROJECT_LOGGER = "recoverctl"
SYSLOG_LOGGER = "recoverctl.syslog"
SYSLOG_ADDRESS = "/dev/log"

PRINT: dict[str, bool] = {"print": True}
"""``extra`` marker for records that are also meant for the console."""

LOGFILE_FORMAT = "%(asctime)s %(levelname)-7s %(message)s"


class ConsoleFilter(logging.Filter):
    """Let through warnings and errors, plus ``PRINT`` records if verbose."""

    def __init__(self, verbose: bool) -> None:
        super().__init__()
        self.verbose = verbose

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.WARNING:
            return True
        return self.verbose and bool(getattr(record, "print", False))


def config_console_handler(*, verbose: bool, trace: bool = False) -> RichHandler:
    """Configure and return a RichHandler writing to stderr.

    In trace mode tracebacks include local variables and each line
    shows its source location.
    """
    handler = RichHandler(
        level=logging.DEBUG,
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=trace,
        show_time=False,
        show_path=trace,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.addFilter(ConsoleFilter(verbose))
    return handler


def config_logfile_handler(path: Path, *, debug: bool) -> logging.FileHandler:
    """Create or truncate *path* and return a handler writing to it.

    Raises
    ------
    ConfigurationError
        If the log directory or file cannot be created.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot create log file {path}: {exc.strerror or exc}",
            hint="Check RECOVERCTL_LOG_DIR and its permissions.",
        ) from exc
    handler.setLevel(logging.DEBUG if debug else logging.INFO)
    handler.setFormatter(logging.Formatter(LOGFILE_FORMAT))
    return handler


def config_syslog_handler(address: str = SYSLOG_ADDRESS) -> SysLogHandler | None:
    """Return a SysLogHandler, or ``None`` if no syslog socket exists."""
    # SysLogHandler swallows connection errors for unix sockets.
    if not Path(address).is_socket():
        return None
    try:
        handler = SysLogHandler(address=address, facility=SysLogHandler.LOG_USER)
    except OSError:
        return None
    handler.setFormatter(logging.Formatter("recoverctl[%(process)d]: %(message)s"))
    return handler


def start_logging(
    log_target: Path,
    *,
    verbose: bool,
    debug: bool,
    trace_loggers: Sequence[str] = (),
) -> list[logging.Handler]:
    """Make *log_target* the live log and route all records to it.

    ``trace_loggers`` names loggers (``root`` for all) that are lowered
    to DEBUG so third-party output ends up in the log file as well.
    """
    handlers: list[logging.Handler] = [
        config_logfile_handler(log_target, debug=debug),
        config_console_handler(verbose=verbose, trace=bool(trace_loggers)),
    ]
    logging.basicConfig(level=logging.WARNING, handlers=handlers, force=True)
    logging.getLogger(PROJECT_LOGGER).setLevel(logging.DEBUG)
    for name in trace_loggers:
        logger = logging.getLogger() if name == "root" else logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
    return handlers


def attach_syslog(address: str = SYSLOG_ADDRESS) -> bool:
    """Attach a syslog handler to :data:`SYSLOG_LOGGER` once.

    Returns ``False`` when the system log is not reachable.
    """
    syslog_logger = logging.getLogger(SYSLOG_LOGGER)
    if any(isinstance(h, SysLogHandler) for h in syslog_logger.handlers):
        return True
    handler = config_syslog_handler(address)
    if handler is None:
        return False
    syslog_logger.addHandler(handler)
    return True


def flush_logging() -> None:
    """Flush every handler on the root logger."""
    for handler in logging.getLogger().handlers:
        handler.flush()


def stop_logging() -> None:
    """Detach and close all handlers installed by :func:`start_logging`."""
    for logger in (logging.getLogger(), logging.getLogger(SYSLOG_LOGGER)):
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


def log_startup(
    logger: logging.Logger,
    *,
    app_version: str,
    workflow: str,
    log_target: Path,
    recovery_mode: bool,
    argv: Sequence[str],
) -> None:
    """Log the startup banner and debug diagnostics.

    Args:
        logger: Logger used to emit startup messages.
        app_version: Application version string to display.
        workflow: Resolved workflow name.
        log_target: Live log file of this run.
        recovery_mode: Whether we run inside the rescue system.
        argv: Raw command line, for the record.
    """
    logger.info("recoverctl %s", app_version)
    logger.info("Running recoverctl %s (PID %s)", workflow, os.getpid(), extra=PRINT)
    logger.info("Command line options: %s", " ".join(argv) or "<none>")
    logger.info("Using log file: %s", log_target, extra=PRINT)
    logger.info(
        "Running workflow %s on the %s system",
        workflow,
        "rescue" if recovery_mode else "normal",
        extra=PRINT,
    )

    # Deep diagnostics
    logger.debug("Python: %s", sys.version.split()[0])
    logger.debug("Platform: %s %s", platform.system(), platform.release())
    logger.debug("CWD: %s", Path.cwd())
