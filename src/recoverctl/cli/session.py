"""One recoverctl run, from concurrency classification to exit status.

Stages run strictly in order and share a single
:class:`~recoverctl.core.models.InvocationContext`:

1. privilege and prerequisite checks, workflow alias resolution
2. concurrency classification and live log target
3. single-instance guard (exclusive workflows only)
4. logging goes live, startup banner
5. configuration layering
6. build workspace (scoped) and workflow dispatch
7. finalization: log copy, system-log summary, exit code

Errors in stages 1–3 (and a log file that cannot be created) propagate
to the CLI error boundary and are only shown on stderr.  From stage 4
on, every error is logged (unexpected ones with their traceback) and
finalization always runs.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable
from pathlib import Path

from recoverctl.cli import exit_codes
from recoverctl.core.concurrency import base_log_path, classify
from recoverctl.core.dispatcher import WorkflowRegistry, dispatch
from recoverctl.core.finalizer import completion_message, needs_log_copy
from recoverctl.core.instance_guard import ensure_single_instance
from recoverctl.core.models import Configuration, Invocation, InvocationContext
from recoverctl.core.protocols import OsDetector, ProcessTable
from recoverctl.exceptions import RecoverctlError
from recoverctl.infra.config_loader import ConfigurationResolver, seed_settings
from recoverctl.infra.environment import RuntimeEnvironment, detect_environment, require_root
from recoverctl.infra.os_detector import PlatformOsDetector
from recoverctl.infra.process_table import require_process_table
from recoverctl.infra.signals import termination_signals
from recoverctl.infra.workspace import BuildWorkspace
from recoverctl.logging import (
    SYSLOG_ADDRESS,
    SYSLOG_LOGGER,
    attach_syslog,
    flush_logging,
    log_startup,
    start_logging,
    stop_logging,
)
from recoverctl.version import __version__

logger = logging.getLogger(__name__)

PROGRAM = "recoverctl"


class Session:
    """Drive a single non-help invocation.

    Parameters
    ----------
    invocation:
        Parsed command line.
    registry:
        Registered workflows.
    environment, process_table, os_detector:
        Collaborators; ``None`` selects the real system implementation.
    confirm:
        Step-by-step confirmation callback.
    syslog_address:
        Unix socket of the system logger.
    """

    def __init__(
        self,
        invocation: Invocation,
        registry: WorkflowRegistry,
        *,
        environment: RuntimeEnvironment | None = None,
        process_table: ProcessTable | None = None,
        os_detector: OsDetector | None = None,
        confirm: Callable[[str], bool] | None = None,
        syslog_address: str = SYSLOG_ADDRESS,
    ) -> None:
        self.context = InvocationContext(invocation)
        self._registry = registry
        self._environment = environment
        self._process_table = process_table
        self._os_detector: OsDetector = os_detector or PlatformOsDetector()
        self._confirm = confirm
        self._syslog_address = syslog_address

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self) -> int:
        """Run all stages and return the process exit code."""
        environment = self._prepare()
        self._start_logging(environment)
        ctx = self.context
        try:
            self._run_workflow(environment)
        except RecoverctlError as exc:
            logger.error("%s", exc)
            if exc.hint:
                logger.error("Hint: %s", exc.hint)
            ctx.exit_code = exc.exit_code
        except KeyboardInterrupt:
            logger.error("Aborted by user")
            ctx.exit_code = exit_codes.KEYBOARD_INTERRUPT
        except Exception:
            logger.exception("Unexpected error while running workflow %s", ctx.workflow)
            ctx.exit_code = exit_codes.UNEXPECTED_ERROR
        finally:
            code = self._finalize()
        return code

    # ------------------------------------------------------------------
    # Stages 1-3: before logging is live
    # ------------------------------------------------------------------

    def _prepare(self) -> RuntimeEnvironment:
        ctx = self.context
        options = ctx.options
        environment = self._environment or detect_environment(options.config_dir)
        ctx.config_directory = environment.config_dir
        ctx.var_directory = environment.var_dir
        ctx.log_directory = environment.log_dir
        ctx.share_directory = environment.share_dir
        ctx.recovery_mode = environment.recovery_mode

        # A wrapper workflow rewrites itself here, before the name is frozen.
        ctx.workflow = self._registry.resolve(ctx.invocation.workflow)

        require_root()
        process_table = self._process_table or require_process_table()

        ctx.base_log_path = base_log_path(environment.log_dir, environment.hostname)
        ctx.concurrency = classify(ctx.workflow, ctx.base_log_path)
        if ctx.concurrency.needs_guard:
            ensure_single_instance(process_table, environment.program, os.getpid())
        return environment

    def _start_logging(self, environment: RuntimeEnvironment) -> None:
        ctx = self.context
        assert ctx.concurrency is not None
        ctx.log_target = ctx.concurrency.log_target
        options = ctx.options
        start_logging(
            ctx.log_target,
            verbose=options.verbose,
            debug=options.debug,
            trace_loggers=options.trace_loggers,
        )
        log_startup(
            logger,
            app_version=__version__,
            workflow=ctx.workflow,
            log_target=ctx.log_target,
            recovery_mode=environment.recovery_mode,
            argv=ctx.invocation.argv,
        )
        logger.debug(
            "Concurrency class %s for workflow %s",
            ctx.concurrency.concurrency_class.value,
            ctx.workflow,
        )

    # ------------------------------------------------------------------
    # Stages 5-6: configuration, workspace, dispatch
    # ------------------------------------------------------------------

    def _run_workflow(self, environment: RuntimeEnvironment) -> None:
        ctx = self.context
        with termination_signals():
            configuration = self._resolve_configuration(environment)
            ctx.configuration = configuration
            ctx.config_directory = Path(configuration.get_str("CONFIG_DIR"))

            tmp_parent = configuration.get_str("TMPDIR")
            workspace = BuildWorkspace(
                keep=configuration.is_true("KEEP_BUILD_DIR"),
                parent=Path(tmp_parent) if tmp_parent else None,
            )
            with workspace as paths:
                ctx.workspace = paths
                # The temporary directory is not necessarily below an
                # already excluded path, so exclude it explicitly.
                ctx.configuration = configuration.derive(
                    BUILD_DIR=str(paths.build_dir),
                    ROOTFS_DIR=str(paths.rootfs_dir),
                    TMP_DIR=str(paths.tmp_dir),
                    BACKUP_PROG_EXCLUDE=configuration.get_list("BACKUP_PROG_EXCLUDE")
                    + (str(paths.build_dir),),
                )
                dispatch(self._registry, ctx, confirm=self._step_confirm())
                ctx.exit_failure = False

    def _resolve_configuration(self, environment: RuntimeEnvironment) -> Configuration:
        ctx = self.context
        assert ctx.base_log_path is not None
        seed = seed_settings(
            environment, ctx.invocation, ctx.base_log_path, workflow=ctx.workflow,
        )
        resolver = ConfigurationResolver(self._os_detector)
        configuration = resolver.resolve(
            seed,
            ctx.workflow,
            ctx.options.append_config,
        )
        logger.debug(
            "Configuration resolved from %d files: %s",
            len(configuration.sources),
            ", ".join(str(path) for path in configuration.sources),
        )
        return configuration

    def _step_confirm(self) -> Callable[[str], bool]:
        if self._confirm is not None:
            return self._confirm
        from recoverctl.cli.step_prompt import confirm_step

        return confirm_step

    # ------------------------------------------------------------------
    # Stage 7: finalization
    # ------------------------------------------------------------------

    def _final_log_path(self) -> Path:
        ctx = self.context
        configured = ctx.configuration.get_str("LOGFILE") if ctx.configuration else ""
        if configured:
            return Path(configured)
        assert ctx.base_log_path is not None
        return ctx.base_log_path

    def _finalize(self) -> int:
        ctx = self.context
        code = ctx.final_exit_code()
        logger.info(
            "Exiting %s %s (PID %s) with exit code %s",
            PROGRAM, ctx.workflow, os.getpid(), code,
        )

        summary = completion_message(PROGRAM, ctx.workflow, code)
        if attach_syslog(self._syslog_address):
            logging.getLogger(SYSLOG_LOGGER).info(summary)
        else:
            logger.warning("System log not available, completion not recorded: %s", summary)

        flush_logging()
        final_log = self._final_log_path()
        if needs_log_copy(ctx.log_target, final_log):
            try:
                final_log.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(ctx.log_target, final_log)
            except OSError as exc:
                logger.error("Could not copy log file to %s: %s", final_log, exc)
        stop_logging()
        return code
