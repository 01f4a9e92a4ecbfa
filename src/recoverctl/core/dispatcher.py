"""Workflow registry and dispatch.

Workflows are registered explicitly under their name; there is no
lookup by constructed identifier.  A name that is not registered is a
recorded failure, not an abort: the dispatcher logs it, sets the exit
code and returns so that finalization still runs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from recoverctl.core.models import (
    Configuration,
    InvocationContext,
    InvocationOptions,
    WorkspacePaths,
)
from recoverctl.core.protocols import WorkflowHandler
from recoverctl.exceptions import StepDeclinedError
from recoverctl.logging import PRINT

logger = logging.getLogger(__name__)

UNKNOWN_WORKFLOW_EXIT_CODE = 1


def _always_confirm(_message: str) -> bool:
    return True


# ---------------------------------------------------------------------------
# Handler-facing view of the run
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class WorkflowContext:
    """What a workflow handler gets to see of the invocation."""

    workflow: str
    configuration: Configuration
    options: InvocationOptions
    workspace: WorkspacePaths | None = None
    recovery_mode: bool = False
    confirm_step: Callable[[str], bool] = field(default=_always_confirm)
    """Ask before a step in step-by-step mode; returns ``True`` otherwise."""

    @property
    def simulate(self) -> bool:
        return self.options.simulate


@dataclass(frozen=True, slots=True)
class Workflow:
    """A registered workflow."""

    name: str
    handler: WorkflowHandler
    description: str = ""


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class WorkflowRegistry:
    """Maps workflow names to handlers.

    Aliases model wrapper workflows: a wrapper name is rewritten to the
    concrete workflow exactly once, before the name is frozen into the
    invocation context.
    """

    def __init__(self) -> None:
        self._workflows: dict[str, Workflow] = {}
        self._aliases: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: WorkflowHandler,
        *,
        description: str = "",
    ) -> Workflow:
        """Register *handler* under *name*.

        Raises
        ------
        ValueError
            If *name* is empty or already taken.
        """
        self._check_free(name)
        workflow = Workflow(name=name, handler=handler, description=description)
        self._workflows[name] = workflow
        return workflow

    def workflow(
        self,
        name: str,
        *,
        description: str = "",
    ) -> Callable[[WorkflowHandler], WorkflowHandler]:
        """Decorator form of :meth:`register`."""

        def decorator(handler: WorkflowHandler) -> WorkflowHandler:
            self.register(name, handler, description=description)
            return handler

        return decorator

    def register_alias(self, name: str, target: str) -> None:
        """Make *name* a wrapper that rewrites itself to *target*."""
        self._check_free(name)
        self._aliases[name] = target

    def resolve(self, name: str) -> str:
        """Return the concrete workflow name for *name* (one rewrite)."""
        return self._aliases.get(name, name)

    def get(self, name: str) -> Workflow | None:
        return self._workflows.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._workflows

    def __iter__(self) -> Iterator[Workflow]:
        return iter(sorted(self._workflows.values(), key=lambda wf: wf.name))

    def __len__(self) -> int:
        return len(self._workflows)

    def _check_free(self, name: str) -> None:
        if not name:
            raise ValueError("Workflow name must not be empty.")
        if name in self._workflows or name in self._aliases:
            raise ValueError(f"Duplicate workflow name: {name}")


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def dispatch(
    registry: WorkflowRegistry,
    context: InvocationContext,
    *,
    confirm: Callable[[str], bool] = _always_confirm,
) -> None:
    """Invoke the handler registered for ``context.workflow``.

    The handler's return value becomes ``context.exit_code``.  Exceptions
    raised by the handler propagate unchanged; there is no timeout and
    no retry.

    Raises
    ------
    StepDeclinedError
        If step-by-step mode is on and the user declines to start.
    """
    name = context.workflow
    workflow = registry.get(name)
    if workflow is None:
        logger.error("The specified workflow '%s' does not exist.", name)
        context.exit_code = UNKNOWN_WORKFLOW_EXIT_CODE
        return

    if context.configuration is None:
        raise RuntimeError("Configuration must be resolved before dispatch.")

    options = context.options
    if options.simulate:
        logger.info(
            "Simulation mode activated, workflow '%s' may skip changes", name,
            extra=PRINT,
        )
    step_confirm = confirm if options.step_by_step else _always_confirm
    if not step_confirm(f"Run workflow '{name}'?"):
        raise StepDeclinedError(f"Workflow '{name}' declined in step-by-step mode.")

    workflow_context = WorkflowContext(
        workflow=name,
        configuration=context.configuration,
        options=options,
        workspace=context.workspace,
        recovery_mode=context.recovery_mode,
        confirm_step=step_confirm,
    )

    logger.info("Running '%s' workflow", name)
    result = workflow.handler(workflow_context, context.args)
    context.exit_code = 0 if result is None else int(result)
    logger.info("Finished running '%s' workflow", name)
