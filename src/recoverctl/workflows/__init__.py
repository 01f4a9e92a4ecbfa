"""Workflow registry population.

Built-in workflows register themselves here.  Everything else comes
from installed distributions through entry points:

* ``recoverctl.workflows`` — ``name = "package.module:handler"``; the
  handler's ``description`` attribute (or first docstring line) is
  shown by ``help``.
* ``recoverctl.workflow_aliases`` — ``name = "target"``; a wrapper
  workflow that rewrites itself to ``target`` before dispatch.
"""

from __future__ import annotations

from importlib.metadata import entry_points

from recoverctl.core.dispatcher import WorkflowRegistry
from recoverctl.exceptions import ConfigurationError
from recoverctl.workflows.dump import dump_workflow

WORKFLOW_GROUP = "recoverctl.workflows"
ALIAS_GROUP = "recoverctl.workflow_aliases"


def _description(handler: object) -> str:
    text = getattr(handler, "description", None) or (handler.__doc__ or "")
    return text.strip().splitlines()[0] if text.strip() else ""


def register_builtin_workflows(registry: WorkflowRegistry) -> None:
    registry.register("dump", dump_workflow, description=_description(dump_workflow))


def load_entry_point_workflows(registry: WorkflowRegistry) -> None:
    """Register workflows and aliases published by installed packages.

    Raises
    ------
    ConfigurationError
        If a published workflow cannot be imported or clashes with an
        existing name.
    """
    for entry_point in entry_points(group=WORKFLOW_GROUP):
        try:
            handler = entry_point.load()
            registry.register(entry_point.name, handler, description=_description(handler))
        except (ImportError, AttributeError, ValueError) as exc:
            raise ConfigurationError(
                f"Cannot load workflow '{entry_point.name}' ({entry_point.value}): {exc}",
            ) from exc
    for entry_point in entry_points(group=ALIAS_GROUP):
        try:
            registry.register_alias(entry_point.name, entry_point.value.strip())
        except ValueError as exc:
            raise ConfigurationError(
                f"Cannot register workflow alias '{entry_point.name}': {exc}",
            ) from exc


def default_registry() -> WorkflowRegistry:
    """Return a registry with built-in and installed workflows."""
    registry = WorkflowRegistry()
    register_builtin_workflows(registry)
    load_entry_point_workflows(registry)
    return registry
