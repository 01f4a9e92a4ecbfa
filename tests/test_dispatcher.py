"""Tests for the workflow registry and dispatch (core/dispatcher.py),
plus registry population from entry points (workflows/__init__.py).
"""

from __future__ import annotations

from collections.abc import Sequence
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from recoverctl.core.dispatcher import (
    UNKNOWN_WORKFLOW_EXIT_CODE,
    WorkflowContext,
    WorkflowRegistry,
    dispatch,
)
from recoverctl.core.models import (
    Configuration,
    Invocation,
    InvocationContext,
    InvocationOptions,
)
from recoverctl.exceptions import ConfigurationError, StepDeclinedError
from recoverctl.workflows import (
    ALIAS_GROUP,
    WORKFLOW_GROUP,
    default_registry,
    load_entry_point_workflows,
)


def _context(
    workflow: str,
    args: tuple[str, ...] = (),
    **options: bool,
) -> InvocationContext:
    ctx = InvocationContext(
        Invocation(workflow=workflow, args=args, options=InvocationOptions(**options))
    )
    ctx.workflow = workflow
    ctx.configuration = Configuration({"OUTPUT": "ISO"})
    return ctx


class _Recorder:
    """Handler that records what it was called with."""

    def __init__(self, result: int | None = None) -> None:
        self.result = result
        self.calls: list[tuple[WorkflowContext, Sequence[str]]] = []

    def __call__(self, context: WorkflowContext, args: Sequence[str]) -> int | None:
        self.calls.append((context, args))
        return self.result


# ---------------------------------------------------------------------------
# WorkflowRegistry
# ---------------------------------------------------------------------------

class TestRegistry:
    def test_register_and_lookup(self) -> None:
        registry = WorkflowRegistry()
        handler = _Recorder()
        registry.register("mkrescue", handler, description="Create rescue media")
        assert "mkrescue" in registry
        assert registry.get("mkrescue").handler is handler  # type: ignore[union-attr]
        assert registry.get("nothing") is None

    def test_decorator(self) -> None:
        registry = WorkflowRegistry()

        @registry.workflow("validate", description="Validate")
        def validate(context: WorkflowContext, args: Sequence[str]) -> None:
            return None

        assert registry.get("validate").handler is validate  # type: ignore[union-attr]

    def test_duplicate_rejected(self) -> None:
        registry = WorkflowRegistry()
        registry.register("a", _Recorder())
        with pytest.raises(ValueError, match="Duplicate"):
            registry.register("a", _Recorder())
        with pytest.raises(ValueError, match="Duplicate"):
            registry.register_alias("a", "b")

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValueError):
            WorkflowRegistry().register("", _Recorder())

    def test_iteration_sorted(self) -> None:
        registry = WorkflowRegistry()
        registry.register("recover", _Recorder())
        registry.register("dump", _Recorder())
        assert [wf.name for wf in registry] == ["dump", "recover"]
        assert len(registry) == 2

    def test_alias_resolves_once(self) -> None:
        registry = WorkflowRegistry()
        registry.register_alias("mkbackuponly", "mkbackup")
        registry.register_alias("mkbackup", "other")
        assert registry.resolve("mkbackuponly") == "mkbackup"
        assert registry.resolve("dump") == "dump"


# ---------------------------------------------------------------------------
# dispatch
# ---------------------------------------------------------------------------

class TestDispatch:
    def test_handler_called_with_args(self) -> None:
        registry = WorkflowRegistry()
        handler = _Recorder()
        registry.register("mkrescue", handler)
        ctx = _context("mkrescue", args=("--x", "y"))

        dispatch(registry, ctx)

        (wf_context, args), = handler.calls
        assert args == ("--x", "y")
        assert wf_context.workflow == "mkrescue"
        assert wf_context.configuration["OUTPUT"] == "ISO"
        assert ctx.exit_code == 0

    def test_return_value_is_exit_code(self) -> None:
        registry = WorkflowRegistry()
        registry.register("checklayout", _Recorder(result=1))
        ctx = _context("checklayout")
        dispatch(registry, ctx)
        assert ctx.exit_code == 1

    def test_unknown_workflow_is_recorded(self) -> None:
        ctx = _context("nosuch")
        dispatch(WorkflowRegistry(), ctx)
        assert ctx.exit_code == UNKNOWN_WORKFLOW_EXIT_CODE

    def test_handler_exception_propagates(self) -> None:
        registry = WorkflowRegistry()
        registry.register("boom", MagicMock(side_effect=RuntimeError("x")))
        with pytest.raises(RuntimeError):
            dispatch(registry, _context("boom"))

    def test_requires_configuration(self) -> None:
        registry = WorkflowRegistry()
        registry.register("mkrescue", _Recorder())
        ctx = InvocationContext(Invocation(workflow="mkrescue"))
        ctx.workflow = "mkrescue"
        with pytest.raises(RuntimeError):
            dispatch(registry, ctx)

    def test_simulate_flag_reaches_handler(self) -> None:
        registry = WorkflowRegistry()
        handler = _Recorder()
        registry.register("mkrescue", handler)
        dispatch(registry, _context("mkrescue", simulate=True))
        assert handler.calls[0][0].simulate is True

    def test_step_by_step_declined(self) -> None:
        registry = WorkflowRegistry()
        handler = _Recorder()
        registry.register("mkrescue", handler)
        with pytest.raises(StepDeclinedError):
            dispatch(registry, _context("mkrescue", step_by_step=True),
                     confirm=lambda _msg: False)
        assert handler.calls == []

    def test_confirm_ignored_without_step_by_step(self) -> None:
        registry = WorkflowRegistry()
        handler = _Recorder()
        registry.register("mkrescue", handler)
        dispatch(registry, _context("mkrescue"), confirm=lambda _msg: False)
        assert len(handler.calls) == 1


# ---------------------------------------------------------------------------
# Entry-point loading
# ---------------------------------------------------------------------------

def _entry_point(name: str, value: str, loaded: object = None, error: Exception | None = None):
    ep = SimpleNamespace(name=name, value=value)
    ep.load = MagicMock(return_value=loaded, side_effect=error)
    return ep


class TestEntryPoints:
    def test_builtin_dump_registered(self) -> None:
        with patch("recoverctl.workflows.entry_points", return_value=[]):
            registry = default_registry()
        assert "dump" in registry
        assert registry.get("dump").description  # type: ignore[union-attr]

    def test_plugins_and_aliases(self) -> None:
        def mkrescue(context: WorkflowContext, args: Sequence[str]) -> None:
            """Create rescue media.

            Longer text.
            """

        groups = {
            WORKFLOW_GROUP: [_entry_point("mkrescue", "pkg:mkrescue", loaded=mkrescue)],
            ALIAS_GROUP: [_entry_point("mkbackuponly", " mkrescue ")],
        }
        registry = WorkflowRegistry()
        with patch("recoverctl.workflows.entry_points",
                   side_effect=lambda group: groups[group]):
            load_entry_point_workflows(registry)

        assert registry.get("mkrescue").description == "Create rescue media."  # type: ignore[union-attr]
        assert registry.resolve("mkbackuponly") == "mkrescue"

    def test_broken_plugin(self) -> None:
        groups = {
            WORKFLOW_GROUP: [_entry_point("bad", "pkg:bad", error=ImportError("nope"))],
            ALIAS_GROUP: [],
        }
        with patch("recoverctl.workflows.entry_points",
                   side_effect=lambda group: groups[group]):
            with pytest.raises(ConfigurationError, match="bad"):
                load_entry_point_workflows(WorkflowRegistry())
