"""Core layer — bootstrap decisions as pure logic.

Rules
-----
* No ``print()`` calls; diagnostics go through :mod:`logging`.
* No file contents read or written, no process enumeration; adapters
  are injected via protocols.
* No imports from ``cli`` or ``infra``.
"""

from recoverctl.core.concurrency import classify
from recoverctl.core.config_layers import ConfigLayer, LayerKind, apply_layer
from recoverctl.core.dispatcher import Workflow, WorkflowContext, WorkflowRegistry, dispatch
from recoverctl.core.finalizer import ExitOutcome, classify_exit
from recoverctl.core.instance_guard import ensure_single_instance
from recoverctl.core.models import (
    ConcurrencyClass,
    ConcurrencyDecision,
    Configuration,
    Invocation,
    InvocationContext,
    InvocationOptions,
    WorkspacePaths,
)
from recoverctl.core.os_identity import OsIdentity
from recoverctl.core.protocols import OsDetector, ProcessTable, WorkflowHandler

__all__: list[str] = [
    "ConcurrencyClass",
    "ConcurrencyDecision",
    "ConfigLayer",
    "Configuration",
    "ExitOutcome",
    "Invocation",
    "InvocationContext",
    "InvocationOptions",
    "LayerKind",
    "OsDetector",
    "OsIdentity",
    "ProcessTable",
    "Workflow",
    "WorkflowContext",
    "WorkflowHandler",
    "WorkflowRegistry",
    "WorkspacePaths",
    "apply_layer",
    "classify",
    "classify_exit",
    "dispatch",
    "ensure_single_instance",
]
