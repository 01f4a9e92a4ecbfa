"""recoverctl — bootstrap and workflow dispatch for disaster recovery.

Parses the invocation, enforces single-instance semantics, resolves the
layered configuration and hands control to a registered workflow.
"""

from recoverctl.version import __version__

__all__: list[str] = ["__version__"]
