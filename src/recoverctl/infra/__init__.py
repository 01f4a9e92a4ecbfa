"""Infrastructure layer — external system integration.

This layer wraps all interaction with the operating system: the process
table, the filesystem, signals and OS detection.  Every raw OS or
third-party exception must be caught here and re-raised as a
:class:`~recoverctl.exceptions.RecoverctlError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from recoverctl.infra.config_loader import ConfigurationResolver, seed_settings
from recoverctl.infra.environment import RuntimeEnvironment, detect_environment, require_root
from recoverctl.infra.os_detector import PlatformOsDetector
from recoverctl.infra.process_table import PsutilProcessTable, require_process_table
from recoverctl.infra.signals import termination_signals
from recoverctl.infra.workspace import BuildWorkspace

__all__: list[str] = [
    "BuildWorkspace",
    "ConfigurationResolver",
    "PlatformOsDetector",
    "PsutilProcessTable",
    "RuntimeEnvironment",
    "detect_environment",
    "require_process_table",
    "require_root",
    "seed_settings",
    "termination_signals",
]
