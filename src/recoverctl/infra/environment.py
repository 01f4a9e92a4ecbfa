"""Infrastructure: runtime environment and privilege checks.

Directories come from environment variables with fixed defaults; the
command line may override the configuration directory only.

Rules
-----
* No ``print()`` — callers handle user-facing output.
* No permanent changes to the environment.
"""

from __future__ import annotations

import os
import socket
import sys
from dataclasses import dataclass
from importlib.resources import files
from pathlib import Path

from recoverctl.exceptions import PrivilegeError

RECOVERY_MODE_MARKER = Path("/etc/recoverctl-release")
"""Present only inside a booted rescue system."""

DEFAULT_CONFIG_DIR = Path("/etc/recoverctl")
DEFAULT_VAR_DIR = Path("/var/lib/recoverctl")
DEFAULT_LOG_DIR = Path("/var/log/recoverctl")

ENV_CONFIG_DIR = "RECOVERCTL_CONFIG_DIR"
ENV_VAR_DIR = "RECOVERCTL_VAR_DIR"
ENV_LOG_DIR = "RECOVERCTL_LOG_DIR"
ENV_SHARE_DIR = "RECOVERCTL_SHARE_DIR"


@dataclass(frozen=True, slots=True)
class RuntimeEnvironment:
    """Filesystem locations and host facts fixed at startup."""

    config_dir: Path
    var_dir: Path
    log_dir: Path
    share_dir: Path
    hostname: str
    recovery_mode: bool
    program: Path
    """Resolved path of the running program, for the instance guard."""


def packaged_share_dir() -> Path:
    """Return the ``share`` directory shipped inside the package."""
    return Path(str(files("recoverctl").joinpath("share")))


def _env_path(name: str, default: Path) -> Path:
    value = os.environ.get(name, "").strip()
    return Path(value) if value else default


def detect_environment(config_dir: Path | None = None) -> RuntimeEnvironment:
    """Collect directories, hostname, recovery mode and program path.

    Parameters
    ----------
    config_dir:
        Command-line override for the configuration directory.
    """
    if config_dir is None:
        config_dir = _env_path(ENV_CONFIG_DIR, DEFAULT_CONFIG_DIR)
    return RuntimeEnvironment(
        config_dir=config_dir.absolute(),
        var_dir=_env_path(ENV_VAR_DIR, DEFAULT_VAR_DIR),
        log_dir=_env_path(ENV_LOG_DIR, DEFAULT_LOG_DIR),
        share_dir=_env_path(ENV_SHARE_DIR, packaged_share_dir()),
        hostname=socket.gethostname().split(".")[0] or "localhost",
        recovery_mode=RECOVERY_MODE_MARKER.exists(),
        program=Path(sys.argv[0]).resolve(),
    )


def require_root() -> None:
    """Raise :class:`PrivilegeError` unless running with root privileges."""
    if os.geteuid() != 0:
        raise PrivilegeError(
            "recoverctl needs ROOT privileges!",
            hint="Run it again with sudo or as root.",
        )
