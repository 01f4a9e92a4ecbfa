"""Shared pytest fixtures and configuration for the recoverctl test suite.

Guidelines
----------
* No root privileges, no system log, no writes outside ``tmp_path``.
* The process table and OS detection are faked at the infra boundary.
* Core tests must be pure — no side effects.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from recoverctl.core.os_identity import OsIdentity
from recoverctl.infra.environment import RuntimeEnvironment, packaged_share_dir
from recoverctl.logging import stop_logging


class FakeProcessTable:
    """ProcessTable returning a fixed PID list for any program."""

    def __init__(self, pids: list[int] | None = None) -> None:
        self.pids = list(pids or [])
        self.queried: list[Path] = []

    def pids_running(self, program: Path) -> list[int]:
        self.queried.append(program)
        return list(self.pids)


class FakeOsDetector:
    """OsDetector returning a fixed identity."""

    def __init__(self, identity: OsIdentity | None = None) -> None:
        self.identity = identity or OsIdentity(
            arch="Linux-i386",
            machine="x86_64",
            os="GNU/Linux",
            master_vendor="debian",
            master_version="12",
            vendor="debian",
            version="12",
        )

    def detect(self) -> OsIdentity:
        return self.identity


@pytest.fixture
def runtime_env(tmp_path: Path) -> RuntimeEnvironment:
    """Runtime environment with every directory under *tmp_path*."""
    config_dir = tmp_path / "etc"
    config_dir.mkdir()
    program = tmp_path / "bin" / "recoverctl"
    program.parent.mkdir()
    program.write_text("#!/bin/sh\n", encoding="utf-8")
    return RuntimeEnvironment(
        config_dir=config_dir,
        var_dir=tmp_path / "var",
        log_dir=tmp_path / "log",
        share_dir=packaged_share_dir(),
        hostname="testhost",
        recovery_mode=False,
        program=program,
    )


@pytest.fixture
def reset_logging() -> Iterator[None]:
    """Detach handlers left behind by a session that did not finish."""
    yield
    stop_logging()
