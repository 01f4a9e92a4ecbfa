"""Tests for concurrency classification and the single-instance guard.

Coverage:
* Lockless, simultaneous-named and exclusive classification.
* Log target naming for each class.
* ``ensure_single_instance`` ignores the own PID.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from recoverctl.core.concurrency import (
    LOCKLESS_WORKFLOWS,
    SIMULTANEOUS_RUNNABLE_WORKFLOWS,
    base_log_path,
    classify,
    per_process_log_path,
)
from recoverctl.core.instance_guard import ensure_single_instance
from recoverctl.core.models import ConcurrencyClass
from recoverctl.exceptions import AlreadyRunningError

from conftest import FakeProcessTable

BASE = Path("/var/log/recoverctl/recoverctl-host.log")


# ---------------------------------------------------------------------------
# Log paths
# ---------------------------------------------------------------------------

class TestLogPaths:
    def test_base_log_path(self) -> None:
        assert base_log_path(Path("/var/log/recoverctl"), "host") == BASE

    def test_pid_goes_before_suffix(self) -> None:
        assert per_process_log_path(BASE, 4711) == Path(
            "/var/log/recoverctl/recoverctl-host.4711.log"
        )

    def test_pid_appended_without_suffix(self) -> None:
        assert per_process_log_path(Path("/tmp/runlog"), 12) == Path("/tmp/runlog.12")


# ---------------------------------------------------------------------------
# classify
# ---------------------------------------------------------------------------

class TestClassify:
    def test_exclusive_by_default(self) -> None:
        decision = classify("mkrescue", BASE)
        assert decision.concurrency_class is ConcurrencyClass.EXCLUSIVE
        assert decision.log_target == BASE
        assert decision.needs_guard

    def test_lockless_shares_one_log(self) -> None:
        decision = classify("checklayout", BASE)
        assert decision.concurrency_class is ConcurrencyClass.LOCKLESS
        assert decision.log_target == Path(str(BASE) + ".lockless")
        assert not decision.needs_guard

    def test_simultaneous_uses_pid_log(self) -> None:
        decision = classify("validate", BASE, pid=99)
        assert decision.concurrency_class is ConcurrencyClass.SIMULTANEOUS_NAMED
        assert decision.log_target == BASE.with_name("recoverctl-host.99.log")
        assert not decision.needs_guard

    def test_both_lists_means_simultaneous(self) -> None:
        assert "dump" in LOCKLESS_WORKFLOWS
        assert "dump" in SIMULTANEOUS_RUNNABLE_WORKFLOWS
        decision = classify("dump", BASE, pid=5)
        assert decision.concurrency_class is ConcurrencyClass.SIMULTANEOUS_NAMED
        assert decision.log_target.name == "recoverctl-host.5.log"

    def test_custom_lists(self) -> None:
        decision = classify("mine", BASE, lockless={"mine"}, simultaneous=())
        assert decision.concurrency_class is ConcurrencyClass.LOCKLESS

    def test_default_pid_is_own_process(self) -> None:
        decision = classify("format", BASE)
        assert str(os.getpid()) in decision.log_target.name


# ---------------------------------------------------------------------------
# ensure_single_instance
# ---------------------------------------------------------------------------

class TestSingleInstance:
    PROGRAM = Path("/usr/sbin/recoverctl")

    def test_no_other_instance(self) -> None:
        ensure_single_instance(FakeProcessTable([100]), self.PROGRAM, own_pid=100)

    def test_empty_table(self) -> None:
        ensure_single_instance(FakeProcessTable(), self.PROGRAM, own_pid=100)

    def test_other_instance_refused(self) -> None:
        table = FakeProcessTable([100, 250, 200])
        with pytest.raises(AlreadyRunningError) as exc_info:
            ensure_single_instance(table, self.PROGRAM, own_pid=100)
        message = str(exc_info.value)
        assert "200, 250" in message
        assert "recoverctl is already running" in message
        assert table.queried == [self.PROGRAM]
