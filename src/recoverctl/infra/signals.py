"""Infrastructure: turn termination signals into exceptions.

While :func:`termination_signals` is active, SIGTERM, SIGHUP and SIGQUIT
raise :class:`~recoverctl.exceptions.TerminationSignal` in the main
thread.  The exception unwinds every ``with`` block on the way out, so
scoped cleanup runs exactly as for any other fatal error.

Cleanup itself runs under :func:`termination_deferred`: a signal that
arrives meanwhile is held back and re-raised once the block is done.
"""

from __future__ import annotations

import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from types import FrameType

from recoverctl.exceptions import TerminationSignal

TERMINATION_SIGNALS: tuple[signal.Signals, ...] = (
    signal.SIGTERM,
    signal.SIGHUP,
    signal.SIGQUIT,
)


def _raise_termination(signum: int, _frame: FrameType | None) -> None:
    raise TerminationSignal(signum)


@contextmanager
def termination_signals() -> Iterator[None]:
    """Install the raising handlers; restore the previous ones on exit."""
    previous = {sig: signal.signal(sig, _raise_termination) for sig in TERMINATION_SIGNALS}
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


@contextmanager
def termination_deferred() -> Iterator[None]:
    """Hold back termination signals until the block has finished.

    The first signal received inside the block is raised again after the
    previous handlers are back, so it takes effect exactly as if it had
    arrived right after the block.  Outside the main thread signal
    handlers cannot be changed and the block runs unprotected.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    pending: list[int] = []

    def _record(signum: int, _frame: FrameType | None) -> None:
        pending.append(signum)

    previous = {sig: signal.signal(sig, _record) for sig in TERMINATION_SIGNALS}
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        if pending:
            signal.raise_signal(pending[0])
