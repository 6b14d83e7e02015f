"""Cancellation on interrupt (SIGINT)."""

from __future__ import annotations

import signal
import threading
from contextlib import contextmanager
from typing import Any, Iterator


def _trace(logger: Any, msg: str) -> None:
    if logger is not None:
        logger.trace(msg)


def _warn(logger: Any, msg: str) -> None:
    if logger is not None:
        logger.warn(msg)


@contextmanager
def with_interrupt(logger: Any = None) -> Iterator[threading.Event]:
    """Yield an event that is set when SIGINT arrives or the block ends.

    While the block runs, SIGINT sets the event instead of raising
    KeyboardInterrupt. The previous handler is restored on exit.
    """
    _trace(logger, "starting interrupt listener for context cancellation")
    cancelled = threading.Event()

    def _on_interrupt(signum: int, frame: Any) -> None:
        if cancelled.is_set():
            return
        _warn(logger, "interrupt received, cancelling context")
        cancelled.set()

    previous = signal.signal(signal.SIGINT, _on_interrupt)
    _trace(logger, "interrupt listener started")
    try:
        yield cancelled
    finally:
        _trace(logger, "stopping signal listeners and cancelling the context")
        signal.signal(signal.SIGINT, previous if previous is not None else signal.SIG_DFL)
        if not cancelled.is_set():
            _warn(logger, "context cancelled, stopping interrupt listener loop")
        cancelled.set()