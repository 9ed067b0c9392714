"""Cooperative cancellation.

A CancellationToken is passed explicitly to every operation that can run
for a long time. Loops poll it at iteration boundaries and raise
OperationInterrupted; nothing is aborted mid-syscall.
"""

import logging
import signal
from collections.abc import Iterator
from contextlib import contextmanager
from types import FrameType

from saferm.quarantine.errors import OperationInterrupted

logger = logging.getLogger(__name__)


class CancellationToken:
    """Shared cancellation flag.

    Setting the flag is the only operation allowed from a signal handler.
    """

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        """Request cancellation."""
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        """Raise OperationInterrupted if cancellation has been requested."""
        if self._cancelled:
            raise OperationInterrupted("Operation interrupted")


@contextmanager
def handle_interrupts(
    token: CancellationToken,
    signals: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM),
) -> Iterator[CancellationToken]:
    """Route termination signals into a cancellation token.

    Previous handlers are restored on exit.

    Args:
        token: Token to cancel when a signal arrives.
        signals: Signals to intercept.

    Yields:
        The same token, for convenience.
    """

    def _handler(signum: int, frame: FrameType | None) -> None:
        token.cancel()

    previous = {sig: signal.signal(sig, _handler) for sig in signals}
    try:
        yield token
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        if token.cancelled:
            logger.debug("Cancellation was requested by signal")
