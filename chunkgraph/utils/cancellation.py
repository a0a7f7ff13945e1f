"""
Cooperative Cancellation

A small token that long-running passes poll between units of work
(entity pairs, clusters, chunks). Cancelling never interrupts a step
midway; the next check raises ``OperationCancelledError``.
"""

from __future__ import annotations

import threading

from chunkgraph.exceptions import OperationCancelledError


class CancellationToken:
    """
    Thread-safe cancellation flag.

    Usage:
        token = CancellationToken()
        # hand to a worker, later from another thread:
        token.cancel()
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """True once cancel() has been called."""
        return self._event.is_set()

    def raise_if_cancelled(self, operation: str = "") -> None:
        """Raise OperationCancelledError if cancellation was requested."""
        if self._event.is_set():
            raise OperationCancelledError(operation)


def check_cancelled(token: CancellationToken | None, operation: str = "") -> None:
    """Raise if ``token`` is set; a missing token never cancels."""
    if token is not None:
        token.raise_if_cancelled(operation)
