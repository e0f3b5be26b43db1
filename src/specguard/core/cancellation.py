"""Cooperative cancellation for traversal-heavy checks."""
from __future__ import annotations

import threading
from typing import Optional

from ..exceptions import OperationCancelled


class CancellationToken:
    """Thread-safe flag polled by traversals at each node boundary."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, operation: str = "operation") -> None:
        if self._event.is_set():
            raise OperationCancelled(operation)


def checkpoint(token: Optional[CancellationToken], operation: str) -> None:
    """Raise ``OperationCancelled`` if ``token`` has been cancelled."""
    if token is not None:
        token.raise_if_cancelled(operation)


__all__ = ["CancellationToken", "checkpoint"]
