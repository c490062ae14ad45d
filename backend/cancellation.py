"""Cooperative cancellation for in-flight scrapes."""

from __future__ import annotations

import threading

from backend.errors import Cancelled


class CancellationToken:
    """Thread-safe flag checked at every network-call boundary.

    Cancelling never interrupts a request already on the wire; the next
    boundary check raises :class:`~backend.errors.Cancelled` instead.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise Cancelled()
