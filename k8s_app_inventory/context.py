"""Cancellation and deadline handling for one aggregation run."""

from __future__ import annotations

import threading
import time

from k8s_app_inventory.errors import Cancelled


class RunContext:
    """Cancellation flag plus an optional deadline.

    Blocking calls (``kubectl``, ``git clone``) poll the context and abort as
    soon as it is cancelled.  A child context is cancelled together with its
    parent, but cancelling the child leaves the parent untouched.
    """

    def __init__(self, timeout: float | None = None, parent: RunContext | None = None) -> None:
        self._event = threading.Event()
        self._parent = parent
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return True
        return self._parent is not None and self._parent.cancelled

    def remaining(self) -> float | None:
        """Seconds left before the nearest deadline, or None if there is none."""
        own = None
        if self._deadline is not None:
            own = max(0.0, self._deadline - time.monotonic())
        inherited = self._parent.remaining() if self._parent is not None else None
        if own is None:
            return inherited
        if inherited is None:
            return own
        return min(own, inherited)

    def check(self, what: str = "run", namespace: str = "") -> None:
        if self.cancelled:
            raise Cancelled(f"{what} cancelled", namespace=namespace)

    def wait(self, interval: float) -> bool:
        """Sleep up to *interval* seconds; return True if cancelled meanwhile."""
        remaining = self.remaining()
        if remaining is not None:
            interval = min(interval, remaining)
        self._event.wait(interval)
        return self.cancelled

    def child(self) -> RunContext:
        return RunContext(parent=self)
