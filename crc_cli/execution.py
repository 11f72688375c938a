from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field

from crc_cli.errors import StartCancelledError


@dataclass
class ExecutionContext:
    """
    Cancellation handle shared by the blocking calls of one invocation.

    ``cancel()`` may be called from a signal handler or another thread.
    A deadline, when set, is a ``time.monotonic()`` timestamp.
    """

    deadline: float | None = None
    _cancel_event: threading.Event = field(default_factory=threading.Event, repr=False)

    @classmethod
    def with_timeout(cls, timeout_seconds: float | None) -> ExecutionContext:
        if timeout_seconds is None or timeout_seconds <= 0:
            return cls()
        return cls(deadline=time.monotonic() + timeout_seconds)

    def cancel(self) -> None:
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        if self._cancel_event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self, default_seconds: float) -> float:
        if self.deadline is None:
            return default_seconds
        return max(0.0, min(default_seconds, self.deadline - time.monotonic()))

    def raise_if_cancelled(self, operation: str) -> None:
        if not self.cancelled:
            return
        if self._cancel_event.is_set():
            raise StartCancelledError(f"{operation} was cancelled")
        raise StartCancelledError(f"{operation} did not finish before the start timeout")
