"""Cancellation and deadline context threaded through requests."""
from __future__ import annotations

import threading
import time
from typing import Optional


class Ctx:
    """
    Cancellation token with an optional deadline.

    Derived contexts share the parent's cancellation and keep the earlier
    deadline. The transport honors the deadline as a per-request timeout.
    """

    def __init__(
        self,
        deadline: Optional[float] = None,
        cancelled: Optional[threading.Event] = None,
    ) -> None:
        self.deadline = deadline  # time.monotonic() value
        self._cancelled = cancelled if cancelled is not None else threading.Event()

    @classmethod
    def background(cls) -> "Ctx":
        """A context that is never cancelled and has no deadline."""
        return cls()

    def with_timeout(self, seconds: float) -> "Ctx":
        return self.with_deadline(time.monotonic() + seconds)

    def with_deadline(self, deadline: float) -> "Ctx":
        if self.deadline is not None:
            deadline = min(deadline, self.deadline)
        return Ctx(deadline=deadline, cancelled=self._cancelled)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, ``None`` without one."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def err(self) -> Optional[str]:
        """Why the context is done, or ``None`` if it's still usable."""
        if self.cancelled:
            return "context cancelled"
        if self.deadline is not None and self.remaining() == 0.0:
            return "context deadline exceeded"
        return None

    def __repr__(self) -> str:
        return f"Ctx(deadline={self.deadline!r}, cancelled={self.cancelled!r})"
