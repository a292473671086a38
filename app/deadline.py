"""Explicit wall-clock budgets passed down through a lookup.

The orchestrator creates one Deadline per request and hands it to each stage.
Each upstream call asks the deadline for its own timeout, capped by its
per-call limit, so nothing started inside a lookup can outlive it.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable


class DeadlineExceeded(Exception):
    """Raised when work is started, or still running, after its deadline passed."""


@dataclass(frozen=True)
class Deadline:
    """A point on the monotonic clock after which work must not start."""
    expires_at: float
    clock: Callable[[], float] = field(default=time.monotonic, repr=False, compare=False)

    @classmethod
    def after(cls, seconds: float, *, clock: Callable[[], float] = time.monotonic) -> "Deadline":
        return cls(expires_at=clock() + seconds, clock=clock)

    def remaining(self) -> float:
        """Seconds left, never negative."""
        return max(0.0, self.expires_at - self.clock())

    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def timeout(self, cap: float) -> float:
        """Timeout for one call: the smaller of `cap` and what is left.

        Raises DeadlineExceeded when nothing is left.
        """
        left = self.remaining()
        if left <= 0.0:
            raise DeadlineExceeded("lookup deadline exceeded")
        return min(cap, left)

    def child(self, seconds: float) -> "Deadline":
        """A nested deadline that expires at `seconds` from now or with this one, whichever is first."""
        return Deadline(expires_at=min(self.expires_at, self.clock() + seconds), clock=self.clock)
