"""
Cooperative wall-clock deadline shared by every iterative search procedure.
"""

import time
from typing import Optional


class Deadline:
    """Wall-clock budget checked at outer-loop boundaries."""

    def __init__(self, max_seconds: Optional[float] = None):
        """
        Initialize deadline.

        Args:
            max_seconds: Budget in seconds from now. None never expires.
        """
        self.max_seconds = max_seconds
        self.start = time.perf_counter()

    @classmethod
    def never(cls) -> 'Deadline':
        return cls(None)

    def elapsed(self) -> float:
        """Seconds since the deadline was created."""
        return time.perf_counter() - self.start

    def expired(self) -> bool:
        if self.max_seconds is None:
            return False
        return self.elapsed() >= self.max_seconds

    def __repr__(self):
        return f"Deadline(max_seconds={self.max_seconds}, elapsed={self.elapsed():.3f})"
