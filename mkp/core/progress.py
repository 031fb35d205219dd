"""
Progress events emitted by the search procedures.
Logging and export layers render them; the search core only records them.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


@dataclass
class ProgressEvent:
    """One progress sample of an iterative procedure."""
    source: str
    iteration: int
    best_value: float
    feasible: bool = True
    elapsed: float = 0.0
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        row = {
            'source': self.source,
            'iteration': int(self.iteration),
            'best_value': float(self.best_value),
            'feasible': bool(self.feasible),
            'elapsed': float(self.elapsed),
        }
        row.update(self.details)
        return row


ProgressCallback = Callable[[ProgressEvent], None]


class ProgressRecorder:
    """Keeps the history of an algorithm and forwards events to a callback."""

    def __init__(self, source: str, callback: Optional[ProgressCallback] = None):
        self.source = source
        self.callback = callback
        self.events: List[ProgressEvent] = []

    def emit(self, iteration: int, best_value: float, feasible: bool = True,
             elapsed: float = 0.0, **details) -> ProgressEvent:
        event = ProgressEvent(
            source=self.source,
            iteration=iteration,
            best_value=best_value,
            feasible=feasible,
            elapsed=elapsed,
            details=details
        )
        self.events.append(event)
        if self.callback is not None:
            self.callback(event)
        return event
