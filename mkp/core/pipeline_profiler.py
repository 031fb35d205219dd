"""
Stage timing for the search procedures.

Hot loops (local search scans, GD iterations, GA generations) enter a stage
thousands of times per run, so only running aggregates are stored per stage.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional


class StageStats:
    """Running aggregate of one named stage."""

    __slots__ = ("count", "total", "minimum", "maximum")

    def __init__(self):
        self.count = 0
        self.total = 0.0
        self.minimum = float("inf")
        self.maximum = 0.0

    def add(self, duration: float):
        self.count += 1
        self.total += duration
        if duration < self.minimum:
            self.minimum = duration
        if duration > self.maximum:
            self.maximum = duration

    def as_dict(self, stage: str) -> Dict[str, Any]:
        return {
            "stage": stage,
            "count": self.count,
            "total_seconds": self.total,
            "avg_seconds": self.total / self.count if self.count else 0.0,
            "max_seconds": self.maximum,
            "min_seconds": self.minimum if self.count else 0.0,
        }


class PipelineProfiler:
    """Collects timing for named stages such as "ls.flip" or "ga.generation"."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.reset()

    def reset(self):
        self._stages: Dict[str, StageStats] = {}
        self._context: Dict[str, Any] = {}

    def set_context(self, **kwargs):
        """Attach run metadata (instance name, method) shown in the summary header."""
        self._context.update({k: v for k, v in kwargs.items() if v is not None})

    def record(self, stage: str, duration: float):
        stats = self._stages.get(stage)
        if stats is None:
            stats = self._stages[stage] = StageStats()
        stats.add(duration)

    @contextmanager
    def profile(self, stage: str) -> Iterator[None]:
        if not self.enabled:
            yield
            return
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record(stage, time.perf_counter() - start)

    def get_summary(self) -> List[Dict[str, Any]]:
        """Per-stage aggregates, most expensive stage first."""
        summary = [stats.as_dict(stage) for stage, stats in self._stages.items()]
        summary.sort(key=lambda item: item["total_seconds"], reverse=True)
        return summary

    def format_summary(self, top_n: Optional[int] = None) -> str:
        summary = self.get_summary()[:top_n] if top_n is not None else self.get_summary()
        header = "=== Search profile"
        if self._context:
            header += " (" + ", ".join(f"{k}={v}" for k, v in self._context.items()) + ")"
        lines = [header + " ==="]
        for item in summary:
            lines.append(
                f"{item['stage']:<16s} calls={item['count']:>7} "
                f"total={item['total_seconds']:.4f}s "
                f"avg={item['avg_seconds'] * 1e3:.3f}ms "
                f"max={item['max_seconds'] * 1e3:.3f}ms"
            )
        return "\n".join(lines)


pipeline_profiler = PipelineProfiler()
