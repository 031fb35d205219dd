"""
Feasibility and objective evaluation for MKP solutions.
Provides the shared usage helpers and the CPU/GPU evaluation strategies.
"""

import logging
from typing import Optional

import numpy as np

from mkp.models.problem import Problem
from mkp.models.solution import Solution
from mkp.core.exceptions import InvalidConfigurationError

logger = logging.getLogger(__name__)

# Absolute slack tolerated on each constraint (incremental float updates)
CAPACITY_TOLERANCE = 1e-9


def compute_usage(problem: Problem, x: np.ndarray) -> np.ndarray:
    """usage[i] = sum_j weight[i][j] * x[j]"""
    return problem.weight @ x


def is_within_capacity(usage: np.ndarray, capacity: np.ndarray) -> bool:
    return bool(np.all(usage <= capacity + CAPACITY_TOLERANCE))


def overflow(usage: np.ndarray, capacity: np.ndarray) -> np.ndarray:
    """Per-constraint excess over capacity (zero where satisfied)."""
    return np.maximum(usage - capacity, 0.0)


def check_feasibility(problem: Problem, solution: Solution) -> bool:
    """
    Check capacity constraints one row at a time.

    Returns False at the first constraint whose usage exceeds its capacity.
    """
    x = solution.x
    for i in range(problem.m):
        if problem.weight[i] @ x > problem.capacity[i] + CAPACITY_TOLERANCE:
            return False
    return True


def evaluate(problem: Problem, solution: Solution) -> Solution:
    """Set value and feasibility of a fully specified selection vector."""
    solution.value = float(problem.profit @ solution.x)
    solution.feasible = check_feasibility(problem, solution)
    return solution


class CPUEvaluator:
    """Evaluation strategy backed by numpy."""

    name = 'cpu'

    def evaluate(self, problem: Problem, solution: Solution) -> Solution:
        return evaluate(problem, solution)


class GPUEvaluator:
    """
    Evaluation strategy backed by PyTorch on a CUDA device.

    Computes in float64 so results match the CPU path. When PyTorch or a CUDA
    device is unavailable every call is delegated to the CPU strategy.
    """

    name = 'gpu'

    def __init__(self):
        self._fallback = CPUEvaluator()
        self._torch = None
        self._device = None
        self._cache_key = None
        self._profit = None
        self._weight = None
        self._capacity = None
        self._init_backend()

    def _init_backend(self):
        try:
            import torch
        except ImportError:
            logger.warning("PyTorch is not installed; GPU evaluation falls back to CPU")
            return
        if not torch.cuda.is_available():
            logger.warning("No CUDA device available; GPU evaluation falls back to CPU")
            return
        self._torch = torch
        self._device = torch.device('cuda')
        logger.info(f"GPU evaluation enabled on {torch.cuda.get_device_name(0)}")

    @property
    def available(self) -> bool:
        return self._torch is not None

    def _upload(self, problem: Problem):
        if self._cache_key is id(problem):
            return
        torch = self._torch
        self._profit = torch.as_tensor(problem.profit, dtype=torch.float64, device=self._device)
        self._weight = torch.as_tensor(problem.weight, dtype=torch.float64, device=self._device)
        self._capacity = torch.as_tensor(problem.capacity, dtype=torch.float64, device=self._device)
        self._cache_key = id(problem)

    def evaluate(self, problem: Problem, solution: Solution) -> Solution:
        if not self.available:
            return self._fallback.evaluate(problem, solution)

        torch = self._torch
        self._upload(problem)
        x = torch.as_tensor(solution.x, dtype=torch.float64, device=self._device)
        usage = self._weight @ x
        solution.value = float(torch.dot(self._profit, x).item())
        solution.feasible = bool(torch.all(usage <= self._capacity + CAPACITY_TOLERANCE).item())
        return solution


def get_evaluator(name: Optional[str] = 'cpu'):
    """
    Get evaluation strategy by name.

    Args:
        name: 'cpu' or 'gpu'

    Returns:
        Evaluator exposing evaluate(problem, solution)
    """
    key = (name or 'cpu').strip().lower()
    if key == 'cpu':
        return CPUEvaluator()
    if key == 'gpu':
        return GPUEvaluator()
    raise InvalidConfigurationError(
        parameter='evaluator',
        value=name,
        expected='cpu | gpu'
    )
