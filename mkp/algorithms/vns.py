"""
Variable Neighborhood Search for MKP.
Shakes the incumbent with growing radius and refines every shaken
candidate with a short VND.
"""

import logging
from typing import Dict, Any, Optional

import numpy as np

from mkp.models.problem import Problem
from mkp.models.solution import Solution
from mkp.algorithms.base import BaseOptimizer
from mkp.algorithms.repair import repair_if_infeasible
from mkp.algorithms.vnd import VariableNeighborhoodDescent
from mkp.core.deadline import Deadline
from mkp.core.pipeline_profiler import pipeline_profiler
from mkp.core.progress import ProgressRecorder, ProgressCallback
from config import LS_CONFIG, VNS_CONFIG

logger = logging.getLogger(__name__)


def shake(problem: Problem, solution: Solution, k: int, rng: np.random.Generator) -> Solution:
    """
    Toggle min(k, n) distinct items chosen by a partial Fisher-Yates shuffle.

    Args:
        problem: MKP instance
        solution: Solution to perturb (not modified)
        k: Number of items to toggle
        rng: Run random generator

    Returns:
        Perturbed and repaired copy
    """
    shaken = solution.copy()
    n = problem.n
    count = min(k, n)
    indices = np.arange(n)

    for i in range(count):
        r = int(rng.integers(i, n))
        indices[i], indices[r] = indices[r], indices[i]
        item = indices[i]
        if shaken.x[item] > 0.5:
            shaken.x[item] = 0.0
            shaken.value -= problem.profit[item]
        else:
            shaken.x[item] = 1.0
            shaken.value += problem.profit[item]

    repair_if_infeasible(problem, shaken)
    return shaken


class VariableNeighborhoodSearch(BaseOptimizer):
    """Randomized outer search escaping VND local optima."""

    def __init__(self, problem: Problem,
                 rng: np.random.Generator,
                 config: Optional[Dict] = None,
                 ls_config: Optional[Dict] = None,
                 deadline: Optional[Deadline] = None,
                 progress_callback: Optional[ProgressCallback] = None):
        """
        Initialize VNS.

        Args:
            problem: MKP problem instance
            rng: Run random generator, used by every shake
            config: VNS configuration (max_no_improvement, k_max,
                inner_max_no_improvement)
            ls_config: Local search configuration for the inner VND
            deadline: Optional deadline checked at every outer step
            progress_callback: Optional receiver of per-step progress events
        """
        super().__init__(problem)
        self.rng = rng
        self.config = config or VNS_CONFIG.copy()
        self.max_no_improvement = int(self.config['max_no_improvement'])
        self.k_max = int(self.config['k_max'])
        self.inner_config = {
            'max_no_improvement': int(self.config.get('inner_max_no_improvement', 5))
        }
        self.ls_config = ls_config or LS_CONFIG.copy()
        self.deadline = deadline or Deadline.never()
        self.progress = ProgressRecorder('vns', progress_callback)

        self.steps = 0
        self.improvements = 0
        self.vnd_moves = 0

    def _refine(self, candidate: Solution) -> Solution:
        vnd = VariableNeighborhoodDescent(
            self.problem, self.inner_config, self.ls_config, self.deadline
        )
        refined = vnd.optimize(candidate)
        self.vnd_moves += vnd.moves_accepted
        return refined

    def optimize(self, solution: Solution) -> Solution:
        """
        Search from the given incumbent.

        Args:
            solution: Starting incumbent (not modified)

        Returns:
            Best solution found, never worse than the repaired start
        """
        incumbent = solution.copy()
        repair_if_infeasible(self.problem, incumbent)

        k = 0
        no_improvement = 0
        logger.debug(f"VNS start: value={incumbent.value:.1f}, k_max={self.k_max}")

        while no_improvement < self.max_no_improvement and not self.deadline.expired():
            self.steps += 1
            with pipeline_profiler.profile("vns.step"):
                candidate = self._refine(shake(self.problem, incumbent, k, self.rng))

            if candidate.is_better_than(incumbent):
                incumbent.swap(candidate)
                self.improvements += 1
                k = 0
                no_improvement = 0
                logger.debug(f"VNS step {self.steps}: improved to {incumbent.value:.1f}")
            else:
                k += 1
                if k > self.k_max:
                    no_improvement += 1
                    k = 0

            self.progress.emit(self.steps, incumbent.value, incumbent.feasible,
                               self.deadline.elapsed(), k=k)

        return incumbent

    def get_statistics(self) -> Dict[str, Any]:
        return {
            'steps': self.steps,
            'improvements': self.improvements,
            'vnd_moves': self.vnd_moves,
            'k_max': self.k_max,
        }
