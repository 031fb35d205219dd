"""
Variable Neighborhood Descent over the Flip and Swap neighborhoods.
"""

import logging
from typing import Dict, Any, Optional

from mkp.models.problem import Problem
from mkp.models.solution import Solution
from mkp.algorithms.base import BaseOptimizer
from mkp.algorithms.local_search import FlipLocalSearch, SwapLocalSearch
from mkp.core.deadline import Deadline
from mkp.core.pipeline_profiler import pipeline_profiler
from mkp.core.progress import ProgressRecorder, ProgressCallback
from config import LS_CONFIG, VND_CONFIG

logger = logging.getLogger(__name__)


class VariableNeighborhoodDescent(BaseOptimizer):
    """Alternates Flip and Swap until both are at a local optimum."""

    def __init__(self, problem: Problem,
                 config: Optional[Dict] = None,
                 ls_config: Optional[Dict] = None,
                 deadline: Optional[Deadline] = None,
                 progress_callback: Optional[ProgressCallback] = None):
        """
        Initialize VND.

        Args:
            problem: MKP problem instance
            config: VND configuration (max_no_improvement)
            ls_config: Configuration shared by both neighborhoods
            deadline: Optional deadline checked at every round
            progress_callback: Optional receiver of per-round progress events
        """
        super().__init__(problem)
        self.config = config or VND_CONFIG.copy()
        self.max_no_improvement = int(self.config['max_no_improvement'])
        self.deadline = deadline or Deadline.never()
        self.flip = FlipLocalSearch(problem, ls_config or LS_CONFIG.copy(), self.deadline)
        self.swap = SwapLocalSearch(problem, ls_config or LS_CONFIG.copy(), self.deadline)
        self.progress = ProgressRecorder('vnd', progress_callback)

        self.rounds = 0
        self.flip_improvements = 0
        self.swap_improvements = 0

    def optimize(self, solution: Solution) -> Solution:
        """
        Descend from the given solution.

        Args:
            solution: Starting solution (not modified)

        Returns:
            Local optimum w.r.t. both neighborhoods, never worse than the start
        """
        current = solution.copy()
        no_improvement = 0

        while no_improvement < self.max_no_improvement and not self.deadline.expired():
            self.rounds += 1
            with pipeline_profiler.profile("vnd.round"):
                candidate = self.flip.optimize(current)
                if candidate.is_better_than(current):
                    current.assign_from(candidate)
                    self.flip_improvements += 1
                    no_improvement = 0
                else:
                    candidate = self.swap.optimize(current)
                    if candidate.is_better_than(current):
                        current.assign_from(candidate)
                        self.swap_improvements += 1
                        no_improvement = 0
                    else:
                        no_improvement += 1

            self.progress.emit(self.rounds, current.value, current.feasible,
                               self.deadline.elapsed())
            logger.debug(f"VND round {self.rounds}: value={current.value:.1f}")

        return current

    @property
    def moves_accepted(self) -> int:
        return self.flip.moves_accepted + self.swap.moves_accepted

    def get_statistics(self) -> Dict[str, Any]:
        return {
            'rounds': self.rounds,
            'flip_improvements': self.flip_improvements,
            'swap_improvements': self.swap_improvements,
            'moves_accepted': self.moves_accepted,
            'flip': self.flip.get_statistics(),
            'swap': self.swap.get_statistics(),
        }
