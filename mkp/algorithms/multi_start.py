"""
Multi-start driver chaining the gradient relaxation solver and VNS.
"""

import logging
from typing import Dict, Any, List, Optional

import numpy as np

from mkp.models.problem import Problem
from mkp.models.solution import Solution
from mkp.algorithms.base import BaseAlgorithm
from mkp.algorithms.gradient import GradientRelaxationSolver
from mkp.algorithms.vns import VariableNeighborhoodSearch
from mkp.core.deadline import Deadline
from mkp.core.progress import ProgressRecorder, ProgressCallback
from config import GD_CONFIG, LS_CONFIG, VNS_CONFIG

logger = logging.getLogger(__name__)


class MultiStartDriver(BaseAlgorithm):
    """Repeated GD -> VNS restarts sharing one deadline and one generator."""

    def __init__(self, problem: Problem,
                 rng: np.random.Generator,
                 num_starts: int = 5,
                 gd_config: Optional[Dict] = None,
                 vns_config: Optional[Dict] = None,
                 ls_config: Optional[Dict] = None,
                 deadline: Optional[Deadline] = None,
                 evaluator=None,
                 progress_callback: Optional[ProgressCallback] = None):
        super().__init__(problem)
        self.rng = rng
        self.num_starts = num_starts
        self.gd_config = gd_config or GD_CONFIG.copy()
        self.vns_config = vns_config or VNS_CONFIG.copy()
        self.ls_config = ls_config or LS_CONFIG.copy()
        self.deadline = deadline or Deadline.never()
        self.evaluator = evaluator
        self.progress = ProgressRecorder('multi-start', progress_callback)
        self.attempts: List[Dict[str, Any]] = []

    def solve(self) -> Solution:
        """
        Run up to num_starts attempts while the deadline allows.

        Returns:
            Best solution across attempts (feasible first, then value)
        """
        best: Optional[Solution] = None

        for attempt in range(self.num_starts):
            if self.deadline.expired():
                logger.info(f"Multi-start deadline reached after {attempt} attempt(s)")
                break

            gd = GradientRelaxationSolver(
                self.problem, self.rng, self.gd_config, self.deadline, self.evaluator
            )
            start = gd.solve()
            vns = VariableNeighborhoodSearch(
                self.problem, self.rng, self.vns_config, self.ls_config, self.deadline
            )
            result = vns.optimize(start)

            self.attempts.append({
                'attempt': attempt,
                'gd_value': start.value,
                'vns_value': result.value,
                'feasible': result.feasible,
                'gd_iterations': gd.iterations,
                'vns_steps': vns.steps,
            })
            logger.info(f"Attempt {attempt + 1}/{self.num_starts}: "
                        f"GD={start.value:.1f} -> VNS={result.value:.1f}")

            if result.is_better_than(best):
                best = result

            self.progress.emit(attempt, best.value, best.feasible, self.deadline.elapsed(),
                               attempt_value=result.value)

        if best is None:
            # Deadline already expired: fall back to the empty selection
            best = Solution.empty(self.problem.n)
        return best

    def get_statistics(self) -> Dict[str, Any]:
        return {
            'num_starts': self.num_starts,
            'completed_attempts': len(self.attempts),
            'attempts': list(self.attempts),
        }
