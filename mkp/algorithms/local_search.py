"""
Flip and Swap local search for MKP.
Both neighborhoods accept a move only when the repaired result strictly
improves the objective.
"""

import logging
from typing import Dict, Any, Iterator, Optional, Tuple

import numpy as np

from mkp.models.problem import Problem
from mkp.models.solution import Solution
from mkp.algorithms.base import BaseOptimizer
from mkp.algorithms.evaluation import compute_usage, is_within_capacity, check_feasibility
from mkp.algorithms.repair import repair_solution
from mkp.core.deadline import Deadline
from mkp.core.pipeline_profiler import pipeline_profiler
from config import LS_CONFIG

logger = logging.getLogger(__name__)

# (item added, item removed or -1)
Move = Tuple[int, int]


class LSMode:
    FIRST = 'first'
    BEST = 'best'


class _Trial:
    """Outcome of one tentative move."""

    __slots__ = ('move', 'gain', 'solution', 'usage')

    def __init__(self, move: Move, gain: float,
                 solution: Optional[Solution] = None, usage: Optional[np.ndarray] = None):
        self.move = move
        self.gain = gain
        # Only set when the move needed repair; otherwise the move is replayed on commit
        self.solution = solution
        self.usage = usage


class NeighborhoodLocalSearch(BaseOptimizer):
    """Shared first/best improvement loop of the Flip and Swap neighborhoods."""

    name = 'ls'

    def __init__(self, problem: Problem, config: Optional[Dict] = None,
                 deadline: Optional[Deadline] = None):
        """
        Initialize local search.

        Args:
            problem: MKP problem instance
            config: Local search configuration (ls_k, ls_mode)
            deadline: Optional deadline checked between scans
        """
        super().__init__(problem)
        self.config = config or LS_CONFIG.copy()
        self.k = int(self.config.get('ls_k', LS_CONFIG['ls_k']))
        self.mode = self.config.get('ls_mode', LS_CONFIG['ls_mode'])
        self.deadline = deadline or Deadline.never()
        self.candidates = problem.top_candidates(self.k)

        self.moves_accepted = 0
        self.moves_evaluated = 0
        self.scans = 0
        self.repairs = 0

    def _moves(self, current: Solution) -> Iterator[Move]:
        raise NotImplementedError

    def _try_move(self, current: Solution, usage: np.ndarray, move: Move) -> Optional[_Trial]:
        """Apply a move tentatively and repair if needed. None when not improving."""
        problem = self.problem
        add, remove = move
        self.moves_evaluated += 1

        new_usage = usage + problem.weight[:, add]
        gain = problem.profit[add]
        if remove >= 0:
            new_usage -= problem.weight[:, remove]
            gain -= problem.profit[remove]

        if is_within_capacity(new_usage, problem.capacity):
            return _Trial(move, gain) if gain > 0 else None

        trial = current.copy()
        trial.x[add] = 1.0
        trial.value += problem.profit[add]
        if remove >= 0:
            trial.x[remove] = 0.0
            trial.value -= problem.profit[remove]
        repair_solution(problem, trial, new_usage)
        self.repairs += 1

        gain = trial.value - current.value
        if gain > 0:
            return _Trial(move, gain, trial, new_usage)
        return None

    def _commit(self, current: Solution, usage: np.ndarray, trial: _Trial):
        problem = self.problem
        if trial.solution is not None:
            current.swap(trial.solution)
            np.copyto(usage, trial.usage)
        else:
            add, remove = trial.move
            current.x[add] = 1.0
            current.value += problem.profit[add]
            usage += problem.weight[:, add]
            if remove >= 0:
                current.x[remove] = 0.0
                current.value -= problem.profit[remove]
                usage -= problem.weight[:, remove]
        self.moves_accepted += 1

    def _scan(self, current: Solution, usage: np.ndarray) -> bool:
        """One pass over the neighborhood. Returns True when a move was accepted."""
        best = None
        for move in self._moves(current):
            trial = self._try_move(current, usage, move)
            if trial is None:
                continue
            if self.mode == LSMode.FIRST:
                self._commit(current, usage, trial)
                return True
            if best is None or trial.gain > best.gain:
                best = trial

        if best is None:
            return False
        self._commit(current, usage, best)
        return True

    def optimize(self, solution: Solution) -> Solution:
        """
        Run the neighborhood to a local optimum.

        Args:
            solution: Starting solution (not modified)

        Returns:
            New solution with value >= the (repaired) starting value
        """
        problem = self.problem
        current = solution.copy()
        usage = compute_usage(problem, current.x)
        current.value = float(problem.profit @ current.x)
        if not is_within_capacity(usage, problem.capacity):
            repair_solution(problem, current, usage)

        start_value = current.value
        with pipeline_profiler.profile(f"ls.{self.name}"):
            while not self.deadline.expired():
                self.scans += 1
                if not self._scan(current, usage):
                    break

        current.feasible = check_feasibility(problem, current)
        logger.debug(f"{self.name} search: {start_value:.1f} -> {current.value:.1f} "
                     f"({self.moves_accepted} moves, {self.scans} scans)")
        return current

    def get_statistics(self) -> Dict[str, Any]:
        return {
            'neighborhood': self.name,
            'mode': self.mode,
            'k': self.k,
            'moves_accepted': self.moves_accepted,
            'moves_evaluated': self.moves_evaluated,
            'scans': self.scans,
            'repairs': self.repairs,
        }


class FlipLocalSearch(NeighborhoodLocalSearch):
    """Add one unselected item from the top-k candidates."""

    name = 'flip'

    def _moves(self, current: Solution) -> Iterator[Move]:
        profit = self.problem.profit
        for j in self.candidates:
            if current.x[j] < 0.5 and profit[j] > 0:
                yield int(j), -1


class SwapLocalSearch(NeighborhoodLocalSearch):
    """Exchange a selected item for a more profitable unselected top-k candidate."""

    name = 'swap'

    def _moves(self, current: Solution) -> Iterator[Move]:
        profit = self.problem.profit
        unselected = [int(j) for j in self.candidates if current.x[j] < 0.5]
        for i in current.selected_items():
            for j in unselected:
                if profit[j] - profit[i] > 0:
                    yield j, int(i)
