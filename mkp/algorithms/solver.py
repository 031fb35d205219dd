"""
Method dispatch for the MKP solver.
Maps a method name onto the configured search procedure and collects its
result, statistics and progress history.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from mkp.models.problem import Problem
from mkp.models.solution import Solution
from mkp.algorithms.evaluation import get_evaluator
from mkp.algorithms.greedy import greedy_solution, random_solution, empty_solution
from mkp.algorithms.local_search import FlipLocalSearch, SwapLocalSearch
from mkp.algorithms.vnd import VariableNeighborhoodDescent
from mkp.algorithms.vns import VariableNeighborhoodSearch
from mkp.algorithms.gradient import GradientRelaxationSolver
from mkp.algorithms.genetic_algorithm import GeneticAlgorithm
from mkp.algorithms.multi_start import MultiStartDriver
from mkp.core.deadline import Deadline
from mkp.core.exceptions import InvalidConfigurationError
from mkp.core.progress import ProgressEvent, ProgressCallback
from mkp.core.validators import ConfigValidator, METHODS
from config import build_config

logger = logging.getLogger(__name__)


@dataclass
class SolveResult:
    """Outcome of one solver run."""
    solution: Solution
    method: str
    elapsed: float
    statistics: Dict[str, Any] = field(default_factory=dict)
    history: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'method': self.method,
            'elapsed': self.elapsed,
            'solution': self.solution.to_dict(),
            'statistics': self.statistics,
        }


def initial_solution(problem: Problem, kind: str, rng: np.random.Generator) -> Solution:
    """Starting point of the improvement methods (greedy, empty or random)."""
    if kind == 'greedy':
        return greedy_solution(problem)
    if kind == 'empty':
        return empty_solution(problem)
    if kind == 'random':
        return random_solution(problem, rng)
    raise InvalidConfigurationError(
        parameter='initial_solution',
        value=kind,
        expected='greedy | empty | random'
    )


def _run_local_search(problem, optimizer_cls, config, rng, deadline, emit):
    start = initial_solution(problem, config['run']['initial_solution'], rng)
    optimizer = optimizer_cls(problem, config['ls'], deadline)
    solution = optimizer.optimize(start)
    emit(ProgressEvent(optimizer.name, optimizer.scans, solution.value,
                       solution.feasible, deadline.elapsed()))
    return solution, optimizer.get_statistics()


def _run_ls_flip(problem, config, rng, deadline, evaluator, emit):
    return _run_local_search(problem, FlipLocalSearch, config, rng, deadline, emit)


def _run_ls_swap(problem, config, rng, deadline, evaluator, emit):
    return _run_local_search(problem, SwapLocalSearch, config, rng, deadline, emit)


def _run_vnd(problem, config, rng, deadline, evaluator, emit):
    start = initial_solution(problem, config['run']['initial_solution'], rng)
    vnd = VariableNeighborhoodDescent(problem, config['vnd'], config['ls'], deadline, emit)
    return vnd.optimize(start), vnd.get_statistics()


def _run_vns(problem, config, rng, deadline, evaluator, emit):
    start = initial_solution(problem, config['run']['initial_solution'], rng)
    vns = VariableNeighborhoodSearch(problem, rng, config['vns'], config['ls'], deadline, emit)
    return vns.optimize(start), vns.get_statistics()


def _run_gd(problem, config, rng, deadline, evaluator, emit):
    gd = GradientRelaxationSolver(problem, rng, config['gd'], deadline, evaluator, emit)
    return gd.solve(), gd.get_statistics()


def _run_ga(problem, config, rng, deadline, evaluator, emit):
    ga = GeneticAlgorithm(problem, rng, config['ga'], deadline, evaluator, emit)
    best, evolution_data = ga.evolve()
    statistics = ga.get_statistics()
    statistics['evolution_data'] = evolution_data
    return best.solution, statistics


def _run_multi_start(problem, config, rng, deadline, evaluator, emit):
    driver = MultiStartDriver(
        problem, rng,
        num_starts=int(config['run']['num_starts']),
        gd_config=config['gd'],
        vns_config=config['vns'],
        ls_config=config['ls'],
        deadline=deadline,
        evaluator=evaluator,
        progress_callback=emit
    )
    return driver.solve(), driver.get_statistics()


_DISPATCH: Dict[str, Callable] = {
    'LS-FLIP': _run_ls_flip,
    'LS-SWAP': _run_ls_swap,
    'VND': _run_vnd,
    'VNS': _run_vns,
    'GD': _run_gd,
    'GA': _run_ga,
    'MULTI-GD-VNS': _run_multi_start,
}


def solve(problem: Problem,
          method: Optional[str] = None,
          config: Optional[Dict] = None,
          deadline: Optional[Deadline] = None,
          rng: Optional[np.random.Generator] = None,
          evaluator=None,
          progress_callback: Optional[ProgressCallback] = None) -> SolveResult:
    """
    Run one solver method on a problem.

    Args:
        problem: MKP instance
        method: One of METHODS (defaults to config['run']['method'])
        config: Sectioned configuration from config.build_config()
        deadline: Shared deadline (defaults to run max_time)
        rng: Run random generator (defaults to one seeded with run seed)
        evaluator: Evaluation strategy (defaults to run evaluator)
        progress_callback: Optional receiver of every progress event

    Returns:
        SolveResult with the final, freshly evaluated solution
    """
    config = config or build_config()
    ConfigValidator.validate_all(config)
    run = config['run']

    method = (method or run['method']).upper()
    if method not in _DISPATCH:
        raise InvalidConfigurationError(
            parameter='method',
            value=method,
            expected=' | '.join(METHODS)
        )

    deadline = deadline or Deadline(run.get('max_time'))
    rng = rng if rng is not None else np.random.default_rng(run.get('seed'))
    evaluator = evaluator or get_evaluator(run.get('evaluator', 'cpu'))

    history: List[Dict[str, Any]] = []

    def emit(event: ProgressEvent):
        history.append(event.to_dict())
        if progress_callback is not None:
            progress_callback(event)

    logger.info(f"Solving {problem.name} (n={problem.n}, m={problem.m}) with {method}")
    solution, statistics = _DISPATCH[method](problem, config, rng, deadline, evaluator, emit)
    evaluator.evaluate(problem, solution)
    elapsed = deadline.elapsed()

    logger.info(f"{method} finished in {elapsed:.2f}s: value={solution.value:.0f}, "
                f"feasible={solution.feasible}, selected={solution.selected_count()}")

    return SolveResult(
        solution=solution,
        method=method,
        elapsed=elapsed,
        statistics=statistics,
        history=history
    )
