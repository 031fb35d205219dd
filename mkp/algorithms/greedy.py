"""
Construction heuristics for initial MKP solutions.
"""

import numpy as np

from mkp.models.problem import Problem
from mkp.models.solution import Solution
from mkp.algorithms.evaluation import CAPACITY_TOLERANCE
from mkp.algorithms.repair import repair_if_infeasible


def greedy_solution(problem: Problem) -> Solution:
    """
    Add items in candidate order whenever they still fit.

    Args:
        problem: MKP instance

    Returns:
        Feasible solution
    """
    solution = Solution.empty(problem.n)
    usage = np.zeros(problem.m)
    limit = problem.capacity + CAPACITY_TOLERANCE

    for item in problem.candidate_order:
        column = problem.weight[:, item]
        if np.all(usage + column <= limit):
            usage += column
            solution.x[item] = 1.0
            solution.value += problem.profit[item]

    solution.feasible = True
    return solution


def random_solution(problem: Problem, rng: np.random.Generator) -> Solution:
    """Uniform random selection, repaired to feasibility."""
    x = (rng.random(problem.n) < 0.5).astype(np.float64)
    solution = Solution(x=x)
    repair_if_infeasible(problem, solution)
    return solution


def empty_solution(problem: Problem) -> Solution:
    return Solution.empty(problem.n)
