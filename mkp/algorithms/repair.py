"""
Greedy feasibility repair shared by every MKP search procedure.
"""

import numpy as np

from mkp.models.problem import Problem
from mkp.models.solution import Solution
from mkp.algorithms.evaluation import compute_usage, is_within_capacity


def repair_solution(problem: Problem, solution: Solution, usage: np.ndarray) -> int:
    """
    Drop selected items with the smallest profit/weight ratio until feasible.

    The scan keeps the first minimum it finds, so ties go to the lowest
    index. x, value and usage are updated in place; usage must be consistent
    with x on entry.

    Args:
        problem: MKP instance
        solution: Possibly infeasible solution, modified in place
        usage: Usage accumulator of the solution, modified in place

    Returns:
        Number of removed items (at most n)
    """
    removed = 0
    while not is_within_capacity(usage, problem.capacity):
        selected = solution.selected_items()
        if selected.size == 0:
            break
        worst = int(selected[np.argmin(problem.ratio[selected])])

        solution.x[worst] = 0.0
        solution.value -= problem.profit[worst]
        usage -= problem.weight[:, worst]
        removed += 1

    solution.feasible = is_within_capacity(usage, problem.capacity)
    return removed


def repair_if_infeasible(problem: Problem, solution: Solution) -> int:
    """
    Recompute usage and value from x, then repair when over capacity.

    Used where no usage accumulator is at hand (shake, GA offspring,
    rounded relaxations).

    Returns:
        Number of removed items
    """
    usage = compute_usage(problem, solution.x)
    solution.value = float(problem.profit @ solution.x)
    if is_within_capacity(usage, problem.capacity):
        solution.feasible = True
        return 0
    return repair_solution(problem, solution, usage)
