"""
Solution validator for MKP problems.
Recomputes usage and value independently of the search core.
"""

from typing import Dict, List

import numpy as np

from mkp.models.problem import Problem
from mkp.models.solution import Solution
from mkp.algorithms.evaluation import CAPACITY_TOLERANCE


class SolutionValidator:
    """Validates MKP solutions for correctness and feasibility."""

    def __init__(self, problem: Problem):
        """
        Initialize solution validator.

        Args:
            problem: MKP problem instance
        """
        self.problem = problem

    def validate_solution(self, solution: Solution) -> Dict:
        """
        Validate a solution comprehensively.

        Args:
            solution: Solution to validate

        Returns:
            Validation results dictionary
        """
        errors: List[str] = []
        warnings: List[str] = []
        x = np.asarray(solution.x, dtype=np.float64)

        if x.shape != (self.problem.n,):
            errors.append(f"Selection vector has shape {x.shape}, expected ({self.problem.n},)")
            return {
                'is_valid': False,
                'is_feasible': False,
                'errors': errors,
                'warnings': warnings,
                'violations': [],
            }

        if not np.all((x == 0.0) | (x == 1.0)):
            errors.append("Selection vector is not binary")

        # Plain Python sums, independent of the numpy kernels used during search
        value = sum(float(p) for p, xj in zip(self.problem.profit, x) if xj > 0.5)
        usage = [
            sum(float(w) for w, xj in zip(row, x) if xj > 0.5)
            for row in self.problem.weight
        ]

        violations = []
        for i, (used, cap) in enumerate(zip(usage, self.problem.capacity)):
            if used > cap + CAPACITY_TOLERANCE:
                violations.append({
                    'constraint': i,
                    'usage': used,
                    'capacity': float(cap),
                    'excess': used - float(cap),
                })

        is_feasible = not violations
        if abs(value - solution.value) > 1e-6:
            errors.append(f"Cached value {solution.value} differs from recomputed value {value}")
        if bool(solution.feasible) != is_feasible:
            errors.append(f"Cached feasibility {solution.feasible} differs from recomputed {is_feasible}")

        if is_feasible:
            slack = min(float(cap) - used for used, cap in zip(usage, self.problem.capacity))
            if slack > 0 and self._any_item_fits(x, usage):
                warnings.append("Solution is not maximal: at least one unselected item still fits")

        return {
            'is_valid': len(errors) == 0,
            'is_feasible': is_feasible,
            'value': value,
            'usage': usage,
            'errors': errors,
            'warnings': warnings,
            'violations': violations,
            'gap': self.calculate_gap(value),
        }

    def _any_item_fits(self, x: np.ndarray, usage: List[float]) -> bool:
        remaining = self.problem.capacity - np.array(usage) + CAPACITY_TOLERANCE
        unselected = np.flatnonzero(x < 0.5)
        if unselected.size == 0:
            return False
        fits = np.all(self.problem.weight[:, unselected] <= remaining[:, None], axis=0)
        return bool(fits.any())

    def calculate_gap(self, value: float):
        """Relative gap to the best known value in percent, or None."""
        best_known = self.problem.best_known
        if not best_known:
            return None
        return 100.0 * (best_known - value) / best_known
