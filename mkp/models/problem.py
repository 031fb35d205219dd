"""
MKP problem model and data structures.
Defines the core multidimensional knapsack representation.
"""

from typing import Dict, Optional
import numpy as np

from mkp.core.exceptions import DimensionMismatchError, InstanceFormatError


class Problem:
    """Represents a complete MKP instance with its derived item indices."""

    def __init__(self,
                 profit,
                 capacity,
                 weight,
                 name: str = "instance",
                 best_known: Optional[float] = None):
        """
        Initialize MKP problem.

        Args:
            profit: Objective coefficient per item, length n
            capacity: Upper bound per constraint, length m
            weight: Resource consumption matrix, shape (m, n)
            name: Instance name used in logs and exports
            best_known: Optional known optimum, used to report gaps
        """
        self.profit = np.array(profit, dtype=np.float64).reshape(-1)
        self.capacity = np.array(capacity, dtype=np.float64).reshape(-1)
        self.weight = np.array(weight, dtype=np.float64)
        self.name = name
        self.best_known = best_known

        self.n = int(self.profit.shape[0])
        self.m = int(self.capacity.shape[0])

        self._validate_problem()

        # Derived once, never mutated
        self.sum_of_weight = self.weight.sum(axis=0)
        self.ratio = np.full(self.n, np.inf)
        np.divide(self.profit, self.sum_of_weight, out=self.ratio, where=self.sum_of_weight > 0)
        self.candidate_order = np.argsort(-self.ratio, kind='stable')

        for array in (self.profit, self.capacity, self.weight,
                      self.sum_of_weight, self.ratio, self.candidate_order):
            array.setflags(write=False)

    def _validate_problem(self):
        """Validate MKP dimensions and sign constraints."""
        if self.n == 0:
            raise InstanceFormatError(reason="No items provided")
        if self.m == 0:
            raise InstanceFormatError(reason="No constraints provided")

        if self.weight.ndim != 2 or self.weight.shape != (self.m, self.n):
            raise DimensionMismatchError(
                field='weight',
                expected=(self.m, self.n),
                actual=tuple(self.weight.shape)
            )

        if not (np.all(np.isfinite(self.profit)) and np.all(np.isfinite(self.capacity))
                and np.all(np.isfinite(self.weight))):
            raise InstanceFormatError(reason="Non-finite coefficient")
        if np.any(self.weight < 0):
            raise InstanceFormatError(reason="Negative weight")
        if np.any(self.capacity < 0):
            raise InstanceFormatError(reason="Negative capacity")

    def top_candidates(self, k: int) -> np.ndarray:
        """First min(k, n) items of the ratio-descending candidate order."""
        return self.candidate_order[:min(k, self.n)]

    def get_problem_info(self) -> Dict:
        """Get summary information of the instance."""
        return {
            'name': self.name,
            'num_items': self.n,
            'num_constraints': self.m,
            'total_profit': float(self.profit.sum()),
            'total_capacity': float(self.capacity.sum()),
            'tightness': float(np.mean(self.capacity / np.maximum(self.weight.sum(axis=1), 1e-12))),
            'best_known': self.best_known,
        }

    def to_dict(self) -> Dict:
        """Convert problem to a JSON-serializable dictionary."""
        data = {
            'name': self.name,
            'profit': self.profit.tolist(),
            'capacity': self.capacity.tolist(),
            'weight': self.weight.tolist(),
        }
        if self.best_known is not None:
            data['best_known'] = self.best_known
        return data

    def __repr__(self):
        return f"Problem(name={self.name!r}, n={self.n}, m={self.m})"


def create_problem_from_dict(data: Dict) -> Problem:
    """
    Create Problem from dictionary data.

    Args:
        data: Dictionary with 'profit', 'capacity' and 'weight' keys, and
            optional 'name' and 'best_known'

    Returns:
        Problem instance
    """
    missing = [key for key in ('profit', 'capacity', 'weight') if key not in data]
    if missing:
        raise InstanceFormatError(reason=f"Missing keys: {missing}")

    return Problem(
        profit=data['profit'],
        capacity=data['capacity'],
        weight=data['weight'],
        name=data.get('name', 'instance'),
        best_known=data.get('best_known')
    )
