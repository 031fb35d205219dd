"""
Random instance generator for MKP.
Creates correlated instances in the style of the Chu & Beasley benchmark.
"""

import numpy as np
from typing import Dict, Optional

from mkp.models.problem import Problem
from config import GENERATOR_CONFIG


class MKPInstanceGenerator:
    """Generates synthetic MKP problem instances."""

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize generator with configuration.

        Args:
            config: Configuration dictionary, uses default if None
        """
        self.config = config or GENERATOR_CONFIG.copy()
        self.rng = np.random.default_rng(self.config.get('seed'))

    def generate_weights(self, n_items: int, n_constraints: int) -> np.ndarray:
        """Integer weights drawn uniformly in [weight_min, weight_max]."""
        return self.rng.integers(
            self.config['weight_min'],
            self.config['weight_max'] + 1,
            size=(n_constraints, n_items)
        ).astype(np.float64)

    def generate_profits(self, weight: np.ndarray) -> np.ndarray:
        """
        Profits correlated with the mean weight of each item.

        profit_j = floor(sum_i weight_ij / m + U[0, profit_noise))
        """
        m = weight.shape[0]
        noise = self.rng.random(weight.shape[1]) * self.config['profit_noise']
        return np.floor(weight.sum(axis=0) / m + noise)

    def generate_capacities(self, weight: np.ndarray) -> np.ndarray:
        """Each capacity is the tightness fraction of its row total."""
        return np.floor(self.config['tightness'] * weight.sum(axis=1))

    def generate_problem(self,
                         n_items: Optional[int] = None,
                         n_constraints: Optional[int] = None,
                         name: Optional[str] = None) -> Problem:
        """
        Generate a complete instance.

        Args:
            n_items: Number of items (defaults to config)
            n_constraints: Number of constraints (defaults to config)
            name: Instance name

        Returns:
            Problem instance
        """
        n_items = n_items or self.config['n_items']
        n_constraints = n_constraints or self.config['n_constraints']

        weight = self.generate_weights(n_items, n_constraints)
        profit = self.generate_profits(weight)
        capacity = self.generate_capacities(weight)

        name = name or f"random_{n_items}x{n_constraints}_t{self.config['tightness']}"
        return Problem(profit, capacity, weight, name=name)


def generate_problem(n_items: int = None, n_constraints: int = None,
                     tightness: float = None, seed: int = None) -> Problem:
    """Convenience wrapper overriding selected GENERATOR_CONFIG values."""
    config = GENERATOR_CONFIG.copy()
    if tightness is not None:
        config['tightness'] = tightness
    if seed is not None:
        config['seed'] = seed
    return MKPInstanceGenerator(config).generate_problem(n_items, n_constraints)
