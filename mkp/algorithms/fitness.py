"""
Fitness evaluation for MKP individuals.
"""

import logging
from typing import Optional

import numpy as np

from mkp.models.problem import Problem
from mkp.models.solution import Individual
from mkp.algorithms.evaluation import CPUEvaluator, compute_usage, overflow
from mkp.core.exceptions import InvalidConfigurationError
from config import GA_CONFIG

logger = logging.getLogger(__name__)


class FitnessEvaluator:
    """
    Evaluates fitness of MKP individuals (higher is better).

    Policies:
        zero: value when feasible, 0 otherwise
        penalty: value - penalty_factor * total overflow when infeasible
    """

    def __init__(self, problem: Problem,
                 policy: Optional[str] = None,
                 penalty_factor: Optional[float] = None,
                 evaluator=None):
        """
        Initialize fitness evaluator.

        Args:
            problem: MKP problem instance
            policy: 'zero' or 'penalty' (defaults to GA_CONFIG)
            penalty_factor: Weight of the overflow in the penalty policy
            evaluator: Evaluation strategy (defaults to CPU)
        """
        self.problem = problem
        self.policy = policy or GA_CONFIG['fitness_policy']
        if self.policy not in ('zero', 'penalty'):
            raise InvalidConfigurationError(
                parameter='fitness_policy',
                value=self.policy,
                expected='zero | penalty'
            )
        if penalty_factor is None:
            penalty_factor = GA_CONFIG.get('penalty_factor', 1.0)
        self.penalty_factor = float(penalty_factor)
        self.evaluator = evaluator or CPUEvaluator()
        self.evaluations = 0

    def evaluate_fitness(self, individual: Individual) -> float:
        """
        Evaluate and cache the fitness of an individual.

        Args:
            individual: Individual to evaluate

        Returns:
            Fitness value
        """
        solution = individual.solution
        self.evaluator.evaluate(self.problem, solution)
        self.evaluations += 1

        if solution.feasible:
            fitness = solution.value
        elif self.policy == 'zero':
            fitness = 0.0
        else:
            usage = compute_usage(self.problem, solution.x)
            excess = float(np.sum(overflow(usage, self.problem.capacity)))
            fitness = solution.value - self.penalty_factor * excess

        individual.fitness = float(fitness)
        return individual.fitness
