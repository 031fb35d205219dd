"""
Solution representation for MKP problems.
Defines Solution, Individual and Population classes.
"""

from typing import List, Dict, Optional
import numpy as np
from dataclasses import dataclass, field


@dataclass
class Solution:
    """0/1 selection vector with cached objective value and feasibility."""
    x: np.ndarray
    value: float = 0.0
    feasible: bool = False

    def __post_init__(self):
        self.x = np.asarray(self.x, dtype=np.float64)

    @classmethod
    def empty(cls, n: int) -> 'Solution':
        """All-zero selection (always feasible under non-negative weights)."""
        return cls(x=np.zeros(n, dtype=np.float64), value=0.0, feasible=True)

    @property
    def n(self) -> int:
        return int(self.x.shape[0])

    def copy(self) -> 'Solution':
        """Create a deep copy of the solution."""
        return Solution(x=self.x.copy(), value=self.value, feasible=self.feasible)

    def assign_from(self, other: 'Solution'):
        """Replace this solution's content with a copy of another one."""
        np.copyto(self.x, other.x)
        self.value = other.value
        self.feasible = other.feasible

    def swap(self, other: 'Solution'):
        """Exchange storage and cached fields with another solution in O(1)."""
        self.x, other.x = other.x, self.x
        self.value, other.value = other.value, self.value
        self.feasible, other.feasible = other.feasible, self.feasible

    def selected_items(self) -> np.ndarray:
        """Indices of selected items, ascending."""
        return np.flatnonzero(self.x > 0.5)

    def selected_count(self) -> int:
        return int(np.count_nonzero(self.x > 0.5))

    def is_better_than(self, other: Optional['Solution']) -> bool:
        """Feasibility first, then strictly higher value."""
        if other is None:
            return True
        if self.feasible != other.feasible:
            return self.feasible
        return self.value > other.value

    def to_dict(self) -> Dict:
        """Convert solution to dictionary."""
        return {
            'value': float(self.value),
            'feasible': bool(self.feasible),
            'selected_count': self.selected_count(),
            'selected_items': [int(j) for j in self.selected_items()],
        }


@dataclass
class Individual:
    """Represents a single solution (individual) in the GA population."""
    solution: Solution
    fitness: float = 0.0

    def copy(self) -> 'Individual':
        """Create a deep copy of the individual."""
        return Individual(solution=self.solution.copy(), fitness=self.fitness)

    @property
    def chromosome(self) -> np.ndarray:
        return self.solution.x

    def to_dict(self) -> Dict:
        data = self.solution.to_dict()
        data['fitness'] = float(self.fitness)
        return data


class Population:
    """Represents a population of individuals in the GA."""

    def __init__(self, individuals: Optional[List[Individual]] = None):
        """
        Initialize population.

        Args:
            individuals: List of individuals (empty if None)
        """
        self.individuals = individuals or []
        self.generation = 0
        self.best_fitness_history: List[float] = []
        self.avg_fitness_history: List[float] = []

    def add_individual(self, individual: Individual):
        """Add an individual to the population."""
        self.individuals.append(individual)

    def get_best_individual(self) -> Optional[Individual]:
        """Best individual by fitness; ties keep the earliest one."""
        if not self.individuals:
            return None
        return max(self.individuals, key=lambda ind: ind.fitness)

    def sort_by_fitness(self, reverse: bool = True):
        """Sort individuals by fitness (stable)."""
        self.individuals.sort(key=lambda ind: ind.fitness, reverse=reverse)

    def get_fitness_values(self) -> List[float]:
        return [ind.fitness for ind in self.individuals]

    def get_best_fitness(self) -> float:
        if not self.individuals:
            return 0.0
        return max(ind.fitness for ind in self.individuals)

    def get_avg_fitness(self) -> float:
        if not self.individuals:
            return 0.0
        return sum(ind.fitness for ind in self.individuals) / len(self.individuals)

    def get_worst_fitness(self) -> float:
        if not self.individuals:
            return 0.0
        return min(ind.fitness for ind in self.individuals)

    def calculate_diversity(self) -> float:
        """
        Mean per-gene Hamming distance to the population consensus.

        Returns:
            Diversity measure (0-0.5, 0 means every individual is identical)
        """
        if len(self.individuals) < 2:
            return 0.0
        genes = np.vstack([ind.solution.x for ind in self.individuals])
        frequency = genes.mean(axis=0)
        return float(np.mean(np.minimum(frequency, 1.0 - frequency)))

    def apply_elitism(self, elite_count: int) -> List[Individual]:
        """
        Select elite individuals for next generation.

        Args:
            elite_count: Number of elite individuals to select

        Returns:
            Copies of the elite individuals, best first
        """
        if not self.individuals:
            return []
        ranked = sorted(self.individuals, key=lambda ind: ind.fitness, reverse=True)
        elite_count = min(elite_count, len(ranked))
        return [ranked[i].copy() for i in range(elite_count)]

    def replace_individuals(self, new_individuals: List[Individual]):
        """Replace current individuals with the next generation."""
        self.individuals = new_individuals
        self.generation += 1

    def record_statistics(self):
        self.best_fitness_history.append(self.get_best_fitness())
        self.avg_fitness_history.append(self.get_avg_fitness())

    def get_size(self) -> int:
        return len(self.individuals)

    def is_empty(self) -> bool:
        return len(self.individuals) == 0

    def get_statistics(self) -> Dict:
        """Get population statistics."""
        fitness_values = self.get_fitness_values()
        return {
            'size': self.get_size(),
            'generation': self.generation,
            'best_fitness': self.get_best_fitness(),
            'avg_fitness': self.get_avg_fitness(),
            'worst_fitness': self.get_worst_fitness(),
            'diversity': self.calculate_diversity(),
            'fitness_std': float(np.std(fitness_values)) if fitness_values else 0.0,
            'feasible_count': sum(1 for ind in self.individuals if ind.solution.feasible),
        }
