"""
Genetic Algorithm operators for MKP.
Implements selection, crossover, and mutation operators on 0/1 chromosomes.
"""

import numpy as np
from typing import List, Tuple
from mkp.models.solution import Individual, Solution


class SelectionOperator:
    """Selection operators for GA."""

    @staticmethod
    def tournament_selection(population: List[Individual],
                             rng: np.random.Generator,
                             tournament_size: int = 5) -> Tuple[Individual, Individual]:
        """
        Tournament selection operator.

        Samples tournament_size individuals uniformly with replacement and
        returns the best and second best of the sample. A winner drawn twice
        fills both slots, so both parents may be the same individual. The
        first individual of the population is used only when a slot stays
        empty, which requires fewer than two draws.

        Args:
            population: List of individuals, sorted best first
            rng: Run random generator
            tournament_size: Number of draws (>= 2)

        Returns:
            Tuple of two parents
        """
        size = len(population)
        best, second = -1, -1
        best_fitness = second_fitness = -np.inf

        for _ in range(tournament_size):
            idx = int(rng.integers(0, size))
            fitness = population[idx].fitness
            if fitness > best_fitness:
                second, second_fitness = best, best_fitness
                best, best_fitness = idx, fitness
            elif fitness > second_fitness:
                second, second_fitness = idx, fitness

        if best < 0:
            best = 0
        if second < 0:
            second = 0

        return population[best], population[second]


class CrossoverOperator:
    """Crossover operators for binary chromosomes."""

    @staticmethod
    def single_point_crossover(parent1: Individual, parent2: Individual,
                               rng: np.random.Generator) -> Individual:
        """
        Single-point crossover.

        Args:
            parent1: Provides the genes before the cut
            parent2: Provides the genes from the cut onward
            rng: Run random generator

        Returns:
            Child individual (not evaluated)
        """
        n = parent1.chromosome.shape[0]
        if parent2.chromosome.shape[0] != n:
            raise ValueError("Parents must have same chromosome length")

        cut = int(rng.integers(0, n))
        child = np.empty(n, dtype=np.float64)
        child[:cut] = parent1.chromosome[:cut]
        child[cut:] = parent2.chromosome[cut:]
        return Individual(solution=Solution(x=child))


class MutationOperator:
    """Mutation operators for binary chromosomes."""

    @staticmethod
    def bit_flip_mutation(individual: Individual,
                          rng: np.random.Generator,
                          mutation_rate: float = 0.01) -> int:
        """
        Flip every gene independently with probability mutation_rate.

        Args:
            individual: Individual mutated in place
            rng: Run random generator
            mutation_rate: Per-gene flip probability

        Returns:
            Number of flipped genes
        """
        x = individual.chromosome
        mask = rng.random(x.shape[0]) < mutation_rate
        x[mask] = 1.0 - x[mask]
        return int(mask.sum())
