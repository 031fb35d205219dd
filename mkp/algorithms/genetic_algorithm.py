"""
Main Genetic Algorithm engine for MKP.
Implements the complete GA workflow with population management.
"""

import logging
import math
import time
import numpy as np
from typing import List, Dict, Optional, Tuple

from mkp.models.problem import Problem
from mkp.models.solution import Individual, Population, Solution
from mkp.algorithms.base import BaseAlgorithm
from mkp.algorithms.operators import SelectionOperator, CrossoverOperator, MutationOperator
from mkp.algorithms.fitness import FitnessEvaluator
from mkp.algorithms.repair import repair_if_infeasible
from mkp.core.deadline import Deadline
from mkp.core.pipeline_profiler import pipeline_profiler
from mkp.core.progress import ProgressRecorder, ProgressCallback
from config import GA_CONFIG

logger = logging.getLogger(__name__)


class GeneticAlgorithm(BaseAlgorithm):
    """Main Genetic Algorithm engine for MKP optimization."""

    def __init__(self, problem: Problem,
                 rng: np.random.Generator,
                 config: Optional[Dict] = None,
                 deadline: Optional[Deadline] = None,
                 evaluator=None,
                 progress_callback: Optional[ProgressCallback] = None):
        """
        Initialize GA engine.

        Args:
            problem: MKP problem instance
            rng: Run random generator, used by every stochastic operator
            config: GA configuration parameters
            deadline: Optional deadline checked at the start of every generation
            evaluator: Evaluation strategy used by the fitness evaluator
            progress_callback: Optional receiver of per-generation events
        """
        super().__init__(problem)
        self.rng = rng
        self.config = config or GA_CONFIG.copy()
        self.deadline = deadline or Deadline.never()
        self.progress = ProgressRecorder('ga', progress_callback)

        self.fitness_evaluator = FitnessEvaluator(
            problem,
            policy=self.config.get('fitness_policy', 'zero'),
            penalty_factor=self.config.get('penalty_factor', 1.0),
            evaluator=evaluator
        )

        # GA state
        self.population = Population()
        self.generation = 0
        self.best_solution: Optional[Individual] = None
        self.execution_time = 0.0

        # Statistics
        self.stats = {
            'generations': 0,
            'total_evaluations': 0,
            'mutated_genes': 0,
            'repaired_offspring': 0,
            'stopped_by_deadline': False,
        }

    @property
    def elite_count(self) -> int:
        size = int(self.config['population_size'])
        return min(size, max(1, math.ceil(self.config['elite_fraction'] * size)))

    def initialize_population(self, population_size: Optional[int] = None) -> Population:
        """
        Initialize population with uniform random chromosomes.

        Args:
            population_size: Size of population to create

        Returns:
            Initialized population
        """
        if population_size is None:
            population_size = self.config['population_size']
        repair = self.config.get('repair_initial_population', True)
        self.population = Population()

        for _ in range(population_size):
            x = (self.rng.random(self.problem.n) < 0.5).astype(np.float64)
            individual = Individual(solution=Solution(x=x))
            if repair:
                repair_if_infeasible(self.problem, individual.solution)
            self.fitness_evaluator.evaluate_fitness(individual)
            self.population.add_individual(individual)

        self.stats['total_evaluations'] += population_size
        self.population.record_statistics()
        return self.population

    def evolve(self, max_generations: Optional[int] = None) -> Tuple[Individual, List[Dict]]:
        """
        Run GA evolution process.

        Args:
            max_generations: Maximum number of generations

        Returns:
            Tuple of (best_individual, evolution_data)
        """
        if max_generations is None:
            max_generations = self.config['generations']
        log_interval = int(self.config.get('log_interval', 50))
        start_time = time.time()

        if self.population.is_empty():
            self.initialize_population()

        evolution_data = []

        for generation in range(max_generations):
            if self.deadline.expired():
                self.stats['stopped_by_deadline'] = True
                logger.info(f"GA deadline reached at generation {generation}")
                break
            self.generation = generation

            self._create_next_generation()
            self.population.record_statistics()

            stats = self.population.get_statistics()
            gen_data = {
                'generation': generation,
                'best_fitness': stats['best_fitness'],
                'avg_fitness': stats['avg_fitness'],
                'worst_fitness': stats['worst_fitness'],
                'std_fitness': stats['fitness_std'],
                'diversity': stats['diversity'],
                'feasible_count': stats['feasible_count'],
            }
            evolution_data.append(gen_data)

            best = self.population.get_best_individual()
            self.progress.emit(generation, best.solution.value, best.solution.feasible,
                               self.deadline.elapsed(),
                               avg_fitness=stats['avg_fitness'], diversity=stats['diversity'])
            if generation % log_interval == 0:
                logger.debug(f"GA generation {generation}: best={stats['best_fitness']:.1f}, "
                             f"avg={stats['avg_fitness']:.1f}, diversity={stats['diversity']:.3f}")

        self.execution_time = time.time() - start_time
        self.stats['generations'] = len(evolution_data)

        self.best_solution = self.population.get_best_individual()
        return self.best_solution, evolution_data

    def _create_next_generation(self):
        """Create next generation using elitism, selection, crossover and mutation."""
        with pipeline_profiler.profile("ga.generation"):
            self._create_next_generation_impl()

    def _create_next_generation_impl(self):
        self.population.sort_by_fitness()
        individuals = self.population.individuals
        population_size = len(individuals)

        new_population = self.population.apply_elitism(self.elite_count)

        while len(new_population) < population_size:
            parent1, parent2 = SelectionOperator.tournament_selection(
                individuals, self.rng, tournament_size=self.config['tournament_size']
            )
            child = CrossoverOperator.single_point_crossover(parent1, parent2, self.rng)
            self.stats['mutated_genes'] += MutationOperator.bit_flip_mutation(
                child, self.rng, mutation_rate=self.config['mutation_rate']
            )

            if repair_if_infeasible(self.problem, child.solution) > 0:
                self.stats['repaired_offspring'] += 1
            self.fitness_evaluator.evaluate_fitness(child)
            self.stats['total_evaluations'] += 1
            new_population.append(child)

        self.population.replace_individuals(new_population)

    def solve(self) -> Solution:
        best, _ = self.evolve()
        return best.solution

    def get_statistics(self) -> Dict:
        """Get GA statistics."""
        return {
            **self.stats,
            'population': self.population.get_statistics(),
            'execution_time': self.execution_time,
            'best_fitness_history': list(self.population.best_fitness_history),
            'avg_fitness_history': list(self.population.avg_fitness_history),
        }
