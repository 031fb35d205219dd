"""
Unit tests for the MKP search procedures.
Tests evaluation, repair, local search, VND, VNS, gradient solver, GA and dispatch.
"""

import unittest
import numpy as np

# Add project root to path
import os
import sys
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mkp.models.problem import Problem
from mkp.models.solution import Solution, Individual
from mkp.algorithms.evaluation import (
    compute_usage, check_feasibility, evaluate, get_evaluator, CPUEvaluator
)
from mkp.algorithms.repair import repair_solution, repair_if_infeasible
from mkp.algorithms.greedy import greedy_solution, random_solution
from mkp.algorithms.local_search import FlipLocalSearch, SwapLocalSearch, LSMode
from mkp.algorithms.vnd import VariableNeighborhoodDescent
from mkp.algorithms.vns import VariableNeighborhoodSearch, shake
from mkp.algorithms.gradient import GradientRelaxationSolver, sigmoid
from mkp.algorithms.operators import SelectionOperator, CrossoverOperator, MutationOperator
from mkp.algorithms.fitness import FitnessEvaluator
from mkp.algorithms.genetic_algorithm import GeneticAlgorithm
from mkp.algorithms.multi_start import MultiStartDriver
from mkp.algorithms.solver import solve
from mkp.data_processing.generator import generate_problem
from mkp.core.deadline import Deadline
from mkp.core.exceptions import InvalidConfigurationError
from config import GA_CONFIG, GD_CONFIG, VNS_CONFIG, build_config


def scenario_a() -> Problem:
    return Problem(profit=[10, 20, 15], capacity=[10], weight=[[5, 6, 5]], name="scenario_a")


def scenario_b() -> Problem:
    return Problem(profit=[3, 5, 2, 7, 4], capacity=[100], weight=[[1, 2, 3, 4, 5]], name="scenario_b")


def random_problem(seed: int = 1, n: int = 30, m: int = 3) -> Problem:
    return generate_problem(n_items=n, n_constraints=m, tightness=0.4, seed=seed)


class ScriptedRng:
    """Stands in for numpy Generator.integers with a fixed draw sequence."""

    def __init__(self, draws):
        self.draws = list(draws)

    def integers(self, low, high=None):
        return self.draws.pop(0)


class TestEvaluation(unittest.TestCase):
    """Test feasibility and objective evaluation."""

    def setUp(self):
        self.problem = random_problem()
        self.rng = np.random.default_rng(3)

    def test_evaluation_consistency(self):
        """Value is the profit sum and feasibility matches an independent usage check."""
        for _ in range(20):
            x = (self.rng.random(self.problem.n) < 0.5).astype(float)
            solution = evaluate(self.problem, Solution(x=x))

            expected_value = sum(self.problem.profit[j] for j in range(self.problem.n) if x[j] == 1)
            usage = [sum(self.problem.weight[i][j] * x[j] for j in range(self.problem.n))
                     for i in range(self.problem.m)]
            expected_feasible = all(u <= c for u, c in zip(usage, self.problem.capacity))

            self.assertAlmostEqual(solution.value, expected_value)
            self.assertEqual(solution.feasible, expected_feasible)

    def test_check_feasibility(self):
        problem = scenario_a()
        self.assertFalse(check_feasibility(problem, Solution(x=[1, 1, 1])))
        self.assertTrue(check_feasibility(problem, Solution(x=[0, 1, 0])))

    def test_gpu_evaluator_matches_cpu(self):
        """The GPU strategy gives the CPU result (directly or via fallback)."""
        gpu = get_evaluator('gpu')
        cpu = get_evaluator('cpu')
        x = (self.rng.random(self.problem.n) < 0.5).astype(float)
        a = gpu.evaluate(self.problem, Solution(x=x.copy()))
        b = cpu.evaluate(self.problem, Solution(x=x.copy()))
        self.assertAlmostEqual(a.value, b.value)
        self.assertEqual(a.feasible, b.feasible)

    def test_unknown_evaluator(self):
        with self.assertRaises(InvalidConfigurationError):
            get_evaluator('tpu')


class TestRepair(unittest.TestCase):
    """Test greedy feasibility repair."""

    def test_scenario_a(self):
        """All-ones is infeasible; lowest ratio items are dropped first."""
        problem = scenario_a()
        solution = Solution(x=[1, 1, 1], value=45.0)
        usage = compute_usage(problem, solution.x)
        self.assertEqual(usage[0], 16)

        removed = repair_solution(problem, solution, usage)

        self.assertEqual(removed, 2)
        self.assertEqual(list(solution.x), [0, 1, 0])
        self.assertEqual(solution.value, 20.0)
        self.assertTrue(solution.feasible)
        self.assertLessEqual(usage[0], 10)

    def test_repair_bound_and_feasibility(self):
        """Repair always ends feasible and removes at most n items."""
        rng = np.random.default_rng(11)
        for seed in range(5):
            problem = random_problem(seed=seed)
            x = (rng.random(problem.n) < 0.8).astype(float)
            solution = Solution(x=x)
            removed = repair_if_infeasible(problem, solution)

            self.assertLessEqual(removed, problem.n)
            self.assertTrue(solution.feasible)
            self.assertTrue(check_feasibility(problem, solution))
            self.assertAlmostEqual(solution.value, float(problem.profit @ solution.x))

    def test_repair_feasible_is_noop(self):
        problem = scenario_a()
        solution = Solution(x=[0, 1, 0])
        self.assertEqual(repair_if_infeasible(problem, solution), 0)
        self.assertEqual(solution.value, 20.0)
        self.assertTrue(solution.feasible)


class TestGreedy(unittest.TestCase):
    """Test construction heuristics."""

    def test_greedy_follows_candidate_order(self):
        solution = greedy_solution(scenario_a())
        self.assertEqual(list(solution.x), [0, 1, 0])
        self.assertEqual(solution.value, 20.0)
        self.assertTrue(solution.feasible)

    def test_random_solution_is_feasible(self):
        problem = random_problem()
        solution = random_solution(problem, np.random.default_rng(0))
        self.assertTrue(check_feasibility(problem, solution))


class TestLocalSearch(unittest.TestCase):
    """Test Flip and Swap neighborhoods."""

    def test_scenario_b_flip_fills_knapsack(self):
        """Without binding constraints Flip selects every item."""
        problem = scenario_b()
        for mode in (LSMode.FIRST, LSMode.BEST):
            flip = FlipLocalSearch(problem, {'ls_k': problem.n, 'ls_mode': mode})
            result = flip.optimize(Solution.empty(problem.n))
            self.assertEqual(list(result.x), [1, 1, 1, 1, 1])
            self.assertEqual(result.value, 21.0)
            self.assertTrue(result.feasible)

    def test_best_mode_takes_largest_gain(self):
        problem = scenario_b()
        flip = FlipLocalSearch(problem, {'ls_k': problem.n, 'ls_mode': LSMode.BEST})
        # One scan per accepted move, plus the final empty scan
        flip.optimize(Solution.empty(problem.n))
        self.assertEqual(flip.moves_accepted, 5)
        self.assertEqual(flip.scans, 6)

    def test_swap_exchanges_items(self):
        problem = Problem(profit=[10, 12], capacity=[5], weight=[[5, 5]])
        swap = SwapLocalSearch(problem, {'ls_k': 2, 'ls_mode': LSMode.FIRST})
        result = swap.optimize(Solution(x=[1, 0]))
        self.assertEqual(list(result.x), [0, 1])
        self.assertEqual(result.value, 12.0)

    def test_local_search_non_worsening(self):
        """Flip and Swap never return a worse solution."""
        rng = np.random.default_rng(5)
        problem = random_problem(seed=2, n=40, m=4)
        for _ in range(5):
            start = random_solution(problem, rng)
            for cls in (FlipLocalSearch, SwapLocalSearch):
                for mode in (LSMode.FIRST, LSMode.BEST):
                    search = cls(problem, {'ls_k': 20, 'ls_mode': mode})
                    result = search.optimize(start)
                    self.assertGreaterEqual(result.value, start.value)
                    self.assertTrue(result.feasible)
                    self.assertAlmostEqual(result.value, float(problem.profit @ result.x))

    def test_start_is_not_modified(self):
        problem = scenario_b()
        start = Solution.empty(problem.n)
        FlipLocalSearch(problem, {'ls_k': 5, 'ls_mode': 'best'}).optimize(start)
        self.assertEqual(start.selected_count(), 0)


class TestVND(unittest.TestCase):
    """Test Variable Neighborhood Descent."""

    def setUp(self):
        self.problem = random_problem(seed=4, n=40, m=3)
        self.ls_config = {'ls_k': 40, 'ls_mode': 'best'}

    def test_vnd_never_worse(self):
        start = greedy_solution(self.problem)
        vnd = VariableNeighborhoodDescent(self.problem, {'max_no_improvement': 2}, self.ls_config)
        result = vnd.optimize(start)
        self.assertGreaterEqual(result.value, start.value)
        self.assertTrue(result.feasible)

    def test_vnd_idempotent_at_local_optimum(self):
        """Re-running VND on its own output accepts no move."""
        first = VariableNeighborhoodDescent(self.problem, {'max_no_improvement': 1}, self.ls_config)
        optimum = first.optimize(random_solution(self.problem, np.random.default_rng(9)))

        second = VariableNeighborhoodDescent(self.problem, {'max_no_improvement': 1}, self.ls_config)
        again = second.optimize(optimum)

        self.assertEqual(second.moves_accepted, 0)
        self.assertEqual(again.value, optimum.value)
        np.testing.assert_array_equal(again.x, optimum.x)

    def test_vnd_records_progress(self):
        events = []
        vnd = VariableNeighborhoodDescent(self.problem, {'max_no_improvement': 1},
                                          self.ls_config, progress_callback=events.append)
        vnd.optimize(Solution.empty(self.problem.n))
        self.assertEqual(len(events), vnd.rounds)
        self.assertEqual(events[-1].source, 'vnd')


class TestVNS(unittest.TestCase):
    """Test Variable Neighborhood Search."""

    def setUp(self):
        self.problem = random_problem(seed=6, n=30, m=3)
        self.config = {'max_no_improvement': 3, 'k_max': 3, 'inner_max_no_improvement': 2}
        self.ls_config = {'ls_k': 30, 'ls_mode': 'first'}

    def test_shake_toggles_distinct_items(self):
        problem = scenario_b()
        start = Solution.empty(problem.n)
        shaken = shake(problem, start, 3, np.random.default_rng(0))
        # Capacity never binds, so exactly three distinct items are selected
        self.assertEqual(shaken.selected_count(), 3)
        self.assertAlmostEqual(shaken.value, float(problem.profit @ shaken.x))
        self.assertEqual(start.selected_count(), 0)

    def test_shake_radius_capped_by_n(self):
        problem = scenario_b()
        shaken = shake(problem, Solution.empty(problem.n), 50, np.random.default_rng(0))
        self.assertEqual(shaken.selected_count(), problem.n)

    def test_vns_improves_or_keeps(self):
        start = greedy_solution(self.problem)
        vns = VariableNeighborhoodSearch(self.problem, np.random.default_rng(1),
                                         self.config, self.ls_config)
        result = vns.optimize(start)
        self.assertGreaterEqual(result.value, start.value)
        self.assertTrue(result.feasible)

    def test_vns_repairs_infeasible_start(self):
        vns = VariableNeighborhoodSearch(self.problem, np.random.default_rng(1),
                                         self.config, self.ls_config)
        result = vns.optimize(Solution(x=np.ones(self.problem.n)))
        self.assertTrue(result.feasible)

    def test_vns_seed_reproducibility(self):
        results = []
        for _ in range(2):
            vns = VariableNeighborhoodSearch(self.problem, np.random.default_rng(42),
                                             self.config, self.ls_config)
            results.append(vns.optimize(Solution.empty(self.problem.n)))
        np.testing.assert_array_equal(results[0].x, results[1].x)
        self.assertEqual(results[0].value, results[1].value)

    def test_expired_deadline_returns_start(self):
        start = greedy_solution(self.problem)
        vns = VariableNeighborhoodSearch(self.problem, np.random.default_rng(1),
                                         self.config, self.ls_config, deadline=Deadline(0.0))
        result = vns.optimize(start)
        self.assertEqual(vns.steps, 0)
        np.testing.assert_array_equal(result.x, start.x)


class TestGradientSolver(unittest.TestCase):
    """Test the continuous relaxation solver."""

    def _config(self, **overrides):
        config = GD_CONFIG.copy()
        config.update({'max_iterations': 300, 'log_interval': 50})
        config.update(overrides)
        return config

    def test_scenario_d_zero_lambda_drives_selection_up(self):
        """With lambda=0 and no freezing every x_hat moves toward 1."""
        problem = scenario_b()
        solver = GradientRelaxationSolver(
            problem, np.random.default_rng(0),
            self._config(**{'lambda': 0.0, 'freeze_strategy': 'none'})
        )
        theta = solver.descend()
        self.assertTrue(np.all(sigmoid(theta) > 0.5))

        solution = solver.solve()
        self.assertEqual(list(solution.x), [1, 1, 1, 1, 1])
        self.assertTrue(solution.feasible)

    def test_zero_lambda_loss_ignores_overflow(self):
        problem = scenario_a()
        solver = GradientRelaxationSolver(problem, np.random.default_rng(0),
                                          self._config(**{'lambda': 0.0}))
        theta = np.full(problem.n, 5.0)
        frozen = np.zeros(problem.n, dtype=bool)
        loss, gradient, x_hat = solver.loss_and_gradient(theta, frozen)
        self.assertAlmostEqual(loss, -float(problem.profit @ x_hat))
        self.assertTrue(np.all(gradient < 0))

    def test_penalty_pushes_back_when_overflowing(self):
        problem = scenario_a()
        for loss in ('hinge', 'quadratic'):
            solver = GradientRelaxationSolver(problem, np.random.default_rng(0),
                                              self._config(**{'lambda': 100.0, 'loss': loss}))
            theta = np.full(problem.n, 5.0)
            _, gradient, _ = solver.loss_and_gradient(theta, np.zeros(problem.n, dtype=bool))
            self.assertTrue(np.all(gradient > 0))

    def test_frozen_variables_get_no_gradient(self):
        problem = scenario_a()
        solver = GradientRelaxationSolver(problem, np.random.default_rng(0), self._config())
        frozen = np.array([True, False, False])
        _, gradient, x_hat = solver.loss_and_gradient(np.array([-1.0, 0.0, 0.0]), frozen)
        self.assertEqual(gradient[0], 0.0)
        self.assertEqual(x_hat[0], 0.0)

    def test_output_is_feasible_for_every_strategy(self):
        problem = random_problem(seed=8, n=40, m=3)
        for strategy in ('highest', 'confidence', 'none'):
            for loss in ('hinge', 'quadratic'):
                solver = GradientRelaxationSolver(
                    problem, np.random.default_rng(2),
                    self._config(freeze_strategy=strategy, loss=loss)
                )
                solution = solver.solve()
                self.assertTrue(solution.feasible)
                self.assertTrue(check_feasibility(problem, solution))
                self.assertGreater(solver.iterations, 0)

    def test_highest_freezes_one_variable_per_interval(self):
        problem = random_problem(seed=8, n=40, m=3)
        config = self._config(max_iterations=20, warmup_iterations=10, freeze_interval=1,
                              max_no_improvement=1000)
        solver = GradientRelaxationSolver(problem, np.random.default_rng(2), config)
        solver.descend()
        self.assertEqual(int(solver.frozen.sum()), 10)

    def test_relaxed_progress_is_not_reported_feasible(self):
        problem = random_problem(seed=8, n=40, m=3)
        events = []
        config = self._config(max_iterations=20, log_interval=5, max_no_improvement=1000)
        solver = GradientRelaxationSolver(problem, np.random.default_rng(2), config,
                                          progress_callback=events.append)
        solution = solver.solve()

        relaxed = [e for e in events if e.details.get('relaxed')]
        self.assertEqual(len(relaxed), 4)
        self.assertTrue(all(not e.feasible for e in relaxed))

        final = events[-1]
        self.assertEqual(final.details['stage'], 'final')
        self.assertFalse(final.details['relaxed'])
        self.assertEqual(final.feasible, solution.feasible)


class TestGAOperators(unittest.TestCase):
    """Test GA operators."""

    def setUp(self):
        self.population = [
            Individual(Solution(x=[1, 1, 1]), fitness=5.0),
            Individual(Solution(x=[0, 1, 1]), fitness=3.0),
            Individual(Solution(x=[0, 0, 1]), fitness=1.0),
        ]

    def test_tournament_best_and_second(self):
        p1, p2 = SelectionOperator.tournament_selection(
            self.population, ScriptedRng([2, 0, 1]), tournament_size=3
        )
        self.assertIs(p1, self.population[0])
        self.assertIs(p2, self.population[1])

    def test_tournament_repeated_draw_is_both_parents(self):
        p1, p2 = SelectionOperator.tournament_selection(
            self.population, ScriptedRng([2, 2]), tournament_size=2
        )
        self.assertIs(p1, self.population[2])
        self.assertIs(p2, self.population[2])

    def test_single_point_crossover(self):
        parent1 = Individual(Solution(x=np.ones(5)))
        parent2 = Individual(Solution(x=np.zeros(5)))
        child = CrossoverOperator.single_point_crossover(parent1, parent2, ScriptedRng([2]))
        self.assertEqual(list(child.chromosome), [1, 1, 0, 0, 0])

    def test_bit_flip_mutation(self):
        rng = np.random.default_rng(0)
        individual = Individual(Solution(x=[1, 0, 1, 0]))
        self.assertEqual(MutationOperator.bit_flip_mutation(individual, rng, 0.0), 0)
        self.assertEqual(MutationOperator.bit_flip_mutation(individual, rng, 1.0), 4)
        self.assertEqual(list(individual.chromosome), [0, 1, 0, 1])

    def test_fitness_policies(self):
        problem = scenario_a()
        infeasible = Individual(Solution(x=[1, 1, 1]))

        zero = FitnessEvaluator(problem, policy='zero')
        self.assertEqual(zero.evaluate_fitness(infeasible), 0.0)

        penalty = FitnessEvaluator(problem, policy='penalty', penalty_factor=2.0)
        self.assertEqual(penalty.evaluate_fitness(infeasible), 45.0 - 2.0 * 6.0)

        feasible = Individual(Solution(x=[0, 1, 0]))
        self.assertEqual(zero.evaluate_fitness(feasible), 20.0)

        with self.assertRaises(InvalidConfigurationError):
            FitnessEvaluator(problem, policy='linear')


class TestGeneticAlgorithm(unittest.TestCase):
    """Test GA engine."""

    def setUp(self):
        self.problem = random_problem(seed=12, n=30, m=3)
        self.config = GA_CONFIG.copy()
        self.config.update({'population_size': 20, 'generations': 15})

    def test_ga_returns_feasible_best(self):
        ga = GeneticAlgorithm(self.problem, np.random.default_rng(0), self.config)
        best, evolution_data = ga.evolve()
        self.assertTrue(best.solution.feasible)
        self.assertEqual(len(evolution_data), 15)
        self.assertEqual(best.fitness, max(ind.fitness for ind in ga.population.individuals))

    def test_elitism_keeps_best_fitness_monotonic(self):
        ga = GeneticAlgorithm(self.problem, np.random.default_rng(0), self.config)
        _, evolution_data = ga.evolve()
        best = [row['best_fitness'] for row in evolution_data]
        self.assertEqual(best, sorted(best))

    def test_scenario_c_single_individual(self):
        """Population of one: the elite saturates the population, no variation."""
        config = self.config.copy()
        config['population_size'] = 1
        ga = GeneticAlgorithm(self.problem, np.random.default_rng(0), config)
        initial = ga.initialize_population().individuals[0].copy()

        best, evolution_data = ga.evolve(max_generations=5)

        self.assertEqual(ga.population.get_size(), 1)
        np.testing.assert_array_equal(best.chromosome, initial.chromosome)
        self.assertEqual(best.fitness, initial.fitness)
        self.assertEqual(ga.stats['total_evaluations'], 1)

    def test_ga_seed_reproducibility(self):
        results = []
        for _ in range(2):
            ga = GeneticAlgorithm(self.problem, np.random.default_rng(99), self.config)
            best, _ = ga.evolve()
            results.append(best)
        np.testing.assert_array_equal(results[0].chromosome, results[1].chromosome)

    def test_deadline_stops_evolution(self):
        ga = GeneticAlgorithm(self.problem, np.random.default_rng(0), self.config,
                              deadline=Deadline(0.0))
        best, evolution_data = ga.evolve()
        self.assertEqual(evolution_data, [])
        self.assertTrue(ga.stats['stopped_by_deadline'])
        self.assertIsNotNone(best)

    def test_zero_generations_runs_no_generation(self):
        ga = GeneticAlgorithm(self.problem, np.random.default_rng(0), self.config)
        best, evolution_data = ga.evolve(max_generations=0)
        self.assertEqual(evolution_data, [])
        self.assertEqual(ga.stats['total_evaluations'], self.config['population_size'])
        self.assertTrue(best.solution.feasible)

    def test_zero_population_size_is_respected(self):
        ga = GeneticAlgorithm(self.problem, np.random.default_rng(0), self.config)
        population = ga.initialize_population(population_size=0)
        self.assertEqual(population.get_size(), 0)


class TestMultiStart(unittest.TestCase):
    """Test the GD -> VNS restart driver."""

    def setUp(self):
        self.problem = random_problem(seed=21, n=30, m=3)
        self.gd_config = GD_CONFIG.copy()
        self.gd_config['max_iterations'] = 200
        self.vns_config = VNS_CONFIG.copy()
        self.vns_config.update({'max_no_improvement': 2, 'k_max': 2, 'inner_max_no_improvement': 1})
        self.ls_config = {'ls_k': 30, 'ls_mode': 'first'}

    def _run(self, num_starts):
        driver = MultiStartDriver(self.problem, np.random.default_rng(5), num_starts,
                                  self.gd_config, self.vns_config, self.ls_config)
        return driver, driver.solve()

    def test_more_starts_never_worse(self):
        _, single = self._run(1)
        driver, multi = self._run(3)
        self.assertEqual(len(driver.attempts), 3)
        self.assertTrue(multi.feasible)
        self.assertGreaterEqual(multi.value, single.value)
        self.assertEqual(multi.value, max(a['vns_value'] for a in driver.attempts))


class TestSolver(unittest.TestCase):
    """Test method dispatch."""

    def setUp(self):
        self.problem = random_problem(seed=30, n=25, m=2)
        self.config = build_config('fast', {
            'run': {'max_time': 20.0, 'num_starts': 2},
            'vns': {'max_no_improvement': 2, 'k_max': 2},
            'gd': {'max_iterations': 200},
            'ga': {'population_size': 10, 'generations': 10},
        })

    def test_every_method_returns_feasible_solution(self):
        for method in ('LS-FLIP', 'LS-SWAP', 'VND', 'VNS', 'GD', 'GA', 'MULTI-GD-VNS'):
            result = solve(self.problem, method, self.config, rng=np.random.default_rng(0))
            self.assertEqual(result.method, method)
            self.assertTrue(result.solution.feasible, method)
            self.assertTrue(result.history, method)
            self.assertGreaterEqual(result.elapsed, 0.0)

    def test_method_name_is_case_insensitive(self):
        result = solve(self.problem, 'vnd', self.config, rng=np.random.default_rng(0))
        self.assertEqual(result.method, 'VND')

    def test_unknown_method(self):
        with self.assertRaises(InvalidConfigurationError):
            solve(self.problem, 'TABU', self.config)

    def test_progress_callback_receives_events(self):
        events = []
        result = solve(self.problem, 'VNS', self.config, rng=np.random.default_rng(0),
                       progress_callback=events.append)
        self.assertEqual(len(events), len(result.history))

    def test_invalid_config_rejected(self):
        self.config['ga']['tournament_size'] = 1
        with self.assertRaises(InvalidConfigurationError):
            solve(self.problem, 'GA', self.config)

    def test_gpu_evaluator_choice(self):
        self.config['run']['evaluator'] = 'gpu'
        result = solve(self.problem, 'GD', self.config, rng=np.random.default_rng(0))
        self.assertTrue(result.solution.feasible)


if __name__ == '__main__':
    unittest.main()
