"""
Search procedures for the multidimensional knapsack problem.

This package contains the interacting heuristics:
- Evaluation strategies and greedy repair
- Flip and Swap local search, VND and VNS
- Gradient relaxation solver
- Genetic algorithm
- Multi-start driver and method dispatch
"""

from .evaluation import CPUEvaluator, GPUEvaluator, get_evaluator
from .repair import repair_solution, repair_if_infeasible
from .local_search import FlipLocalSearch, SwapLocalSearch, LSMode
from .vnd import VariableNeighborhoodDescent
from .vns import VariableNeighborhoodSearch
from .gradient import GradientRelaxationSolver
from .genetic_algorithm import GeneticAlgorithm
from .multi_start import MultiStartDriver
from .solver import solve, SolveResult

__all__ = [
    'CPUEvaluator', 'GPUEvaluator', 'get_evaluator',
    'repair_solution', 'repair_if_infeasible',
    'FlipLocalSearch', 'SwapLocalSearch', 'LSMode',
    'VariableNeighborhoodDescent', 'VariableNeighborhoodSearch',
    'GradientRelaxationSolver', 'GeneticAlgorithm', 'MultiStartDriver',
    'solve', 'SolveResult',
]
