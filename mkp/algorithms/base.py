"""
Abstract base classes for MKP algorithms.
Defines interfaces for algorithms and optimizers.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any
from mkp.models.problem import Problem
from mkp.models.solution import Solution


class BaseAlgorithm(ABC):
    """Base class for algorithms that build a solution from scratch."""

    def __init__(self, problem: Problem):
        """
        Initialize algorithm.

        Args:
            problem: MKP problem instance
        """
        self.problem = problem

    @abstractmethod
    def solve(self) -> Solution:
        """
        Solve MKP problem and return solution.

        Returns:
            Best solution found
        """
        pass

    @abstractmethod
    def get_statistics(self) -> Dict[str, Any]:
        """
        Return algorithm statistics.

        Returns:
            Dictionary with algorithm statistics
        """
        pass


class BaseOptimizer(ABC):
    """Base class for improvement procedures starting from a given solution."""

    def __init__(self, problem: Problem):
        """
        Initialize optimizer.

        Args:
            problem: MKP problem instance
        """
        self.problem = problem

    @abstractmethod
    def optimize(self, solution: Solution) -> Solution:
        """
        Optimize solution.

        Args:
            solution: Solution to optimize

        Returns:
            Optimized solution, never worse than the input
        """
        pass

    @abstractmethod
    def get_statistics(self) -> Dict[str, Any]:
        """
        Return optimizer statistics.

        Returns:
            Dictionary with optimizer statistics
        """
        pass
