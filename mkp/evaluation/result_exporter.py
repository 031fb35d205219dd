"""
Result export module for the MKP solver.
Exports solutions, run summaries and convergence traces.
"""

import json
import logging
import os
from typing import List, Dict, Any, Optional
from datetime import datetime

import numpy as np
import pandas as pd

from mkp.models.problem import Problem
from mkp.models.solution import Solution
from mkp.algorithms.evaluation import compute_usage, overflow
from mkp.core.exceptions import InfeasibleSolutionError

logger = logging.getLogger(__name__)


def format_solution(solution: Solution) -> str:
    """
    Two-line solution text.

    Line 1: integer objective value and number of selected items.
    Line 2: 1-based indices of the selected items.
    """
    selected = solution.selected_items()
    header = f"{int(round(solution.value))} {selected.size}"
    indices = ' '.join(str(int(j) + 1) for j in selected)
    return f"{header}\n{indices}\n"


class ResultExporter:
    """Exports MKP results in various formats."""

    def __init__(self, output_dir: str = "results"):
        """
        Initialize result exporter.

        Args:
            output_dir: Output directory for results
        """
        self.output_dir = output_dir
        self.timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        os.makedirs(self.output_dir, exist_ok=True)

    def _path(self, filename: str) -> str:
        return os.path.join(self.output_dir, filename)

    def save_solution(self, solution: Solution, problem: Problem,
                      filename: Optional[str] = None,
                      require_feasible: bool = False) -> str:
        """
        Write the two-line solution file.

        Args:
            solution: Solution to export
            problem: Problem the solution belongs to
            filename: Output filename (auto-generated if None)
            require_feasible: Refuse to write an infeasible solution

        Returns:
            Path to exported file

        Raises:
            InfeasibleSolutionError: If require_feasible and capacities are exceeded
        """
        if require_feasible and not solution.feasible:
            excess = overflow(compute_usage(problem, solution.x), problem.capacity)
            raise InfeasibleSolutionError(
                violated_constraints=[int(i) for i in np.flatnonzero(excess > 0)],
                value=float(solution.value)
            )

        if filename is None:
            filename = f"{problem.name}_solution_{self.timestamp}.txt"
        filepath = self._path(filename)

        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(format_solution(solution))

        logger.info(f"Solution exported to: {filepath}")
        return filepath

    def export_convergence(self, history: List[Dict[str, Any]],
                           filename: Optional[str] = None) -> str:
        """
        Export progress events to CSV.

        Args:
            history: Progress records (ProgressEvent.to_dict rows)
            filename: Output filename (auto-generated if None)

        Returns:
            Path to exported file
        """
        if filename is None:
            filename = f"convergence_{self.timestamp}.csv"
        filepath = self._path(filename)

        df = pd.DataFrame(history)
        if df.empty:
            df = pd.DataFrame(columns=['source', 'iteration', 'best_value', 'feasible', 'elapsed'])
        df.to_csv(filepath, index=False)

        logger.info(f"Convergence data exported to: {filepath}")
        return filepath

    def export_evolution_data(self, evolution_data: List[Dict],
                              filename: Optional[str] = None) -> str:
        """
        Export GA per-generation statistics to CSV.

        Args:
            evolution_data: List of generation data
            filename: Output filename (auto-generated if None)

        Returns:
            Path to exported file
        """
        if filename is None:
            filename = f"evolution_data_{self.timestamp}.csv"
        filepath = self._path(filename)

        pd.DataFrame(evolution_data).to_csv(filepath, index=False)
        logger.info(f"Evolution data exported to: {filepath}")
        return filepath

    def export_summary(self, problem: Problem, solution: Solution, method: str,
                       elapsed: float, statistics: Optional[Dict] = None,
                       config: Optional[Dict] = None,
                       validation: Optional[Dict] = None,
                       filename: Optional[str] = None) -> str:
        """
        Export a JSON run summary.

        Args:
            problem: Solved instance
            solution: Final solution
            method: Method name
            elapsed: Wall-clock seconds
            statistics: Method statistics
            config: Sectioned configuration used for the run
            validation: SolutionValidator report
            filename: Output filename (auto-generated if None)

        Returns:
            Path to exported file
        """
        if filename is None:
            filename = f"{problem.name}_summary_{self.timestamp}.json"
        filepath = self._path(filename)

        summary = {
            'timestamp': self.timestamp,
            'instance': problem.get_problem_info(),
            'method': method,
            'elapsed_seconds': elapsed,
            'solution': solution.to_dict(),
            'statistics': statistics or {},
            'config': config or {},
            'validation': validation or {},
        }

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(summary, f, indent=2, default=_json_default)

        logger.info(f"Run summary exported to: {filepath}")
        return filepath


def _json_default(value):
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    return str(value)
