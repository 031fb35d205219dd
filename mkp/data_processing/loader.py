"""
Instance loader for MKP benchmark files.
Handles the whitespace-token text format and JSON documents.
"""

import json
import logging
import os
from typing import Dict, List

import numpy as np

from mkp.models.problem import Problem, create_problem_from_dict
from mkp.core.exceptions import InstanceFormatError

logger = logging.getLogger(__name__)


class MKPInstanceLoader:
    """
    Loads and saves MKP instances.

    Text format (whitespace separated tokens, any line layout):
        n m
        profit_1 ... profit_n
        capacity_1 ... capacity_m
        weight_11 ... weight_1n
        ...
        weight_m1 ... weight_mn
    """

    def load_from_file(self, file_path: str) -> Problem:
        """
        Load an instance, choosing the parser from the file extension.

        Args:
            file_path: Path to a .json file or a text instance

        Returns:
            Problem instance
        """
        if not os.path.exists(file_path):
            raise InstanceFormatError(path=file_path, reason="File not found")

        name = os.path.splitext(os.path.basename(file_path))[0]
        with open(file_path, 'r', encoding='utf-8') as f:
            content = f.read()

        if file_path.lower().endswith('.json'):
            problem = self.parse_json(content, name=name, path=file_path)
        else:
            problem = self.parse_text(content, name=name, path=file_path)

        logger.info(f"Loaded instance {problem.name}: n={problem.n}, m={problem.m}")
        return problem

    def parse_text(self, content: str, name: str = "instance", path: str = None) -> Problem:
        """
        Parse the text token format.

        Args:
            content: File content
            name: Instance name
            path: Source path, reported in errors

        Returns:
            Problem instance
        """
        tokens = content.split()
        if len(tokens) < 2:
            raise InstanceFormatError(path=path, reason="Missing header 'n m'")

        try:
            values = [float(token) for token in tokens]
        except ValueError as e:
            raise InstanceFormatError(path=path, reason=f"Non-numeric token: {e}") from e

        n, m = values[0], values[1]
        if n != int(n) or m != int(m) or n < 1 or m < 1:
            raise InstanceFormatError(path=path, reason=f"Invalid header: n={tokens[0]}, m={tokens[1]}")
        n, m = int(n), int(m)

        expected = 2 + n + m + m * n
        if len(values) < expected:
            raise InstanceFormatError(
                path=path,
                reason=f"Expected {expected} tokens for n={n}, m={m}, found {len(values)}"
            )
        if len(values) > expected:
            logger.warning(f"Ignoring {len(values) - expected} trailing token(s) in {path or name}")

        body = np.array(values[2:expected], dtype=np.float64)
        profit = body[:n]
        capacity = body[n:n + m]
        weight = body[n + m:].reshape(m, n)

        return Problem(profit, capacity, weight, name=name)

    def parse_json(self, content: str, name: str = "instance", path: str = None) -> Problem:
        """Parse a JSON document with profit, capacity and weight keys."""
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise InstanceFormatError(path=path, reason=f"Invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise InstanceFormatError(path=path, reason="Top-level JSON value must be an object")

        data = dict(data)
        data.setdefault('name', name)
        try:
            return create_problem_from_dict(data)
        except (TypeError, ValueError) as e:
            raise InstanceFormatError(path=path, reason=str(e)) from e

    def save_to_file(self, problem: Problem, file_path: str):
        """
        Write an instance in the format matching the file extension.

        Args:
            problem: Problem to save
            file_path: Destination (.json or text)
        """
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        if file_path.lower().endswith('.json'):
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(problem.to_dict(), f, indent=2)
        else:
            with open(file_path, 'w', encoding='utf-8') as f:
                f.write(f"{problem.n} {problem.m}\n")
                f.write(' '.join(_format_numbers(problem.profit)) + '\n')
                f.write(' '.join(_format_numbers(problem.capacity)) + '\n')
                for row in problem.weight:
                    f.write(' '.join(_format_numbers(row)) + '\n')

        logger.info(f"Saved instance {problem.name} to {file_path}")


def _format_numbers(values) -> List[str]:
    # Integral coefficients are written without a decimal part
    return [str(int(v)) if float(v).is_integer() else repr(float(v)) for v in values]


def load_instances(file_paths: List[str]) -> Dict[str, Problem]:
    """Load several instances keyed by instance name."""
    loader = MKPInstanceLoader()
    problems = {}
    for path in file_paths:
        problem = loader.load_from_file(path)
        problems[problem.name] = problem
    return problems
