"""
Custom exceptions for the MKP solver.
Provides specific exception classes for different error types.
"""


class MKPException(Exception):
    """Base exception for the MKP solver."""

    def __init__(self, message: str = "", details: dict = None):
        """
        Initialize MKP exception.

        Args:
            message: Error message
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InfeasibleSolutionError(MKPException):
    """Raised when a feasible solution was required but capacities are exceeded."""

    def __init__(self, violated_constraints: list = None, value: float = None):
        """
        Initialize infeasible solution error.

        Args:
            violated_constraints: Indices of the constraints over capacity
            value: Objective value of the rejected solution
        """
        message = "Solution violates capacity constraints"
        details = {}

        if violated_constraints:
            details['violated_constraints'] = list(violated_constraints)
            message += f": {len(violated_constraints)} constraint(s) over capacity"
        if value is not None:
            details['value'] = value

        super().__init__(message, details)


class InstanceFormatError(MKPException):
    """Raised when an instance file cannot be parsed."""

    def __init__(self, path: str = None, reason: str = None):
        """
        Initialize instance format error.

        Args:
            path: Path of the offending file
            reason: Reason for failure
        """
        message = "Malformed MKP instance"
        details = {}

        if path:
            details['path'] = path
            message += f": '{path}'"
        if reason:
            details['reason'] = reason
            message += f" ({reason})"

        super().__init__(message, details)


class DimensionMismatchError(MKPException):
    """Raised when problem arrays have inconsistent shapes."""

    def __init__(self, field: str = None, expected: tuple = None, actual: tuple = None):
        """
        Initialize dimension mismatch error.

        Args:
            field: Name of the array with the wrong shape
            expected: Expected shape
            actual: Actual shape
        """
        message = "Problem dimensions are inconsistent"
        details = {}

        if field:
            details['field'] = field
        if expected is not None:
            details['expected'] = expected
        if actual is not None:
            details['actual'] = actual

        if field:
            message += f": {field} has shape {actual}, expected {expected}"

        super().__init__(message, details)


class InvalidConfigurationError(MKPException):
    """Raised when configuration parameters are invalid."""

    def __init__(self, parameter: str = None, value: any = None,
                 expected: str = None):
        """
        Initialize invalid configuration error.

        Args:
            parameter: Parameter name
            value: Invalid value
            expected: Expected value or range
        """
        message = "Invalid configuration parameter"
        details = {}

        if parameter:
            details['parameter'] = parameter
        if value is not None:
            details['value'] = value
        if expected:
            details['expected'] = expected

        if parameter:
            message += f": {parameter} = {value}"
            if expected:
                message += f" (expected: {expected})"

        super().__init__(message, details)
