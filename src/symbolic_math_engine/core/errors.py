"""
Error taxonomy for the symbolic math engine.

Errors are raised where they are detected and propagate unchanged through
the recursive analyzers. None of them subclass ValueError so that pydantic
validators let them through without wrapping them in a ValidationError.
"""

from typing import Optional


class SymbolicMathError(Exception):
    """Base class for every engine error."""

    pass


class ArityError(SymbolicMathError):
    """Raised when a node is constructed with the wrong number of children."""

    pass


class DomainError(SymbolicMathError):
    """Raised when a real-only function receives an argument outside its domain."""

    pass


class DivisionByZeroError(SymbolicMathError):
    """Raised when a nonzero value is divided by a provably-zero divisor."""

    pass


class ShapeMismatchError(SymbolicMathError):
    """Raised when vector or matrix sizes do not agree."""

    pass


class UndefinedVariableError(SymbolicMathError):
    """Raised when evaluation references a name with no binding."""

    def __init__(self, name: str, message: Optional[str] = None):
        self.name = name
        super().__init__(message or f"Variable '{name}' is not defined")


class UnsupportedOperationError(SymbolicMathError):
    """Raised when an analyzer has no rule for a node."""

    pass


class InvalidConfigurationError(SymbolicMathError):
    """Raised when required context or settings are missing or malformed."""

    pass


class RecursionLimitExceededError(SymbolicMathError):
    """Raised when a traversal goes deeper than the configured ceiling."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Expression tree exceeds the maximum depth of {limit}")


class StepRegistrationError(SymbolicMathError):
    """Raised when two different derivation steps claim the same node."""

    pass


class ExpressionParseError(SymbolicMathError):
    """Raised when formula text cannot be parsed."""

    def __init__(self, message: str, position: int = 0):
        self.position = position
        super().__init__(f"{message} at position {position}")


__all__ = [
    "SymbolicMathError",
    "ArityError",
    "DomainError",
    "DivisionByZeroError",
    "ShapeMismatchError",
    "UndefinedVariableError",
    "UnsupportedOperationError",
    "InvalidConfigurationError",
    "RecursionLimitExceededError",
    "StepRegistrationError",
    "ExpressionParseError",
]
