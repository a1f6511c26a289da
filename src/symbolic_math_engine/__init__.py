"""Symbolic Math Engine.

Expression trees with algebraic simplification, step-by-step symbolic
differentiation and numeric evaluation over reals, complex numbers,
vectors and matrices.
"""

from symbolic_math_engine.core.errors import (
    SymbolicMathError,
    ArityError,
    DomainError,
    DivisionByZeroError,
    ShapeMismatchError,
    UndefinedVariableError,
    UnsupportedOperationError,
    InvalidConfigurationError,
    RecursionLimitExceededError,
    StepRegistrationError,
    ExpressionParseError,
)
from symbolic_math_engine.core.config import EngineConfig, load_config
from symbolic_math_engine.models.expression import ExpressionNode, NodeType, Operator
from symbolic_math_engine.models.result_type import ResultType
from symbolic_math_engine.models.parameters import AngleMeasurement, ExpressionParameters
from symbolic_math_engine.models.derivation_models import DerivationRule, DerivativeResult
from symbolic_math_engine.analyzers.simplifier import Simplifier
from symbolic_math_engine.analyzers.differentiator import Differentiator
from symbolic_math_engine.analyzers.derivation_step import DerivationStep
from symbolic_math_engine.analyzers.evaluator import Evaluator
from symbolic_math_engine.analyzers.formatter import ExpressionFormatter
from symbolic_math_engine.converters.formula_parser import FormulaParser
from symbolic_math_engine.core.engine import SymbolicEngine

# Version
__version__ = "0.1.0"

# Public API
__all__ = [
    # Facade
    "SymbolicEngine",
    "EngineConfig",
    "load_config",
    # Tree model
    "ExpressionNode",
    "NodeType",
    "Operator",
    "ResultType",
    "AngleMeasurement",
    "ExpressionParameters",
    # Analyzers
    "Simplifier",
    "Differentiator",
    "DerivationStep",
    "DerivationRule",
    "DerivativeResult",
    "Evaluator",
    "ExpressionFormatter",
    "FormulaParser",
    # Errors
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
    # Version
    "__version__",
]
