from .base_analyzer import Analyzer
from .simplifier import Simplifier
from .differentiator import Differentiator
from .derivation_step import DerivationStep
from .evaluator import Evaluator
from .formatter import ExpressionFormatter

__all__ = [
    "Analyzer",
    "Simplifier",
    "Differentiator",
    "DerivationStep",
    "Evaluator",
    "ExpressionFormatter",
]
