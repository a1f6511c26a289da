"""
Infix rendering of expression trees.

Output is valid parser input: formatting a parsed tree and parsing the text
again gives a structurally equal tree.
"""

import math
from typing import Optional

from symbolic_math_engine.analyzers.base_analyzer import Analyzer
from symbolic_math_engine.core.config import EngineConfig
from symbolic_math_engine.models.expression import ExpressionNode, NodeType, Operator
from symbolic_math_engine.models.operator_models import DEFAULT_OPERATOR_REGISTRY, OperatorRegistry

# Operators rendered without surrounding spaces
_TIGHT_SYMBOLS = {"*", "/", "%", "^"}

# Leaves and function calls never need parentheses
_ATOMIC_PRECEDENCE = 11


def format_number(value: float) -> str:
    """Render integral floats without a fractional part."""
    if value == 0:
        return "0"  # Also covers -0.0
    if math.isfinite(value) and value == int(value) and abs(value) < 1e15:
        return str(int(value))
    return repr(float(value))


class ExpressionFormatter(Analyzer[str]):
    """Renders a tree as infix text with minimal parentheses."""

    def __init__(self, config: Optional[EngineConfig] = None, registry: Optional[OperatorRegistry] = None):
        super().__init__(config)
        self.registry = registry or DEFAULT_OPERATOR_REGISTRY

    def format(self, node: ExpressionNode) -> str:
        return self.analyze(node)

    def precedence(self, node: ExpressionNode) -> int:
        """Binding strength of the node's outermost construct."""
        if node.is_number():
            return 8 if node.number < 0 else _ATOMIC_PRECEDENCE
        if node.node_type == NodeType.COMPLEX_NUMBER:
            if node.real != 0 or node.imaginary < 0:
                return 6
            return _ATOMIC_PRECEDENCE
        if node.is_leaf:
            return _ATOMIC_PRECEDENCE
        spec = self.registry.get(node.operator)
        if spec.symbol is None:
            return _ATOMIC_PRECEDENCE
        return spec.precedence

    def _wrapped(self, child: ExpressionNode, parenthesize: bool) -> str:
        text = self.analyze(child)
        return f"({text})" if parenthesize else text

    # Leaves

    def analyze_number(self, node: ExpressionNode) -> str:
        return format_number(node.number)

    def analyze_variable(self, node: ExpressionNode) -> str:
        return node.name

    def analyze_boolean(self, node: ExpressionNode) -> str:
        return "true" if node.boolean else "false"

    def analyze_complex_number(self, node: ExpressionNode) -> str:
        imaginary = f"{format_number(node.imaginary)}i"
        if node.real == 0:
            return imaginary
        sign = "+" if node.imaginary >= 0 else ""
        return f"{format_number(node.real)}{sign}{imaginary}"

    # Operators

    def generic_analyze(self, node: ExpressionNode) -> str:
        spec = self.registry.get(node.operator)
        if node.node_type == NodeType.BINARY and spec.symbol is not None:
            return self._infix(node, spec.symbol, spec.precedence, spec.associativity)
        arguments = ", ".join(self.analyze(child) for child in node.children)
        return f"{spec.name}({arguments})"

    def _infix(self, node: ExpressionNode, symbol: str, precedence: int, associativity: str) -> str:
        left_precedence = self.precedence(node.left)
        right_precedence = self.precedence(node.right)
        if associativity == "right":
            wrap_left = left_precedence <= precedence
            wrap_right = right_precedence < precedence
        else:
            wrap_left = left_precedence < precedence
            wrap_right = right_precedence <= precedence
        # Keep "a - -b" readable
        if node.right.is_operator(Operator.UNARY_MINUS):
            wrap_right = True
        if node.left.is_number() and node.left.number < 0:
            wrap_left = True
        if node.right.is_number() and node.right.number < 0:
            wrap_right = True

        left = self._wrapped(node.left, wrap_left)
        right = self._wrapped(node.right, wrap_right)
        if symbol in _TIGHT_SYMBOLS:
            return f"{left}{symbol}{right}"
        return f"{left} {symbol} {right}"

    def analyze_unary_minus(self, node: ExpressionNode) -> str:
        operand = node.operand
        wrap = self.precedence(operand) < 8 or operand.is_number() and operand.number < 0
        return f"-{self._wrapped(operand, wrap)}"

    def analyze_not(self, node: ExpressionNode) -> str:
        return f"not {self._wrapped(node.operand, self.precedence(node.operand) < 8)}"

    def analyze_fact(self, node: ExpressionNode) -> str:
        return f"{self._wrapped(node.operand, self.precedence(node.operand) < _ATOMIC_PRECEDENCE)}!"

    def analyze_vector(self, node: ExpressionNode) -> str:
        return "{" + ", ".join(self.analyze(argument) for argument in node.arguments) + "}"

    def analyze_matrix(self, node: ExpressionNode) -> str:
        return "{" + ", ".join(self.analyze(row) for row in node.arguments) + "}"

    def analyze_user_function(self, node: ExpressionNode) -> str:
        return f"{node.name}({', '.join(self.analyze(argument) for argument in node.arguments)})"


__all__ = ["ExpressionFormatter", "format_number"]
