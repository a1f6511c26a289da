"""
Algebraic simplification of expression trees.

Children are simplified before the parent rule fires. Rules never mutate
their input: every rewrite builds new nodes, and a rewrite that produces a
smaller tree which may still match a rule is simplified again.
"""

import logging
from typing import Callable, Optional, Tuple

from symbolic_math_engine.analyzers.base_analyzer import Analyzer
from symbolic_math_engine.analyzers.helpers import map_children
from symbolic_math_engine.core.config import EngineConfig
from symbolic_math_engine.core.errors import DivisionByZeroError
from symbolic_math_engine.models.expression import (
    ExpressionNode,
    NodeType,
    Operator,
    add,
    binary,
    div,
    mul,
    negate,
    number,
    power,
    sub,
)
from symbolic_math_engine.models.operator_models import DEFAULT_OPERATOR_REGISTRY, OperatorRegistry

logger = logging.getLogger(__name__)


def _split_number(node: ExpressionNode) -> Optional[Tuple[float, ExpressionNode]]:
    """For a binary node with one numeric side, return (value, other side)."""
    if node.left.is_number():
        return node.left.number, node.right
    if node.right.is_number():
        return node.right.number, node.left
    return None


def _coefficient(term: ExpressionNode) -> Optional[Tuple[float, ExpressionNode]]:
    """Split v, c*v or v*c into (c, v)."""
    if term.is_variable():
        return 1.0, term
    if term.is_operator(Operator.MUL):
        if term.left.is_number() and term.right.is_variable():
            return term.left.number, term.right
        if term.right.is_number() and term.left.is_variable():
            return term.right.number, term.left
    return None


def _scaled(coefficient: float, term: ExpressionNode) -> ExpressionNode:
    if coefficient == 0:
        return number(0)
    if coefficient == 1:
        return term
    if coefficient == -1:
        return negate(term)
    return mul(number(coefficient), term)


class Simplifier(Analyzer[ExpressionNode]):
    """Rewrites a tree into an algebraically reduced form.

    The result is not guaranteed to be a unique normal form. Division by a
    literal zero is the only failure; unknown divisors stay symbolic.
    """

    def __init__(self, config: Optional[EngineConfig] = None, registry: Optional[OperatorRegistry] = None):
        super().__init__(config)
        self.registry = registry or DEFAULT_OPERATOR_REGISTRY

    def simplify(self, node: ExpressionNode) -> ExpressionNode:
        """Simplify a whole tree."""
        result = self.analyze(node)
        logger.debug(f"Simplified {node} -> {result}")
        return result

    def generic_analyze(self, node: ExpressionNode) -> ExpressionNode:
        simplified = map_children(node, self.analyze)
        if simplified.node_type == NodeType.UNARY:
            # f(f^-1(x)) -> x
            inverse = self.registry.inverse_of(simplified.operator)
            if inverse is not None and simplified.operand.is_operator(inverse):
                return simplified.operand.operand
        return simplified

    # Arithmetic

    def analyze_add(self, node: ExpressionNode) -> ExpressionNode:
        return self._simplify_add(self.analyze(node.left), self.analyze(node.right))

    def analyze_sub(self, node: ExpressionNode) -> ExpressionNode:
        return self._simplify_sub(self.analyze(node.left), self.analyze(node.right))

    def analyze_mul(self, node: ExpressionNode) -> ExpressionNode:
        return self._simplify_mul(self.analyze(node.left), self.analyze(node.right))

    def analyze_div(self, node: ExpressionNode) -> ExpressionNode:
        return self._simplify_div(self.analyze(node.left), self.analyze(node.right))

    def analyze_unary_minus(self, node: ExpressionNode) -> ExpressionNode:
        return self._simplify_negation(self.analyze(node.operand))

    def analyze_pow(self, node: ExpressionNode) -> ExpressionNode:
        base = self.analyze(node.left)
        exponent = self.analyze(node.right)
        if exponent.is_number(0):
            return number(1)
        if exponent.is_number(1):
            return base
        return power(base, exponent)

    def analyze_root(self, node: ExpressionNode) -> ExpressionNode:
        radicand = self.analyze(node.left)
        degree = self.analyze(node.right)
        if degree.is_number(1):
            return radicand
        return binary(Operator.ROOT, radicand, degree)

    # Logarithms

    def analyze_log(self, node: ExpressionNode) -> ExpressionNode:
        simplified = map_children(node, self.analyze)
        if simplified.left == simplified.right:
            return number(1)
        return simplified

    def analyze_ln(self, node: ExpressionNode) -> ExpressionNode:
        simplified = map_children(node, self.analyze)
        if simplified.operand.is_variable("e"):
            return number(1)
        return simplified

    def analyze_lg(self, node: ExpressionNode) -> ExpressionNode:
        simplified = map_children(node, self.analyze)
        if simplified.operand.is_number(10):
            return number(1)
        return simplified

    def analyze_lb(self, node: ExpressionNode) -> ExpressionNode:
        simplified = map_children(node, self.analyze)
        if simplified.operand.is_number(2):
            return number(1)
        return simplified

    # Programming constructs

    def analyze_simplify(self, node: ExpressionNode) -> ExpressionNode:
        return self.analyze(node.operand)

    def analyze_define(self, node: ExpressionNode) -> ExpressionNode:
        value = self.analyze(node.right)
        if value is node.right:
            return node
        return binary(Operator.DEFINE, node.left, value)

    # Rules over already simplified operands

    def _simplify_negation(self, operand: ExpressionNode) -> ExpressionNode:
        if operand.is_operator(Operator.UNARY_MINUS):
            return operand.operand
        if operand.is_number():
            return number(-operand.number)
        return negate(operand)

    def _simplify_add(self, left: ExpressionNode, right: ExpressionNode) -> ExpressionNode:
        if left.is_number(0):
            return right
        if right.is_number(0):
            return left
        if left.is_number() and right.is_number():
            return number(left.number + right.number)
        if left.is_variable() and left == right:
            return mul(number(2), left)

        # (-a) + b -> b - a, a + (-b) -> a - b
        if left.is_operator(Operator.UNARY_MINUS):
            return self._simplify_sub(right, left.operand)
        if right.is_operator(Operator.UNARY_MINUS):
            return self._simplify_sub(left, right.operand)

        if left.is_number() or right.is_number():
            numeric, other = (left, right) if left.is_number() else (right, left)
            n = numeric.number
            if other.is_operator(Operator.ADD):
                split = _split_number(other)
                if split:
                    a, y = split
                    return self._simplify_add(y, number(n + a))
            elif other.is_operator(Operator.SUB):
                if other.left.is_number():
                    return self._simplify_sub(number(n + other.left.number), other.right)
                if other.right.is_number():
                    return self._simplify_add(number(n - other.right.number), other.left)

        like = self._collect_like_terms(left, right, lambda a, b: a + b)
        if like is not None:
            return like
        return add(left, right)

    def _simplify_sub(self, left: ExpressionNode, right: ExpressionNode) -> ExpressionNode:
        if left.is_number(0):
            return self._simplify_negation(right)
        if right.is_number(0):
            return left
        if left.is_number() and right.is_number():
            return number(left.number - right.number)
        if left.is_variable() and left == right:
            return number(0)

        # a - (-b) -> a + b
        if right.is_operator(Operator.UNARY_MINUS):
            return self._simplify_add(left, right.operand)

        if right.is_number():
            n = right.number
            if left.is_operator(Operator.ADD):
                split = _split_number(left)
                if split:
                    a, y = split
                    return self._simplify_add(y, number(a - n))
            elif left.is_operator(Operator.SUB):
                if left.left.is_number():
                    return self._simplify_sub(number(left.left.number - n), left.right)
                if left.right.is_number():
                    return self._simplify_sub(left.left, number(left.right.number + n))
        elif left.is_number():
            n = left.number
            if right.is_operator(Operator.ADD):
                split = _split_number(right)
                if split:
                    a, y = split
                    return self._simplify_sub(number(n - a), y)
            elif right.is_operator(Operator.SUB):
                if right.left.is_number():
                    return self._simplify_add(number(n - right.left.number), right.right)
                if right.right.is_number():
                    return self._simplify_sub(number(n + right.right.number), right.left)

        like = self._collect_like_terms(left, right, lambda a, b: a - b)
        if like is not None:
            return like
        return sub(left, right)

    def _simplify_mul(self, left: ExpressionNode, right: ExpressionNode) -> ExpressionNode:
        if left.is_number(0) or right.is_number(0):
            return number(0)
        if left.is_number(1):
            return right
        if right.is_number(1):
            return left
        if left.is_number() and right.is_number():
            return number(left.number * right.number)
        if left.is_variable() and left == right:
            return power(left, number(2))

        if left.is_number() or right.is_number():
            numeric, other = (left, right) if left.is_number() else (right, left)
            n = numeric.number
            if other.is_operator(Operator.MUL):
                split = _split_number(other)
                if split:
                    a, y = split
                    return self._simplify_mul(number(n * a), y)
            elif other.is_operator(Operator.DIV):
                if other.left.is_number():
                    return self._simplify_div(number(n * other.left.number), other.right)
                if other.right.is_number():
                    return self._simplify_mul(number(n / other.right.number), other.left)

        like = self._collect_like_terms(left, right, lambda a, b: a * b, squared=True)
        if like is not None:
            return like

        # a * (-b) -> -(a * b)
        if right.is_operator(Operator.UNARY_MINUS):
            return self._simplify_negation(self._simplify_mul(left, right.operand))
        if left.is_operator(Operator.UNARY_MINUS):
            return self._simplify_negation(self._simplify_mul(left.operand, right))
        return mul(left, right)

    def _simplify_div(self, left: ExpressionNode, right: ExpressionNode) -> ExpressionNode:
        if left.is_number(0) and not right.is_number(0):
            return number(0)
        if right.is_number(0):
            if left.is_number(0):
                return div(left, right)
            raise DivisionByZeroError(f"Division of '{left}' by zero")
        if right.is_number(1):
            return left
        if left.is_number() and right.is_number():
            return number(left.number / right.number)
        if left.is_variable() and left == right:
            return number(1)

        if right.is_number():
            n = right.number
            if left.is_operator(Operator.MUL):
                split = _split_number(left)
                if split and split[0] != 0:
                    a, y = split
                    return self._simplify_div(y, number(n / a))
            elif left.is_operator(Operator.DIV):
                if left.left.is_number():
                    return self._simplify_div(number(left.left.number / n), left.right)
                if left.right.is_number():
                    return self._simplify_div(left.left, number(left.right.number * n))
        elif left.is_number():
            n = left.number
            if right.is_operator(Operator.MUL):
                split = _split_number(right)
                if split and split[0] != 0:
                    a, y = split
                    return self._simplify_div(number(n / a), y)
            elif right.is_operator(Operator.DIV):
                if right.left.is_number(0):
                    # Only an unsimplifiable 0/0 reaches here
                    return div(left, right)
                if right.left.is_number():
                    return self._simplify_mul(number(n / right.left.number), right.right)
                if right.right.is_number():
                    return self._simplify_div(number(n * right.right.number), right.left)

        return div(left, right)

    def _collect_like_terms(
        self,
        left: ExpressionNode,
        right: ExpressionNode,
        combine: Callable[[float, float], float],
        squared: bool = False,
    ) -> Optional[ExpressionNode]:
        """Fold c1*v (op) c2*v into a single scaled term."""
        left_term = _coefficient(left)
        right_term = _coefficient(right)
        if left_term is None or right_term is None or left_term[1] != right_term[1]:
            return None
        coefficient = combine(left_term[0], right_term[0])
        term = power(left_term[1], number(2)) if squared else left_term[1]
        return _scaled(coefficient, term)


__all__ = ["Simplifier"]
