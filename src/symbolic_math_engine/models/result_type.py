"""
Result types and the compatibility table used to combine them.
"""

from enum import Enum
from typing import Any, Optional, Tuple

import numpy as np

from symbolic_math_engine.core.errors import ShapeMismatchError
from symbolic_math_engine.models.operator_models import Operator


class ResultType(str, Enum):
    """Runtime value category an expression evaluates to."""

    UNDEFINED = "undefined"  # Depends on bindings, e.g. a bare variable
    NUMBER = "number"
    COMPLEX_NUMBER = "complex_number"
    BOOLEAN = "boolean"
    VECTOR = "vector"
    MATRIX = "matrix"


_SCALARS = {ResultType.NUMBER, ResultType.COMPLEX_NUMBER}
_ARRAYS = {ResultType.VECTOR, ResultType.MATRIX}

# Operators whose result is always of a fixed type
_FIXED_RESULT_TYPES = {
    Operator.EQUAL: ResultType.BOOLEAN,
    Operator.NOT_EQUAL: ResultType.BOOLEAN,
    Operator.LESS_THAN: ResultType.BOOLEAN,
    Operator.LESS_OR_EQUAL: ResultType.BOOLEAN,
    Operator.GREATER_THAN: ResultType.BOOLEAN,
    Operator.GREATER_OR_EQUAL: ResultType.BOOLEAN,
    Operator.VECTOR: ResultType.VECTOR,
    Operator.MATRIX: ResultType.MATRIX,
    Operator.TRANSPOSE: ResultType.MATRIX,
    Operator.INVERSE: ResultType.MATRIX,
    Operator.DETERMINANT: ResultType.NUMBER,
    Operator.RE: ResultType.NUMBER,
    Operator.IM: ResultType.NUMBER,
    Operator.PHASE: ResultType.NUMBER,
    Operator.CONJUGATE: ResultType.COMPLEX_NUMBER,
    Operator.SIGN: ResultType.NUMBER,
    Operator.FLOOR: ResultType.NUMBER,
    Operator.CEIL: ResultType.NUMBER,
    Operator.ROUND: ResultType.NUMBER,
    Operator.FACT: ResultType.NUMBER,
    Operator.MOD: ResultType.NUMBER,
    Operator.NPR: ResultType.NUMBER,
    Operator.NCR: ResultType.NUMBER,
    Operator.SUM: ResultType.NUMBER,
    Operator.PRODUCT: ResultType.NUMBER,
    Operator.AVG: ResultType.NUMBER,
    Operator.MIN: ResultType.NUMBER,
    Operator.MAX: ResultType.NUMBER,
    Operator.GCD: ResultType.NUMBER,
    Operator.LCM: ResultType.NUMBER,
    Operator.RAND: ResultType.NUMBER,
    Operator.DEFINITE_INTEGRAL: ResultType.NUMBER,
}

# Operators whose type depends on bindings or on which branch is taken
_UNDEFINED_RESULT_TYPES = {
    Operator.DEFINE,
    Operator.CONDITION,
    Operator.MULTI_CONDITION,
    Operator.USER_FUNCTION,
    Operator.DERIVATIVE,
    Operator.NDERIVATIVE,
}


def _shape(node) -> Optional[Tuple[int, ...]]:
    """Static shape of a literal vector or matrix node."""
    if node.operator == Operator.VECTOR:
        return (len(node.arguments),)
    if node.operator == Operator.MATRIX:
        return (len(node.arguments), len(node.arguments[0].arguments))
    return None


def _scalar(left: ResultType, right: ResultType) -> ResultType:
    if ResultType.COMPLEX_NUMBER in (left, right):
        return ResultType.COMPLEX_NUMBER
    if ResultType.UNDEFINED in (left, right):
        return ResultType.UNDEFINED
    return ResultType.NUMBER


def combine_additive(node) -> ResultType:
    """Result type of add/sub."""
    left, right = node.left.result_type, node.right.result_type
    if left in _ARRAYS or right in _ARRAYS:
        if left != right:
            if ResultType.UNDEFINED in (left, right):
                return ResultType.UNDEFINED
            raise ShapeMismatchError(f"Cannot combine {left.value} with {right.value}")
        left_shape, right_shape = _shape(node.left), _shape(node.right)
        if left_shape and right_shape and left_shape != right_shape:
            raise ShapeMismatchError(f"Shapes {left_shape} and {right_shape} do not match")
        return left
    return _scalar(left, right)


def combine_multiplicative(node) -> ResultType:
    """Result type of mul."""
    left, right = node.left.result_type, node.right.result_type
    if left in _ARRAYS or right in _ARRAYS:
        if ResultType.UNDEFINED in (left, right):
            return ResultType.UNDEFINED
        if left in _SCALARS:
            return right
        if right in _SCALARS:
            return left
        left_shape, right_shape = _shape(node.left), _shape(node.right)
        if left == ResultType.VECTOR and right == ResultType.VECTOR:
            if left_shape and right_shape and left_shape != right_shape:
                raise ShapeMismatchError(f"Vectors of length {left_shape[0]} and {right_shape[0]}")
            return ResultType.NUMBER
        if left_shape and right_shape and left_shape[-1] != right_shape[0]:
            raise ShapeMismatchError(f"Shapes {left_shape} and {right_shape} are not aligned")
        if ResultType.VECTOR in (left, right):
            return ResultType.VECTOR
        return ResultType.MATRIX
    return _scalar(left, right)


def value_result_type(value: Any) -> ResultType:
    """Result type of an already evaluated value."""
    if isinstance(value, np.ndarray):
        return ResultType.MATRIX if value.ndim == 2 else ResultType.VECTOR
    if isinstance(value, (bool, np.bool_)):
        return ResultType.BOOLEAN
    if isinstance(value, complex):
        return ResultType.COMPLEX_NUMBER
    if isinstance(value, (int, float, np.number)):
        return ResultType.NUMBER
    return ResultType.UNDEFINED


def resolve_result_type(node) -> ResultType:
    """Compute the result type of a node from its children."""
    # Leaves are resolved by ExpressionNode itself
    operator = node.operator
    if operator in _FIXED_RESULT_TYPES:
        return _FIXED_RESULT_TYPES[operator]
    if operator in _UNDEFINED_RESULT_TYPES:
        return ResultType.UNDEFINED
    if operator in (Operator.ADD, Operator.SUB):
        return combine_additive(node)
    if operator == Operator.MUL:
        return combine_multiplicative(node)
    if operator == Operator.DIV:
        left, right = node.left.result_type, node.right.result_type
        if right in _ARRAYS:
            raise ShapeMismatchError("Cannot divide by a vector or matrix")
        if left in _ARRAYS:
            return left
        return _scalar(left, right)
    if operator in (Operator.NOT, Operator.AND, Operator.OR, Operator.XOR):
        child_types = {child.result_type for child in node.children}
        if child_types == {ResultType.BOOLEAN}:
            return ResultType.BOOLEAN
        if ResultType.UNDEFINED in child_types:
            return ResultType.UNDEFINED
        return ResultType.NUMBER
    if operator == Operator.SIMPLIFY:
        return node.operand.result_type
    if operator == Operator.ABS:
        child = node.operand.result_type
        return ResultType.UNDEFINED if child == ResultType.UNDEFINED else ResultType.NUMBER

    # Remaining scalar functions: complex in, complex out
    child_types = [child.result_type for child in node.children]
    if ResultType.COMPLEX_NUMBER in child_types:
        return ResultType.COMPLEX_NUMBER
    if ResultType.UNDEFINED in child_types:
        return ResultType.UNDEFINED
    return ResultType.NUMBER


__all__ = ["ResultType", "resolve_result_type", "value_result_type", "combine_additive", "combine_multiplicative"]
