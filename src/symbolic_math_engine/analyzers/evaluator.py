"""
Numeric evaluation of expression trees.

Operands are evaluated first, then the operator is applied according to the
runtime result type of the operand values: real, complex, boolean, vector or
matrix. Real-only math functions that reject their argument raise
DomainError; complex arguments go through cmath instead.
"""

import cmath
import logging
import math
import random
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from symbolic_math_engine.analyzers.base_analyzer import Analyzer
from symbolic_math_engine.analyzers.differentiator import Differentiator
from symbolic_math_engine.analyzers.simplifier import Simplifier
from symbolic_math_engine.core.config import EngineConfig
from symbolic_math_engine.core.errors import (
    ArityError,
    DivisionByZeroError,
    DomainError,
    ShapeMismatchError,
    UnsupportedOperationError,
)
from symbolic_math_engine.models.expression import ExpressionNode, Operator
from symbolic_math_engine.models.parameters import AngleMeasurement, ExpressionParameters
from symbolic_math_engine.models.result_type import ResultType, value_result_type

logger = logging.getLogger(__name__)

RECTANGLE_SUBDIVISIONS = 1000
SIMPSON_SUBDIVISIONS = 10000

_RADIANS_PER_UNIT = {
    AngleMeasurement.RADIAN: 1.0,
    AngleMeasurement.DEGREE: math.pi / 180,
    AngleMeasurement.GRADIAN: math.pi / 200,
}

_ARRAY_TYPES = (ResultType.VECTOR, ResultType.MATRIX)

# Operator -> (real function, complex function)
_SCALAR_FUNCTIONS: Dict[Operator, Tuple[Callable, Optional[Callable]]] = {
    Operator.SQRT: (math.sqrt, cmath.sqrt),
    Operator.EXP: (math.exp, cmath.exp),
    Operator.LN: (math.log, cmath.log),
    Operator.LG: (math.log10, cmath.log10),
    Operator.LB: (math.log2, lambda z: cmath.log(z, 2)),
    Operator.SIGN: (lambda x: float((x > 0) - (x < 0)), None),
    Operator.FLOOR: (lambda x: float(math.floor(x)), None),
    Operator.CEIL: (lambda x: float(math.ceil(x)), None),
    # Trigonometric
    Operator.SIN: (math.sin, cmath.sin),
    Operator.COS: (math.cos, cmath.cos),
    Operator.TAN: (math.tan, cmath.tan),
    Operator.COT: (lambda x: 1 / math.tan(x), lambda z: 1 / cmath.tan(z)),
    Operator.SEC: (lambda x: 1 / math.cos(x), lambda z: 1 / cmath.cos(z)),
    Operator.CSC: (lambda x: 1 / math.sin(x), lambda z: 1 / cmath.sin(z)),
    Operator.ARCSIN: (math.asin, cmath.asin),
    Operator.ARCCOS: (math.acos, cmath.acos),
    Operator.ARCTAN: (math.atan, cmath.atan),
    Operator.ARCCOT: (lambda x: math.pi / 2 - math.atan(x), lambda z: math.pi / 2 - cmath.atan(z)),
    Operator.ARCSEC: (lambda x: math.acos(1 / x), lambda z: cmath.acos(1 / z)),
    Operator.ARCCSC: (lambda x: math.asin(1 / x), lambda z: cmath.asin(1 / z)),
    # Hyperbolic
    Operator.SINH: (math.sinh, cmath.sinh),
    Operator.COSH: (math.cosh, cmath.cosh),
    Operator.TANH: (math.tanh, cmath.tanh),
    Operator.COTH: (lambda x: 1 / math.tanh(x), lambda z: 1 / cmath.tanh(z)),
    Operator.SECH: (lambda x: 1 / math.cosh(x), lambda z: 1 / cmath.cosh(z)),
    Operator.CSCH: (lambda x: 1 / math.sinh(x), lambda z: 1 / cmath.sinh(z)),
    Operator.ARSINH: (math.asinh, cmath.asinh),
    Operator.ARCOSH: (math.acosh, cmath.acosh),
    Operator.ARTANH: (math.atanh, cmath.atanh),
    Operator.ARCOTH: (lambda x: 0.5 * math.log((x + 1) / (x - 1)), lambda z: 0.5 * cmath.log((z + 1) / (z - 1))),
    Operator.ARSECH: (lambda x: math.acosh(1 / x), lambda z: cmath.acosh(1 / z)),
    Operator.ARCSCH: (lambda x: math.asinh(1 / x), lambda z: cmath.asinh(1 / z)),
}

_TRIGONOMETRIC = {Operator.SIN, Operator.COS, Operator.TAN, Operator.COT, Operator.SEC, Operator.CSC}
_INVERSE_TRIGONOMETRIC = {
    Operator.ARCSIN,
    Operator.ARCCOS,
    Operator.ARCTAN,
    Operator.ARCCOT,
    Operator.ARCSEC,
    Operator.ARCCSC,
}

_COMPARISONS: Dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.LESS_THAN: lambda a, b: a < b,
    Operator.LESS_OR_EQUAL: lambda a, b: a <= b,
    Operator.GREATER_THAN: lambda a, b: a > b,
    Operator.GREATER_OR_EQUAL: lambda a, b: a >= b,
}


def _as_integer(value: Any, context: str) -> int:
    if isinstance(value, complex) or value != int(value):
        raise DomainError(f"{context} requires integer arguments, got {value}")
    return int(value)


def _equal(left: Any, right: Any) -> bool:
    if isinstance(left, np.ndarray) or isinstance(right, np.ndarray):
        return bool(np.array_equal(left, right))
    return bool(left == right)


class Evaluator(Analyzer[Any]):
    """Evaluates trees to float, complex, bool or numpy values.

    Args:
        parameters: Variable and function bindings. A fresh, empty context
            is used when omitted.
        config: Engine settings.
    """

    def __init__(self, parameters: Optional[ExpressionParameters] = None, config: Optional[EngineConfig] = None):
        super().__init__(config)
        if parameters is None:
            parameters = ExpressionParameters(angle_measurement=self.config.angle_measurement)
        self.parameters = parameters

    def evaluate(self, node: ExpressionNode) -> Any:
        """Evaluate a whole tree."""
        # Static check; raises ShapeMismatchError for literal size mismatches
        self.bounded(lambda: node.result_type)
        return self.analyze(node)

    def _scoped(self, **bindings: Any) -> "Evaluator":
        return Evaluator(self.parameters.copy_with(**bindings), self.config)

    # Leaves

    def analyze_number(self, node: ExpressionNode) -> float:
        return node.number

    def analyze_boolean(self, node: ExpressionNode) -> bool:
        return node.boolean

    def analyze_complex_number(self, node: ExpressionNode) -> complex:
        return complex(node.real, node.imaginary)

    def analyze_variable(self, node: ExpressionNode) -> Any:
        return self.parameters.lookup(node.name)

    def generic_analyze(self, node: ExpressionNode) -> Any:
        functions = _SCALAR_FUNCTIONS.get(node.operator)
        if functions is None:
            raise self.unsupported(node)

        value = self.analyze(node.operand)
        if value_result_type(value) in _ARRAY_TYPES:
            raise UnsupportedOperationError(f"'{node.operator.value}' is not defined for vectors or matrices")
        if node.operator in _TRIGONOMETRIC:
            value = value * _RADIANS_PER_UNIT[self.parameters.angle_measurement]

        real_function, complex_function = functions
        if isinstance(value, complex):
            if complex_function is None:
                raise DomainError(f"'{node.operator.value}' is not defined for complex numbers")
            result = complex_function(value)
        else:
            result = self._call_real(node.operator, real_function, value)

        if node.operator in _INVERSE_TRIGONOMETRIC:
            result = result / _RADIANS_PER_UNIT[self.parameters.angle_measurement]
        return result

    def _call_real(self, operator: Operator, function: Callable, *args: Any) -> Any:
        try:
            return function(*args)
        except (ValueError, ZeroDivisionError) as e:
            raise DomainError(f"'{operator.value}' is undefined for {', '.join(map(str, args))}") from e

    # Arithmetic

    def _additive(self, node: ExpressionNode, combine: Callable[[Any, Any], Any]) -> Any:
        left, right = self.analyze(node.left), self.analyze(node.right)
        left_type, right_type = value_result_type(left), value_result_type(right)
        if left_type in _ARRAY_TYPES or right_type in _ARRAY_TYPES:
            if left_type != right_type or left.shape != right.shape:
                raise ShapeMismatchError(
                    f"Cannot {node.operator.value} {left_type.value} of shape {np.shape(left)} "
                    f"and {right_type.value} of shape {np.shape(right)}"
                )
        return combine(left, right)

    def analyze_add(self, node: ExpressionNode) -> Any:
        return self._additive(node, lambda a, b: a + b)

    def analyze_sub(self, node: ExpressionNode) -> Any:
        return self._additive(node, lambda a, b: a - b)

    def analyze_mul(self, node: ExpressionNode) -> Any:
        left, right = self.analyze(node.left), self.analyze(node.right)
        left_type, right_type = value_result_type(left), value_result_type(right)
        if left_type not in _ARRAY_TYPES or right_type not in _ARRAY_TYPES:
            return left * right
        if left_type == ResultType.VECTOR and right_type == ResultType.VECTOR:
            if left.shape != right.shape:
                raise ShapeMismatchError(f"Vectors of length {len(left)} and {len(right)}")
            return float(np.dot(left, right))
        if left.shape[-1] != right.shape[0]:
            raise ShapeMismatchError(f"Shapes {left.shape} and {right.shape} are not aligned")
        return left @ right

    def analyze_div(self, node: ExpressionNode) -> Any:
        left, right = self.analyze(node.left), self.analyze(node.right)
        if value_result_type(right) in _ARRAY_TYPES:
            raise ShapeMismatchError("Cannot divide by a vector or matrix")
        if right == 0:
            if value_result_type(left) in _ARRAY_TYPES or left != 0:
                raise DivisionByZeroError(f"Division of '{node.left}' by zero")
            return math.nan
        return left / right

    def analyze_unary_minus(self, node: ExpressionNode) -> Any:
        return -self.analyze(node.operand)

    def analyze_abs(self, node: ExpressionNode) -> float:
        value = self.analyze(node.operand)
        if isinstance(value, np.ndarray):
            return float(np.linalg.norm(value))
        return abs(value)

    def analyze_pow(self, node: ExpressionNode) -> Any:
        base, exponent = self.analyze(node.left), self.analyze(node.right)
        if value_result_type(base) == ResultType.MATRIX:
            return np.linalg.matrix_power(base, _as_integer(exponent, "Matrix power"))
        if isinstance(base, complex) or isinstance(exponent, complex):
            return complex(base) ** exponent
        return self._call_real(node.operator, math.pow, base, exponent)

    def analyze_root(self, node: ExpressionNode) -> Any:
        radicand, degree = self.analyze(node.left), self.analyze(node.right)
        if isinstance(radicand, complex) or isinstance(degree, complex):
            return complex(radicand) ** (1 / degree)
        if degree == 0:
            raise DomainError("Root of degree zero is undefined")
        if radicand < 0 and degree == int(degree) and int(degree) % 2 == 1:
            return -math.pow(-radicand, 1 / degree)
        return self._call_real(node.operator, math.pow, radicand, 1 / degree)

    def analyze_log(self, node: ExpressionNode) -> Any:
        base, argument = self.analyze(node.left), self.analyze(node.right)
        if isinstance(base, complex) or isinstance(argument, complex):
            return cmath.log(argument, base)
        return self._call_real(node.operator, math.log, argument, base)

    def analyze_mod(self, node: ExpressionNode) -> float:
        left, right = self.analyze(node.left), self.analyze(node.right)
        if right == 0:
            raise DivisionByZeroError(f"Modulo of '{node.left}' by zero")
        # Remainder carries the sign of the dividend
        return math.fmod(left, right)

    def analyze_fact(self, node: ExpressionNode) -> float:
        value = _as_integer(self.analyze(node.operand), "Factorial")
        return float(self._call_real(node.operator, math.factorial, value))

    def analyze_npr(self, node: ExpressionNode) -> float:
        n = _as_integer(self.analyze(node.left), "nPr")
        r = _as_integer(self.analyze(node.right), "nPr")
        return float(self._call_real(node.operator, math.perm, n, r))

    def analyze_ncr(self, node: ExpressionNode) -> float:
        n = _as_integer(self.analyze(node.left), "nCr")
        r = _as_integer(self.analyze(node.right), "nCr")
        return float(self._call_real(node.operator, math.comb, n, r))

    def analyze_round(self, node: ExpressionNode) -> float:
        value = self.analyze(node.arguments[0])
        digits = 0
        if len(node.arguments) > 1:
            digits = _as_integer(self.analyze(node.arguments[1]), "Round")
        return float(round(value, digits))

    # Logic and comparison

    def _logical(self, node: ExpressionNode, logical: Callable, bitwise: Callable) -> Any:
        left, right = self.analyze(node.left), self.analyze(node.right)
        if isinstance(left, bool) and isinstance(right, bool):
            return logical(left, right)
        return float(bitwise(_as_integer(left, node.operator.value), _as_integer(right, node.operator.value)))

    def analyze_and(self, node: ExpressionNode) -> Any:
        return self._logical(node, lambda a, b: a and b, lambda a, b: a & b)

    def analyze_or(self, node: ExpressionNode) -> Any:
        return self._logical(node, lambda a, b: a or b, lambda a, b: a | b)

    def analyze_xor(self, node: ExpressionNode) -> Any:
        return self._logical(node, lambda a, b: a != b, lambda a, b: a ^ b)

    def analyze_not(self, node: ExpressionNode) -> Any:
        value = self.analyze(node.operand)
        if isinstance(value, bool):
            return not value
        return float(~_as_integer(value, "not"))

    def analyze_equal(self, node: ExpressionNode) -> bool:
        return _equal(self.analyze(node.left), self.analyze(node.right))

    def analyze_not_equal(self, node: ExpressionNode) -> bool:
        return not _equal(self.analyze(node.left), self.analyze(node.right))

    def _compare(self, node: ExpressionNode) -> bool:
        left, right = self.analyze(node.left), self.analyze(node.right)
        if isinstance(left, complex) or isinstance(right, complex):
            raise DomainError("Complex numbers are not ordered")
        return bool(_COMPARISONS[node.operator](left, right))

    analyze_less_than = _compare
    analyze_less_or_equal = _compare
    analyze_greater_than = _compare
    analyze_greater_or_equal = _compare

    # Complex numbers

    def analyze_re(self, node: ExpressionNode) -> float:
        return complex(self.analyze(node.operand)).real

    def analyze_im(self, node: ExpressionNode) -> float:
        return complex(self.analyze(node.operand)).imag

    def analyze_phase(self, node: ExpressionNode) -> float:
        return cmath.phase(complex(self.analyze(node.operand)))

    def analyze_conjugate(self, node: ExpressionNode) -> complex:
        return complex(self.analyze(node.operand)).conjugate()

    # Vectors and matrices

    def analyze_vector(self, node: ExpressionNode) -> np.ndarray:
        return np.array([self.analyze(argument) for argument in node.arguments])

    def analyze_matrix(self, node: ExpressionNode) -> np.ndarray:
        return np.vstack([self.analyze(row) for row in node.arguments])

    def _square_matrix(self, node: ExpressionNode) -> np.ndarray:
        value = self.analyze(node.operand)
        if value_result_type(value) != ResultType.MATRIX or value.shape[0] != value.shape[1]:
            raise ShapeMismatchError(f"'{node.operator.value}' requires a square matrix, got shape {np.shape(value)}")
        return value

    def analyze_determinant(self, node: ExpressionNode) -> float:
        return float(np.linalg.det(self._square_matrix(node)))

    def analyze_inverse(self, node: ExpressionNode) -> np.ndarray:
        matrix = self._square_matrix(node)
        try:
            return np.linalg.inv(matrix)
        except np.linalg.LinAlgError as e:
            raise DomainError("Matrix is singular") from e

    def analyze_transpose(self, node: ExpressionNode) -> np.ndarray:
        value = self.analyze(node.operand)
        if value_result_type(value) == ResultType.VECTOR:
            return value.reshape(-1, 1)
        if value_result_type(value) != ResultType.MATRIX:
            raise ShapeMismatchError("Transpose requires a vector or matrix")
        return value.T

    # Statistical

    def _iteration(self, node: ExpressionNode) -> Tuple[ExpressionNode, range, str]:
        """Unpack (body, [from,] to[, inc[, var]]) into body, range and index name."""
        args = node.arguments
        name = node.operator.value
        if len(args) == 2:
            start, end, step = 1, _as_integer(self.analyze(args[1]), name), 1
        else:
            start = _as_integer(self.analyze(args[1]), name)
            end = _as_integer(self.analyze(args[2]), name)
            step = _as_integer(self.analyze(args[3]), name) if len(args) > 3 else 1
        if step <= 0:
            raise DomainError(f"'{name}' requires a positive increment, got {step}")
        index = args[4].name if len(args) > 4 else "n"
        return args[0], range(start, end + 1, step), index

    def analyze_sum(self, node: ExpressionNode) -> Any:
        body, indices, index = self._iteration(node)
        return sum((self._scoped(**{index: float(i)}).analyze(body) for i in indices), 0.0)

    def analyze_product(self, node: ExpressionNode) -> Any:
        body, indices, index = self._iteration(node)
        result = 1.0
        for i in indices:
            result *= self._scoped(**{index: float(i)}).analyze(body)
        return result

    def _values(self, node: ExpressionNode) -> List[Any]:
        values = [self.analyze(argument) for argument in node.arguments]
        if len(values) == 1 and value_result_type(values[0]) == ResultType.VECTOR:
            return list(values[0])
        return values

    def analyze_avg(self, node: ExpressionNode) -> float:
        values = self._values(node)
        return float(sum(values) / len(values))

    def analyze_min(self, node: ExpressionNode) -> float:
        return float(min(self._values(node)))

    def analyze_max(self, node: ExpressionNode) -> float:
        return float(max(self._values(node)))

    def analyze_gcd(self, node: ExpressionNode) -> float:
        return float(math.gcd(*[_as_integer(v, "gcd") for v in self._values(node)]))

    def analyze_lcm(self, node: ExpressionNode) -> float:
        return float(math.lcm(*[_as_integer(v, "lcm") for v in self._values(node)]))

    def analyze_rand(self, node: ExpressionNode) -> float:
        return random.random()

    # Programming constructs

    def analyze_simplify(self, node: ExpressionNode) -> Any:
        return self.analyze(Simplifier(self.config).simplify(node.operand))

    def analyze_define(self, node: ExpressionNode) -> None:
        key = node.left
        if key.is_variable():
            value = self.analyze(node.right)
            self.parameters.define_variable(key.name, value)
            logger.debug(f"Defined variable '{key.name}' = {value}")
            return None
        if key.is_operator(Operator.USER_FUNCTION):
            if not all(argument.is_variable() for argument in key.arguments):
                raise UnsupportedOperationError(f"Parameters of '{key.name}' must be variables")
            self.parameters.define_function(key.name, [argument.name for argument in key.arguments], node.right)
            logger.debug(f"Defined function '{key.name}' with {len(key.arguments)} parameters")
            return None
        raise UnsupportedOperationError(f"Cannot assign to '{key}'")

    def analyze_user_function(self, node: ExpressionNode) -> Any:
        definition = self.parameters.get_function(node.name)
        if definition.arity != len(node.arguments):
            raise ArityError(f"Function '{node.name}' takes {definition.arity} arguments, got {len(node.arguments)}")
        values = [self.analyze(argument) for argument in node.arguments]
        return self._scoped(**dict(zip(definition.parameters, values))).analyze(definition.body)

    def analyze_condition(self, node: ExpressionNode) -> Any:
        for guard in node.arguments[1:]:
            fulfilled = self.analyze(guard)
            if not isinstance(fulfilled, bool):
                raise UnsupportedOperationError(f"Condition guard '{guard}' is not boolean")
            if not fulfilled:
                return None
        return self.analyze(node.arguments[0])

    def analyze_multi_condition(self, node: ExpressionNode) -> Any:
        for branch in node.arguments:
            result = self.analyze(branch)
            if result is not None:
                return result
        return math.nan

    # Calculus

    def _derivative(self, node: ExpressionNode) -> Any:
        expansion = Differentiator(parameters=self.parameters, config=self.config).expand_derivative(node)
        return self.analyze(expansion)

    analyze_derivative = _derivative
    analyze_nderivative = _derivative

    def analyze_definite_integral(self, node: ExpressionNode) -> float:
        body, index, lower, upper = node.arguments
        scope = self.parameters.copy_with()
        scope.angle_measurement = AngleMeasurement.RADIAN
        bounds = Evaluator(scope, self.config)
        left, right = bounds.analyze(lower), bounds.analyze(upper)
        if right <= left:
            raise DomainError(f"Invalid integral bounds: [{left}, {right}]")

        integrand = Evaluator(scope, self.config)

        def f(x: float) -> float:
            scope.variables[index.name] = x
            return integrand.analyze(body)

        if self.config.integration_method == "rectangle":
            return self._rectangle(f, left, right, RECTANGLE_SUBDIVISIONS)
        return self._simpson(f, left, right, SIMPSON_SUBDIVISIONS)

    @staticmethod
    def _rectangle(f: Callable[[float], float], a: float, b: float, n: int) -> float:
        dx = (b - a) / n
        return sum(dx * f(a + i * dx) for i in range(n + 1))

    @staticmethod
    def _simpson(f: Callable[[float], float], a: float, b: float, n: int) -> float:
        h = (b - a) / n
        odd = sum(f(a + i * h) for i in range(1, n, 2))
        even = sum(f(a + i * h) for i in range(2, n, 2))
        return h / 3 * (f(a) + f(b) + 4 * odd + 2 * even)


__all__ = ["Evaluator", "RECTANGLE_SUBDIVISIONS", "SIMPSON_SUBDIVISIONS"]
