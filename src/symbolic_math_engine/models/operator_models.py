"""
Pydantic models describing the supported operators.
Arity bounds, parser names, infix symbols and inverse pairs all live here
so the node model, the parser, the formatter and the simplifier share one
source of truth.
"""

from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict


class Operator(str, Enum):
    """Operator tags carried by unary, binary and n-ary nodes."""

    # Arithmetic
    ADD = "add"  # +
    SUB = "sub"  # -
    MUL = "mul"  # *
    DIV = "div"  # /
    POW = "pow"  # ^
    MOD = "mod"  # %
    UNARY_MINUS = "unary_minus"  # -x
    ABS = "abs"
    SQRT = "sqrt"
    ROOT = "root"
    FACT = "fact"  # x!
    SIGN = "sign"
    FLOOR = "floor"
    CEIL = "ceil"
    ROUND = "round"

    # Exponential and logarithmic
    EXP = "exp"
    LN = "ln"
    LG = "lg"  # base 10
    LB = "lb"  # base 2
    LOG = "log"  # log(base, x)

    # Trigonometric
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    COT = "cot"
    SEC = "sec"
    CSC = "csc"
    ARCSIN = "arcsin"
    ARCCOS = "arccos"
    ARCTAN = "arctan"
    ARCCOT = "arccot"
    ARCSEC = "arcsec"
    ARCCSC = "arccsc"

    # Hyperbolic
    SINH = "sinh"
    COSH = "cosh"
    TANH = "tanh"
    COTH = "coth"
    SECH = "sech"
    CSCH = "csch"
    ARSINH = "arsinh"
    ARCOSH = "arcosh"
    ARTANH = "artanh"
    ARCOTH = "arcoth"
    ARSECH = "arsech"
    ARCSCH = "arcsch"

    # Combinatorics
    NPR = "npr"
    NCR = "ncr"

    # Logical and bitwise
    NOT = "not"
    AND = "and"
    OR = "or"
    XOR = "xor"

    # Comparison
    EQUAL = "equal"  # ==
    NOT_EQUAL = "not_equal"  # !=
    LESS_THAN = "less_than"  # <
    LESS_OR_EQUAL = "less_or_equal"  # <=
    GREATER_THAN = "greater_than"  # >
    GREATER_OR_EQUAL = "greater_or_equal"  # >=

    # Complex numbers
    RE = "re"
    IM = "im"
    PHASE = "phase"
    CONJUGATE = "conjugate"

    # Matrices and vectors
    VECTOR = "vector"  # {a, b, c}
    MATRIX = "matrix"  # {{a, b}, {c, d}}
    DETERMINANT = "determinant"
    TRANSPOSE = "transpose"
    INVERSE = "inverse"

    # Statistical
    SUM = "sum"
    PRODUCT = "product"
    AVG = "avg"
    MIN = "min"
    MAX = "max"
    GCD = "gcd"
    LCM = "lcm"
    RAND = "rand"

    # Programming constructs
    DEFINE = "define"  # :=
    CONDITION = "condition"  # if(expr, guard, ...)
    MULTI_CONDITION = "multi_condition"  # piecewise(if(...), ...)
    USER_FUNCTION = "user_function"  # f(x, y)

    # Calculus
    DERIVATIVE = "derivative"  # deriv(f, x, point)
    NDERIVATIVE = "nderivative"  # nderiv(f, n, x, point)
    DEFINITE_INTEGRAL = "definite_integral"  # integral(f, x, a, b)
    SIMPLIFY = "simplify"


class OperatorKind(str, Enum):
    """How many children an operator node owns."""

    UNARY = "unary"
    BINARY = "binary"
    NARY = "nary"


class OperatorSpec(BaseModel):
    """Metadata for a single operator."""

    operator: Operator
    kind: OperatorKind
    name: str  # Function name used by the parser and formatter
    category: str  # "arithmetic", "trigonometric", "logical", ...
    symbol: Optional[str] = None  # Infix symbol, if any
    precedence: int = 11
    associativity: str = "left"  # "left", "right"
    min_args: int = 1
    max_args: Optional[int] = 1  # None = unlimited
    inverse: Optional[Operator] = None
    description: str = ""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "operator": "sin",
                    "kind": "unary",
                    "name": "sin",
                    "category": "trigonometric",
                    "min_args": 1,
                    "max_args": 1,
                    "inverse": "arcsin",
                }
            ]
        }
    )

    def accepts(self, count: int) -> bool:
        """Check whether an argument count is within bounds."""
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args


class OperatorRegistry(BaseModel):
    """Central registry of all supported operators."""

    operators: Dict[Operator, OperatorSpec] = Field(default_factory=dict)
    categories: List[str] = Field(default_factory=list)

    def add_operator(self, spec: OperatorSpec):
        """Add an operator to the registry."""
        self.operators[spec.operator] = spec
        if spec.category not in self.categories:
            self.categories.append(spec.category)

    def get(self, operator: Operator) -> OperatorSpec:
        """Get operator info. Every Operator member is registered."""
        return self.operators[operator]

    def get_by_name(self, name: str) -> Optional[OperatorSpec]:
        """Get a function-style operator by its parser name."""
        lowered = name.lower()
        for spec in self.operators.values():
            if spec.name == lowered:
                return spec
        return None

    def get_by_symbol(self, symbol: str, kind: OperatorKind) -> Optional[OperatorSpec]:
        """Get an infix operator by symbol and kind."""
        for spec in self.operators.values():
            if spec.symbol == symbol and spec.kind == kind:
                return spec
        return None

    def get_by_category(self, category: str) -> List[OperatorSpec]:
        """Get all operators in a category."""
        return [spec for spec in self.operators.values() if spec.category == category]

    def inverse_of(self, operator: Operator) -> Optional[Operator]:
        """Get the paired inverse function, if one is declared."""
        spec = self.operators.get(operator)
        return spec.inverse if spec else None

    def get_precedence(self, operator: Operator) -> int:
        spec = self.operators.get(operator)
        return spec.precedence if spec else 0


def _unary(operator: Operator, category: str, inverse: Optional[Operator] = None, **kwargs) -> OperatorSpec:
    return OperatorSpec(
        operator=operator,
        kind=OperatorKind.UNARY,
        name=kwargs.pop("name", operator.value),
        category=category,
        min_args=1,
        max_args=1,
        inverse=inverse,
        **kwargs,
    )


def _binary(operator: Operator, category: str, **kwargs) -> OperatorSpec:
    return OperatorSpec(
        operator=operator,
        kind=OperatorKind.BINARY,
        name=kwargs.pop("name", operator.value),
        category=category,
        min_args=2,
        max_args=2,
        **kwargs,
    )


def _nary(operator: Operator, category: str, min_args: int, max_args: Optional[int], **kwargs) -> OperatorSpec:
    return OperatorSpec(
        operator=operator,
        kind=OperatorKind.NARY,
        name=kwargs.pop("name", operator.value),
        category=category,
        min_args=min_args,
        max_args=max_args,
        **kwargs,
    )


# Pairs simplified by f(f^-1(x)) -> x, registered in both directions
INVERSE_PAIRS = [
    (Operator.SIN, Operator.ARCSIN),
    (Operator.COS, Operator.ARCCOS),
    (Operator.TAN, Operator.ARCTAN),
    (Operator.COT, Operator.ARCCOT),
    (Operator.SEC, Operator.ARCSEC),
    (Operator.CSC, Operator.ARCCSC),
    (Operator.SINH, Operator.ARSINH),
    (Operator.COSH, Operator.ARCOSH),
    (Operator.TANH, Operator.ARTANH),
    (Operator.COTH, Operator.ARCOTH),
    (Operator.SECH, Operator.ARSECH),
    (Operator.CSCH, Operator.ARCSCH),
]


def create_default_operator_registry() -> OperatorRegistry:
    """Create registry with every supported operator."""
    registry = OperatorRegistry()
    inverses: Dict[Operator, Operator] = {}
    for function, inverse in INVERSE_PAIRS:
        inverses[function] = inverse
        inverses[inverse] = function

    # Arithmetic operators
    arithmetic_operators = [
        _binary(Operator.ADD, "arithmetic", symbol="+", precedence=6),
        _binary(Operator.SUB, "arithmetic", symbol="-", precedence=6),
        _binary(Operator.MUL, "arithmetic", symbol="*", precedence=7),
        _binary(Operator.DIV, "arithmetic", symbol="/", precedence=7),
        _binary(Operator.MOD, "arithmetic", symbol="%", precedence=7),
        _binary(Operator.POW, "arithmetic", symbol="^", precedence=9, associativity="right"),
        _unary(Operator.UNARY_MINUS, "arithmetic", symbol="-", precedence=8),
        _unary(Operator.FACT, "arithmetic", symbol="!", precedence=10),
        _unary(Operator.ABS, "arithmetic"),
        _unary(Operator.SQRT, "arithmetic"),
        _binary(Operator.ROOT, "arithmetic", description="root(x, n)"),
        _unary(Operator.SIGN, "arithmetic"),
        _unary(Operator.FLOOR, "arithmetic"),
        _unary(Operator.CEIL, "arithmetic"),
        _nary(Operator.ROUND, "arithmetic", 1, 2, description="round(x[, digits])"),
    ]

    exponential_functions = [
        _unary(Operator.EXP, "exponential"),
        _unary(Operator.LN, "exponential"),
        _unary(Operator.LG, "exponential"),
        _unary(Operator.LB, "exponential"),
        _binary(Operator.LOG, "exponential", description="log(base, x)"),
    ]

    trigonometric_functions = [
        _unary(op, "trigonometric", inverse=inverses[op])
        for op in (
            Operator.SIN,
            Operator.COS,
            Operator.TAN,
            Operator.COT,
            Operator.SEC,
            Operator.CSC,
            Operator.ARCSIN,
            Operator.ARCCOS,
            Operator.ARCTAN,
            Operator.ARCCOT,
            Operator.ARCSEC,
            Operator.ARCCSC,
        )
    ]

    hyperbolic_functions = [
        _unary(op, "hyperbolic", inverse=inverses[op])
        for op in (
            Operator.SINH,
            Operator.COSH,
            Operator.TANH,
            Operator.COTH,
            Operator.SECH,
            Operator.CSCH,
            Operator.ARSINH,
            Operator.ARCOSH,
            Operator.ARTANH,
            Operator.ARCOTH,
            Operator.ARSECH,
            Operator.ARCSCH,
        )
    ]

    combinatoric_functions = [
        _binary(Operator.NPR, "combinatorics"),
        _binary(Operator.NCR, "combinatorics"),
    ]

    logical_operators = [
        _unary(Operator.NOT, "logical", symbol="not", precedence=8),
        _binary(Operator.AND, "logical", symbol="and", precedence=3),
        _binary(Operator.OR, "logical", symbol="or", precedence=2),
        _binary(Operator.XOR, "logical", symbol="xor", precedence=2),
    ]

    comparison_operators = [
        _binary(Operator.EQUAL, "comparison", symbol="==", precedence=4),
        _binary(Operator.NOT_EQUAL, "comparison", symbol="!=", precedence=4),
        _binary(Operator.LESS_THAN, "comparison", symbol="<", precedence=5),
        _binary(Operator.LESS_OR_EQUAL, "comparison", symbol="<=", precedence=5),
        _binary(Operator.GREATER_THAN, "comparison", symbol=">", precedence=5),
        _binary(Operator.GREATER_OR_EQUAL, "comparison", symbol=">=", precedence=5),
    ]

    complex_functions = [
        _unary(Operator.RE, "complex"),
        _unary(Operator.IM, "complex"),
        _unary(Operator.PHASE, "complex"),
        _unary(Operator.CONJUGATE, "complex"),
    ]

    matrix_functions = [
        _nary(Operator.VECTOR, "matrix", 1, None),
        _nary(Operator.MATRIX, "matrix", 1, None),
        _unary(Operator.DETERMINANT, "matrix", name="det"),
        _unary(Operator.TRANSPOSE, "matrix"),
        _unary(Operator.INVERSE, "matrix"),
    ]

    statistical_functions = [
        _nary(Operator.SUM, "statistical", 2, 5, description="sum(body, [from,] to[, inc[, var]])"),
        _nary(Operator.PRODUCT, "statistical", 2, 5, description="product(body, [from,] to[, inc[, var]])"),
        _nary(Operator.AVG, "statistical", 1, None),
        _nary(Operator.MIN, "statistical", 1, None),
        _nary(Operator.MAX, "statistical", 1, None),
        _nary(Operator.GCD, "statistical", 2, None),
        _nary(Operator.LCM, "statistical", 2, None),
        _nary(Operator.RAND, "statistical", 0, 0),
    ]

    programming_constructs = [
        _binary(Operator.DEFINE, "programming", symbol=":=", precedence=1, associativity="right"),
        _nary(Operator.CONDITION, "programming", 2, None, name="if"),
        _nary(Operator.MULTI_CONDITION, "programming", 1, None, name="piecewise"),
        _nary(Operator.USER_FUNCTION, "programming", 0, None, name="<user>"),
    ]

    calculus_functions = [
        _nary(Operator.DERIVATIVE, "calculus", 1, 3, name="deriv"),
        _nary(Operator.NDERIVATIVE, "calculus", 2, 4, name="nderiv"),
        _nary(Operator.DEFINITE_INTEGRAL, "calculus", 4, 4, name="integral"),
        _unary(Operator.SIMPLIFY, "calculus"),
    ]

    for spec in (
        arithmetic_operators
        + exponential_functions
        + trigonometric_functions
        + hyperbolic_functions
        + combinatoric_functions
        + logical_operators
        + comparison_operators
        + complex_functions
        + matrix_functions
        + statistical_functions
        + programming_constructs
        + calculus_functions
    ):
        registry.add_operator(spec)

    return registry


DEFAULT_OPERATOR_REGISTRY = create_default_operator_registry()


__all__ = [
    "Operator",
    "OperatorKind",
    "OperatorSpec",
    "OperatorRegistry",
    "INVERSE_PAIRS",
    "create_default_operator_registry",
    "DEFAULT_OPERATOR_REGISTRY",
]
