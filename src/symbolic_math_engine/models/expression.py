"""
Expression tree schema for the symbolic math engine.
A single node model covers every variant through composition: leaves,
unary, binary and n-ary (different-parameter) operators.
"""

from enum import Enum
from typing import Any, List, Optional, Sequence, Union
from pydantic import BaseModel, Field, ConfigDict, model_validator

from symbolic_math_engine.core.errors import ArityError, ShapeMismatchError
from symbolic_math_engine.models.operator_models import (
    DEFAULT_OPERATOR_REGISTRY,
    Operator,
    OperatorKind,
)
from symbolic_math_engine.models.result_type import ResultType, resolve_result_type


class NodeType(str, Enum):
    """Expression node variants."""

    # Leaf nodes
    NUMBER = "number"  # 2, 3.5
    VARIABLE = "variable"  # x, pi
    BOOLEAN = "boolean"  # true, false
    COMPLEX_NUMBER = "complex_number"  # 3+2i

    # Operator nodes
    UNARY = "unary"  # sin(x), -x
    BINARY = "binary"  # x + y, log(b, x)
    DIFFERENT_PARAMETERS = "different_parameters"  # sum(...), f(x, y)


LEAF_NODE_TYPES = (
    NodeType.NUMBER,
    NodeType.VARIABLE,
    NodeType.BOOLEAN,
    NodeType.COMPLEX_NUMBER,
)

_OPERATOR_KINDS = {
    NodeType.UNARY: OperatorKind.UNARY,
    NodeType.BINARY: OperatorKind.BINARY,
    NodeType.DIFFERENT_PARAMETERS: OperatorKind.NARY,
}


class ExpressionNode(BaseModel):
    """
    Expression tree node that can represent any supported construct.
    Uses composition instead of a class hierarchy: node_type selects the
    variant and operator selects the function for non-leaf nodes.
    """

    # Core identification
    node_type: NodeType
    operator: Optional[Operator] = None

    # Leaf payloads
    number: Optional[float] = None
    real: Optional[float] = None
    imaginary: Optional[float] = None
    boolean: Optional[bool] = None
    name: Optional[str] = None  # Variable name or user function name

    # Unary operation fields
    operand: Optional["ExpressionNode"] = None

    # Binary operation fields
    left: Optional["ExpressionNode"] = None
    right: Optional["ExpressionNode"] = None

    # Different-parameter operation fields
    arguments: List["ExpressionNode"] = Field(default_factory=list)
    parameter_count: Optional[int] = None

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "examples": [
                {
                    "node_type": "binary",
                    "operator": "add",
                    "left": {"node_type": "number", "number": 2},
                    "right": {"node_type": "variable", "name": "x"},
                }
            ]
        },
    )

    @model_validator(mode="after")
    def _check_arity(self) -> "ExpressionNode":
        ExpressionValidator.validate_node(self)
        return self

    @property
    def children(self) -> List["ExpressionNode"]:
        """Ordered child nodes."""
        if self.node_type == NodeType.UNARY:
            return [self.operand]
        if self.node_type == NodeType.BINARY:
            return [self.left, self.right]
        if self.node_type == NodeType.DIFFERENT_PARAMETERS:
            return list(self.arguments)
        return []

    @property
    def is_leaf(self) -> bool:
        return self.node_type in LEAF_NODE_TYPES

    @property
    def result_type(self) -> ResultType:
        """Value category this node evaluates to."""
        if self.node_type == NodeType.NUMBER:
            return ResultType.NUMBER
        if self.node_type == NodeType.COMPLEX_NUMBER:
            return ResultType.COMPLEX_NUMBER
        if self.node_type == NodeType.BOOLEAN:
            return ResultType.BOOLEAN
        if self.node_type == NodeType.VARIABLE:
            return ResultType.UNDEFINED
        return resolve_result_type(self)

    def is_number(self, value: Optional[float] = None) -> bool:
        """Check for a number leaf, optionally with a given value."""
        if self.node_type != NodeType.NUMBER:
            return False
        return value is None or self.number == value

    def is_variable(self, name: Optional[str] = None) -> bool:
        """Check for a variable leaf, optionally with a given name."""
        if self.node_type != NodeType.VARIABLE:
            return False
        return name is None or self.name == name

    def is_operator(self, *operators: Operator) -> bool:
        return self.operator is not None and self.operator in operators

    def with_children(self, children: Sequence["ExpressionNode"]) -> "ExpressionNode":
        """Build a new node of the same variant holding the given children."""
        if self.node_type == NodeType.UNARY:
            return unary(self.operator, children[0])
        if self.node_type == NodeType.BINARY:
            return binary(self.operator, children[0], children[1])
        if self.node_type == NodeType.DIFFERENT_PARAMETERS:
            return nary(self.operator, children, name=self.name)
        return self

    def clone(self) -> "ExpressionNode":
        """Deep copy. Shared subtrees become distinct copies."""
        if self.is_leaf:
            return self.model_copy()
        return self.with_children([child.clone() for child in self.children])

    def accept(self, analyzer: Any) -> Any:
        """Double-dispatch entry point for analyzers."""
        return analyzer.analyze(self)

    def evaluate(self, parameters: Any = None) -> Any:
        """Evaluate this tree numerically with the given bindings."""
        from symbolic_math_engine.analyzers.evaluator import Evaluator

        return Evaluator(parameters).evaluate(self)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ExpressionNode):
            return NotImplemented
        if self is other:
            return True
        return (
            self.node_type == other.node_type
            and self.operator == other.operator
            and self.number == other.number
            and self.real == other.real
            and self.imaginary == other.imaginary
            and self.boolean == other.boolean
            and self.name == other.name
            and self.children == other.children
        )

    def __str__(self) -> str:
        from symbolic_math_engine.analyzers.formatter import ExpressionFormatter

        return ExpressionFormatter().format(self)

    def __repr__(self) -> str:
        return f"ExpressionNode({str(self)!r})"


class ExpressionValidator:
    """Validates node shape against the operator registry."""

    @staticmethod
    def validate_node(node: ExpressionNode) -> None:
        """Raise ArityError if the node's children do not fit its variant."""
        if node.node_type in LEAF_NODE_TYPES:
            ExpressionValidator._validate_leaf(node)
            return

        if node.operator is None:
            raise ArityError(f"{node.node_type.value} node requires an operator")

        spec = DEFAULT_OPERATOR_REGISTRY.get(node.operator)
        if spec.kind != _OPERATOR_KINDS[node.node_type]:
            raise ArityError(
                f"Operator '{node.operator.value}' is {spec.kind.value}, "
                f"not {node.node_type.value}"
            )

        if node.node_type == NodeType.UNARY:
            if node.operand is None:
                raise ArityError(f"'{node.operator.value}' requires an operand")
        elif node.node_type == NodeType.BINARY:
            if node.left is None or node.right is None:
                raise ArityError(f"'{node.operator.value}' requires two operands")
        else:
            count = len(node.arguments)
            if node.parameter_count is None:
                node.parameter_count = count
            elif node.parameter_count != count:
                raise ArityError(
                    f"'{node.operator.value}' declares {node.parameter_count} "
                    f"parameters but has {count} arguments"
                )
            if not spec.accepts(count):
                bound = "unbounded" if spec.max_args is None else spec.max_args
                raise ArityError(
                    f"'{spec.name}' takes between {spec.min_args} and {bound} "
                    f"arguments, got {count}"
                )
            ExpressionValidator._validate_arguments(node)

    @staticmethod
    def _validate_leaf(node: ExpressionNode) -> None:
        if node.operator is not None:
            raise ArityError(f"{node.node_type.value} leaf cannot carry an operator")
        if node.node_type == NodeType.NUMBER and node.number is None:
            raise ArityError("Number node requires a value")
        if node.node_type == NodeType.VARIABLE and not node.name:
            raise ArityError("Variable node requires a name")
        if node.node_type == NodeType.BOOLEAN and node.boolean is None:
            raise ArityError("Boolean node requires a value")
        if node.node_type == NodeType.COMPLEX_NUMBER and (node.real is None or node.imaginary is None):
            raise ArityError("Complex number node requires real and imaginary parts")

    @staticmethod
    def _validate_arguments(node: ExpressionNode) -> None:
        """Per-operator positional argument checks."""
        args = node.arguments
        operator = node.operator

        if operator == Operator.USER_FUNCTION and not node.name:
            raise ArityError("User function node requires a name")

        if operator == Operator.MATRIX:
            if any(not row.is_operator(Operator.VECTOR) for row in args):
                raise ArityError("Matrix rows must be vectors")
            lengths = {len(row.arguments) for row in args}
            if len(lengths) > 1:
                raise ShapeMismatchError(f"Matrix rows have different lengths: {sorted(lengths)}")

        if operator == Operator.MULTI_CONDITION:
            if any(not arg.is_operator(Operator.CONDITION) for arg in args):
                raise ArityError("Piecewise arguments must be conditions")

        variable_positions = {
            Operator.DEFINITE_INTEGRAL: 1,
            Operator.DERIVATIVE: 1,
            Operator.NDERIVATIVE: 2,
            Operator.SUM: 4,
            Operator.PRODUCT: 4,
        }
        position = variable_positions.get(operator)
        if position is not None and len(args) > position and not args[position].is_variable():
            raise ArityError(f"Argument {position + 1} of '{operator.value}' must be a variable")


# Factory helpers


def number(value: Union[int, float]) -> ExpressionNode:
    return ExpressionNode(node_type=NodeType.NUMBER, number=value)


def variable(name: str) -> ExpressionNode:
    return ExpressionNode(node_type=NodeType.VARIABLE, name=name)


def boolean(value: bool) -> ExpressionNode:
    return ExpressionNode(node_type=NodeType.BOOLEAN, boolean=value)


def complex_number(real: float, imaginary: float = 0.0) -> ExpressionNode:
    return ExpressionNode(node_type=NodeType.COMPLEX_NUMBER, real=real, imaginary=imaginary)


def unary(operator: Operator, operand: ExpressionNode) -> ExpressionNode:
    return ExpressionNode(node_type=NodeType.UNARY, operator=operator, operand=operand)


def binary(operator: Operator, left: ExpressionNode, right: ExpressionNode) -> ExpressionNode:
    return ExpressionNode(node_type=NodeType.BINARY, operator=operator, left=left, right=right)


def nary(
    operator: Operator,
    arguments: Sequence[ExpressionNode],
    parameter_count: Optional[int] = None,
    name: Optional[str] = None,
) -> ExpressionNode:
    """Build a different-parameter node; parameter_count defaults to len(arguments)."""
    return ExpressionNode(
        node_type=NodeType.DIFFERENT_PARAMETERS,
        operator=operator,
        arguments=list(arguments),
        parameter_count=len(arguments) if parameter_count is None else parameter_count,
        name=name,
    )


def user_function(name: str, arguments: Sequence[ExpressionNode]) -> ExpressionNode:
    return nary(Operator.USER_FUNCTION, arguments, name=name)


def add(left: ExpressionNode, right: ExpressionNode) -> ExpressionNode:
    return binary(Operator.ADD, left, right)


def sub(left: ExpressionNode, right: ExpressionNode) -> ExpressionNode:
    return binary(Operator.SUB, left, right)


def mul(left: ExpressionNode, right: ExpressionNode) -> ExpressionNode:
    return binary(Operator.MUL, left, right)


def div(left: ExpressionNode, right: ExpressionNode) -> ExpressionNode:
    return binary(Operator.DIV, left, right)


def power(base: ExpressionNode, exponent: ExpressionNode) -> ExpressionNode:
    return binary(Operator.POW, base, exponent)


def negate(operand: ExpressionNode) -> ExpressionNode:
    return unary(Operator.UNARY_MINUS, operand)


ExpressionNode.model_rebuild()


__all__ = [
    "NodeType",
    "Operator",
    "ResultType",
    "ExpressionNode",
    "ExpressionValidator",
    "LEAF_NODE_TYPES",
    "number",
    "variable",
    "boolean",
    "complex_number",
    "unary",
    "binary",
    "nary",
    "user_function",
    "add",
    "sub",
    "mul",
    "div",
    "power",
    "negate",
]
