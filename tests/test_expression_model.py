"""
Tests for the expression node model: construction, arity checks,
structural equality, cloning and result types.
"""

import pytest

from symbolic_math_engine.core.errors import ArityError, ShapeMismatchError
from symbolic_math_engine.models.expression import (
    ExpressionNode,
    NodeType,
    Operator,
    add,
    binary,
    boolean,
    complex_number,
    mul,
    nary,
    number,
    unary,
    user_function,
    variable,
)
from symbolic_math_engine.models.result_type import ResultType


class TestConstruction:
    """Node variants and their validation."""

    def test_leaf_factories(self):
        assert number(2).node_type == NodeType.NUMBER
        assert number(2).number == 2.0
        assert variable("x").name == "x"
        assert boolean(True).boolean is True
        assert complex_number(1, 2).imaginary == 2.0

    def test_leaf_requires_payload(self):
        with pytest.raises(ArityError):
            ExpressionNode(node_type=NodeType.NUMBER)
        with pytest.raises(ArityError):
            ExpressionNode(node_type=NodeType.VARIABLE)

    def test_leaf_cannot_carry_operator(self):
        with pytest.raises(ArityError):
            ExpressionNode(node_type=NodeType.NUMBER, number=1, operator=Operator.ADD)

    def test_operator_kind_must_match_node_type(self):
        with pytest.raises(ArityError) as exc:
            ExpressionNode(node_type=NodeType.BINARY, operator=Operator.SIN, left=number(1), right=number(2))
        assert "sin" in str(exc.value)

    def test_binary_requires_both_operands(self):
        with pytest.raises(ArityError):
            ExpressionNode(node_type=NodeType.BINARY, operator=Operator.ADD, left=number(1))

    def test_nary_parameter_count_defaults_to_argument_count(self):
        node = nary(Operator.MAX, [number(1), number(2), number(3)])
        assert node.parameter_count == 3

    def test_nary_parameter_count_mismatch(self):
        with pytest.raises(ArityError):
            nary(Operator.VECTOR, [number(1), number(2)], parameter_count=3)

    @pytest.mark.parametrize(
        "operator, count",
        [
            (Operator.SUM, 1),
            (Operator.SUM, 6),
            (Operator.GCD, 1),
            (Operator.RAND, 1),
            (Operator.DEFINITE_INTEGRAL, 3),
            (Operator.CONDITION, 1),
        ],
    )
    def test_nary_arity_bounds(self, operator, count):
        arguments = [variable("x")] * count
        with pytest.raises(ArityError):
            nary(operator, arguments)

    def test_rand_takes_no_arguments(self):
        assert nary(Operator.RAND, []).parameter_count == 0

    def test_user_function_requires_name(self):
        with pytest.raises(ArityError):
            nary(Operator.USER_FUNCTION, [variable("x")])
        assert user_function("f", [variable("x")]).name == "f"

    def test_matrix_rows_must_be_vectors(self):
        with pytest.raises(ArityError):
            nary(Operator.MATRIX, [number(1)])

    def test_matrix_rows_must_have_equal_length(self):
        with pytest.raises(ShapeMismatchError):
            nary(
                Operator.MATRIX,
                [
                    nary(Operator.VECTOR, [number(1), number(2)]),
                    nary(Operator.VECTOR, [number(3)]),
                ],
            )

    def test_integration_variable_must_be_variable(self):
        with pytest.raises(ArityError):
            nary(Operator.DEFINITE_INTEGRAL, [variable("x"), number(1), number(0), number(1)])

    def test_piecewise_arguments_must_be_conditions(self):
        with pytest.raises(ArityError):
            nary(Operator.MULTI_CONDITION, [number(1)])


class TestStructure:
    """Equality, predicates and cloning."""

    def test_structural_equality(self):
        assert add(variable("x"), number(1)) == add(variable("x"), number(1.0))
        assert add(variable("x"), number(1)) != add(number(1), variable("x"))
        assert number(2) != variable("x")

    def test_predicates(self):
        node = mul(number(2), variable("x"))
        assert node.is_operator(Operator.MUL, Operator.DIV)
        assert not node.is_operator(Operator.ADD)
        assert node.left.is_number(2)
        assert not node.left.is_number(3)
        assert node.right.is_variable("x")
        assert not node.right.is_variable("y")

    def test_children_order(self):
        node = binary(Operator.LOG, number(2), variable("x"))
        assert node.children == [number(2), variable("x")]
        assert unary(Operator.SIN, variable("x")).children == [variable("x")]
        assert variable("x").children == []

    def test_clone_is_equal_but_independent(self):
        tree = add(variable("x"), mul(number(2), variable("x")))
        copy = tree.clone()

        assert copy == tree
        assert copy is not tree
        assert copy.right is not tree.right

        copy.right.left.number = 5
        assert tree.right.left.number == 2

    def test_clone_splits_shared_subtrees(self):
        shared = variable("x")
        tree = add(shared, shared)
        copy = tree.clone()

        assert copy.left == copy.right
        assert copy.left is not copy.right

    def test_str_uses_infix_text(self):
        assert str(add(variable("x"), number(1))) == "x + 1"

    def test_evaluate_shortcut(self):
        assert add(number(2), number(3)).evaluate() == 5.0


class TestResultType:
    """Static result type resolution."""

    def test_leaves(self):
        assert number(1).result_type == ResultType.NUMBER
        assert complex_number(0, 1).result_type == ResultType.COMPLEX_NUMBER
        assert boolean(False).result_type == ResultType.BOOLEAN
        assert variable("x").result_type == ResultType.UNDEFINED

    def test_arithmetic_propagation(self):
        assert add(number(1), number(2)).result_type == ResultType.NUMBER
        assert add(number(1), variable("x")).result_type == ResultType.UNDEFINED
        assert mul(number(2), complex_number(0, 1)).result_type == ResultType.COMPLEX_NUMBER

    def test_comparison_is_boolean(self):
        assert binary(Operator.LESS_THAN, variable("x"), number(1)).result_type == ResultType.BOOLEAN

    def test_vector_and_matrix(self):
        vector = nary(Operator.VECTOR, [number(1), number(2)])
        matrix = nary(Operator.MATRIX, [vector, vector])

        assert vector.result_type == ResultType.VECTOR
        assert matrix.result_type == ResultType.MATRIX
        assert mul(vector, vector).result_type == ResultType.NUMBER
        assert mul(matrix, vector).result_type == ResultType.VECTOR
        assert mul(number(2), matrix).result_type == ResultType.MATRIX

    def test_incompatible_sizes(self):
        short = nary(Operator.VECTOR, [number(1), number(2)])
        long = nary(Operator.VECTOR, [number(1), number(2), number(3)])

        with pytest.raises(ShapeMismatchError):
            add(short, long).result_type
        with pytest.raises(ShapeMismatchError):
            mul(short, long).result_type
        with pytest.raises(ShapeMismatchError):
            add(short, number(1)).result_type
