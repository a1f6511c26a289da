"""
Tests for algebraic simplification.
"""

import pytest

from symbolic_math_engine.analyzers.simplifier import Simplifier
from symbolic_math_engine.converters.formula_parser import FormulaParser
from symbolic_math_engine.core.config import EngineConfig
from symbolic_math_engine.core.errors import DivisionByZeroError, RecursionLimitExceededError
from symbolic_math_engine.models.expression import (
    Operator,
    add,
    binary,
    div,
    number,
    unary,
    variable,
)
from symbolic_math_engine.models.parameters import ExpressionParameters


@pytest.fixture
def simplifier():
    return Simplifier()


@pytest.fixture
def parse():
    parser = FormulaParser()
    return parser.parse


class TestIdentities:
    """Neutral and absorbing elements."""

    @pytest.mark.parametrize(
        "formula, expected",
        [
            ("x + 0", "x"),
            ("0 + x", "x"),
            ("x - 0", "x"),
            ("0 - x", "-x"),
            ("x * 1", "x"),
            ("1 * x", "x"),
            ("x * 0", "0"),
            ("0 * x", "0"),
            ("x / 1", "x"),
            ("0 / x", "0"),
            ("x ^ 1", "x"),
            ("x ^ 0", "1"),
            ("root(x, 1)", "x"),
            ("--x", "x"),
        ],
    )
    def test_identity(self, simplifier, parse, formula, expected):
        assert simplifier.simplify(parse(formula)) == parse(expected)

    @pytest.mark.parametrize(
        "formula, expected",
        [
            ("x + x", "2*x"),
            ("x - x", "0"),
            ("x * x", "x^2"),
            ("x / x", "1"),
        ],
    )
    def test_equal_variables(self, simplifier, parse, formula, expected):
        assert simplifier.simplify(parse(formula)) == parse(expected)

    def test_different_variables_are_not_combined(self, simplifier, parse):
        assert simplifier.simplify(parse("x*y")) == parse("x*y")
        assert simplifier.simplify(parse("x + y")) == parse("x + y")


class TestConstantFolding:
    """Numeric literals are combined."""

    @pytest.mark.parametrize(
        "formula, value",
        [
            ("2 + 3", 5),
            ("2 * 3 + 4", 10),
            ("10 - 4", 6),
            ("9 / 3", 3),
            ("-(3)", -3),
        ],
    )
    def test_folding(self, simplifier, parse, formula, value):
        assert simplifier.simplify(parse(formula)) == number(value)

    def test_reassociates_sum_with_constants(self, simplifier, parse):
        assert simplifier.simplify(parse("(x + 2) + 3")) == parse("x + 5")
        assert simplifier.simplify(parse("(x - 2) + 5")) == parse("3 + x")
        assert simplifier.simplify(parse("10 - (x + 3)")) == parse("7 - x")
        assert simplifier.simplify(parse("(x + 2) - 5")) == add(variable("x"), number(-3))

    def test_reassociates_product_with_constants(self, simplifier, parse):
        assert simplifier.simplify(parse("(2*x)*3")) == parse("6*x")
        assert simplifier.simplify(parse("sin(x)*2*3")) == parse("6*sin(x)")

    @pytest.mark.parametrize(
        "formula",
        ["(x - 2) - 5", "5 - (x - 2)", "5 - (2 - x)", "(6*x)/3", "6/(2*x)", "(x/2)/3", "12/(x/3)", "3*(x/2)"],
    )
    def test_reassociation_keeps_value(self, simplifier, parse, formula):
        parameters = ExpressionParameters(variables={"x": 1.7})
        original = parse(formula)
        simplified = simplifier.simplify(original)
        assert simplified.evaluate(parameters) == pytest.approx(original.evaluate(parameters))


class TestLikeTerms:
    """Coefficients of the same variable are collected."""

    def test_sum_of_scaled_terms(self, simplifier, parse):
        assert simplifier.simplify(parse("2*x + 3*x")) == parse("5*x")

    def test_difference_of_scaled_terms(self, simplifier, parse):
        assert simplifier.simplify(parse("3*x - x")) == parse("2*x")
        assert simplifier.simplify(parse("x*2 - 2*x")) == number(0)

    def test_negation_moves_out(self, simplifier, parse):
        assert simplifier.simplify(parse("-x + y")) == parse("y - x")
        assert simplifier.simplify(parse("x - (-y)")) == parse("x + y")
        assert simplifier.simplify(parse("x * (-y)")) == parse("-(x*y)")


class TestFunctions:
    """Inverse pairs, logarithms and meta nodes."""

    @pytest.mark.parametrize(
        "formula",
        ["sin(arcsin(x))", "arcsin(sin(x))", "cosh(arcosh(x))", "arsech(sech(x))"],
    )
    def test_inverse_pairs_cancel(self, simplifier, parse, formula):
        assert simplifier.simplify(parse(formula)) == variable("x")

    @pytest.mark.parametrize("formula", ["ln(e)", "lg(10)", "lb(2)", "log(x, x)", "log(2*y, 2*y)"])
    def test_logarithm_of_its_base(self, simplifier, parse, formula):
        assert simplifier.simplify(parse(formula)) == number(1)

    def test_functions_simplify_their_arguments(self, simplifier, parse):
        assert simplifier.simplify(parse("sin(x + 0)")) == parse("sin(x)")
        assert simplifier.simplify(parse("max(x * 1, 2 + 3)")) == parse("max(x, 5)")

    def test_simplify_node_is_unwrapped(self, simplifier, parse):
        assert simplifier.simplify(parse("simplify(x + 0)")) == variable("x")

    def test_definition_value_is_simplified(self, simplifier, parse):
        result = simplifier.simplify(parse("y := x + 0"))
        assert result == binary(Operator.DEFINE, variable("y"), variable("x"))


class TestDivision:
    def test_division_by_literal_zero(self, simplifier, parse):
        with pytest.raises(DivisionByZeroError):
            simplifier.simplify(parse("x / 0"))

    def test_zero_over_zero_stays(self, simplifier, parse):
        assert simplifier.simplify(parse("0 / 0")) == div(number(0), number(0))

    def test_unknown_divisor_stays_symbolic(self, simplifier, parse):
        assert simplifier.simplify(parse("x / y")) == parse("x / y")

    def test_number_over_zero_over_zero_stays(self, simplifier):
        inner = div(number(0), number(0))
        assert simplifier.simplify(div(number(2), inner)) == div(number(2), inner)

    def test_number_over_product_with_zero_factor(self, simplifier):
        product = binary(Operator.MUL, number(0), variable("x"))
        assert simplifier._simplify_div(number(2), product) == div(number(2), product)


class TestRecursionLimit:
    @staticmethod
    def nested_sin(depth):
        tree = variable("x")
        for _ in range(depth):
            tree = unary(Operator.SIN, tree)
        return tree

    def test_over_the_ceiling(self):
        with pytest.raises(RecursionLimitExceededError) as exc:
            Simplifier(EngineConfig(max_recursion_depth=50)).simplify(self.nested_sin(60))
        assert exc.value.limit == 50

    def test_within_the_ceiling(self):
        tree = self.nested_sin(40)
        assert Simplifier(EngineConfig(max_recursion_depth=50)).simplify(tree) == tree


class TestProperties:
    @pytest.mark.parametrize(
        "formula",
        [
            "2*x + 3*x",
            "(x + 2) - 5",
            "sin(x)*2*3",
            "x^2 + 0*y",
            "(x + 1)/(x + 1)",
            "(6*x)/3",
            "-(-(x*y))",
            "10 - (x + 3)",
        ],
    )
    def test_idempotent(self, simplifier, parse, formula):
        once = simplifier.simplify(parse(formula))
        assert simplifier.simplify(once) == once

    def test_input_is_not_modified(self, simplifier, parse):
        tree = parse("(x + 0) * 1")
        simplifier.simplify(tree)
        assert tree == parse("(x + 0) * 1")

    def test_accept_dispatches_to_simplifier(self, simplifier, parse):
        assert parse("x * 1").accept(simplifier) == variable("x")
