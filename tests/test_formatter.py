"""
Tests for infix rendering of expression trees.
"""

import pytest

from symbolic_math_engine.analyzers.formatter import ExpressionFormatter, format_number
from symbolic_math_engine.converters.formula_parser import FormulaParser
from symbolic_math_engine.models.expression import (
    Operator,
    add,
    boolean,
    complex_number,
    mul,
    nary,
    negate,
    number,
    power,
    sub,
    unary,
    variable,
)


@pytest.fixture
def formatter():
    return ExpressionFormatter()


@pytest.fixture
def parse():
    return FormulaParser().parse


class TestFormatNumber:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (2.0, "2"),
            (-3.0, "-3"),
            (0.0, "0"),
            (-0.0, "0"),
            (2.5, "2.5"),
            (1e20, "1e+20"),
            (float("inf"), "inf"),
        ],
    )
    def test_rendering(self, value, expected):
        assert format_number(value) == expected


class TestLeaves:
    def test_leaves(self, formatter):
        assert formatter.format(number(7)) == "7"
        assert formatter.format(variable("alpha")) == "alpha"
        assert formatter.format(boolean(True)) == "true"
        assert formatter.format(boolean(False)) == "false"

    @pytest.mark.parametrize(
        "real, imaginary, expected",
        [
            (0, 2, "2i"),
            (3, 2, "3+2i"),
            (3, -2, "3-2i"),
            (0, -1.5, "-1.5i"),
        ],
    )
    def test_complex_numbers(self, formatter, real, imaginary, expected):
        assert formatter.format(complex_number(real, imaginary)) == expected


class TestOperators:
    def test_spacing(self, formatter, parse):
        test_cases = [
            ("x+1", "x + 1"),
            ("x - y", "x - y"),
            ("2 * x", "2*x"),
            ("x / 2", "x/2"),
            ("x % 2", "x%2"),
            ("x ^ 2", "x^2"),
            ("x<1", "x < 1"),
            ("a:=1", "a := 1"),
            ("a&&b", "a and b"),
        ]
        for formula, expected in test_cases:
            assert formatter.format(parse(formula)) == expected, f"Failed for {formula}"

    def test_minimal_parentheses(self, formatter, parse):
        test_cases = [
            ("(x + 1)*2", "(x + 1)*2"),
            ("x + (y*z)", "x + y*z"),
            ("x - (y - z)", "x - (y - z)"),
            ("(x - y) - z", "x - y - z"),
            ("x + (y + z)", "x + (y + z)"),
            ("2^(3^2)", "2^3^2"),
            ("(2^3)^2", "(2^3)^2"),
            ("(-x)^2", "(-x)^2"),
            ("-(x^2)", "-x^2"),
            ("-(x*y)", "-(x*y)"),
            ("x - -y", "x - (-y)"),
            ("(a or b) and c", "(a or b) and c"),
            ("not (a and b)", "not (a and b)"),
            ("(x + 1)!", "(x + 1)!"),
            ("x!", "x!"),
        ]
        for formula, expected in test_cases:
            assert formatter.format(parse(formula)) == expected, f"Failed for {formula}"

    def test_negative_literals_are_wrapped(self, formatter):
        assert formatter.format(mul(variable("x"), number(-2))) == "x*(-2)"
        assert formatter.format(add(number(-1), variable("x"))) == "(-1) + x"
        assert formatter.format(negate(number(-1))) == "-(-1)"

    def test_complex_operands_are_wrapped(self, formatter):
        assert formatter.format(mul(complex_number(1, 2), variable("x"))) == "(1+2i)*x"
        assert formatter.format(mul(complex_number(0, 2), variable("x"))) == "2i*x"

    def test_functions(self, formatter, parse):
        test_cases = [
            ("sin(x + 1)", "sin(x + 1)"),
            ("log(2, x)", "log(2, x)"),
            ("det({{1, 2}, {3, 4}})", "det({{1, 2}, {3, 4}})"),
            ("if(x, x > 0)", "if(x, x > 0)"),
            ("deriv(x^2, x, 3)", "deriv(x^2, x, 3)"),
            ("f(x, 2)", "f(x, 2)"),
            ("rand()", "rand()"),
            ("2*sin(x)", "2*sin(x)"),
        ]
        for formula, expected in test_cases:
            assert formatter.format(parse(formula)) == expected, f"Failed for {formula}"

    def test_vectors(self, formatter):
        node = nary(Operator.VECTOR, [number(1), add(variable("x"), number(1))])
        assert formatter.format(node) == "{1, x + 1}"

    def test_function_of_negative_operand(self, formatter):
        assert formatter.format(unary(Operator.SIN, negate(variable("x")))) == "sin(-x)"


class TestRoundTrip:
    @pytest.mark.parametrize(
        "formula",
        [
            "x^2 + 3*x - 5",
            "(x + 1)/(x - 1)",
            "-(x + y)*z",
            "2^3^2",
            "(2^3)^2",
            "x - (y - z)",
            "a/(b/c)",
            "sin(x)^2 + cos(x)^2",
            "x < 1 and not y or z",
            "f(t) := t^2 + 1",
            "sum(n^2, 1, 10)",
            "{{1, 2}, {3, 4}}*{x, y}",
            "piecewise(if(-x, x < 0), if(x, x >= 0))",
            "(x + 1)!",
            "x - (-y)",
        ],
    )
    def test_format_then_parse_gives_equal_tree(self, formatter, parse, formula):
        tree = parse(formula)
        assert parse(formatter.format(tree)) == tree

    def test_built_trees_round_trip(self, formatter, parse):
        tree = sub(power(variable("x"), negate(number(1))), mul(number(2), variable("y")))
        assert parse(formatter.format(tree)) == tree

    def test_str_matches_formatter(self, formatter, parse):
        tree = parse("x*(y + 1)")
        assert str(tree) == formatter.format(tree) == "x*(y + 1)"
