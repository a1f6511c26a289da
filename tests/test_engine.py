"""
Tests for the SymbolicEngine facade.
"""

import logging

import pytest

from symbolic_math_engine import SymbolicEngine
from symbolic_math_engine.core.config import EngineConfig
from symbolic_math_engine.core.errors import ExpressionParseError, UndefinedVariableError
from symbolic_math_engine.models.derivation_models import DerivationRule
from symbolic_math_engine.models.expression import number, variable
from symbolic_math_engine.models.parameters import AngleMeasurement, ExpressionParameters


@pytest.fixture
def engine():
    return SymbolicEngine()


class TestParsing:
    def test_text_is_parsed(self, engine):
        assert engine.parse("x") == variable("x")

    def test_trees_pass_through(self, engine):
        tree = variable("x")
        assert engine.parse(tree) is tree

    def test_parse_errors_propagate(self, engine):
        with pytest.raises(ExpressionParseError):
            engine.parse("2 +")

    def test_format(self, engine):
        assert engine.format("(x+1) * 2") == "(x + 1)*2"


class TestSimplify:
    def test_simplify_text(self, engine):
        assert engine.simplify("2*x + 3*x") == engine.parse("5*x")

    def test_simplify_logs(self, engine, caplog):
        with caplog.at_level(logging.INFO, logger="symbolic_math_engine"):
            engine.simplify("x + 0")
        assert "Simplified x + 0 to x" in caplog.text


class TestDifferentiate:
    def test_result(self, engine):
        result = engine.differentiate("x^2")

        assert result.expression == engine.parse("x^2")
        assert result.variable == "x"
        assert result.derivative == engine.parse("2*x")
        assert result.steps.rule == DerivationRule.POWER
        assert result.steps.expression == "x^2"

    def test_explicit_variable(self, engine):
        assert engine.differentiate("y^2", "y").derivative == engine.parse("2*y")

    def test_default_variable_from_config(self):
        engine = SymbolicEngine(EngineConfig(default_variable="t"))
        result = engine.differentiate("t^2 + x")
        assert result.variable == "t"
        assert result.derivative == engine.parse("2*t")

    def test_user_functions(self, engine):
        parameters = ExpressionParameters()
        engine.evaluate("f(t) := sin(t)", parameters)
        assert engine.differentiate("f(x)", parameters=parameters).derivative == engine.parse("cos(x)")

    def test_consecutive_requests_are_independent(self, engine):
        first = engine.differentiate("x^2")
        second = engine.differentiate("x^2")
        assert first.steps == second.steps

    def test_to_text(self, engine):
        data = engine.differentiate("sin(x)").to_text()
        assert data["expression"] == "sin(x)"
        assert data["derivative"] == "cos(x)"
        assert data["steps"]["rule"] == "other"

    def test_nth_derivative(self, engine):
        assert engine.nth_derivative("x^3", 2) == engine.parse("6*x")
        assert engine.nth_derivative("x^3", 2, point=2) == number(12)
        assert engine.nth_derivative("y^3", 3, "y") == number(6)


class TestEvaluate:
    def test_bindings(self, engine):
        assert engine.evaluate("x^2 + y", x=3, y=1) == 10

    def test_bindings_do_not_modify_parameters(self, engine):
        parameters = ExpressionParameters()
        engine.evaluate("x", parameters, x=1)
        assert "x" not in parameters.variables

    def test_definitions_persist_in_parameters(self, engine):
        parameters = ExpressionParameters()
        assert engine.evaluate("a := 2", parameters) is None
        assert engine.evaluate("a + 1", parameters) == 3

    def test_definitions_without_parameters_are_discarded(self, engine):
        engine.evaluate("a := 2")
        with pytest.raises(UndefinedVariableError):
            engine.evaluate("a")

    def test_angle_mode_from_config(self):
        engine = SymbolicEngine(EngineConfig(angle_measurement=AngleMeasurement.DEGREE))
        assert engine.evaluate("sin(90)") == pytest.approx(1)

    def test_evaluate_tree(self, engine):
        tree = engine.differentiate("x^3").derivative
        assert engine.evaluate(tree, x=2) == pytest.approx(12)
