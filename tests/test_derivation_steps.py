"""
Tests for the derivation trace recorded while differentiating.
"""

import pytest

from symbolic_math_engine.analyzers.differentiator import Differentiator
from symbolic_math_engine.converters.formula_parser import FormulaParser
from symbolic_math_engine.models.derivation_models import DerivationRule
from symbolic_math_engine.models.expression import Operator, nary, number, variable


@pytest.fixture
def parse():
    return FormulaParser().parse


@pytest.fixture
def differentiator():
    return Differentiator("x")


def trace(differentiator, parse, formula):
    differentiator.differentiate(parse(formula))
    return differentiator.root_step


class TestRootStep:
    def test_constant_factor(self, differentiator, parse):
        step = trace(differentiator, parse, "2*x")

        assert step.rule == DerivationRule.FACTOR
        assert step.title == "Constant factor rule"
        assert step.is_root
        assert step.parent is None
        assert step.expression == parse("2*x")
        assert step.intermediate == parse("2*deriv(x, x)")
        assert step.derivative == parse("2*1")
        assert step.simplified_derivative == number(2)
        assert step.has_simplified_derivative

    def test_substep_for_the_variable(self, differentiator, parse):
        step = trace(differentiator, parse, "2*x")

        assert len(step.substeps) == 1
        child = step.substeps[0]
        assert child.rule == DerivationRule.VARIABLE
        assert child.parent is step
        assert not child.is_root
        assert child.derivative == number(1)
        assert not child.has_simplified_derivative

    def test_root_step_expression_is_a_copy(self, differentiator, parse):
        tree = parse("2*x")
        differentiator.differentiate(tree)
        assert differentiator.root_step.expression == tree
        assert differentiator.root_step.expression is not tree

    def test_constant_has_no_substeps(self, differentiator, parse):
        step = trace(differentiator, parse, "5*y")
        assert step.rule == DerivationRule.CONSTANT
        assert step.substeps == []
        assert step.simplified_derivative == number(0)

    def test_foreign_variable_at_root(self, differentiator, parse):
        step = trace(differentiator, parse, "y")
        assert step.rule == DerivationRule.CONSTANT


class TestRuleTags:
    @pytest.mark.parametrize(
        "formula, rule",
        [
            ("x", DerivationRule.VARIABLE),
            ("x + 1", DerivationRule.SUM),
            ("x + x^2", DerivationRule.SUM),
            ("x - 1", DerivationRule.DIFFERENCE),
            ("1 - x", DerivationRule.DIFFERENCE),
            ("x*sin(x)", DerivationRule.PRODUCT),
            ("x*3", DerivationRule.FACTOR),
            ("x/sin(x)", DerivationRule.QUOTIENT),
            ("x/2", DerivationRule.FACTOR),
            ("1/x", DerivationRule.RECIPROCAL),
            ("x^2", DerivationRule.POWER),
            ("(2*x)^2", DerivationRule.CHAIN),
            ("2^x", DerivationRule.POWER),
            ("x^x", DerivationRule.CHAIN),
            ("sin(x)", DerivationRule.OTHER),
            ("sin(x^2)", DerivationRule.CHAIN),
            ("root(x, 2)", DerivationRule.POWER),
            ("log(2, x)", DerivationRule.OTHER),
            ("log(x, 2)", DerivationRule.CHAIN),
            ("floor(x)", DerivationRule.CONSTANT),
        ],
    )
    def test_rule_of_root_step(self, differentiator, parse, formula, rule):
        assert trace(differentiator, parse, formula).rule == rule

    def test_chain_rule_nests_inner_step(self, differentiator, parse):
        step = trace(differentiator, parse, "sin(x^2)")

        assert step.intermediate == parse("cos(x^2)*deriv(x^2, x)")
        inner = step.substeps[0]
        assert inner.rule == DerivationRule.POWER
        assert inner.expression == parse("x^2")
        assert inner.simplified_derivative == parse("2*x")

    def test_product_rule_has_a_step_per_factor(self, differentiator, parse):
        step = trace(differentiator, parse, "x*sin(x)")
        assert [substep.expression for substep in step.substeps] == [variable("x"), parse("sin(x)")]

    def test_arsech_records_intermediate(self, differentiator, parse):
        step = trace(differentiator, parse, "arsech(x)")
        assert step.rule == DerivationRule.OTHER
        assert step.intermediate is not None
        assert step.intermediate.is_operator(Operator.UNARY_MINUS)
        assert len(step.substeps) == 1


class TestTraversal:
    def test_walk_is_depth_first(self, differentiator, parse):
        step = trace(differentiator, parse, "x*sin(x^2)")
        expressions = [str(s.expression) for s in step.walk()]
        assert expressions == ["x*sin(x^2)", "x", "sin(x^2)", "x^2"]

    def test_every_step_is_found_by_its_node(self, differentiator, parse):
        step = trace(differentiator, parse, "x*sin(x^2) + ln(x)")
        for substep in step.walk():
            assert differentiator.step_for(substep.expression) is substep

    def test_unvisited_node_has_no_step(self, differentiator, parse):
        trace(differentiator, parse, "x")
        assert differentiator.step_for(variable("x")) is None

    def test_new_differentiation_starts_a_new_trace(self, differentiator, parse):
        first = trace(differentiator, parse, "x^2")
        second = trace(differentiator, parse, "x^2")
        assert first is not second
        assert second.substeps == []

    def test_vector_components_are_side_calculations(self, differentiator):
        tree = nary(Operator.VECTOR, [variable("x"), number(3)])
        differentiator.differentiate(tree)
        step = differentiator.root_step
        assert step.rule == DerivationRule.OTHER
        assert [s.rule for s in step.substeps] == [DerivationRule.VARIABLE, DerivationRule.CONSTANT]


class TestReport:
    def test_report_renders_text(self, differentiator, parse):
        report = trace(differentiator, parse, "2*x").to_report()

        assert report.rule == DerivationRule.FACTOR
        assert report.expression == "2*x"
        assert report.intermediate == "2*deriv(x, x)"
        assert report.derivative == "2*1"
        assert report.simplified_derivative == "2"
        assert report.substeps[0].expression == "x"

    def test_report_serializes_to_json(self, differentiator, parse):
        report = trace(differentiator, parse, "sin(x^2)").to_report()
        data = report.model_dump(mode="json")

        assert data["rule"] == "chain"
        assert data["title"] == "Chain rule"
        assert data["substeps"][0]["rule"] == "power"
