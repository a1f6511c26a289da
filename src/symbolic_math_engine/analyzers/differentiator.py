"""
Symbolic differentiation with a step-by-step derivation trace.

Every visited node gets a DerivationStep keyed by object identity. A rule
records an intermediate derivative written with deriv(f, x) placeholders,
builds the raw derivative from the children's results and hands it to the
embedded Simplifier. The simplified derivative is what the parent rule sees.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from symbolic_math_engine.analyzers.base_analyzer import Analyzer
from symbolic_math_engine.analyzers.derivation_step import DerivationStep
from symbolic_math_engine.analyzers.helpers import has_variable, substitute
from symbolic_math_engine.analyzers.simplifier import Simplifier
from symbolic_math_engine.core.config import EngineConfig
from symbolic_math_engine.core.errors import (
    ArityError,
    DomainError,
    InvalidConfigurationError,
    StepRegistrationError,
)
from symbolic_math_engine.models.derivation_models import DerivationRule
from symbolic_math_engine.models.expression import (
    ExpressionNode,
    Operator,
    add,
    div,
    mul,
    nary,
    negate,
    number,
    power,
    sub,
    unary,
    variable as make_variable,
)
from symbolic_math_engine.models.parameters import ExpressionParameters

logger = logging.getLogger(__name__)

Formula = Callable[[ExpressionNode, ExpressionNode, ExpressionNode], ExpressionNode]


def _square(u: ExpressionNode) -> ExpressionNode:
    return power(u, number(2))


def _sqrt(u: ExpressionNode) -> ExpressionNode:
    return unary(Operator.SQRT, u)


# d/dx f(u) for single-argument functions, as formula(u, u', f(u))
_CHAIN_RULES: Dict[Operator, Formula] = {
    Operator.ABS: lambda u, du, f: mul(du, div(u, f)),
    Operator.UNARY_MINUS: lambda u, du, f: negate(du),
    Operator.EXP: lambda u, du, f: mul(du, f),
    Operator.LN: lambda u, du, f: div(du, u),
    Operator.LB: lambda u, du, f: div(du, mul(u, unary(Operator.LN, number(2)))),
    Operator.LG: lambda u, du, f: div(du, mul(u, unary(Operator.LN, number(10)))),
    Operator.SQRT: lambda u, du, f: div(du, mul(number(2), f)),
    # Trigonometric
    Operator.SIN: lambda u, du, f: mul(unary(Operator.COS, u), du),
    Operator.COS: lambda u, du, f: negate(mul(unary(Operator.SIN, u), du)),
    Operator.TAN: lambda u, du, f: div(du, _square(unary(Operator.COS, u))),
    Operator.COT: lambda u, du, f: negate(div(du, _square(unary(Operator.SIN, u)))),
    Operator.SEC: lambda u, du, f: mul(du, mul(unary(Operator.TAN, u), f)),
    Operator.CSC: lambda u, du, f: mul(negate(du), mul(unary(Operator.COT, u), f)),
    Operator.ARCSIN: lambda u, du, f: div(du, _sqrt(sub(number(1), _square(u)))),
    Operator.ARCCOS: lambda u, du, f: negate(div(du, _sqrt(sub(number(1), _square(u))))),
    Operator.ARCTAN: lambda u, du, f: div(du, add(number(1), _square(u))),
    Operator.ARCCOT: lambda u, du, f: negate(div(du, add(number(1), _square(u)))),
    Operator.ARCSEC: lambda u, du, f: div(
        du, mul(unary(Operator.ABS, u), _sqrt(sub(_square(u), number(1))))
    ),
    Operator.ARCCSC: lambda u, du, f: negate(
        div(du, mul(unary(Operator.ABS, u), _sqrt(sub(_square(u), number(1)))))
    ),
    # Hyperbolic
    Operator.SINH: lambda u, du, f: mul(du, unary(Operator.COSH, u)),
    Operator.COSH: lambda u, du, f: mul(du, unary(Operator.SINH, u)),
    Operator.TANH: lambda u, du, f: div(du, _square(unary(Operator.COSH, u))),
    Operator.COTH: lambda u, du, f: negate(div(du, _square(unary(Operator.SINH, u)))),
    Operator.SECH: lambda u, du, f: negate(mul(du, mul(unary(Operator.TANH, u), f))),
    Operator.CSCH: lambda u, du, f: negate(mul(du, mul(unary(Operator.COTH, u), f))),
    Operator.ARSINH: lambda u, du, f: div(du, _sqrt(add(_square(u), number(1)))),
    Operator.ARCOSH: lambda u, du, f: div(du, _sqrt(sub(_square(u), number(1)))),
    Operator.ARTANH: lambda u, du, f: div(du, sub(number(1), _square(u))),
    Operator.ARCOTH: lambda u, du, f: div(du, sub(number(1), _square(u))),
    Operator.ARCSCH: lambda u, du, f: negate(
        div(du, mul(unary(Operator.ABS, u), _sqrt(add(number(1), _square(u)))))
    ),
}

# Piecewise constant or non-differentiable by convention
_ZERO_DERIVATIVE = {
    Operator.SIGN,
    Operator.ROUND,
    Operator.FLOOR,
    Operator.CEIL,
    Operator.NPR,
    Operator.NCR,
    Operator.RAND,
    Operator.DEFINITE_INTEGRAL,
}


class Differentiator(Analyzer[ExpressionNode]):
    """Computes d/dvariable of expression trees.

    An instance holds the step map of the differentiation in progress, so
    it must not be shared by concurrent differentiations.

    Args:
        variable: Differentiation variable, as a name or a variable node.
            Defaults to the configured default variable.
        parameters: Bindings used to resolve user functions.
        simplifier: Simplifier applied to each local derivative.
        config: Engine settings.
    """

    def __init__(
        self,
        variable: Union[str, ExpressionNode, None] = None,
        parameters: Optional[ExpressionParameters] = None,
        simplifier: Optional[Simplifier] = None,
        config: Optional[EngineConfig] = None,
    ):
        super().__init__(config)
        if variable is None:
            variable = self.config.default_variable
        self.variable = make_variable(variable) if isinstance(variable, str) else variable
        self.parameters = parameters
        self.simplifier = simplifier or Simplifier(self.config)
        self.root_step: Optional[DerivationStep] = None
        self._steps: Dict[int, Tuple[ExpressionNode, DerivationStep]] = {}
        self._step_stack: List[DerivationStep] = []

    def differentiate(self, expression: ExpressionNode) -> ExpressionNode:
        """Differentiate a tree and record its derivation trace in root_step."""
        if self.variable is None or not self.variable.is_variable():
            raise InvalidConfigurationError("Differentiation variable is not set")

        self.reset()
        # A fresh copy guarantees one node object per tree position
        source = self.bounded(expression.clone)
        result = self.analyze(source)
        logger.debug(f"d/d{self.variable.name} {source} = {result}")
        return result

    def reset(self) -> None:
        self.root_step = None
        self._steps.clear()
        self._step_stack.clear()

    def step_for(self, node: ExpressionNode) -> Optional[DerivationStep]:
        """Look up the step recorded for a node object."""
        entry = self._steps.get(id(node))
        return entry[1] if entry else None

    def register_step(self, node: ExpressionNode, step: DerivationStep) -> None:
        """Bind a step to a node object. Rebinding to another step is an error."""
        entry = self._steps.get(id(node))
        if entry is not None and entry[1] is not step:
            raise StepRegistrationError(f"Node '{node}' already has a derivation step")
        # Holding the node keeps its id from being reused
        self._steps[id(node)] = (node, step)

    def nth_derivative(
        self,
        expression: ExpressionNode,
        order: int,
        variable_name: Optional[str] = None,
        point: Any = None,
    ) -> ExpressionNode:
        """Differentiate `order` times; with a point, evaluate there to a Number."""
        if order < 0:
            raise DomainError(f"Derivative order must be non-negative, got {order}")
        name = variable_name or self.variable.name
        result = expression
        for _ in range(order):
            result = Differentiator(name, self.parameters, self.simplifier, self.config).differentiate(result)
        if point is None:
            return result
        bindings = self.parameters or ExpressionParameters()
        return number(result.evaluate(bindings.copy_with(**{name: point})))

    # Traversal

    def analyze(self, node: ExpressionNode) -> ExpressionNode:
        step = self._open_step(node)
        self._step_stack.append(step)
        try:
            return super().analyze(node)
        finally:
            self._step_stack.pop()

    def dispatch(self, node: ExpressionNode) -> ExpressionNode:
        step = self._step_stack[-1]
        if node.is_variable():
            raw = self.analyze_variable(node)
        else:
            if not node.is_leaf and not self.supports(node):
                raise self.unsupported(node)
            if not node.is_operator(Operator.USER_FUNCTION) and not has_variable(node, self.variable):
                self._record(DerivationRule.CONSTANT)
                raw = number(0)
            else:
                raw = self.handler_for(node)(node)

        step.derivative = raw
        step.simplified_derivative = self.simplifier.simplify(raw)
        return step.simplified_derivative

    def supports(self, node: ExpressionNode) -> bool:
        if node.operator in _CHAIN_RULES or node.operator in _ZERO_DERIVATIVE:
            return True
        return super().supports(node)

    def handler_for(self, node: ExpressionNode) -> Callable[[ExpressionNode], ExpressionNode]:
        if node.operator in _CHAIN_RULES:
            return lambda n: self._chain(n, _CHAIN_RULES[n.operator])
        if node.operator in _ZERO_DERIVATIVE:
            return self._zero
        return super().handler_for(node)

    def generic_analyze(self, node: ExpressionNode) -> ExpressionNode:
        raise self.unsupported(node)

    def _open_step(self, node: ExpressionNode) -> DerivationStep:
        step = self.step_for(node)
        if step is not None:
            return step
        parent = self._step_stack[-1] if self._step_stack else None
        step = DerivationStep(node, parent)
        self.register_step(node, step)
        if parent is None:
            if self.root_step is None:
                self.root_step = step
        else:
            parent.substeps.append(step)
        return step

    def _record(self, rule: DerivationRule, intermediate: Optional[ExpressionNode] = None) -> None:
        step = self._step_stack[-1]
        step.rule = rule
        step.intermediate = intermediate

    def _placeholder(self, node: ExpressionNode) -> ExpressionNode:
        return nary(Operator.DERIVATIVE, [node, self.variable])

    def _depends(self, node: ExpressionNode) -> bool:
        return has_variable(node, self.variable)

    def _is_bare_variable(self, node: ExpressionNode) -> bool:
        return node.is_variable(self.variable.name)

    # Rules

    def analyze_variable(self, node: ExpressionNode) -> ExpressionNode:
        if self._is_bare_variable(node):
            self._record(DerivationRule.VARIABLE)
            return number(1)
        if self._step_stack[-1].is_root:
            self._record(DerivationRule.CONSTANT)
            return number(0)
        # A different variable nested in a larger tree passes through unchanged
        self._record(DerivationRule.VARIABLE)
        return node

    def _zero(self, node: ExpressionNode) -> ExpressionNode:
        self._record(DerivationRule.CONSTANT)
        return number(0)

    def _chain(self, node: ExpressionNode, formula: Formula) -> ExpressionNode:
        u = node.operand
        rule = DerivationRule.OTHER if self._is_bare_variable(u) else DerivationRule.CHAIN
        self._record(rule, formula(u, self._placeholder(u), node))
        return formula(u, self.analyze(u), node)

    def analyze_add(self, node: ExpressionNode) -> ExpressionNode:
        left, right = node.left, node.right
        if self._depends(left) and self._depends(right):
            self._record(DerivationRule.SUM, add(self._placeholder(left), self._placeholder(right)))
            return add(self.analyze(left), self.analyze(right))
        side = left if self._depends(left) else right
        self._record(DerivationRule.SUM, self._placeholder(side))
        return self.analyze(side)

    def analyze_sub(self, node: ExpressionNode) -> ExpressionNode:
        left, right = node.left, node.right
        if self._depends(left) and self._depends(right):
            self._record(DerivationRule.DIFFERENCE, sub(self._placeholder(left), self._placeholder(right)))
            return sub(self.analyze(left), self.analyze(right))
        if self._depends(left):
            self._record(DerivationRule.DIFFERENCE, self._placeholder(left))
            return self.analyze(left)
        self._record(DerivationRule.DIFFERENCE, negate(self._placeholder(right)))
        return negate(self.analyze(right))

    def analyze_mul(self, node: ExpressionNode) -> ExpressionNode:
        left, right = node.left, node.right
        if self._depends(left) and self._depends(right):
            self._record(
                DerivationRule.PRODUCT,
                add(mul(self._placeholder(left), right), mul(left, self._placeholder(right))),
            )
            return add(mul(self.analyze(left), right), mul(left, self.analyze(right)))
        if self._depends(left):
            self._record(DerivationRule.FACTOR, mul(self._placeholder(left), right))
            return mul(self.analyze(left), right)
        self._record(DerivationRule.FACTOR, mul(left, self._placeholder(right)))
        return mul(left, self.analyze(right))

    def analyze_div(self, node: ExpressionNode) -> ExpressionNode:
        left, right = node.left, node.right
        if self._depends(left) and self._depends(right):
            self._record(
                DerivationRule.QUOTIENT,
                div(
                    sub(mul(self._placeholder(left), right), mul(left, self._placeholder(right))),
                    _square(right),
                ),
            )
            return div(sub(mul(self.analyze(left), right), mul(left, self.analyze(right))), _square(right))
        if self._depends(left):
            self._record(DerivationRule.FACTOR, div(self._placeholder(left), right))
            return div(self.analyze(left), right)
        self._record(DerivationRule.RECIPROCAL, div(negate(mul(left, self._placeholder(right))), _square(right)))
        return div(negate(mul(left, self.analyze(right))), _square(right))

    def analyze_pow(self, node: ExpressionNode) -> ExpressionNode:
        base, exponent = node.left, node.right
        base_depends, exponent_depends = self._depends(base), self._depends(exponent)

        if base_depends and exponent_depends:
            # f^g * (g' * ln f + g * f' / f)
            def general(d_base: ExpressionNode, d_exponent: ExpressionNode) -> ExpressionNode:
                return mul(
                    node,
                    add(mul(d_exponent, unary(Operator.LN, base)), div(mul(exponent, d_base), base)),
                )

            self._record(DerivationRule.CHAIN, general(self._placeholder(base), self._placeholder(exponent)))
            return general(self.analyze(base), self.analyze(exponent))

        if base_depends:
            power_term = mul(exponent, power(base, sub(exponent, number(1))))
            if self._is_bare_variable(base):
                self._record(DerivationRule.POWER, power_term)
                return power_term
            self._record(DerivationRule.CHAIN, mul(self._placeholder(base), power_term))
            return mul(self.analyze(base), power_term)

        exponential_term = mul(unary(Operator.LN, base), node)
        self._record(DerivationRule.POWER, mul(exponential_term, self._placeholder(exponent)))
        return mul(exponential_term, self.analyze(exponent))

    def analyze_root(self, node: ExpressionNode) -> ExpressionNode:
        rewritten = power(node.left, div(number(1), node.right))
        self._record(DerivationRule.POWER, self._placeholder(rewritten))
        derivative = self.analyze(rewritten)
        self._step_stack[-1].rule = self.step_for(rewritten).rule
        return derivative

    def analyze_log(self, node: ExpressionNode) -> ExpressionNode:
        base, argument = node.left, node.right
        if self._depends(base):
            rewritten = div(unary(Operator.LN, argument), unary(Operator.LN, base))
            self._record(DerivationRule.CHAIN, self._placeholder(rewritten))
            return self.analyze(rewritten)

        def formula(d_argument: ExpressionNode) -> ExpressionNode:
            return div(d_argument, mul(argument, unary(Operator.LN, base)))

        rule = DerivationRule.OTHER if self._is_bare_variable(argument) else DerivationRule.CHAIN
        self._record(rule, formula(self._placeholder(argument)))
        return formula(self.analyze(argument))

    def analyze_arsech(self, node: ExpressionNode) -> ExpressionNode:
        u = node.operand

        def formula(du: ExpressionNode) -> ExpressionNode:
            return negate(div(du, mul(u, _sqrt(sub(number(1), _square(u))))))

        rule = DerivationRule.OTHER if self._is_bare_variable(u) else DerivationRule.CHAIN
        derivative = formula(self.analyze(u))
        # Intermediate is recorded after the derivative is built
        self._record(rule, formula(self._placeholder(u)))
        return derivative

    def analyze_user_function(self, node: ExpressionNode) -> ExpressionNode:
        if self.parameters is None:
            raise InvalidConfigurationError(f"No parameters bound to resolve function '{node.name}'")
        definition = self.parameters.get_function(node.name)
        if definition.arity != len(node.arguments):
            raise ArityError(
                f"Function '{node.name}' takes {definition.arity} arguments, got {len(node.arguments)}"
            )
        body = substitute(definition.body.clone(), dict(zip(definition.parameters, node.arguments)))
        self._record(DerivationRule.OTHER, self._placeholder(body))
        return self.analyze(body)

    def analyze_sum(self, node: ExpressionNode) -> ExpressionNode:
        body, bounds = node.arguments[0], node.arguments[1:]
        self._record(DerivationRule.SUM, nary(Operator.SUM, [self._placeholder(body)] + bounds))
        return nary(Operator.SUM, [self.analyze(body)] + bounds)

    def analyze_vector(self, node: ExpressionNode) -> ExpressionNode:
        self._record(DerivationRule.OTHER, nary(Operator.VECTOR, [self._placeholder(a) for a in node.arguments]))
        return nary(Operator.VECTOR, [self.analyze(a) for a in node.arguments])

    def analyze_simplify(self, node: ExpressionNode) -> ExpressionNode:
        self._record(DerivationRule.OTHER, self._placeholder(node.operand))
        return self.analyze(node.operand)

    def analyze_condition(self, node: ExpressionNode) -> ExpressionNode:
        expression, guards = node.arguments[0], node.arguments[1:]
        self._record(DerivationRule.OTHER, nary(Operator.CONDITION, [self._placeholder(expression)] + guards))
        return nary(Operator.CONDITION, [self.analyze(expression)] + guards)

    def analyze_multi_condition(self, node: ExpressionNode) -> ExpressionNode:
        self._record(
            DerivationRule.OTHER,
            nary(
                Operator.MULTI_CONDITION,
                [
                    nary(Operator.CONDITION, [self._placeholder(branch.arguments[0])] + branch.arguments[1:])
                    for branch in node.arguments
                ],
            ),
        )
        branches = [
            nary(Operator.CONDITION, [self.analyze(branch.arguments[0])] + branch.arguments[1:])
            for branch in node.arguments
        ]
        return nary(Operator.MULTI_CONDITION, branches)

    def analyze_derivative(self, node: ExpressionNode) -> ExpressionNode:
        expansion = self.expand_derivative(node)
        self._record(DerivationRule.OTHER, self._placeholder(expansion))
        return self.analyze(expansion)

    def analyze_nderivative(self, node: ExpressionNode) -> ExpressionNode:
        expansion = self.expand_derivative(node)
        self._record(DerivationRule.OTHER, self._placeholder(expansion))
        return self.analyze(expansion)

    def expand_derivative(self, node: ExpressionNode) -> ExpressionNode:
        """Replace a deriv/nderiv node by the derivative it denotes.

        deriv(f[, x[, point]]) and nderiv(f, n[, x[, point]]) use their own
        variable (default x) and a separate Differentiator, so this
        instance's step map is untouched.
        """
        args = node.arguments
        if node.is_operator(Operator.NDERIVATIVE):
            expression, order_node, rest = args[0], args[1], args[2:]
            order = order_node.evaluate(self.parameters)
            if order != int(order) or order < 0:
                raise DomainError(f"Derivative order must be a non-negative integer, got {order}")
            order = int(order)
        else:
            expression, order, rest = args[0], 1, args[1:]

        name = rest[0].name if rest else "x"
        point = rest[1].evaluate(self.parameters) if len(rest) > 1 else None
        helper = Differentiator(name, self.parameters, self.simplifier, self.config)
        return helper.nth_derivative(expression, order, name, point).clone()


__all__ = ["Differentiator"]
