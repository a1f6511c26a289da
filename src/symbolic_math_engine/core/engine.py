"""
Facade that ties parsing, simplification, differentiation and evaluation together.
"""

import logging
from typing import Any, Optional, Union

from symbolic_math_engine.analyzers.differentiator import Differentiator
from symbolic_math_engine.analyzers.evaluator import Evaluator
from symbolic_math_engine.analyzers.formatter import ExpressionFormatter
from symbolic_math_engine.analyzers.simplifier import Simplifier
from symbolic_math_engine.converters.formula_parser import FormulaParser
from symbolic_math_engine.core.config import EngineConfig
from symbolic_math_engine.models.derivation_models import DerivativeResult
from symbolic_math_engine.models.expression import ExpressionNode
from symbolic_math_engine.models.parameters import ExpressionParameters

Expression = Union[str, ExpressionNode]


class SymbolicEngine:
    """Front door for parsing, simplifying, differentiating and evaluating.

    Every method accepts either formula text or an already built tree.
    A new Differentiator is created per request, so one engine can serve
    consecutive differentiations without sharing step maps.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """Initialize the engine.

        Args:
            config: Engine settings. Defaults to EngineConfig().
        """
        self.logger = logging.getLogger(__name__)
        self.config = config or EngineConfig()
        self.parser = FormulaParser()
        self.simplifier = Simplifier(self.config)
        self.formatter = ExpressionFormatter(self.config)

    def parse(self, expression: Expression) -> ExpressionNode:
        """Parse formula text; trees are returned unchanged.

        Raises:
            ExpressionParseError: If the text is not a valid formula
            ArityError: If a function gets the wrong number of arguments
        """
        if isinstance(expression, ExpressionNode):
            return expression
        return self.parser.parse(expression)

    def simplify(self, expression: Expression) -> ExpressionNode:
        node = self.parse(expression)
        result = self.simplifier.simplify(node)
        self.logger.info(f"Simplified {node} to {result}")
        return result

    def differentiate(
        self,
        expression: Expression,
        variable: Optional[str] = None,
        parameters: Optional[ExpressionParameters] = None,
    ) -> DerivativeResult:
        """Differentiate once and collect the derivation trace.

        Args:
            expression: Formula text or tree
            variable: Differentiation variable. Defaults to config.default_variable
            parameters: Bindings used to resolve user functions

        Returns:
            DerivativeResult: The simplified derivative and the step report
        """
        node = self.parse(expression)
        name = variable or self.config.default_variable
        differentiator = Differentiator(name, parameters, self.simplifier, self.config)
        derivative = differentiator.differentiate(node)
        self.logger.info(f"d/d{name} {node} = {derivative}")

        steps = differentiator.root_step.to_report() if differentiator.root_step else None
        return DerivativeResult(expression=node, variable=name, derivative=derivative, steps=steps)

    def nth_derivative(
        self,
        expression: Expression,
        order: int,
        variable: Optional[str] = None,
        point: Any = None,
        parameters: Optional[ExpressionParameters] = None,
    ) -> ExpressionNode:
        """Differentiate `order` times, optionally evaluating at a point."""
        node = self.parse(expression)
        name = variable or self.config.default_variable
        differentiator = Differentiator(name, parameters, self.simplifier, self.config)
        result = differentiator.nth_derivative(node, order, name, point)
        self.logger.info(f"d^{order}/d{name}^{order} {node} = {result}")
        return result

    def evaluate(self, expression: Expression, parameters: Optional[ExpressionParameters] = None, **bindings: Any) -> Any:
        """Evaluate numerically.

        Args:
            expression: Formula text or tree
            parameters: Binding context. Definitions made with := are stored in it
            **bindings: Extra variable values, e.g. x=2.0

        Returns:
            float, complex, bool, numpy array or None for definitions
        """
        node = self.parse(expression)
        if parameters is None:
            parameters = ExpressionParameters(angle_measurement=self.config.angle_measurement)
        if bindings:
            parameters = parameters.copy_with(**bindings)
        result = Evaluator(parameters, self.config).evaluate(node)
        self.logger.debug(f"Evaluated {node} = {result}")
        return result

    def format(self, expression: Expression) -> str:
        return self.formatter.format(self.parse(expression))
