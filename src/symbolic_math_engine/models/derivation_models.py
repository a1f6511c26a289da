"""
Pydantic models for derivation traces.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ConfigDict

from symbolic_math_engine.models.expression import ExpressionNode


class DerivationRule(str, Enum):
    """Calculus rule applied at a derivation step."""

    CONSTANT = "constant"
    VARIABLE = "variable"
    SUM = "sum"
    DIFFERENCE = "difference"
    PRODUCT = "product"
    FACTOR = "factor"
    QUOTIENT = "quotient"
    CHAIN = "chain"
    POWER = "power"
    RECIPROCAL = "reciprocal"
    OTHER = "other"


RULE_TITLES = {
    DerivationRule.CONSTANT: "Derivative of a constant",
    DerivationRule.VARIABLE: "Derivative of a variable",
    DerivationRule.SUM: "Sum rule",
    DerivationRule.DIFFERENCE: "Difference rule",
    DerivationRule.PRODUCT: "Product rule",
    DerivationRule.FACTOR: "Constant factor rule",
    DerivationRule.QUOTIENT: "Quotient rule",
    DerivationRule.CHAIN: "Chain rule",
    DerivationRule.POWER: "Power rule",
    DerivationRule.RECIPROCAL: "Reciprocal rule",
    DerivationRule.OTHER: "Side calculation",
}


class DerivationStepReport(BaseModel):
    """Serializable view of one derivation step and its substeps."""

    rule: DerivationRule
    title: str
    expression: str
    intermediate: Optional[str] = None
    derivative: Optional[str] = None
    simplified_derivative: Optional[str] = None
    substeps: List["DerivationStepReport"] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "rule": "factor",
                    "title": "Constant factor rule",
                    "expression": "2*x",
                    "intermediate": "2*deriv(x, x)",
                    "derivative": "2*1",
                    "simplified_derivative": "2",
                    "substeps": [],
                }
            ]
        }
    )


DerivationStepReport.model_rebuild()


class DerivativeResult(BaseModel):
    """Derivative of an expression together with its derivation trace."""

    expression: ExpressionNode
    variable: str
    derivative: ExpressionNode
    steps: Optional[DerivationStepReport] = None

    def to_text(self) -> Dict[str, Any]:
        """Flatten the trees to infix strings for display and JSON output."""
        return {
            "expression": str(self.expression),
            "variable": self.variable,
            "derivative": str(self.derivative),
            "steps": self.steps.model_dump(mode="json") if self.steps else None,
        }


__all__ = ["DerivationRule", "RULE_TITLES", "DerivationStepReport", "DerivativeResult"]
