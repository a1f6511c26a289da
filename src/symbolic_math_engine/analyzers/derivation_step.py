"""
Derivation step tree recorded by the Differentiator.
"""

import weakref
from typing import Iterator, List, Optional

from symbolic_math_engine.models.derivation_models import (
    RULE_TITLES,
    DerivationRule,
    DerivationStepReport,
)
from symbolic_math_engine.models.expression import ExpressionNode


class DerivationStep:
    """One differentiated node: its intermediate, raw and simplified derivative.

    The parent link is a weak reference. Steps own their substeps, so the
    root step keeps the whole trace alive.
    """

    def __init__(
        self,
        expression: ExpressionNode,
        parent: Optional["DerivationStep"] = None,
        rule: DerivationRule = DerivationRule.OTHER,
    ):
        self.expression = expression
        self.rule = rule
        self.intermediate: Optional[ExpressionNode] = None
        self.derivative: Optional[ExpressionNode] = None
        self.simplified_derivative: Optional[ExpressionNode] = None
        self.substeps: List["DerivationStep"] = []
        self._parent = weakref.ref(parent) if parent is not None else None

    @property
    def parent(self) -> Optional["DerivationStep"]:
        return self._parent() if self._parent is not None else None

    @property
    def is_root(self) -> bool:
        return self._parent is None

    @property
    def title(self) -> str:
        return RULE_TITLES[self.rule]

    @property
    def has_simplified_derivative(self) -> bool:
        """True when simplification changed the raw derivative."""
        return self.simplified_derivative is not None and self.simplified_derivative != self.derivative

    def walk(self) -> Iterator["DerivationStep"]:
        """Depth-first iteration over this step and all substeps."""
        yield self
        for step in self.substeps:
            yield from step.walk()

    def to_report(self) -> DerivationStepReport:
        return DerivationStepReport(
            rule=self.rule,
            title=self.title,
            expression=str(self.expression),
            intermediate=str(self.intermediate) if self.intermediate is not None else None,
            derivative=str(self.derivative) if self.derivative is not None else None,
            simplified_derivative=(
                str(self.simplified_derivative) if self.simplified_derivative is not None else None
            ),
            substeps=[step.to_report() for step in self.substeps],
        )

    def __repr__(self) -> str:
        return f"DerivationStep(rule={self.rule.value}, expression={str(self.expression)!r})"


__all__ = ["DerivationStep"]
