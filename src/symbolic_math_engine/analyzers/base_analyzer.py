"""
Base class for tree-consuming algorithms.

Dispatch works like ast.NodeVisitor: leaves go to analyze_number,
analyze_variable, analyze_boolean and analyze_complex_number; operator nodes
go to analyze_<operator value>, e.g. analyze_add or analyze_arcsin. Variants
without a dedicated method fall through to generic_analyze, which each
analyzer defines for itself.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Optional, TypeVar

from symbolic_math_engine.core.config import EngineConfig
from symbolic_math_engine.core.errors import RecursionLimitExceededError, UnsupportedOperationError
from symbolic_math_engine.models.expression import ExpressionNode, NodeType

logger = logging.getLogger(__name__)

R = TypeVar("R")
T = TypeVar("T")


class Analyzer(ABC, Generic[R]):
    """Double-dispatch visitor over expression nodes, generic in its result."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self._depth = 0

    def analyze(self, node: ExpressionNode) -> R:
        """Dispatch a node to its per-variant method under the depth ceiling."""
        limit = self.config.max_recursion_depth
        self._depth += 1
        try:
            if self._depth > limit:
                raise RecursionLimitExceededError(limit)
            return self.dispatch(node)
        except RecursionError as e:
            raise RecursionLimitExceededError(limit) from e
        finally:
            self._depth -= 1

    def bounded(self, func: Callable[..., T], *args: Any) -> T:
        """Run a recursive tree helper that is not routed through analyze."""
        try:
            return func(*args)
        except RecursionError as e:
            raise RecursionLimitExceededError(self.config.max_recursion_depth) from e

    def dispatch(self, node: ExpressionNode) -> R:
        return self.handler_for(node)(node)

    def handler_for(self, node: ExpressionNode) -> Callable[[ExpressionNode], R]:
        """Resolve the method that handles this node."""
        if node.node_type == NodeType.NUMBER:
            return self.analyze_number
        elif node.node_type == NodeType.VARIABLE:
            return self.analyze_variable
        elif node.node_type == NodeType.BOOLEAN:
            return self.analyze_boolean
        elif node.node_type == NodeType.COMPLEX_NUMBER:
            return self.analyze_complex_number
        return getattr(self, f"analyze_{node.operator.value}", self.generic_analyze)

    def supports(self, node: ExpressionNode) -> bool:
        """Check whether a dedicated method exists for this node."""
        if node.is_leaf:
            return True
        return hasattr(self, f"analyze_{node.operator.value}")

    def analyze_number(self, node: ExpressionNode) -> R:
        return self.generic_analyze(node)

    def analyze_variable(self, node: ExpressionNode) -> R:
        return self.generic_analyze(node)

    def analyze_boolean(self, node: ExpressionNode) -> R:
        return self.generic_analyze(node)

    def analyze_complex_number(self, node: ExpressionNode) -> R:
        return self.generic_analyze(node)

    @abstractmethod
    def generic_analyze(self, node: ExpressionNode) -> R:
        """Fallback for variants without a dedicated method."""
        pass

    def unsupported(self, node: ExpressionNode) -> UnsupportedOperationError:
        kind = node.operator.value if node.operator else node.node_type.value
        return UnsupportedOperationError(f"{type(self).__name__} does not support '{kind}'")


__all__ = ["Analyzer"]
