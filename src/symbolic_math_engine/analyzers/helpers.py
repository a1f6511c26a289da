"""
Shared tree helpers used by the analyzers and the parser.
"""

from typing import Callable, Dict, Set, Union

from symbolic_math_engine.models.expression import ExpressionNode, NodeType


def map_children(node: ExpressionNode, func: Callable[[ExpressionNode], ExpressionNode]) -> ExpressionNode:
    """Apply func to every child; returns node itself when nothing changed."""
    if node.is_leaf:
        return node
    children = node.children
    mapped = [func(child) for child in children]
    if all(new is old for new, old in zip(mapped, children)):
        return node
    return node.with_children(mapped)


def has_variable(node: ExpressionNode, target: Union[str, ExpressionNode]) -> bool:
    """Check whether a subtree syntactically contains the variable."""
    name = target if isinstance(target, str) else target.name
    if node.node_type == NodeType.VARIABLE:
        return node.name == name
    return any(has_variable(child, name) for child in node.children)


def get_all_variables(node: ExpressionNode) -> Set[str]:
    """Names of all variables in the tree."""
    if node.node_type == NodeType.VARIABLE:
        return {node.name}
    names: Set[str] = set()
    for child in node.children:
        names |= get_all_variables(child)
    return names


def substitute(node: ExpressionNode, bindings: Dict[str, ExpressionNode]) -> ExpressionNode:
    """Replace variables by the given subtrees."""
    if node.node_type == NodeType.VARIABLE:
        replacement = bindings.get(node.name)
        return replacement.clone() if replacement is not None else node
    return map_children(node, lambda child: substitute(child, bindings))


def count_nodes(node: ExpressionNode) -> int:
    return 1 + sum(count_nodes(child) for child in node.children)


def tree_depth(node: ExpressionNode) -> int:
    children = node.children
    if not children:
        return 1
    return 1 + max(tree_depth(child) for child in children)


__all__ = [
    "map_children",
    "has_variable",
    "get_all_variables",
    "substitute",
    "count_nodes",
    "tree_depth",
]
