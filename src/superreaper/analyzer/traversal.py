"""Post-order tree traversal with an explicit context value."""
from typing import Any, Optional, Protocol

from .ast_nodes import Ast


class PostOrderCallback(Protocol):
    """Visitor called once per node, after all of the node's children."""

    def visit(self, ast: Ast, n: int, parent: Optional[int], context: Any) -> None:
        ...


def traverse(ast: Ast, root: int, callback: PostOrderCallback, context: Any = None):
    """Walk the subtree at root in post-order.

    Children are snapshotted when a node is first reached, so a callback that
    edits the tree cannot make the walk revisit or skip siblings. The walk is
    iterative; deeply nested programs do not hit the recursion limit.

    Args:
        ast: Program tree
        root: Handle where the walk starts
        callback: Object whose visit() receives every node
        context: State threaded through to every visit() call
    """
    stack = [(root, False)]
    while stack:
        n, expanded = stack.pop()
        if expanded:
            callback.visit(ast, n, ast.parent(n), context)
            continue
        stack.append((n, True))
        for child in reversed(ast.children(n)):
            stack.append((child, False))
