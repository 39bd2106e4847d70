# diffexpr/core/traversal.py
from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from .expression import Expression


def post_order(roots: Iterable[Expression],
               follow: Optional[Callable[[Expression], bool]] = None) -> List[Expression]:
    """
    Distinct nodes reachable from `roots`, every node after all of its operands.

    A node is marked visited when it is expanded, not when it is pushed, so an
    operand shared by two users is always emitted before both of them. Only
    operands for which `follow(operand)` is true are walked; roots are always
    included. Iterative, so deep chains do not hit the recursion limit.
    """
    order: List[Expression] = []
    expanded = set()
    stack = [(r, False) for r in reversed(list(roots))]
    while stack:
        node, done = stack.pop()
        if done:
            order.append(node)
            continue
        if id(node) in expanded:
            continue
        expanded.add(id(node))
        stack.append((node, True))
        op = node.op
        if op is None:
            continue
        for child in reversed(op.operands()):
            if id(child) in expanded:
                continue
            if follow is None or follow(child):
                stack.append((child, False))
    return order
