# diffexpr/core/recompute.py
"""
Change-driven re-evaluation.

`update()` replaces a Parameter's buffer and sets its change marker; every
Operation built on top of it now holds a stale value. `recompute()` walks the
graph under the given roots operands-first and re-runs each Op whose operands
changed, so the change ripples up to the roots.
"""
from __future__ import annotations

import logging
from typing import Dict

from .expression import Operation, as_expression
from .tensor import Tensor
from .traversal import post_order

logger = logging.getLogger(__name__)


def recompute(*roots) -> int:
    """
    Bring every Operation under `roots` up to date with its operands.

    Returns the number of nodes that were re-evaluated. All change markers seen
    during the walk are cleared before returning.
    """
    from ..ops.broadcast import evaluate

    order = post_order([as_expression(r) for r in roots])
    touched: Dict[int, Tensor] = {}
    count = 0
    for node in order:
        t = node.tensor
        if t is None:
            continue
        touched[id(t)] = t
        if not isinstance(node, Operation):
            continue
        stale = any(
            e.tensor is not None and e.tensor.is_changed() for e in node.op.operands()
        )
        if stale:
            t._replace(evaluate(node.op))
            t.mark_changed()
            count += 1
    for t in touched.values():
        t.change_marker.clear()
    if count:
        logger.debug("recomputed %d stale nodes", count)
    return count
