# diffexpr/core/engine.py
from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from .expression import Expression, Operation, as_expression
from .grad_store import GradStore
from .traversal import post_order

logger = logging.getLogger(__name__)


def _tracked_operation(e: Expression) -> bool:
    # untracked operands cannot lead back to a tracked tensor
    return isinstance(e, Operation) and e.with_grad


def topological_order(root: Expression) -> List[Operation]:
    """
    Operation nodes reachable from `root` through gradient-tracking tensors,
    operands before their users.
    """
    if not _tracked_operation(root):
        return []
    return post_order([root], follow=_tracked_operation)


def backward(root, seed=1.0, store: Optional[GradStore] = None) -> GradStore:
    """
    Run one reverse pass from `root`.

    Args:
        root : Expression to differentiate. A root without a gradient identity
               yields an empty store.
        seed : scalar or array of the root's length, added into the root bucket.
        store: GradStore to accumulate into; a fresh one by default. Passing the
               same store twice sums the two passes.

    Returns:
        The GradStore holding d(seed . root)/d(t) for every tracked tensor t the
        root depends on, keyed by gradient identity.

    Notes:
        - Operand buffers must still hold the values the nodes were computed
          from; call `recompute()` after `update()` before differentiating.
        - Nodes whose accumulated gradient is all zero are skipped.
    """
    # each pass sweeps its own buckets; the caller's store only sees totals
    scratch = GradStore()
    root = as_expression(root)
    if root.with_grad:
        _sweep(root, seed, scratch)
    if store is None:
        return scratch
    for gid, buf in scratch.items():
        store.accumulate(gid, buf)
    return store


def _sweep(root: Expression, seed, store: GradStore) -> None:
    t = root.tensor
    bucket = store.buffer(t.grad_id, len(t))
    bucket += np.broadcast_to(np.asarray(seed, dtype=np.float64), bucket.shape)

    order = topological_order(root)
    logger.debug("reverse pass over %d nodes", len(order))

    from ..ops.broadcast import propagate
    for node in reversed(order):
        t = node.tensor
        grad = store.buffer(t.grad_id, len(t))
        if _is_zero(grad):
            continue  # nothing to propagate
        with t.read() as res:
            propagate(node.op, res, grad, store)


def _is_zero(x) -> bool:
    return not np.any(x)
