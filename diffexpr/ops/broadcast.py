# diffexpr/ops/broadcast.py
"""
Scalar / tensor dispatch for every operator family.

- All operands Const      -> Const result, no tensor allocated.
- One tensor operand      -> scalars broadcast elementwise against it.
- Several tensor operands -> lengths must match (ShapeMismatchError), zipped.

The result tensor gets a fresh gradient identity iff at least one tensor
operand already has one. `evaluate()` and `propagate()` are the forward and
backward halves of each recorded Op; the constructors below, `recompute` and
the reverse-pass engine all go through them.
"""
from __future__ import annotations

from contextlib import ExitStack
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Type

import numpy as np

from ..core.expression import Const, Expression, Operation
from ..core.grad_store import GradStore
from ..core.op import Assign, Binary, Cmp, Cond, Op, Powf, Unary
from ..core.tensor import Tensor, new_grad_id
from ..exceptions import ShapeMismatchError
from . import binary as _binary
from . import compare as _compare
from . import cond as _cond
from . import unary as _unary
from .binary import BinaryOp
from .compare import CmpOp
from .smoothing import DISCRETE, CmpMethod
from .unary import UnaryOp


# -------------------------------- helpers ---------------------------------- #
def _tensors(operands: Sequence[Expression]) -> List[Tensor]:
    return [e.tensor for e in operands if e.tensor is not None]


def check_lengths(operands: Sequence[Expression]) -> Optional[int]:
    """Common length of the tensor operands, or None if all are scalars."""
    lengths = [len(t) for t in _tensors(operands)]
    if not lengths:
        return None
    if any(n != lengths[0] for n in lengths):
        raise ShapeMismatchError("tensor length mismatch", lengths=lengths)
    return lengths[0]


def _needs_grad(operands: Sequence[Expression]) -> bool:
    return any(t.with_grad for t in _tensors(operands))


class _Values:
    """
    Read the current values of several operands under their read locks.
    Const operands read as Python floats; a tensor shared by two operands is
    locked once.
    """

    def __init__(self, operands: Sequence[Expression]):
        self._operands = operands
        self._stack = ExitStack()

    def __enter__(self) -> Tuple:
        seen: Dict[int, np.ndarray] = {}
        out = []
        for e in self._operands:
            t = e.tensor
            if t is None:
                out.append(e.scalar)
                continue
            if id(t) not in seen:
                seen[id(t)] = self._stack.enter_context(t.read())
            out.append(seen[id(t)])
        return tuple(out)

    def __exit__(self, *exc):
        return self._stack.__exit__(*exc)


# ------------------------------- forward ----------------------------------- #
def _eval_unary(op: Unary):
    with _Values(op.operands()) as (x,):
        return _unary.forward(op.kind, x)


def _eval_powf(op: Powf):
    with _Values(op.operands()) as (x,):
        return _binary.powf_forward(x, op.exponent)


def _eval_binary(op: Binary):
    rule = _binary.RULES[op.kind]
    with _Values(op.operands()) as (lhs, rhs):
        if op.lhs.is_const and not op.rhs.is_const:
            # tensor first: the swapped forward takes (rhs, lhs)
            return rule.forward_rhs_lhs(rhs, lhs)
        return rule.forward_lhs_rhs(lhs, rhs)


def _eval_cmp(op: Cmp):
    with _Values(op.operands()) as (lhs, rhs):
        return _compare.forward(op.kind, op.method, lhs, rhs)


def _eval_cond(op: Cond):
    with _Values(op.operands()) as (c, t, f):
        return _cond.forward(c, t, f)


def _eval_assign(op: Assign):
    raise TypeError("an Assign op has no operands to evaluate")


_EVALUATORS: Dict[Type[Op], Callable] = {
    Unary: _eval_unary,
    Powf: _eval_powf,
    Binary: _eval_binary,
    Cmp: _eval_cmp,
    Cond: _eval_cond,
    Assign: _eval_assign,
}


def evaluate(op: Op) -> np.ndarray:
    """Run the op's forward rule on the operands' current values."""
    n = check_lengths(op.operands())
    with np.errstate(all="ignore"):
        out = _EVALUATORS[type(op)](op)
    out = np.asarray(out, dtype=np.float64)
    if n is not None and out.shape != (n,):
        out = np.broadcast_to(out, (n,)).copy()
    return out


def _scalar(op: Op) -> Const:
    with np.errstate(all="ignore"):
        out = _EVALUATORS[type(op)](op)
    return Const(float(out))


def _make(op: Op, track: bool) -> Expression:
    if all(e.is_const for e in op.operands()):
        return _scalar(op)
    values = evaluate(op)
    return Operation(Tensor(values, new_grad_id() if track else None), op)


# ----------------------------- constructors -------------------------------- #
def unary(x: Expression, kind: UnaryOp) -> Expression:
    op = Unary(x, kind)
    return _make(op, _needs_grad(op.operands()))


def powf(x: Expression, n: float) -> Expression:
    op = Powf(x, n)
    return _make(op, _needs_grad(op.operands()))


def binary(lhs: Expression, rhs: Expression, kind: BinaryOp) -> Expression:
    op = Binary(lhs, rhs, kind)
    return _make(op, _needs_grad(op.operands()))


def compare(lhs: Expression, rhs: Expression, kind: CmpOp, method: CmpMethod) -> Expression:
    """
    A smoothing method is honoured only when the result will track gradients and
    the method is differentiable; otherwise it silently drops to Discrete and
    the result carries no gradient identity.
    """
    track = method.differentiable and _needs_grad((lhs, rhs))
    op = Cmp(lhs, rhs, kind, method if track else DISCRETE)
    return _make(op, track)


def cond(c: Expression, on_true: Expression, on_false: Expression) -> Expression:
    if c.is_const:
        # exact zero / non-zero test; no node is built
        return on_true if c.scalar != 0.0 else on_false
    op = Cond(c, on_true, on_false)
    return _make(op, _needs_grad(op.operands()))


# ------------------------------- backward ---------------------------------- #
def _bucket(e: Expression, store: GradStore) -> Optional[np.ndarray]:
    """Accumulator of a gradient-tracking operand, None for everything else."""
    t = e.tensor
    if t is None or not t.with_grad:
        return None
    return store.buffer(t.grad_id, len(t))


def _back_unary(op: Unary, res, grad, store: GradStore) -> None:
    acc = _bucket(op.operand, store)
    if acc is None:
        return
    with _Values(op.operands()) as (x,):
        _unary.backward(op.kind, x, res, grad, acc)


def _back_powf(op: Powf, res, grad, store: GradStore) -> None:
    acc = _bucket(op.base, store)
    if acc is None:
        return
    with _Values(op.operands()) as (x,):
        _binary.powf_backward(x, op.exponent, res, grad, acc)


def _back_binary(op: Binary, res, grad, store: GradStore) -> None:
    rule = _binary.RULES[op.kind]
    lhs_acc = _bucket(op.lhs, store)
    rhs_acc = _bucket(op.rhs, store)
    with _Values(op.operands()) as (lhs, rhs):
        if lhs_acc is not None:
            rule.backward_lhs(lhs, rhs, res, grad, lhs_acc)
        if rhs_acc is not None:
            rule.backward_rhs(lhs, rhs, res, grad, rhs_acc)


def _back_cmp(op: Cmp, res, grad, store: GradStore) -> None:
    if not op.method.differentiable:
        return
    lhs_acc = _bucket(op.lhs, store)
    rhs_acc = _bucket(op.rhs, store)
    with _Values(op.operands()) as (lhs, rhs):
        if lhs_acc is not None:
            _compare.backward_lhs(op.kind, op.method, lhs, rhs, res, grad, lhs_acc)
        if rhs_acc is not None:
            _compare.backward_rhs(op.kind, op.method, lhs, rhs, res, grad, rhs_acc)


def _back_cond(op: Cond, res, grad, store: GradStore) -> None:
    accs = [_bucket(e, store) for e in op.operands()]
    rules = (_cond.backward_cond, _cond.backward_on_true, _cond.backward_on_false)
    with _Values(op.operands()) as (c, t, f):
        for acc, rule in zip(accs, rules):
            if acc is not None:
                rule(c, t, f, grad, acc)


def _back_assign(op: Assign, res, grad, store: GradStore) -> None:
    return None


_BACKWARDS: Dict[Type[Op], Callable] = {
    Unary: _back_unary,
    Powf: _back_powf,
    Binary: _back_binary,
    Cmp: _back_cmp,
    Cond: _back_cond,
    Assign: _back_assign,
}


def propagate(op: Op, res: np.ndarray, grad: np.ndarray, store: GradStore) -> None:
    """
    Add the op's local contributions, scaled by the upstream `grad`, into the
    store buckets of its gradient-tracking operands.
    """
    with np.errstate(all="ignore"):
        _BACKWARDS[type(op)](op, res, grad, store)
