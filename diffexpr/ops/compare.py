# diffexpr/ops/compare.py
"""
Comparison relations on top of the smoothing primitives.

    eq(a, b)                      primitive
    ne(a, b) = 1 - eq(a, b)
    le(a, b)                      primitive
    lt(a, b)                      primitive
    ge(a, b) = le(b, a)
    gt(a, b) = lt(b, a)

Hence le(a, b) + gt(a, b) == 1 and lt(a, b) + ge(a, b) == 1 for every method.
"""
import enum
from typing import Dict, NamedTuple

from .smoothing import CmpMethod


class CmpOp(enum.Enum):
    EQ = "eq"
    NE = "ne"
    LE = "le"
    GE = "ge"
    LT = "lt"
    GT = "gt"


class _Derivation(NamedTuple):
    primitive: str   # "eq" | "le" | "lt"
    swapped: bool    # evaluate primitive(rhs, lhs)
    negated: bool    # 1 - primitive


_DERIVATIONS: Dict[CmpOp, _Derivation] = {
    CmpOp.EQ: _Derivation("eq", False, False),
    CmpOp.NE: _Derivation("eq", False, True),
    CmpOp.LE: _Derivation("le", False, False),
    CmpOp.GE: _Derivation("le", True, False),
    CmpOp.LT: _Derivation("lt", False, False),
    CmpOp.GT: _Derivation("lt", True, False),
}


def forward(kind: CmpOp, method: CmpMethod, lhs, rhs):
    prim, swapped, negated = _DERIVATIONS[kind]
    a, b = (rhs, lhs) if swapped else (lhs, rhs)
    value = getattr(method, f"{prim}_forward")(a, b)
    return 1.0 - value if negated else value


def _slope(kind: CmpOp, method: CmpMethod, lhs, rhs, wrt_lhs: bool):
    """Partial derivative of the relation w.r.t. lhs (or rhs)."""
    prim, swapped, negated = _DERIVATIONS[kind]
    a, b = (rhs, lhs) if swapped else (lhs, rhs)
    # Primitives depend on a - b only, so d/da = slope and d/db = -slope.
    slope = getattr(method, f"{prim}_slope")(a, b)
    sign = 1.0 if wrt_lhs != swapped else -1.0
    if negated:
        sign = -sign
    return sign * slope


def backward_lhs(kind: CmpOp, method: CmpMethod, lhs, rhs, res, grad, acc) -> None:
    if not method.differentiable:
        return
    acc += grad * _slope(kind, method, lhs, rhs, wrt_lhs=True)


def backward_rhs(kind: CmpOp, method: CmpMethod, lhs, rhs, res, grad, acc) -> None:
    if not method.differentiable:
        return
    acc += grad * _slope(kind, method, lhs, rhs, wrt_lhs=False)
