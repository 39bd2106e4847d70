# diffexpr/core/op.py
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Tuple

if TYPE_CHECKING:
    from ..ops.binary import BinaryOp
    from ..ops.compare import CmpOp
    from ..ops.smoothing import CmpMethod
    from ..ops.unary import UnaryOp
    from .expression import Expression


@dataclass(frozen=True, eq=False)
class Op:
    """
    Provenance of a tensor's current value: the operator kind plus the operand
    Expressions it was computed from. The reverse pass reads the operands back
    through this record, and `recompute` re-runs it when an operand changes.
    """

    @property
    def tag(self) -> str:
        raise NotImplementedError

    def operands(self) -> Tuple["Expression", ...]:
        raise NotImplementedError


@dataclass(frozen=True, eq=False)
class Assign(Op):
    """Values set directly by the caller (a Parameter leaf). No operands."""

    @property
    def tag(self) -> str:
        return "assign"

    def operands(self):
        return ()


ASSIGN = Assign()


@dataclass(frozen=True, eq=False)
class Powf(Op):
    base: "Expression"
    exponent: float

    @property
    def tag(self) -> str:
        return "powf"

    def operands(self):
        return (self.base,)


@dataclass(frozen=True, eq=False)
class Cond(Op):
    cond: "Expression"
    on_true: "Expression"
    on_false: "Expression"

    @property
    def tag(self) -> str:
        return "cond"

    def operands(self):
        return (self.cond, self.on_true, self.on_false)


@dataclass(frozen=True, eq=False)
class Unary(Op):
    operand: "Expression"
    kind: "UnaryOp"

    @property
    def tag(self) -> str:
        return self.kind.value

    def operands(self):
        return (self.operand,)


@dataclass(frozen=True, eq=False)
class Binary(Op):
    lhs: "Expression"
    rhs: "Expression"
    kind: "BinaryOp"

    @property
    def tag(self) -> str:
        return self.kind.value

    def operands(self):
        return (self.lhs, self.rhs)


@dataclass(frozen=True, eq=False)
class Cmp(Op):
    lhs: "Expression"
    rhs: "Expression"
    kind: "CmpOp"
    method: "CmpMethod"

    @property
    def tag(self) -> str:
        if self.method.name == "discrete":
            return self.kind.value
        return f"{self.kind.value}_{self.method.name}"

    def operands(self):
        return (self.lhs, self.rhs)
