# diffexpr/core/expression.py
from __future__ import annotations

import numbers
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from .op import ASSIGN, Op
from .tensor import Tensor, new_grad_id

Number = Union[int, float, np.floating, np.integer]


class ScalarTensor:
    """
    Read-only discriminator view over an Expression's value: either a scalar
    (Const) or the shared Tensor (Parameter / Operation).
    """
    __slots__ = ("scalar", "tensor")

    def __init__(self, scalar: Optional[float] = None, tensor: Optional[Tensor] = None):
        self.scalar = scalar
        self.tensor = tensor

    @property
    def is_scalar(self) -> bool:
        return self.tensor is None

    def to_numpy(self) -> Union[float, np.ndarray]:
        return self.scalar if self.tensor is None else self.tensor.to_numpy()

    def __repr__(self):
        if self.tensor is None:
            return f"ScalarTensor.Scalar({self.scalar!r})"
        return f"ScalarTensor.Tensor({self.tensor!r})"


class Expression:
    """
    Node of an expression graph: a Const, a caller-owned Parameter, or a derived
    Operation. Every operator method evaluates eagerly and returns a new node;
    operands are never mutated.

    Plain numbers are accepted wherever an operand is expected and are wrapped
    as Const.
    """
    __slots__ = ()

    @property
    def tensor(self) -> Optional[Tensor]:
        return None

    @property
    def op(self) -> Optional[Op]:
        return None

    @property
    def with_grad(self) -> bool:
        t = self.tensor
        return t is not None and t.with_grad

    @property
    def is_const(self) -> bool:
        return self.tensor is None

    def value(self) -> ScalarTensor:
        raise NotImplementedError

    def __len__(self) -> int:
        t = self.tensor
        return 1 if t is None else len(t)

    # ---------------------------------- unary ---------------------------------- #
    def _unary(self, kind_name: str) -> "Expression":
        from ..ops.broadcast import unary
        from ..ops.unary import UnaryOp
        return unary(self, UnaryOp[kind_name])

    def neg(self): return self._unary("NEG")
    def sin(self): return self._unary("SIN")
    def cos(self): return self._unary("COS")
    def tanh(self): return self._unary("TANH")
    def tan(self): return self._unary("TAN")
    def ceil(self): return self._unary("CEIL")
    def floor(self): return self._unary("FLOOR")
    def round(self): return self._unary("ROUND")
    def sign(self): return self._unary("SIGN")
    def sqrt(self): return self._unary("SQRT")
    def sqr(self): return self._unary("SQR")
    def cubic(self): return self._unary("CUBIC")
    def log(self): return self._unary("LOG")
    def exp(self): return self._unary("EXP")
    def abs(self): return self._unary("ABS")
    def erf(self): return self._unary("ERF")
    def logic_not(self): return self._unary("LOGIC_NOT")

    def powf(self, n: float) -> "Expression":
        from ..ops.broadcast import powf
        return powf(self, float(n))

    # ---------------------------------- binary --------------------------------- #
    def _binary(self, rhs, kind_name: str) -> "Expression":
        from ..ops.binary import BinaryOp
        from ..ops.broadcast import binary
        return binary(self, as_expression(rhs), BinaryOp[kind_name])

    def add(self, rhs): return self._binary(rhs, "ADD")
    def sub(self, rhs): return self._binary(rhs, "SUB")
    def mul(self, rhs): return self._binary(rhs, "MUL")
    def div(self, rhs): return self._binary(rhs, "DIV")
    def pow(self, rhs): return self._binary(rhs, "POW")
    def min(self, rhs): return self._binary(rhs, "MIN")
    def max(self, rhs): return self._binary(rhs, "MAX")
    def logic_and(self, rhs): return self._binary(rhs, "LOGIC_AND")
    def logic_or(self, rhs): return self._binary(rhs, "LOGIC_OR")

    # -------------------------------- conditional ------------------------------ #
    def cond(self, on_true, on_false) -> "Expression":
        """`(self) ? on_true : on_false`, smoothed as self*on_true + (1-self)*on_false."""
        from ..ops.broadcast import cond
        return cond(self, as_expression(on_true), as_expression(on_false))

    # -------------------------------- comparisons ------------------------------ #
    def _cmp(self, rhs, kind_name: str, method=None) -> "Expression":
        from ..ops.broadcast import compare
        from ..ops.compare import CmpOp
        from ..ops.smoothing import DISCRETE
        return compare(self, as_expression(rhs), CmpOp[kind_name], method or DISCRETE)

    def eq(self, rhs): return self._cmp(rhs, "EQ")
    def ne(self, rhs): return self._cmp(rhs, "NE")
    def le(self, rhs): return self._cmp(rhs, "LE")
    def ge(self, rhs): return self._cmp(rhs, "GE")
    def lt(self, rhs): return self._cmp(rhs, "LT")
    def gt(self, rhs): return self._cmp(rhs, "GT")

    # Sigmoid / linear variants only take effect when the result needs a gradient;
    # otherwise they fall back to the discrete comparison.
    def _cmp_sigmoid(self, rhs, kind_name: str, k: float):
        from ..ops.smoothing import Sigmoid
        return self._cmp(rhs, kind_name, Sigmoid(k))

    def _cmp_linear(self, rhs, kind_name: str, epsilon: float):
        from ..ops.smoothing import Linear
        return self._cmp(rhs, kind_name, Linear(epsilon))

    def eq_sigmoid(self, rhs, k: float):
        """eq(a, b) = exp(-k (a - b)^2)"""
        return self._cmp_sigmoid(rhs, "EQ", k)

    def ne_sigmoid(self, rhs, k: float):
        """ne(a, b) = 1 - exp(-k (a - b)^2)"""
        return self._cmp_sigmoid(rhs, "NE", k)

    def le_sigmoid(self, rhs, k: float):
        """le(a, b) = 1 / (1 + exp(k (a - b)))"""
        return self._cmp_sigmoid(rhs, "LE", k)

    def ge_sigmoid(self, rhs, k: float):
        """ge(a, b) = 1 / (1 + exp(-k (a - b)))"""
        return self._cmp_sigmoid(rhs, "GE", k)

    def lt_sigmoid(self, rhs, k: float):
        """lt(a, b) = 1 / (1 + exp(k (a - b)))"""
        return self._cmp_sigmoid(rhs, "LT", k)

    def gt_sigmoid(self, rhs, k: float):
        """gt(a, b) = 1 / (1 + exp(-k (a - b)))"""
        return self._cmp_sigmoid(rhs, "GT", k)

    def eq_linear(self, rhs, epsilon: float):
        """eq(a, b) = 1 - |a - b| / eps inside the band, 0 outside."""
        return self._cmp_linear(rhs, "EQ", epsilon)

    def ne_linear(self, rhs, epsilon: float):
        """ne(a, b) = |a - b| / eps inside the band, 1 outside."""
        return self._cmp_linear(rhs, "NE", epsilon)

    def le_linear(self, rhs, epsilon: float):
        """le(a, b) = 1/2 - (a - b) / (2 eps) inside the band."""
        return self._cmp_linear(rhs, "LE", epsilon)

    def ge_linear(self, rhs, epsilon: float):
        """ge(a, b) = 1/2 + (a - b) / (2 eps) inside the band."""
        return self._cmp_linear(rhs, "GE", epsilon)

    def lt_linear(self, rhs, epsilon: float):
        """lt(a, b) = 1/2 - (a - b) / (2 eps) inside the band."""
        return self._cmp_linear(rhs, "LT", epsilon)

    def gt_linear(self, rhs, epsilon: float):
        """gt(a, b) = 1/2 + (a - b) / (2 eps) inside the band."""
        return self._cmp_linear(rhs, "GT", epsilon)

    # ---------------------------- Python operators ----------------------------- #
    def __add__(self, other): return self.add(other)
    def __radd__(self, other): return as_expression(other).add(self)
    def __sub__(self, other): return self.sub(other)
    def __rsub__(self, other): return as_expression(other).sub(self)
    def __mul__(self, other): return self.mul(other)
    def __rmul__(self, other): return as_expression(other).mul(self)
    def __truediv__(self, other): return self.div(other)
    def __rtruediv__(self, other): return as_expression(other).div(self)
    def __pow__(self, other): return self.pow(other)
    def __rpow__(self, other): return as_expression(other).pow(self)
    def __neg__(self): return self.neg()
    def __abs__(self): return self.abs()


class Const(Expression):
    """Immutable scalar. Never carries a gradient identity."""
    __slots__ = ("_value",)

    def __init__(self, value: Number):
        self._value = float(value)

    def __repr__(self):
        return f"Const({self._value!r})"

    @property
    def scalar(self) -> float:
        return self._value

    def value(self) -> ScalarTensor:
        return ScalarTensor(scalar=self._value)


class Parameter(Expression):
    """Caller-owned leaf tensor; mutable through `update()`."""
    __slots__ = ("_tensor",)

    def __init__(self, tensor: Tensor):
        self._tensor = tensor

    def __repr__(self):
        return f"Parameter({self._tensor!r})"

    @property
    def tensor(self) -> Tensor:
        return self._tensor

    @property
    def op(self) -> Op:
        return ASSIGN

    def value(self) -> ScalarTensor:
        return ScalarTensor(tensor=self._tensor)


class Operation(Expression):
    """Derived tensor plus the Op that produced it. Immutable once built."""
    __slots__ = ("_tensor", "_op")

    def __init__(self, tensor: Tensor, op: Op):
        self._tensor = tensor
        self._op = op

    def __repr__(self):
        return f"Operation({self._op.tag}, {self._tensor!r})"

    @property
    def tensor(self) -> Tensor:
        return self._tensor

    @property
    def op(self) -> Op:
        return self._op

    def value(self) -> ScalarTensor:
        return ScalarTensor(tensor=self._tensor)


def as_expression(x) -> Expression:
    """Ensure x is an Expression; otherwise wrap a plain number as Const."""
    if isinstance(x, Expression):
        return x
    if isinstance(x, numbers.Real):
        return Const(x)
    raise TypeError(
        f"expected an Expression or a real number, but got {type(x).__name__}"
    )


# ------------------------------ public surface ------------------------------- #
def constant(value: Number) -> Const:
    return Const(value)


def parameter(values: Union[Sequence[float], np.ndarray],
              need_grad: bool = False) -> Tuple[Parameter, Tensor]:
    """
    Create a Parameter over a fresh tensor and return it together with the
    tensor handle used for later `update()` calls. With `need_grad=True` the
    tensor gets a gradient identity and everything computed from it is tracked.
    """
    tensor = Tensor(values, new_grad_id() if need_grad else None)
    return Parameter(tensor), tensor


def update(tensor: Tensor, new_values: Union[Sequence[float], np.ndarray]) -> None:
    """Replace the tensor's contents and mark it changed for `recompute()`."""
    tensor.update(new_values)


def value(expr) -> Union[float, np.ndarray]:
    """Scalar for Const (or a plain number), read-only numpy array otherwise."""
    return as_expression(expr).value().to_numpy()
