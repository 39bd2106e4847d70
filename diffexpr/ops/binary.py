# diffexpr/ops/binary.py
"""
Elementwise binary rules.

    forward_lhs_rhs(lhs, rhs)              -> f(lhs, rhs)
    forward_rhs_lhs(rhs, lhs)              -> f(lhs, rhs), operands given swapped
    backward_lhs(lhs, rhs, res, grad, acc) :  acc += grad * df/dlhs
    backward_rhs(lhs, rhs, res, grad, acc) :  acc += grad * df/drhs

The swapped forward lets the broadcast layer always pass the tensor operand
first, whichever side it sits on.
"""
import enum
from typing import Callable, Dict, NamedTuple

import numpy as np

from .domain import check_logic
from .ordering import total_cmp


class BinaryOp(enum.Enum):
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    POW = "pow"
    MIN = "min"
    MAX = "max"
    LOGIC_AND = "logic_and"
    LOGIC_OR = "logic_or"


class BinaryRule(NamedTuple):
    forward_lhs_rhs: Callable
    forward_rhs_lhs: Callable
    backward_lhs: Callable
    backward_rhs: Callable


def _swapped(f: Callable) -> Callable:
    def forward_rhs_lhs(rhs, lhs):
        return f(lhs, rhs)
    forward_rhs_lhs.__name__ = f"{f.__name__}_rhs_lhs"
    return forward_rhs_lhs


# -------------------------------- arithmetic -------------------------------- #
def _add(lhs, rhs):
    return lhs + rhs


def _add_backward(lhs, rhs, res, grad, acc):
    acc += grad


def _sub(lhs, rhs):
    return lhs - rhs


def _sub_backward_rhs(lhs, rhs, res, grad, acc):
    acc -= grad


def _mul(lhs, rhs):
    return lhs * rhs


def _mul_backward_lhs(lhs, rhs, res, grad, acc):
    acc += grad * rhs


def _mul_backward_rhs(lhs, rhs, res, grad, acc):
    acc += grad * lhs


def _div(lhs, rhs):
    return lhs / rhs


def _div_backward_lhs(lhs, rhs, res, grad, acc):
    acc += grad / rhs


def _div_backward_rhs(lhs, rhs, res, grad, acc):
    acc -= grad * lhs / (rhs * rhs)


def _pow(lhs, rhs):
    return np.power(lhs, rhs)


def _pow_backward_lhs(lhs, rhs, res, grad, acc):
    # c = a^b:  dc/da = b * a^(b-1) = b * c / a   (valid for a != 0)
    acc += grad * rhs * res / lhs


def _pow_backward_rhs(lhs, rhs, res, grad, acc):
    # dc/db = c * ln(a)
    acc += grad * res * np.log(lhs)


# --------------------------------- min / max -------------------------------- #
def _min(lhs, rhs):
    return np.fmin(lhs, rhs)


def _max(lhs, rhs):
    return np.fmax(lhs, rhs)


def _route(order, grad):
    """Full gradient where order < 0, half on an exact tie, nothing otherwise."""
    return np.where(order < 0, grad, np.where(order == 0, 0.5 * grad, 0.0))


def _min_backward_lhs(lhs, rhs, res, grad, acc):
    acc += _route(total_cmp(lhs, rhs), grad)


def _min_backward_rhs(lhs, rhs, res, grad, acc):
    acc += _route(total_cmp(rhs, lhs), grad)


def _max_backward_lhs(lhs, rhs, res, grad, acc):
    acc += _route(total_cmp(rhs, lhs), grad)


def _max_backward_rhs(lhs, rhs, res, grad, acc):
    acc += _route(total_cmp(lhs, rhs), grad)


# ---------------------------------- logic ----------------------------------- #
def _logic_and(lhs, rhs):
    """Product t-norm: and(a, b) = a * b."""
    check_logic(lhs, "logic_and lhs")
    check_logic(rhs, "logic_and rhs")
    return lhs * rhs


def _logic_or(lhs, rhs):
    """Probabilistic sum: or(a, b) = a + b - a * b."""
    check_logic(lhs, "logic_or lhs")
    check_logic(rhs, "logic_or rhs")
    return lhs + rhs - lhs * rhs


def _logic_or_backward_lhs(lhs, rhs, res, grad, acc):
    acc += grad * (1.0 - rhs)


def _logic_or_backward_rhs(lhs, rhs, res, grad, acc):
    acc += grad * (1.0 - lhs)


def _rule(f, backward_lhs, backward_rhs) -> BinaryRule:
    return BinaryRule(f, _swapped(f), backward_lhs, backward_rhs)


RULES: Dict[BinaryOp, BinaryRule] = {
    BinaryOp.ADD: _rule(_add, _add_backward, _add_backward),
    BinaryOp.SUB: _rule(_sub, _add_backward, _sub_backward_rhs),
    BinaryOp.MUL: _rule(_mul, _mul_backward_lhs, _mul_backward_rhs),
    BinaryOp.DIV: _rule(_div, _div_backward_lhs, _div_backward_rhs),
    BinaryOp.POW: _rule(_pow, _pow_backward_lhs, _pow_backward_rhs),
    BinaryOp.MIN: _rule(_min, _min_backward_lhs, _min_backward_rhs),
    BinaryOp.MAX: _rule(_max, _max_backward_lhs, _max_backward_rhs),
    BinaryOp.LOGIC_AND: _rule(_logic_and, _mul_backward_lhs, _mul_backward_rhs),
    BinaryOp.LOGIC_OR: _rule(_logic_or, _logic_or_backward_lhs, _logic_or_backward_rhs),
}


# ------------------------------ powf (x ** n) ------------------------------- #
def powf_forward(x, n: float):
    return np.power(x, n)


def powf_backward(x, n: float, res, grad, acc):
    acc += grad * n * np.power(x, n - 1.0)
