# diffexpr/ops/unary.py
"""
Elementwise unary rules.

Each rule has
    forward(x)                  -> f(x)
    backward(x, res, grad, acc) :  acc += grad * f'(x)
where `res` is the cached forward output. Backward always ADDS into `acc`: a
variable used at several sites in a graph sums the contributions of every use.
"""
import enum
import logging
from typing import Callable, Dict, NamedTuple

import numpy as np
from scipy.special import erf as _erf

from .domain import check_logic

logger = logging.getLogger(__name__)

TWO_OVER_SQRT_PI = 2.0 / np.sqrt(np.pi)


class UnaryOp(enum.Enum):
    LOGIC_NOT = "logic_not"
    NEG = "neg"
    SIN = "sin"
    COS = "cos"
    TANH = "tanh"
    TAN = "tan"
    CEIL = "ceil"
    FLOOR = "floor"
    ROUND = "round"
    SIGN = "sign"
    SQRT = "sqrt"
    SQR = "sqr"
    CUBIC = "cubic"
    LOG = "log"
    EXP = "exp"
    ABS = "abs"
    ERF = "erf"


class UnaryRule(NamedTuple):
    forward: Callable
    backward: Callable
    differentiable: bool = True


# ------------------------------- smooth rules ------------------------------- #
def _neg_backward(x, res, grad, acc):
    acc -= grad


def _sin_backward(x, res, grad, acc):
    acc += grad * np.cos(x)


def _cos_backward(x, res, grad, acc):
    acc -= grad * np.sin(x)


def _tanh_backward(x, res, grad, acc):
    # d tanh = 1 - tanh^2, reusing the cached output
    acc += grad * (1.0 - res * res)


def _tan_backward(x, res, grad, acc):
    # d tan = 1 + tan^2, reusing the cached output
    acc += grad * (1.0 + res * res)


def _sqrt_backward(x, res, grad, acc):
    acc += grad * 0.5 / res


def _sqr_forward(x):
    return x * x


def _sqr_backward(x, res, grad, acc):
    acc += grad * 2.0 * x


def _cubic_forward(x):
    return x * x * x


def _cubic_backward(x, res, grad, acc):
    acc += grad * 3.0 * x * x


def _log_backward(x, res, grad, acc):
    acc += grad / x


def _exp_backward(x, res, grad, acc):
    acc += grad * res


def _abs_backward(x, res, grad, acc):
    # +1 on the sign-positive side (including +0.0), -1 otherwise
    acc += np.where(np.signbit(x), -grad, grad)


def _erf_backward(x, res, grad, acc):
    # d/dx erf(x) = 2/sqrt(pi) * e^(-x^2)
    acc += grad * TWO_OVER_SQRT_PI * np.exp(-x * x)


def _logic_not_forward(x):
    check_logic(x, "logic_not operand")
    return 1.0 - x


def _logic_not_backward(x, res, grad, acc):
    acc -= grad


# ----------------------------- step functions ------------------------------- #
def _round_forward(x):
    """Round half away from zero (np.round rounds half to even)."""
    t = np.trunc(x)
    return np.where(np.abs(x - t) >= 0.5, t + np.copysign(1.0, x), t)


def _sign_forward(x):
    """+1 for sign-positive x (including +0.0), -1 for sign-negative, NaN for NaN."""
    return np.where(np.isnan(x), np.nan, np.copysign(1.0, x))


def _not_differentiable(name: str) -> Callable:
    def backward(x, res, grad, acc):
        logger.error("backward not supported for %s; its gradient is treated as zero", name)
    backward.__name__ = f"_{name}_backward"
    return backward


RULES: Dict[UnaryOp, UnaryRule] = {
    UnaryOp.LOGIC_NOT: UnaryRule(_logic_not_forward, _logic_not_backward),
    UnaryOp.NEG: UnaryRule(np.negative, _neg_backward),
    UnaryOp.SIN: UnaryRule(np.sin, _sin_backward),
    UnaryOp.COS: UnaryRule(np.cos, _cos_backward),
    UnaryOp.TANH: UnaryRule(np.tanh, _tanh_backward),
    UnaryOp.TAN: UnaryRule(np.tan, _tan_backward),
    UnaryOp.CEIL: UnaryRule(np.ceil, _not_differentiable("ceil"), False),
    UnaryOp.FLOOR: UnaryRule(np.floor, _not_differentiable("floor"), False),
    UnaryOp.ROUND: UnaryRule(_round_forward, _not_differentiable("round"), False),
    UnaryOp.SIGN: UnaryRule(_sign_forward, _not_differentiable("sign"), False),
    UnaryOp.SQRT: UnaryRule(np.sqrt, _sqrt_backward),
    UnaryOp.SQR: UnaryRule(_sqr_forward, _sqr_backward),
    UnaryOp.CUBIC: UnaryRule(_cubic_forward, _cubic_backward),
    UnaryOp.LOG: UnaryRule(np.log, _log_backward),
    UnaryOp.EXP: UnaryRule(np.exp, _exp_backward),
    UnaryOp.ABS: UnaryRule(np.abs, _abs_backward),
    UnaryOp.ERF: UnaryRule(_erf, _erf_backward),
}


def forward(kind: UnaryOp, x):
    return RULES[kind].forward(x)


def backward(kind: UnaryOp, x, res, grad, acc) -> None:
    RULES[kind].backward(x, res, grad, acc)
