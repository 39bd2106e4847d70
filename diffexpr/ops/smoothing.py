# diffexpr/ops/smoothing.py
"""
Smoothing methods for comparisons.

A comparison is a step function of d = lhs - rhs, which has no useful gradient.
Each method provides three primitives as functions of d

    eq(d)  : 1 at d == 0
    le(d)  : 1 for d < 0, 0 for d > 0, with le(0) = 1
    lt(d)  : 1 for d < 0, 0 for d > 0, with lt(0) = 0

together with their slopes d(primitive)/dd. The remaining relations are derived
from these in `compare.py` (ne = 1 - eq, ge/gt by swapping operands).

Methods other than Discrete are only honoured when the result tracks gradients;
see `broadcast.compare`.
"""
from __future__ import annotations

import numpy as np

from .domain import check_positive
from .ordering import total_eq, total_le, total_lt


def logistic_neg(x):
    """
    1 / (1 + e^x), evaluated without overflow.

    For x > 0 the value is formed as 1 - p with p = 1 / (1 + e^-x) in [0.5, 1];
    that subtraction is exact, so logistic_neg(x) + logistic_neg(-x) == 1 holds
    bit-for-bit.
    """
    x = np.asarray(x, dtype=np.float64)
    p = 1.0 / (1.0 + np.exp(-np.abs(x)))
    return np.where(x > 0.0, 1.0 - p, p)


class CmpMethod:
    """Base class: one smoothing strategy for the eq / le / lt primitives."""
    name = "base"
    differentiable = False

    def eq_forward(self, lhs, rhs):
        raise NotImplementedError

    def le_forward(self, lhs, rhs):
        raise NotImplementedError

    def lt_forward(self, lhs, rhs):
        raise NotImplementedError

    def eq_slope(self, lhs, rhs):
        return np.zeros_like(np.asarray(lhs - rhs, dtype=np.float64))

    def le_slope(self, lhs, rhs):
        return np.zeros_like(np.asarray(lhs - rhs, dtype=np.float64))

    def lt_slope(self, lhs, rhs):
        return np.zeros_like(np.asarray(lhs - rhs, dtype=np.float64))

    def __repr__(self):
        return f"{self.__class__.__name__}()"


class Discrete(CmpMethod):
    """Exact 0.0 / 1.0 via the total order. Contributes no gradient."""
    name = "discrete"

    def eq_forward(self, lhs, rhs):
        return np.where(total_eq(lhs, rhs), 1.0, 0.0)

    def le_forward(self, lhs, rhs):
        return np.where(total_le(lhs, rhs), 1.0, 0.0)

    def lt_forward(self, lhs, rhs):
        return np.where(total_lt(lhs, rhs), 1.0, 0.0)

    def __eq__(self, other):
        return isinstance(other, Discrete)

    def __hash__(self):
        return hash(Discrete)


DISCRETE = Discrete()


class Linear(CmpMethod):
    r"""
    Piecewise-linear ramp of half-width epsilon around the flip point.

        eq(d) = 1 - |d|/eps         for |d| < eps, else 0

                   1
          /\
         /  \
    ____/    \___  0
       -eps 0 eps        d

        le(d) = lt(d) = 1/2 - d/(2 eps)   for |d| <= eps
                        1                 for d < -eps
                        0                 for d > eps
    """
    name = "linear"
    differentiable = True

    def __init__(self, epsilon: float):
        epsilon = float(epsilon)
        check_positive(epsilon, "epsilon")
        self.epsilon = epsilon

    def eq_forward(self, lhs, rhs):
        a = np.abs(lhs - rhs)
        return np.where(a < self.epsilon, 1.0 - a / self.epsilon, 0.0)

    def eq_slope(self, lhs, rhs):
        d = lhs - rhs
        return np.where(np.abs(d) < self.epsilon, -np.sign(d) / self.epsilon, 0.0)

    def le_forward(self, lhs, rhs):
        d = lhs - rhs
        eps = self.epsilon
        return np.where(d > eps, 0.0, np.where(d < -eps, 1.0, 0.5 - d / (2.0 * eps)))

    def le_slope(self, lhs, rhs):
        d = lhs - rhs
        return np.where(np.abs(d) <= self.epsilon, -1.0 / (2.0 * self.epsilon), 0.0)

    lt_forward = le_forward
    lt_slope = le_slope

    def __eq__(self, other):
        return isinstance(other, Linear) and other.epsilon == self.epsilon

    def __hash__(self):
        return hash((Linear, self.epsilon))

    def __repr__(self):
        return f"Linear(epsilon={self.epsilon!r})"


class Sigmoid(CmpMethod):
    """
    Smooth surrogates with sharpness k:

        eq(d)          = exp(-k d^2)                 (Gaussian bump)
        le(d) = lt(d)  = 1 / (1 + exp(k d))          (logistic)

    As k grows, le/lt converge to the discrete step for every d != 0.
    """
    name = "sigmoid"
    differentiable = True

    def __init__(self, k: float):
        k = float(k)
        check_positive(k, "k")
        self.k = k

    def eq_forward(self, lhs, rhs):
        d = lhs - rhs
        return np.exp(-self.k * d * d)

    def eq_slope(self, lhs, rhs):
        # d/dd exp(-k d^2) = -2 k d exp(-k d^2)
        d = lhs - rhs
        kd = self.k * d
        return -2.0 * kd * np.exp(-kd * d)

    def le_forward(self, lhs, rhs):
        return logistic_neg(self.k * (lhs - rhs))

    def le_slope(self, lhs, rhs):
        # d/dd sigma(-k d) = -k sigma (1 - sigma)
        s = logistic_neg(self.k * (lhs - rhs))
        return -self.k * s * (1.0 - s)

    lt_forward = le_forward
    lt_slope = le_slope

    def __eq__(self, other):
        return isinstance(other, Sigmoid) and other.k == self.k

    def __hash__(self):
        return hash((Sigmoid, self.k))

    def __repr__(self):
        return f"Sigmoid(k={self.k!r})"
