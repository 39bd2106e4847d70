# diffexpr/ops/ordering.py
"""
Total order over float64, vectorised.

IEEE comparisons are not a total order (NaN compares false with everything), so
ties and discrete comparisons use this order instead: NaN equals NaN and sorts
above every other value, and -0.0 equals +0.0.
"""
import numpy as np


def total_eq(a, b):
    return (a == b) | (np.isnan(a) & np.isnan(b))


def total_lt(a, b):
    return (a < b) | (~np.isnan(a) & np.isnan(b))


def total_le(a, b):
    return total_lt(a, b) | total_eq(a, b)


def total_cmp(a, b):
    """-1 / 0 / +1 elementwise, like `Ordering` on a totally ordered float."""
    return np.where(total_lt(a, b), -1, np.where(total_eq(a, b), 0, 1))
