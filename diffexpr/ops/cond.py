# diffexpr/ops/cond.py
"""
Smoothed select: `(cond) ? on_true : on_false` with cond in [0, 1].

    forward = cond * on_true + (1 - cond) * on_false

The blend is differentiable everywhere, so no smoothing method is involved:

    d/dcond    = on_true - on_false
    d/don_true = cond
    d/don_false = 1 - cond
"""
from .domain import check_logic


def forward(cond, on_true, on_false):
    check_logic(cond, "cond")
    return cond * on_true + (1.0 - cond) * on_false


def backward_cond(cond, on_true, on_false, grad, acc) -> None:
    acc += grad * (on_true - on_false)


def backward_on_true(cond, on_true, on_false, grad, acc) -> None:
    acc += grad * cond


def backward_on_false(cond, on_true, on_false, grad, acc) -> None:
    acc += grad * (1.0 - cond)
