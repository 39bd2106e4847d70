# diffexpr/core/seeds.py

#-----------------------------------------------------------------------------
# Convenience wrappers: plant a seed of ones at the output and read the
# accumulated buckets of the inputs back as plain numpy arrays.
#-----------------------------------------------------------------------------
from __future__ import annotations

from typing import Callable, Dict, List, Sequence, Union

import numpy as np

from .engine import backward
from .expression import Expression, Parameter, parameter

ArrayLike = Union[float, Sequence[float], np.ndarray]


def _gradient_of(store, p: Parameter) -> np.ndarray:
    g = store.get(p)
    if g is None:
        # the output does not depend on this input
        return np.zeros(len(p), dtype=np.float64)
    return np.array(g)


def grad(f: Callable[..., Expression], *values: ArrayLike) -> List[np.ndarray]:
    """
    Elementwise gradient of y = f(x1, x2, ...) at the given inputs.

    Each input becomes a gradient-tracking Parameter; one reverse pass seeded
    with ones yields sum_i dy_i/dx for every input x, in argument order.

    Example
    -------
    grad(lambda a, b: a * b + b, [1.0, 2.0], [3.0, 4.0])
        -> [array([3., 4.]), array([2., 3.])]
    """
    params = [parameter(v, need_grad=True)[0] for v in values]
    y = f(*params)
    store = backward(y, seed=1.0)
    return [_gradient_of(store, p) for p in params]


def grads(f: Callable[[Dict[str, Expression]], Expression],
          inputs: Dict[str, ArrayLike]) -> Dict[str, np.ndarray]:
    """Same as grad(), with named inputs; the result keeps the key order of `inputs`."""
    params = {k: parameter(v, need_grad=True)[0] for k, v in inputs.items()}
    y = f(params)
    store = backward(y, seed=1.0)
    return {k: _gradient_of(store, p) for k, p in params.items()}
