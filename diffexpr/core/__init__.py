# diffexpr/core/__init__.py

"""
Data model and graph walkers.

Exports:
    Tensor, GradId, new_grad_id : shared buffers and their gradient identities.
    Expression, Const, Parameter, Operation, ScalarTensor : graph nodes.
    constant, parameter, update, value : node construction and inspection.
    GradStore   : gradient buckets keyed by gradient identity.
    backward    : one reverse pass from a root expression.
    recompute   : re-evaluate nodes made stale by `update()`.
    grad, grads : convenience gradient helpers.
"""

from .tensor import ChangeMarker, GradId, RWLock, Tensor, new_grad_id
from .op import ASSIGN, Assign, Binary, Cmp, Cond, Op, Powf, Unary
from .expression import (
    Const,
    Expression,
    Operation,
    Parameter,
    ScalarTensor,
    as_expression,
    constant,
    parameter,
    update,
    value,
)
from .grad_store import GradStore
from .engine import backward, topological_order
from .recompute import recompute
from .seeds import grad, grads

__all__ = [
    "ChangeMarker", "GradId", "RWLock", "Tensor", "new_grad_id",
    "ASSIGN", "Assign", "Binary", "Cmp", "Cond", "Op", "Powf", "Unary",
    "Const", "Expression", "Operation", "Parameter", "ScalarTensor",
    "as_expression", "constant", "parameter", "update", "value",
    "GradStore", "backward", "topological_order", "recompute",
    "grad", "grads",
]
