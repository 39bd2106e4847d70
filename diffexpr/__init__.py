# diffexpr/__init__.py
# Differentiable expression evaluation over scalars and float64 vectors

import logging

from .config import ExprConfig, get_config, set_config, use_config
from .exceptions import DiffExprError, DomainError, ShapeMismatchError
from .core import (
    Const,
    Expression,
    GradId,
    GradStore,
    Operation,
    Parameter,
    ScalarTensor,
    Tensor,
    backward,
    constant,
    grad,
    grads,
    new_grad_id,
    parameter,
    recompute,
    update,
    value,
)
from .ops import BinaryOp, CmpOp, Discrete, Linear, Sigmoid, UnaryOp

# Graph inspection helpers
from .core.graph_utils import analyze_graph_complexity, get_graph_stats, print_graph_summary

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Config / errors
    'ExprConfig', 'get_config', 'set_config', 'use_config',
    'DiffExprError', 'DomainError', 'ShapeMismatchError',
    # Data model
    'Const', 'Expression', 'Operation', 'Parameter', 'ScalarTensor',
    'Tensor', 'GradId', 'new_grad_id',
    'constant', 'parameter', 'update', 'value',
    # Reverse pass
    'GradStore', 'backward', 'grad', 'grads', 'recompute',
    # Operator kinds
    'UnaryOp', 'BinaryOp', 'CmpOp', 'Discrete', 'Linear', 'Sigmoid',
    # Inspection
    'get_graph_stats', 'print_graph_summary', 'analyze_graph_complexity',
]
