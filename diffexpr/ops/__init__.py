# diffexpr/ops/__init__.py

# Operator kinds and smoothing methods; the rule tables live in the submodules
from .unary import UnaryOp
from .binary import BinaryOp
from .compare import CmpOp
from .smoothing import CmpMethod, Discrete, Linear, Sigmoid, DISCRETE
from .ordering import total_cmp, total_eq, total_le, total_lt
from .broadcast import evaluate, propagate

__all__ = [
    "UnaryOp", "BinaryOp", "CmpOp",
    "CmpMethod", "Discrete", "Linear", "Sigmoid", "DISCRETE",
    "total_cmp", "total_eq", "total_le", "total_lt",
    "evaluate", "propagate",
]
