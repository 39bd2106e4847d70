# diffexpr/exceptions.py
from __future__ import annotations

from typing import Optional, Sequence


class DiffExprError(Exception):
    """Base class for diffexpr-specific exceptions."""


class ShapeMismatchError(DiffExprError, ValueError):
    """Tensor operands of one elementwise call have different lengths."""

    def __init__(self, message: str, *, lengths: Optional[Sequence[int]] = None):
        detail = f" (lengths {list(lengths)})" if lengths else ""
        super().__init__(f"{message}{detail}")
        self.lengths = tuple(lengths) if lengths else ()


class DomainError(DiffExprError, ValueError):
    """An operand or smoothing parameter lies outside its mathematical domain."""
