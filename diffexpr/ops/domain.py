# diffexpr/ops/domain.py
"""Domain checks, active only while `config.check_domain` is on."""
import numpy as np

from ..config import get_config
from ..exceptions import DomainError


def check_logic(x, name: str = "logic operand") -> None:
    """Logic operands are probabilities: every value must lie in [0, 1] (NaN fails)."""
    if not get_config().check_domain:
        return
    arr = np.asarray(x, dtype=np.float64)
    ok = (arr >= 0.0) & (arr <= 1.0)
    if not np.all(ok):
        bad = arr[~ok] if arr.ndim else arr
        raise DomainError(f"{name} must lie in [0, 1], got {np.ravel(bad)[:5].tolist()}")


def check_positive(value: float, name: str) -> None:
    if not get_config().check_domain:
        return
    if not value > 0.0:
        raise DomainError(f"{name} must be positive, got {value!r}")
