"""
Runtime configuration for diffexpr.

The only switch today is `check_domain`: whether logic operands are verified to
lie in [0, 1] and smoothing parameters (epsilon, k) to be positive. It defaults
to `__debug__`, so running under `python -O` behaves like a release build and
skips the checks. The environment variable DIFFEXPR_CHECK_DOMAIN overrides the
default at import time.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Iterator, Optional

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    text = raw.strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"{name} must be one of {sorted(_TRUE | _FALSE)}, got {raw!r}")


@dataclass(frozen=True)
class ExprConfig:
    """
    Attributes
    ----------
    check_domain : bool
        Raise `DomainError` on logic operands outside [0, 1] and on
        non-positive epsilon / k. When off, the formulas are evaluated as-is.
    """
    check_domain: bool = __debug__

    @classmethod
    def from_env(cls) -> "ExprConfig":
        return cls(check_domain=_env_flag("DIFFEXPR_CHECK_DOMAIN", __debug__))


_config: ExprConfig = ExprConfig.from_env()


def get_config() -> ExprConfig:
    return _config


def set_config(config: Optional[ExprConfig] = None, **changes) -> ExprConfig:
    """Replace the active configuration; returns the previous one."""
    global _config
    prev = _config
    base = config if config is not None else _config
    _config = replace(base, **changes) if changes else base
    return prev


@contextmanager
def use_config(**changes) -> Iterator[ExprConfig]:
    """
    Temporarily override configuration fields:
        with use_config(check_domain=False):
            ... build expressions ...
    """
    prev = set_config(**changes)
    try:
        yield _config
    finally:
        set_config(prev)
