import numpy as np
import pytest

from diffexpr import DiffExprError, DomainError, ExprConfig, get_config, parameter, set_config, use_config, value
from diffexpr.config import _env_flag


def test_use_config_restores_previous():
    before = get_config()
    with use_config(check_domain=not before.check_domain) as cfg:
        assert cfg.check_domain is (not before.check_domain)
        assert get_config() is cfg
    assert get_config() == before


def test_set_config_returns_previous():
    prev = set_config(check_domain=False)
    assert get_config().check_domain is False
    set_config(prev)
    assert get_config() == prev
    set_config(ExprConfig(check_domain=True))
    assert get_config().check_domain is True


@pytest.mark.parametrize("build", [
    lambda p: p.logic_not(),
    lambda p: p.logic_and(0.5),
    lambda p: p.logic_or(0.5),
])
def test_logic_domain_checked(build):
    p, _ = parameter([0.5, 1.5])
    with use_config(check_domain=True):
        with pytest.raises(DomainError) as exc:
            build(p)
    assert isinstance(exc.value, DiffExprError)
    assert isinstance(exc.value, ValueError)


def test_nan_fails_logic_domain():
    p, _ = parameter([np.nan])
    with use_config(check_domain=True):
        with pytest.raises(DomainError):
            p.logic_not()


def test_unchecked_logic_evaluates_formula():
    p, _ = parameter([1.5, -1.0])
    with use_config(check_domain=False):
        np.testing.assert_array_equal(value(p.logic_not()), [-0.5, 2.0])
        np.testing.assert_array_equal(value(p.logic_and(2.0)), [3.0, -2.0])


def test_env_flag(monkeypatch):
    monkeypatch.setenv("DIFFEXPR_CHECK_DOMAIN", "off")
    assert _env_flag("DIFFEXPR_CHECK_DOMAIN", True) is False
    assert ExprConfig.from_env().check_domain is False
    monkeypatch.setenv("DIFFEXPR_CHECK_DOMAIN", "Yes")
    assert _env_flag("DIFFEXPR_CHECK_DOMAIN", False) is True
    monkeypatch.delenv("DIFFEXPR_CHECK_DOMAIN")
    assert _env_flag("DIFFEXPR_CHECK_DOMAIN", False) is False
    monkeypatch.setenv("DIFFEXPR_CHECK_DOMAIN", "maybe")
    with pytest.raises(ValueError):
        _env_flag("DIFFEXPR_CHECK_DOMAIN", True)
