import logging

import numpy as np
import pytest
from scipy.special import erf

from diffexpr import Const, backward, constant, grad, parameter, value

from tests._numeric import central_difference

SMOOTH = ["neg", "sin", "cos", "tanh", "tan", "sqrt", "sqr", "cubic",
          "log", "exp", "abs", "erf", "logic_not"]


@pytest.mark.parametrize("name", SMOOTH)
def test_unary_gradient_matches_finite_difference(name, rng):
    x = rng.uniform(0.2, 0.8, size=16)

    def f(a):
        return getattr(a, name)()

    (g,) = grad(f, x)
    np.testing.assert_allclose(g, central_difference(f, x), rtol=1e-6, atol=1e-9)


def test_unary_forward_values():
    x = np.array([0.25, 0.5, 2.0])
    p, _ = parameter(x)
    np.testing.assert_allclose(value(p.sqrt()), np.sqrt(x))
    np.testing.assert_allclose(value(p.cubic()), x ** 3)
    np.testing.assert_allclose(value(p.erf()), erf(x))
    np.testing.assert_allclose(value(-p), -x)
    np.testing.assert_allclose(value(abs(-p)), x)


def test_round_half_away_from_zero():
    p, _ = parameter([0.5, 1.5, 2.5, -0.5, -2.5, 2.4, -2.6])
    np.testing.assert_array_equal(value(p.round()), [1.0, 2.0, 3.0, -1.0, -3.0, 2.0, -3.0])


def test_floor_ceil():
    p, _ = parameter([1.5, -1.5, 2.0])
    np.testing.assert_array_equal(value(p.floor()), [1.0, -2.0, 2.0])
    np.testing.assert_array_equal(value(p.ceil()), [2.0, -1.0, 2.0])


def test_sign_of_signed_zero_and_nan():
    p, _ = parameter([0.0, -0.0, 3.0, -2.0, np.nan])
    out = value(p.sign())
    np.testing.assert_array_equal(out[:4], [1.0, -1.0, 1.0, -1.0])
    assert np.isnan(out[4])


def test_abs_gradient_at_signed_zero():
    (g,) = grad(lambda a: a.abs(), [0.0, -0.0])
    np.testing.assert_array_equal(g, [1.0, -1.0])


def test_edge_values_propagate_ieee():
    p, _ = parameter([-1.0, 0.0])
    out = value(p.log())
    assert np.isnan(out[0])
    assert out[1] == -np.inf


@pytest.mark.parametrize("name", ["floor", "ceil", "round", "sign"])
def test_step_backward_logs_and_contributes_nothing(name, caplog):
    p, t = parameter([0.3, 1.7], need_grad=True)
    y = getattr(p, name)()
    assert y.with_grad
    with caplog.at_level(logging.ERROR, logger="diffexpr.ops.unary"):
        store = backward(y)
    assert f"backward not supported for {name}" in caplog.text
    np.testing.assert_array_equal(store.get(t), [0.0, 0.0])


def test_step_backward_does_not_stop_other_paths(caplog):
    p, t = parameter([0.3, 1.7], need_grad=True)
    y = p.floor() + p * 3.0
    with caplog.at_level(logging.ERROR, logger="diffexpr.ops.unary"):
        store = backward(y)
    np.testing.assert_array_equal(store.get(t), [3.0, 3.0])


def test_const_operand_folds_to_const():
    c = constant(4.0).sqrt()
    assert isinstance(c, Const)
    assert value(c) == 2.0
    assert value(constant(0.0).cos()) == 1.0


def test_powf_gradient(rng):
    x = rng.uniform(0.5, 2.0, size=8)

    def f(a):
        return a.powf(2.5)

    (g,) = grad(f, x)
    np.testing.assert_allclose(value(f(parameter(x)[0])), x ** 2.5)
    np.testing.assert_allclose(g, 2.5 * x ** 1.5, rtol=1e-12)
    np.testing.assert_allclose(g, central_difference(f, x), rtol=1e-6)
