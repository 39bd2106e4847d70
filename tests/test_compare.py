import warnings
from pathlib import Path

import numpy as np
import pytest

from diffexpr import Const, DomainError, Linear, Sigmoid, constant, grad, parameter, use_config, value
from diffexpr.ops import DISCRETE, smoothing

from tests._numeric import central_difference

METHODS = [
    ("", {}),
    ("_linear", {"epsilon": 0.5}),
    ("_sigmoid", {"k": 4.0}),
]


def _cmp(a, b, name, suffix, kwargs):
    return value(getattr(a, f"{name}{suffix}")(b, *kwargs.values()))


def _pair(rng, with_nan):
    a = rng.normal(size=64)
    b = rng.normal(size=64)
    b[::5] = a[::5]                    # exact ties
    b[1::7] = a[1::7] + 1e-3           # inside every smoothing band
    if with_nan:
        a[2::11] = np.nan
        b[3::13] = np.nan
    return a, b


@pytest.mark.parametrize("suffix,kwargs", METHODS)
def test_relations_are_complementary(suffix, kwargs, rng):
    a, b = _pair(rng, with_nan=(suffix == ""))
    # smoothing only applies when the result tracks gradients
    pa, _ = parameter(a, need_grad=bool(suffix))
    pb, _ = parameter(b)
    le = _cmp(pa, pb, "le", suffix, kwargs)
    gt = _cmp(pa, pb, "gt", suffix, kwargs)
    lt = _cmp(pa, pb, "lt", suffix, kwargs)
    ge = _cmp(pa, pb, "ge", suffix, kwargs)
    eq = _cmp(pa, pb, "eq", suffix, kwargs)
    ne = _cmp(pa, pb, "ne", suffix, kwargs)
    np.testing.assert_array_equal(le + gt, 1.0)
    np.testing.assert_array_equal(lt + ge, 1.0)
    np.testing.assert_array_equal(ne, 1.0 - eq)


def test_discrete_total_order():
    pa, _ = parameter([1.0, 2.0, np.nan, np.nan, -0.0, 1.0])
    pb, _ = parameter([2.0, 2.0, np.nan, 5.0, 0.0, np.inf])
    np.testing.assert_array_equal(value(pa.eq(pb)), [0, 1, 1, 0, 1, 0])
    np.testing.assert_array_equal(value(pa.lt(pb)), [1, 0, 0, 0, 0, 1])
    np.testing.assert_array_equal(value(pa.le(pb)), [1, 1, 1, 0, 1, 1])
    np.testing.assert_array_equal(value(pa.gt(pb)), [0, 0, 0, 1, 0, 0])


def test_linear_band_shape():
    d = np.array([-1.0, -0.5, -0.25, 0.0, 0.25, 0.5, 1.0])
    pa, _ = parameter(d, need_grad=True)
    np.testing.assert_array_equal(value(pa.le_linear(0.0, 0.5)), [1.0, 1.0, 0.75, 0.5, 0.25, 0.0, 0.0])
    np.testing.assert_array_equal(value(pa.gt_linear(0.0, 0.5)), [0.0, 0.0, 0.25, 0.5, 0.75, 1.0, 1.0])
    np.testing.assert_array_equal(value(pa.eq_linear(0.0, 0.5)), [0.0, 0.0, 0.5, 1.0, 0.5, 0.0, 0.0])


def test_linear_gradient_inside_and_outside_band():
    a = [-1.0, -0.2, 0.1, 1.0]
    ga, gb = grad(lambda x, y: x.le_linear(y, 0.5), a, [0.0] * 4)
    np.testing.assert_array_equal(ga, [0.0, -1.0, -1.0, 0.0])
    np.testing.assert_array_equal(gb, [0.0, 1.0, 1.0, 0.0])
    (ga,) = grad(lambda x: x.eq_linear(0.0, 0.5), a)
    np.testing.assert_array_equal(ga, [0.0, 2.0, -2.0, 0.0])


def test_sigmoid_converges_to_discrete():
    a = np.array([-1.0, -0.1, 0.1, 1.0])
    pa, _ = parameter(a, need_grad=True)
    pd, _ = parameter(a)
    for name in ("le", "lt", "ge", "gt", "eq", "ne"):
        smooth = value(getattr(pa, f"{name}_sigmoid")(0.0, 1e4))
        exact = value(getattr(pd, name)(0.0))
        np.testing.assert_allclose(smooth, exact, atol=1e-12)


def test_sigmoid_midpoint_and_extremes():
    pa, _ = parameter([0.0, -1e6, 1e6], need_grad=True)
    np.testing.assert_array_equal(value(pa.le_sigmoid(0.0, 2.0)), [0.5, 1.0, 0.0])
    np.testing.assert_array_equal(value(pa.eq_sigmoid(0.0, 2.0)), [1.0, 0.0, 0.0])


@pytest.mark.parametrize("name", ["eq", "ne", "le", "ge", "lt", "gt"])
def test_sigmoid_gradient_matches_finite_difference(name, rng):
    a = rng.uniform(-1.0, 1.0, size=12)
    b = rng.uniform(-1.0, 1.0, size=12)

    def f(x, y):
        return getattr(x, f"{name}_sigmoid")(y, 3.0)

    ga, gb = grad(f, a, b)
    # finite differences run on untracked parameters, so compare against the
    # smoothed formulas evaluated with tracking on
    def tracked(x, y):
        return f(parameter(value(x), need_grad=True)[0], y)

    np.testing.assert_allclose(ga, central_difference(tracked, a, b, wrt=0), rtol=1e-6, atol=1e-9)
    np.testing.assert_allclose(gb, -ga, rtol=1e-12, atol=1e-15)


def test_smoothing_downgrades_without_gradients():
    pa, _ = parameter([0.0, 1.0])
    out = pa.le_sigmoid(0.5, 3.0)
    assert out.tensor.grad_id is None
    assert out.op.method == DISCRETE
    np.testing.assert_array_equal(value(out), [1.0, 0.0])


def test_discrete_comparison_of_tracked_operands_is_untracked():
    a, _ = parameter([0.0, 2.0], need_grad=True)
    b, _ = parameter([1.0, 1.0], need_grad=True)
    out = a.le(b)
    assert not out.with_grad
    assert out.tensor.grad_id is None
    assert out.op.method == DISCRETE
    np.testing.assert_array_equal(value(out), [1.0, 0.0])


def test_smoothing_module_compiles_without_warnings():
    source = Path(smoothing.__file__).read_text()
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        compile(source, smoothing.__file__, "exec")


def test_smoothing_kept_with_gradients():
    pa, _ = parameter([0.0, 1.0], need_grad=True)
    out = pa.le_sigmoid(0.5, 3.0)
    assert out.with_grad
    assert out.op.method == Sigmoid(3.0)
    assert out.op.tag == "le_sigmoid"
    assert 0.0 < value(out)[1] < value(out)[0] < 1.0


def test_const_const_comparison_is_discrete_const():
    out = constant(1.0).le_sigmoid(2.0, 0.1)
    assert isinstance(out, Const)
    assert value(out) == 1.0


def test_non_positive_smoothing_parameters():
    with use_config(check_domain=True):
        with pytest.raises(DomainError):
            Linear(0.0)
        with pytest.raises(DomainError):
            Sigmoid(-1.0)
