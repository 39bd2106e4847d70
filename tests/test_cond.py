import itertools

import numpy as np
import pytest

from diffexpr import DomainError, ShapeMismatchError, constant, grad, parameter, use_config, value

ON_TRUE = [7.0, 8.0, 9.0]
ON_FALSE = [-1.0, -2.0, -3.0]


def _operand(kind, values, fill):
    if kind == "scalar":
        return constant(fill), np.full(3, fill)
    return parameter(values)[0], np.asarray(values)


@pytest.mark.parametrize(
    "cond_kind,true_kind,false_kind",
    list(itertools.product(["scalar", "tensor"], repeat=3)),
)
@pytest.mark.parametrize("flag", [1.0, 0.0])
def test_cond_selects_exactly(cond_kind, true_kind, false_kind, flag):
    c, _ = _operand(cond_kind, [flag] * 3, flag)
    t, t_ref = _operand(true_kind, ON_TRUE, 5.0)
    f, f_ref = _operand(false_kind, ON_FALSE, -5.0)
    out = c.cond(t, f)
    expected = t_ref if flag else f_ref
    if cond_kind == "tensor" or true_kind == "tensor" or false_kind == "tensor":
        np.testing.assert_array_equal(np.broadcast_to(value(out), (3,)), expected)
    else:
        assert value(out) == expected[0]


def test_const_cond_returns_branch_without_building_a_node():
    t, _ = parameter(ON_TRUE, need_grad=True)
    f, _ = parameter(ON_FALSE)
    assert constant(1.0).cond(t, f) is t
    assert constant(0.0).cond(t, f) is f
    assert constant(0.25).cond(t, f) is t


def test_cond_blend_and_gradients():
    c = [0.25, 0.75]
    t = [1.0, 2.0]
    f = [3.0, 4.0]
    pc, _ = parameter(c)
    np.testing.assert_allclose(value(pc.cond(parameter(t)[0], parameter(f)[0])), [2.5, 2.5])
    gc, gt, gf = grad(lambda x, y, z: x.cond(y, z), c, t, f)
    np.testing.assert_array_equal(gc, [-2.0, -2.0])
    np.testing.assert_array_equal(gt, [0.25, 0.75])
    np.testing.assert_array_equal(gf, [0.75, 0.25])


def test_cond_length_mismatch():
    pc, _ = parameter([1.0, 0.0])
    with pytest.raises(ShapeMismatchError):
        pc.cond(parameter([1.0, 2.0, 3.0])[0], 0.0)
    with pytest.raises(ShapeMismatchError):
        parameter([1.0])[0].cond(1.0, parameter([1.0, 2.0])[0])


def test_cond_operand_outside_unit_interval():
    pc, _ = parameter([1.5])
    with use_config(check_domain=True):
        with pytest.raises(DomainError):
            pc.cond(1.0, 0.0)
