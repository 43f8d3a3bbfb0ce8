"""
Dual number arithmetic used by the directional pass.
"""

import numpy as np
from numpy.testing import assert_allclose

from nl_tree_ad import Dual


def test_constructors():
    c = Dual.constant(3.0, 2)
    assert c.value == 3.0
    assert_allclose(c.eps, [0.0, 0.0])
    one = Dual.one(4)
    assert one.value == 1.0 and one.eps.shape == (4,)


def test_linear_operations():
    a = Dual(2.0, [1.0, 0.0])
    b = Dual(5.0, [0.0, 1.0])
    s = a + b
    assert s.value == 7.0
    assert_allclose(s.eps, [1.0, 1.0])
    d = a - b
    assert d.value == -3.0
    assert_allclose(d.eps, [1.0, -1.0])
    r = 10.0 - a
    assert r.value == 8.0
    assert_allclose(r.eps, [-1.0, 0.0])
    assert_allclose((-a).eps, [-1.0, 0.0])
    assert_allclose((1.0 + a).eps, [1.0, 0.0])


def test_product_rule():
    a = Dual(2.0, [1.0, 0.0])
    b = Dual(5.0, [0.0, 1.0])
    p = a * b
    assert p.value == 10.0
    assert_allclose(p.eps, [5.0, 2.0])
    q = 3.0 * a
    assert q.value == 6.0
    assert_allclose(q.eps, [3.0, 0.0])


def test_reciprocal_and_division():
    a = Dual(2.0, [1.0, 0.0])
    b = Dual(4.0, [0.0, 1.0])
    r = b.recip()
    assert r.value == 0.25
    assert_allclose(r.eps, [0.0, -1.0 / 16.0])
    q = a / b
    assert q.value == 0.5
    assert_allclose(q.eps, [0.25, -2.0 / 16.0])
    assert_allclose((1.0 / b).eps, r.eps)
    assert_allclose((a / 2.0).eps, [0.5, 0.0])


def test_power_rules():
    x = Dual(1.5, [1.0, 0.0])
    y = Dual(2.5, [0.0, 1.0])
    p = x ** y
    assert_allclose(p.value, 1.5 ** 2.5)
    assert_allclose(p.eps, [2.5 * 1.5 ** 1.5, 1.5 ** 2.5 * np.log(1.5)])
    s = x ** 3
    assert_allclose(s.value, 3.375)
    assert_allclose(s.eps, [3.0 * 1.5 ** 2, 0.0])


def test_constant_dual_exponent_over_negative_base():
    x = Dual(-2.0, [1.0])
    e = Dual.constant(3.0, 1)
    with np.errstate(all="ignore"):
        p = x ** e
    assert p.value == -8.0
    assert_allclose(p.eps, [12.0])


def test_log():
    x = Dual(2.0, [1.0, 3.0])
    lx = x.log()
    assert_allclose(lx.value, np.log(2.0))
    assert_allclose(lx.eps, [0.5, 1.5])
