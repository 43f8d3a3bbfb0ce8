"""
Directional pass tests.

- storage_eps[0] is compared with the chain-rule product of partials on
  linear trees, and with finite differences of the whole tree otherwise.
- partials_storage_eps is compared with finite differences of
  partials_storage along the same direction.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from nl_tree_ad import (
    EvalBuffers, NodeType, TreeBuilder, TreeEvaluator, UnsupportedOperatorError,
    directional_derivatives, forward_eval, forward_eval_eps, one_hot_seeds,
)


def fd_directional(tree, x, d, h=1e-6, **inputs):
    ev = TreeEvaluator(tree)
    x, d = np.asarray(x, dtype=float), np.asarray(d, dtype=float)
    return (ev.evaluate(x + h * d, **inputs) - ev.evaluate(x - h * d, **inputs)) / (2 * h)


def fd_partials(tree, x, d, h=1e-6):
    ev = TreeEvaluator(tree)
    x, d = np.asarray(x, dtype=float), np.asarray(d, dtype=float)
    ev.evaluate(x + h * d)
    plus = ev.partials.copy()
    ev.evaluate(x - h * d)
    minus = ev.partials.copy()
    return (plus - minus) / (2 * h)


def path_product(tree, partials, k):
    """Product of partials from node k up to (excluding) the root."""
    prod = 1.0
    while k != 0:
        prod *= partials[k]
        k = tree.adj.parent_of(k)
    return prod


# ----------------------------- leaves ----------------------------- #
def test_leaf_seeds():
    tree = TreeBuilder.from_nested(("+", ("x", 0), ("param", 0), ("const", 0), ("subexpr", 1)))
    ev = TreeEvaluator(tree, n_directions=2)
    ev.evaluate([1.0], const_values=[2.0], parameter_values=[3.0], subexpression_values=[0.0, 4.0])
    root = ev.directional(
        x_values_eps=[[1.0, 2.0]],
        subexpression_values_eps=[[0.0, 0.0], [10.0, 20.0]],
    )
    assert_allclose(root, [11.0, 22.0])
    assert_allclose(ev.values_eps[2], [0.0, 0.0])   # parameter
    assert_allclose(ev.values_eps[3], [0.0, 0.0])   # constant
    assert_allclose(ev.values_eps[4], [10.0, 20.0])


def test_missing_seeds_default_to_zero():
    tree = TreeBuilder.from_nested(("*", ("x", 0), ("x", 1)))
    ev = TreeEvaluator(tree, n_directions=3)
    ev.evaluate([2.0, 3.0])
    assert_allclose(ev.directional(), np.zeros(3))


# ----------------------------- chain rule on linear trees ----------------------------- #
def test_one_hot_direction_equals_path_product_of_partials():
    expr = ("+",
            ("-", ("x", 0), ("x", 1)),
            ("ifelse", ("<", ("x", 1), 10.0), ("x", 0), ("x", 2)),
            ("-", ("+", ("x", 2), ("x", 0)), ("x", 1)))
    tree = TreeBuilder.from_nested(expr)
    x = [1.5, 2.5, -4.0]
    ev = TreeEvaluator(tree, n_directions=3)
    ev.evaluate(x)
    root = ev.directional(x_values_eps=one_hot_seeds(3, [0, 1, 2]))
    for i in range(3):
        expected = sum(
            path_product(tree, ev.partials, k)
            for k, nod in enumerate(tree.nodes)
            if nod.nodetype == NodeType.VARIABLE and nod.index == i
        )
        assert_allclose(root[i], expected)
    assert_allclose(root, [3.0, -2.0, 1.0])


# ----------------------------- nonlinear trees ----------------------------- #
NONLINEAR = [
    ("*", ("x", 0), ("x", 1), ("x", 2)),
    ("^", ("x", 0), ("x", 1)),
    ("^", ("x", 0), 2.0),
    ("^", ("x", 0), 3.5),
    ("/", ("x", 0), ("x", 1)),
    ("sin", ("*", ("x", 0), ("x", 1))),
    ("+", ("*", ("exp", ("x", 0)), ("log", ("x", 1))),
          ("/", ("sqrt", ("x", 2)), ("^", ("x", 1), ("x", 0)))),
    ("-", ("*", ("tanh", ("x", 2)), ("x", 0), ("cos", ("x", 1))), ("atan", ("/", ("x", 0), ("x", 2)))),
]


@pytest.mark.parametrize("expr", NONLINEAR)
def test_directional_matches_finite_differences(expr):
    tree = TreeBuilder.from_nested(expr)
    x = np.array([1.3, 0.7, 2.1])
    directions = np.array([[1.0, 0.0, 0.3],
                           [0.0, 1.0, -0.5],
                           [0.0, 0.0, 0.8]])
    value, root = directional_derivatives(tree, x, directions)
    assert_allclose(value, TreeEvaluator(tree).evaluate(x))
    expected = [fd_directional(tree, x, directions[:, j]) for j in range(3)]
    assert_allclose(root, expected, rtol=1e-6, atol=1e-8)


@pytest.mark.parametrize("expr", NONLINEAR)
def test_partials_eps_match_finite_differences(expr):
    tree = TreeBuilder.from_nested(expr)
    x = np.array([1.3, 0.7, 2.1])
    d = np.array([0.4, -1.0, 0.6])
    ev = TreeEvaluator(tree, n_directions=1)
    ev.evaluate(x)
    ev.directional(x_values_eps=d[:, None])
    assert_allclose(ev.partials_eps[:, 0], fd_partials(tree, x, d), rtol=1e-5, atol=1e-7)


def test_directional_does_not_touch_values_or_partials():
    tree = TreeBuilder.from_nested(NONLINEAR[-2])
    ev = TreeEvaluator(tree, n_directions=2)
    ev.evaluate([1.3, 0.7, 2.1])
    values, partials = ev.values.copy(), ev.partials.copy()
    ev.directional(x_values_eps=one_hot_seeds(3, [0, 2]))
    assert np.array_equal(ev.values, values)
    assert np.array_equal(ev.partials, partials)


# ----------------------------- multiply zero guard ----------------------------- #
def test_multiply_zero_guard_lifted_to_duals():
    tree = TreeBuilder.from_nested(("*", ("x", 0), ("x", 1), ("x", 2)))
    ev = TreeEvaluator(tree, n_directions=3)
    ev.evaluate([2.0, 0.0, 3.0])
    root = ev.directional(x_values_eps=np.eye(3))
    assert_allclose(root, [0.0, 6.0, 0.0])
    # partial of child 0 is x1*x2, of child 1 is x0*x2, of child 2 is x0*x1
    assert_allclose(ev.partials_eps[1], [0.0, 3.0, 0.0])
    assert_allclose(ev.partials_eps[2], [3.0, 0.0, 2.0])
    assert_allclose(ev.partials_eps[3], [0.0, 2.0, 0.0])
    assert not np.isnan(ev.partials_eps).any()


def test_multiply_two_zeros_directional():
    tree = TreeBuilder.from_nested(("*", ("x", 0), ("x", 1), ("x", 2)))
    ev = TreeEvaluator(tree, n_directions=3)
    ev.evaluate([0.0, 5.0, 0.0])
    ev.directional(x_values_eps=np.eye(3))
    assert_allclose(ev.partials_eps[1], [0.0, 0.0, 5.0])
    assert_allclose(ev.partials_eps[2], [0.0, 0.0, 0.0])
    assert_allclose(ev.partials_eps[3], [5.0, 0.0, 0.0])


# ----------------------------- power ----------------------------- #
def test_square_base_direction_is_twice_seed():
    tree = TreeBuilder.from_nested(("^", ("x", 0), 2.0))
    ev = TreeEvaluator(tree, n_directions=2)
    ev.evaluate([5.0])
    root = ev.directional(x_values_eps=[[1.0, 3.0]])
    assert_allclose(root, [10.0, 30.0])
    assert_allclose(ev.partials_eps[1], [2.0, 6.0])

    # negative base: the NaN exponent partial meets a zero direction
    ev.evaluate([-5.0])
    root = ev.directional(x_values_eps=[[1.0, 3.0]])
    assert np.isnan(ev.partials[2])
    assert_allclose(root, [-10.0, -30.0])
    assert_allclose(ev.partials_eps[1], [2.0, 6.0])


def test_square_at_zero_base():
    tree = TreeBuilder.from_nested(("^", ("x", 0), 2.0))
    ev = TreeEvaluator(tree)
    ev.evaluate([0.0])
    root = ev.directional(x_values_eps=[[1.0]])
    assert_allclose(root, [0.0])
    assert np.isfinite(root).all()


def test_cube_at_negative_base_inside_sum():
    tree = TreeBuilder.from_nested(("+", ("^", ("x", 0), 3.0), ("x", 1)))
    value, root = directional_derivatives(tree, [-2.0, 1.0], np.eye(2))
    assert value == -7.0
    assert_allclose(root, [12.0, 1.0])


def test_square_at_zero_times_variable():
    tree = TreeBuilder.from_nested(("*", ("^", ("x", 0), 2.0), ("x", 1)))
    x = [0.0, 3.0]
    _, root = directional_derivatives(tree, x, np.eye(2))
    assert_allclose(root, [0.0, 0.0])
    d = np.array([0.3, 1.0])
    _, along = directional_derivatives(tree, x, d)
    assert_allclose(along, [fd_directional(tree, x, d)], atol=1e-8)


def test_untaken_singular_branch_does_not_leak():
    # sqrt'(0) is inf, but that branch is not taken at x = 0
    expr = ("ifelse", (">", ("x", 0), 0.0), ("sqrt", ("x", 0)), ("*", 2.0, ("x", 0)))
    tree = TreeBuilder.from_nested(expr)
    value, root = directional_derivatives(tree, [0.0], [1.0])
    assert value == 0.0
    assert_allclose(root, [2.0])
    # one-sided difference into the taken branch
    ev = TreeEvaluator(tree)
    assert_allclose(root[0], (ev.evaluate([0.0]) - ev.evaluate([-1e-6])) / 1e-6)


def test_constant_exponent_with_negative_base_keeps_base_partial_finite():
    tree = TreeBuilder.from_nested(("^", ("x", 0), 3.0))
    ev = TreeEvaluator(tree)
    ev.evaluate([-2.0])
    root = ev.directional(x_values_eps=[[1.0]])
    assert_allclose(root, [12.0])
    # d/dx (3 x^2) = 6x
    assert_allclose(ev.partials_eps[1], [-12.0])
    # exponent partial involves log(base), undefined here
    assert np.isnan(ev.partials[2])


# ----------------------------- univariate second derivatives ----------------------------- #
def test_univariate_partial_direction_uses_second_derivative():
    tree = TreeBuilder.from_nested(("exp", ("x", 0)))
    ev = TreeEvaluator(tree, n_directions=2)
    ev.evaluate([0.5])
    ev.directional(x_values_eps=[[1.0, -2.0]])
    assert_allclose(ev.partials_eps[1], np.exp(0.5) * np.array([1.0, -2.0]))


def test_operator_without_second_derivative():
    tree = TreeBuilder.from_nested(("asec", ("x", 0)))
    ev = TreeEvaluator(tree)
    # fine for the value/partial pass
    ev.evaluate([2.0])
    assert_allclose(ev.partials[1], 1.0 / (2.0 * np.sqrt(3.0)))
    with pytest.raises(UnsupportedOperatorError) as excinfo:
        ev.directional(x_values_eps=[[1.0]])
    assert excinfo.value.name == "asec"


# ----------------------------- non-differentiable nodes ----------------------------- #
def test_comparison_and_logic_have_zero_directions():
    expr = ("ifelse", ("&&", ("<=", ("x", 0), ("x", 1)), (">", ("x", 1), 0.0)),
            ("*", ("x", 0), ("x", 1)), ("x", 1))
    tree = TreeBuilder.from_nested(expr)
    ev = TreeEvaluator(tree, n_directions=2)
    ev.evaluate([1.0, 2.0])
    root = ev.directional(x_values_eps=np.eye(2))
    assert_allclose(root, [2.0, 1.0])
    assert_allclose(ev.values_eps[1], [0.0, 0.0])    # '&&'
    assert_allclose(ev.partials_eps[1], [0.0, 0.0])


# ----------------------------- raw buffer interface ----------------------------- #
def test_raw_interface_with_oversized_buffers():
    tree = TreeBuilder.from_nested(("/", ("x", 0), ("+", ("x", 1), 1.0)))
    buf = EvalBuffers.allocate(len(tree) + 3, n_directions=2)
    forward_eval(buf.storage, buf.partials_storage, tree.nodes, tree.adj,
                 tree.const_values, (), [3.0, 1.0], ())
    root = forward_eval_eps(buf.storage, buf.storage_eps, buf.partials_storage,
                            buf.partials_storage_eps, tree.nodes, tree.adj,
                            np.eye(2), np.zeros((0, 2)))
    assert_allclose(root, [0.5, -0.75])


def test_raw_interface_undersized_eps_buffers():
    tree = TreeBuilder.from_nested(("+", ("x", 0), ("x", 1)))
    buf = EvalBuffers.allocate(len(tree))
    small = EvalBuffers.allocate(1)
    forward_eval(buf.storage, buf.partials_storage, tree.nodes, tree.adj, (), (), [1.0, 2.0], ())
    with pytest.raises(AssertionError):
        forward_eval_eps(buf.storage, small.storage_eps, buf.partials_storage,
                         small.partials_storage_eps, tree.nodes, tree.adj,
                         np.eye(2)[:, :1], np.zeros((0, 1)))
