# nl_tree_ad/core/forward.py
"""
Value/partial pass over an expression tree.

storage[k]          value of node k
partials_storage[k] partial derivative of node k's parent with respect to node k

Storing one partial per node (instead of one per edge) relies on the input
being a tree: every non-root node has exactly one parent. The partials are
computed together with the parent's value, because the same intermediate
quantities (product, reciprocal, power) feed both.
"""
from __future__ import annotations
import logging

import numpy as np

from .config import DEFAULT_CONFIG, EvalConfig
from .errors import TreeStructureError, UnsupportedOperatorError
from .node import NodeType
from ..ops.operators import CallOp, ComparisonOp, LogicOp, compare
from ..ops.univariate import eval_univariate

logger = logging.getLogger(__name__)


def forward_eval(storage, partials_storage, nd, adj, const_values, parameter_values,
                 x_values, subexpression_values, *, config: EvalConfig | None = None):
    """
    Compute the value of every node and the partial of every node's parent
    with respect to it.

    Args:
        storage, partials_storage: float64 buffers with at least len(nd) entries;
            both are overwritten for positions 0..len(nd)-1.
        nd: nodes ordered so that every parent precedes its children (root first).
        adj: Adjacency of `nd`.
        const_values, parameter_values, x_values, subexpression_values:
            external values indexed by the leaves' `index`.
        config: evaluation settings (bounds assertions, floating point mode).

    Returns:
        The value of the root, storage[0].

    Raises:
        UnsupportedOperatorError: an operator id has no rule.
    """
    config = config or DEFAULT_CONFIG
    n = len(nd)
    check = config.check_bounds
    if check:
        assert len(storage) >= n, f"storage has {len(storage)} entries, tree has {n} nodes"
        assert len(partials_storage) >= n, \
            f"partials_storage has {len(partials_storage)} entries, tree has {n} nodes"
    logger.debug("forward_eval: %d nodes", n)

    indptr = adj.indptr
    children_arr = adj.children

    # nd is ordered so that parents appear before children,
    # hence a backwards pass over nd visits children first
    with np.errstate(all=config.fp_errors):
        for k in range(n - 1, -1, -1):
            nod = nd[k]
            partials_storage[k] = 0.0
            nodetype = nod.nodetype
            if nodetype == NodeType.VARIABLE:
                storage[k] = x_values[nod.index]
            elif nodetype == NodeType.VALUE:
                storage[k] = const_values[nod.index]
            elif nodetype == NodeType.SUBEXPRESSION:
                storage[k] = subexpression_values[nod.index]
            elif nodetype == NodeType.PARAMETER:
                storage[k] = parameter_values[nod.index]
            elif nodetype == NodeType.CALL:
                children_idx = children_arr[indptr[k]:indptr[k + 1]]
                storage[k] = _eval_call(nod.index, children_idx, storage, partials_storage, check)
            elif nodetype == NodeType.CALLUNIVAR:
                if check:
                    assert indptr[k + 1] - indptr[k] == 1, f"univariate node {k} needs exactly 1 child"
                child_idx = children_arr[indptr[k]]
                fval, fprimeval = eval_univariate(nod.index, storage[child_idx])
                partials_storage[child_idx] = fprimeval
                storage[k] = fval
            elif nodetype == NodeType.COMPARISON:
                children_idx = children_arr[indptr[k]:indptr[k + 1]]
                storage[k] = _eval_comparison(nod.index, children_idx, storage, partials_storage)
            elif nodetype == NodeType.LOGIC:
                children_idx = children_arr[indptr[k]:indptr[k + 1]]
                storage[k] = _eval_logic(nod.index, children_idx, storage, partials_storage, check)
            else:
                raise TreeStructureError(f"node {k} has unknown type {nodetype!r}")

    return storage[0]


def _eval_call(op, children_idx, storage, partials_storage, check=True):
    """Value of an n-ary CALL node; writes its children's partials."""
    n_children = len(children_idx)

    if op == CallOp.ADD:
        tmp_sum = 0.0
        for ix in children_idx:
            partials_storage[ix] = 1.0
            tmp_sum += storage[ix]
        return tmp_sum

    if op == CallOp.SUB:
        if check:
            assert n_children == 2, f"'-' takes 2 arguments, got {n_children}"
        ix1, ix2 = children_idx
        partials_storage[ix1] = 1.0
        partials_storage[ix2] = -1.0
        return storage[ix1] - storage[ix2]

    if op == CallOp.MUL:
        tmp_prod = 1.0
        for ix in children_idx:
            tmp_prod *= storage[ix]
        if tmp_prod == 0.0:
            # Division is unusable; take the product of the other factors
            for i, ix in enumerate(children_idx):
                prod_others = 1.0
                for j, jx in enumerate(children_idx):
                    if i != j:
                        prod_others *= storage[jx]
                partials_storage[ix] = prod_others
        else:
            for ix in children_idx:
                partials_storage[ix] = tmp_prod / storage[ix]
        return tmp_prod

    if op == CallOp.POW:
        if check:
            assert n_children == 2, f"'^' takes 2 arguments, got {n_children}"
        ix1, ix2 = children_idx
        base = storage[ix1]
        exponent = storage[ix2]
        if exponent == 2:
            value = base * base
            partials_storage[ix1] = 2.0 * base
        else:
            value = base ** exponent
            partials_storage[ix1] = exponent * base ** (exponent - 1.0)
        partials_storage[ix2] = value * np.log(base)
        return value

    if op == CallOp.DIV:
        if check:
            assert n_children == 2, f"'/' takes 2 arguments, got {n_children}"
        ix1, ix2 = children_idx
        numerator = storage[ix1]
        recip_denominator = 1.0 / storage[ix2]
        partials_storage[ix1] = recip_denominator
        partials_storage[ix2] = -numerator * recip_denominator * recip_denominator
        return numerator * recip_denominator

    if op == CallOp.IFELSE:
        if check:
            assert n_children == 3, f"ifelse takes 3 arguments, got {n_children}"
        ix_cond, ix_then, ix_else = children_idx
        take_then = storage[ix_cond] == 1
        partials_storage[ix_then] = 1.0 if take_then else 0.0
        partials_storage[ix_else] = 0.0 if take_then else 1.0
        return storage[ix_then] if take_then else storage[ix_else]

    raise UnsupportedOperatorError(op, "call")


def _eval_comparison(op, children_idx, storage, partials_storage):
    """1.0 if every consecutive pair satisfies comparison `op`, else 0.0."""
    if not 0 <= op < len(ComparisonOp):
        raise UnsupportedOperatorError(op, "comparison")
    result = True
    for r in range(len(children_idx) - 1):
        result &= compare(op, storage[children_idx[r]], storage[children_idx[r + 1]])
    for ix in children_idx:
        partials_storage[ix] = 0.0
    return 1.0 if result else 0.0


def _eval_logic(op, children_idx, storage, partials_storage, check=True):
    """Boolean combination of two children stored as 1.0 / 0.0."""
    if check:
        assert len(children_idx) == 2, f"logic operators take 2 arguments, got {len(children_idx)}"
    ix1, ix2 = children_idx
    partials_storage[ix1] = 0.0
    partials_storage[ix2] = 0.0
    lhs = storage[ix1] == 1
    rhs = storage[ix2] == 1
    if op == LogicOp.AND:
        return 1.0 if (lhs and rhs) else 0.0
    if op == LogicOp.OR:
        return 1.0 if (lhs or rhs) else 0.0
    raise UnsupportedOperatorError(op, "logic")
