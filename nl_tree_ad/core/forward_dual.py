# nl_tree_ad/core/forward_dual.py
"""
Directional derivatives of an expression tree.

Equivalent to running forward_eval on dual numbers, except that the epsilon
components live in their own buffers, so the real components computed by
forward_eval are reused instead of recomputed. Also computes the directional
derivatives of the partials (partials_storage_eps), which second-order
reverse sweeps combine with partials_storage.

Precondition: forward_eval has already been run on the same inputs. This is
not checked; stale values give stale derivatives.
"""
from __future__ import annotations
import logging

import numpy as np

from .config import DEFAULT_CONFIG, EvalConfig
from .dual import Dual
from .errors import UnsupportedOperatorError
from .node import NodeType
from ..ops.operators import CallOp
from ..ops.univariate import eval_univariate_2nd_deriv

logger = logging.getLogger(__name__)


def forward_eval_eps(storage, storage_eps, partials_storage, partials_storage_eps, nd, adj,
                     x_values_eps, subexpression_values_eps, *,
                     config: EvalConfig | None = None):
    """
    Propagate N simultaneous directions through the tree.

    Args:
        storage, partials_storage: buffers filled by forward_eval.
        storage_eps, partials_storage_eps: float64 buffers of shape [>= len(nd), N];
            overwritten for positions 0..len(nd)-1.
        nd, adj: the tree, as for forward_eval.
        x_values_eps: seeds for variables, row i holds the N components of x_i.
        subexpression_values_eps: seeds for subexpressions, same layout.
        config: evaluation settings.

    Returns:
        storage_eps[0], the N directional derivatives of the root.

    Raises:
        UnsupportedOperatorError: a univariate operator has no second
            derivative, or a CALL operator id is unknown.
    """
    config = config or DEFAULT_CONFIG
    n = len(nd)
    n_dir = storage_eps.shape[1]
    if config.check_bounds:
        assert storage_eps.shape[0] >= n, \
            f"storage_eps has {storage_eps.shape[0]} rows, tree has {n} nodes"
        assert partials_storage_eps.shape[0] >= n and partials_storage_eps.shape[1] == n_dir, \
            f"partials_storage_eps has shape {partials_storage_eps.shape}, expected ({n}, {n_dir})"
        assert len(storage) >= n and len(partials_storage) >= n, \
            "value buffers are smaller than the tree"
    logger.debug("forward_eval_eps: %d nodes, %d directions", n, n_dir)

    indptr = adj.indptr
    children_arr = adj.children

    with np.errstate(all=config.fp_errors):
        for k in range(n - 1, -1, -1):
            nod = nd[k]
            partials_storage_eps[k] = 0.0
            nodetype = nod.nodetype
            if nodetype == NodeType.VARIABLE:
                storage_eps[k] = x_values_eps[nod.index]
            elif nodetype == NodeType.VALUE or nodetype == NodeType.PARAMETER:
                storage_eps[k] = 0.0
            elif nodetype == NodeType.SUBEXPRESSION:
                storage_eps[k] = subexpression_values_eps[nod.index]
            else:
                children_idx = children_arr[indptr[k]:indptr[k + 1]]
                storage_eps[k] = _chain_rule(children_idx, partials_storage, storage_eps, n_dir)

                if nodetype == NodeType.CALL:
                    _call_partials_eps(nod.index, k, children_idx, storage, storage_eps,
                                       partials_storage_eps, n_dir)
                elif nodetype == NodeType.CALLUNIVAR:
                    child_idx = children_idx[0]
                    fprimeprime = eval_univariate_2nd_deriv(nod.index, storage[child_idx], storage[k])
                    partials_storage_eps[child_idx] = fprimeprime * storage_eps[child_idx]
                # Comparison, logic: partials are constant zero, so are their directions

    return storage_eps[0]


def _chain_rule(children_idx, partials_storage, storage_eps, n_dir):
    """
    Sum of child partial * child direction.

    Children with a zero partial (untaken ifelse branch, comparison and logic
    operands) or a zero direction (constant exponent) contribute nothing, even
    when the other factor is inf/NaN.
    """
    acc = np.zeros(n_dir, dtype=np.float64)
    for ix in children_idx:
        partial = partials_storage[ix]
        if partial == 0.0:
            continue
        direction = storage_eps[ix]
        if not direction.any():
            continue
        acc += partial * direction
    return acc


def _gradnum(storage, storage_eps, ix) -> Dual:
    return Dual(storage[ix], storage_eps[ix])


def _call_partials_eps(op, k, children_idx, storage, storage_eps, partials_storage_eps, n_dir):
    """Directional derivatives of the partials written by a CALL node."""
    if op == CallOp.MUL:
        # Same zero guard as the value pass, lifted to dual numbers
        duals = [_gradnum(storage, storage_eps, ix) for ix in children_idx]
        tmp_prod = Dual.one(n_dir)
        for d in duals:
            tmp_prod = tmp_prod * d
        if tmp_prod.value == 0.0:
            for i, ix in enumerate(children_idx):
                prod_others = Dual.one(n_dir)
                for j, d in enumerate(duals):
                    if i != j:
                        prod_others = prod_others * d
                partials_storage_eps[ix] = prod_others.eps
        else:
            for ix, d in zip(children_idx, duals):
                partials_storage_eps[ix] = (tmp_prod / d).eps

    elif op == CallOp.POW:
        ix1, ix2 = children_idx
        base_gnum = _gradnum(storage, storage_eps, ix1)
        exponent_gnum = _gradnum(storage, storage_eps, ix2)
        if storage[ix2] == 2:
            partials_storage_eps[ix1] = 2.0 * storage_eps[ix1]
        else:
            partials_storage_eps[ix1] = (exponent_gnum * base_gnum ** (exponent_gnum - 1.0)).eps
        result_gnum = _gradnum(storage, storage_eps, k)
        partials_storage_eps[ix2] = (result_gnum * base_gnum.log()).eps

    elif op == CallOp.DIV:
        ix1, ix2 = children_idx
        recip_denominator = 1.0 / _gradnum(storage, storage_eps, ix2)
        numerator_gnum = _gradnum(storage, storage_eps, ix1)
        partials_storage_eps[ix1] = recip_denominator.eps
        partials_storage_eps[ix2] = (-numerator_gnum * recip_denominator * recip_denominator).eps

    elif not 0 <= op < len(CallOp):
        raise UnsupportedOperatorError(op, "call")
    # ADD, SUB, IFELSE: constant partials, zero directions
