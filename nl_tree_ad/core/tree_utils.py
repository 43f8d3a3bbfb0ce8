"""
Expression tree utilities.

Statistics, printed summaries, and a plain recursive evaluator used as a
reference for the backward-scan evaluator.
"""

import numpy as np
from typing import Dict, Sequence
from collections import Counter

from .node import NodeType
from .errors import UnsupportedOperatorError
from ..ops.operators import (
    CallOp, ComparisonOp, LogicOp, compare, comparison_operators, logic_operators, operators,
)
from ..ops.univariate import eval_univariate, univariate_operators


def node_label(nod) -> str:
    """Short human readable label, e.g. 'x[0]', '*', 'sin'."""
    t = nod.nodetype
    if t == NodeType.VARIABLE:
        return f"x[{nod.index}]"
    if t == NodeType.VALUE:
        return f"const[{nod.index}]"
    if t == NodeType.PARAMETER:
        return f"param[{nod.index}]"
    if t == NodeType.SUBEXPRESSION:
        return f"subexpr[{nod.index}]"
    table = {
        NodeType.CALL: operators,
        NodeType.CALLUNIVAR: univariate_operators,
        NodeType.COMPARISON: comparison_operators,
        NodeType.LOGIC: logic_operators,
    }[t]
    return table[nod.index] if 0 <= nod.index < len(table) else f"?{nod.index}"


def get_tree_stats(tree) -> Dict:
    """
    Statistics of an ExpressionTree (no printing).

    Returns:
        dict with node/edge counts, depth, fan-out and operation counts
    """
    n_nodes = len(tree)
    adj = tree.adj
    fan_outs = [adj.n_children(k) for k in range(n_nodes)]
    interior = [f for f in fan_outs if f > 0]

    # depth[k] = depth[parent] + 1, valid in one forward scan since parents come first
    depth = np.zeros(n_nodes, dtype=np.int64)
    for k in range(1, n_nodes):
        depth[k] = depth[adj.parent_of(k)] + 1

    op_counter = Counter(node_label(nod) for nod in tree.nodes if not nod.is_leaf)
    kind_counter = Counter(nod.nodetype.name for nod in tree.nodes)

    return {
        'nodes': n_nodes,
        'edges': adj.n_edges,
        'leaves': n_nodes - len(interior),
        'depth': int(depth.max()),
        'max_fan_out': max(fan_outs),
        'avg_fan_out': float(np.mean(interior)) if interior else 0.0,
        'operations': dict(op_counter),
        'kinds': dict(kind_counter),
    }


def print_tree_summary(tree, detailed: bool = False) -> Dict:
    """
    Print summary information about a tree.

    Args:
        tree: ExpressionTree
        detailed: also print the node list (only for trees of at most 100 nodes)

    Returns:
        the statistics dictionary from get_tree_stats
    """
    stats = get_tree_stats(tree)

    print("\n" + "="*70)
    print("EXPRESSION TREE SUMMARY")
    print("="*70)
    print(f"Total nodes:        {stats['nodes']:,}")
    print(f"Total edges:        {stats['edges']:,}")
    print(f"Leaves:             {stats['leaves']:,}")
    print(f"Depth:              {stats['depth']}")
    print(f"Max fan-out:        {stats['max_fan_out']}")
    print(f"Avg fan-out:        {stats['avg_fan_out']:.2f}")
    print()
    print("Operation breakdown:")
    for op_type, count in Counter(stats['operations']).most_common(10):
        pct = 100.0 * count / stats['nodes']
        print(f"  {op_type:12s}: {count:6,} ({pct:5.1f}%)")

    if detailed and stats['nodes'] <= 100:
        print()
        print_tree(tree, max_nodes=100)

    print("="*70 + "\n")
    return stats


def print_tree(tree, max_nodes: int = 20, storage=None, partials_storage=None) -> None:
    """
    Print the node list, optionally with values and partials from a finished pass.
    """
    print("="*70)
    print("EXPRESSION TREE NODES")
    print("="*70)
    n_show = min(len(tree), max_nodes)
    for k in range(n_show):
        nod = tree.nodes[k]
        line = f"Node {k:4d}: {node_label(nod):12s} parent={tree.adj.parent_of(k):4d}"
        if storage is not None:
            line += f"  value={float(storage[k]):12.6g}"
        if partials_storage is not None and k > 0:
            line += f"  partial={float(partials_storage[k]):12.6g}"
        print(line)
    if len(tree) > max_nodes:
        print(f"... ({len(tree) - max_nodes} more nodes)")


def evaluate_recursive(tree, const_values: Sequence[float], parameter_values: Sequence[float],
                       x_values: Sequence[float], subexpression_values: Sequence[float],
                       k: int = 0) -> float:
    """
    Value of the subtree rooted at node k by direct recursion.

    Reference implementation only: recursion depth grows with tree depth.
    """
    nod = tree.nodes[k]
    t = nod.nodetype
    if t == NodeType.VARIABLE:
        return float(x_values[nod.index])
    if t == NodeType.VALUE:
        return float(const_values[nod.index])
    if t == NodeType.PARAMETER:
        return float(parameter_values[nod.index])
    if t == NodeType.SUBEXPRESSION:
        return float(subexpression_values[nod.index])

    args = [evaluate_recursive(tree, const_values, parameter_values, x_values,
                               subexpression_values, int(c))
            for c in tree.adj.children_of(k)]
    with np.errstate(all="ignore"):
        if t == NodeType.CALLUNIVAR:
            return float(eval_univariate(nod.index, args[0])[0])
        if t == NodeType.COMPARISON:
            if not 0 <= nod.index < len(ComparisonOp):
                raise UnsupportedOperatorError(nod.index, "comparison")
            ok = all(compare(nod.index, a, b) for a, b in zip(args, args[1:]))
            return 1.0 if ok else 0.0
        if t == NodeType.LOGIC:
            if nod.index == LogicOp.AND:
                return 1.0 if (args[0] == 1 and args[1] == 1) else 0.0
            if nod.index == LogicOp.OR:
                return 1.0 if (args[0] == 1 or args[1] == 1) else 0.0
            raise UnsupportedOperatorError(nod.index, "logic")

        # Same operation order as forward_eval, so results agree to the last bit
        a = [np.float64(v) for v in args]
        if nod.index == CallOp.ADD:
            return float(sum(a, np.float64(0.0)))
        if nod.index == CallOp.SUB:
            return float(a[0] - a[1])
        if nod.index == CallOp.MUL:
            prod = np.float64(1.0)
            for v in a:
                prod *= v
            return float(prod)
        if nod.index == CallOp.POW:
            return float(a[0] * a[0] if a[1] == 2 else a[0] ** a[1])
        if nod.index == CallOp.DIV:
            return float(a[0] * (1.0 / a[1]))
        if nod.index == CallOp.IFELSE:
            return float(a[1] if a[0] == 1 else a[2])
        raise UnsupportedOperatorError(nod.index, "call")
