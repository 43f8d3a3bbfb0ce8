# nl_tree_ad/core/builder.py
from __future__ import annotations
from dataclasses import dataclass
from numbers import Real
from typing import List, Sequence, Tuple

from .adjacency import Adjacency
from .errors import TreeStructureError
from .node import Node, NodeType
from ..ops.operators import comparison_operator_to_id, logic_operator_to_id, operator_to_id
from ..ops.univariate import univariate_operator_to_id


@dataclass(frozen=True)
class ExpressionTree:
    """
    Immutable expression tree: nodes in parent-before-child order plus adjacency.

    Attributes
    ----------
    nodes : tuple[Node, ...]
        nodes[0] is the root; every other node's parent has a smaller position.
    adj : Adjacency
        Ordered children of every node.
    const_values : tuple[float, ...]
        Literal constants referenced by VALUE nodes, if the builder collected any.
    """
    nodes: Tuple[Node, ...]
    adj: Adjacency
    const_values: Tuple[float, ...] = ()

    @classmethod
    def from_parents(cls, nodes: Sequence[Node], parents: Sequence[int],
                     const_values: Sequence[float] = ()) -> ExpressionTree:
        if len(nodes) != len(parents):
            raise TreeStructureError(
                f"got {len(nodes)} nodes but {len(parents)} parent entries"
            )
        adj = Adjacency.from_parents(parents)
        for k, nod in enumerate(nodes):
            if nod.is_leaf and adj.n_children(k):
                raise TreeStructureError(
                    f"leaf node {k} ({nod.nodetype.name}) has {adj.n_children(k)} children"
                )
        return cls(tuple(nodes), adj, tuple(float(c) for c in const_values))

    def __len__(self) -> int:
        return len(self.nodes)

    def num_operands(self, nodetype: NodeType) -> int:
        """1 + the largest operand index used by leaves of `nodetype` (0 if none)."""
        return max((nod.index + 1 for nod in self.nodes if nod.nodetype == nodetype), default=0)


class TreeBuilder:
    """
    Records nodes in creation order. A node can only be attached to a parent
    that already exists, so parents always precede their children.
    """

    def __init__(self):
        self.nodes: List[Node] = []
        self.parents: List[int] = []
        self.const_values: List[float] = []

    def reset(self):
        self.nodes.clear()
        self.parents.clear()
        self.const_values.clear()

    def push_node(self, nodetype: NodeType, index: int, parent: int = -1) -> int:
        """
        Append Node(nodetype, index) under `parent` and return its position.
        The first node is the root and must use parent=-1.
        """
        n = len(self.nodes)
        if n == 0:
            if parent != -1:
                raise TreeStructureError("the first node is the root and takes parent -1")
        elif not 0 <= parent < n:
            raise TreeStructureError(
                f"parent {parent} does not exist yet (tree has {n} nodes)"
            )
        elif self.nodes[parent].is_leaf:
            raise TreeStructureError(f"node {parent} is a leaf and cannot take children")
        self.nodes.append(Node(NodeType(nodetype), int(index)))
        self.parents.append(parent)
        return n

    def push_constant(self, value: float, parent: int = -1) -> int:
        """Append a literal, storing it in `const_values`."""
        self.const_values.append(float(value))
        return self.push_node(NodeType.VALUE, len(self.const_values) - 1, parent)

    def build(self) -> ExpressionTree:
        if not self.nodes:
            raise TreeStructureError("cannot build an empty tree")
        return ExpressionTree.from_parents(self.nodes, self.parents, self.const_values)

    # ----------------------------- nested form ----------------------------- #
    _LEAF_HEADS = {
        "x": NodeType.VARIABLE,
        "const": NodeType.VALUE,
        "param": NodeType.PARAMETER,
        "subexpr": NodeType.SUBEXPRESSION,
    }

    def push_nested(self, expr, parent: int = -1) -> int:
        """
        Append a nested expression and return the position of its top node.

        Grammar
        -------
        number                         literal, collected into const_values
        ("x", i) / ("param", i)        variable / parameter i
        ("const", i) / ("subexpr", i)  constant / subexpression i
        (op, arg, ...)                 op in + - * ^ / ifelse, a comparison
                                       (<= == >= < >), && / ||, or a
                                       univariate name such as "sin"

        Nodes are numbered in writing order (pre-order, children left to
        right), using an explicit stack so deep expressions do not recurse.
        """
        top = None
        stack = [(expr, parent)]
        while stack:
            ex, par = stack.pop()
            k = self._push_head(ex, par)
            if top is None:
                top = k
            if isinstance(ex, tuple) and ex[0] not in self._LEAF_HEADS:
                for arg in reversed(ex[1:]):
                    stack.append((arg, k))
        return top

    def _push_head(self, ex, parent: int) -> int:
        if isinstance(ex, Real) and not isinstance(ex, bool):
            return self.push_constant(ex, parent)
        if not isinstance(ex, tuple) or not ex:
            raise TreeStructureError(f"cannot interpret {ex!r} as an expression")
        head, args = ex[0], ex[1:]
        if head in self._LEAF_HEADS:
            if len(args) != 1:
                raise TreeStructureError(f"leaf {head!r} takes exactly one index, got {args!r}")
            return self.push_node(self._LEAF_HEADS[head], args[0], parent)
        if not args:
            raise TreeStructureError(f"operator {head!r} needs at least one argument")
        if len(args) == 1 and head in univariate_operator_to_id:
            return self.push_node(NodeType.CALLUNIVAR, univariate_operator_to_id[head], parent)
        if head in operator_to_id:
            return self.push_node(NodeType.CALL, operator_to_id[head], parent)
        if head in comparison_operator_to_id:
            return self.push_node(NodeType.COMPARISON, comparison_operator_to_id[head], parent)
        if head in logic_operator_to_id:
            return self.push_node(NodeType.LOGIC, logic_operator_to_id[head], parent)
        raise TreeStructureError(f"unknown operator {head!r} with {len(args)} arguments")

    @classmethod
    def from_nested(cls, expr) -> ExpressionTree:
        """Build an ExpressionTree from a nested tuple expression."""
        builder = cls()
        builder.push_nested(expr)
        return builder.build()
