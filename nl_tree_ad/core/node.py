# nl_tree_ad/core/node.py
from dataclasses import dataclass
from enum import IntEnum


class NodeType(IntEnum):
    """Kind of an expression tree element."""
    VARIABLE = 0        # index into x_values
    VALUE = 1           # index into const_values
    PARAMETER = 2       # index into parameter_values
    SUBEXPRESSION = 3   # index into subexpression_values
    CALL = 4            # n-ary operator id (see ops.operators.CallOp)
    CALLUNIVAR = 5      # univariate operator id (see ops.univariate)
    COMPARISON = 6      # comparison operator id
    LOGIC = 7           # logic operator id


LEAF_TYPES = frozenset({
    NodeType.VARIABLE, NodeType.VALUE, NodeType.PARAMETER, NodeType.SUBEXPRESSION,
})


@dataclass(frozen=True)
class Node:
    """
    One node of an expression tree.

    Attributes
    ----------
    nodetype : NodeType
        What this node is (leaf kind or operator family).
    index : int
        For leaves, the position in the matching external value array.
        For operators, the operator id within its family.
    """
    nodetype: NodeType
    index: int

    @property
    def is_leaf(self) -> bool:
        return self.nodetype in LEAF_TYPES
