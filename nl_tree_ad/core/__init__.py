# nl_tree_ad/core/__init__.py

"""
Core engine for expression tree evaluation.

Exports:
    Node, NodeType     : tree elements
    Adjacency          : CSR child lookup built from a parent array
    ExpressionTree     : immutable nodes + adjacency, shareable across threads
    TreeBuilder        : ordered construction (parents always precede children)
    EvalBuffers        : caller-owned value / partial / directional buffers
    forward_eval       : value and per-node partial pass
    forward_eval_eps   : directional pass reusing the partials
    TreeEvaluator      : tree + private buffers convenience wrapper
"""

from .errors import NLTreeError, UnsupportedOperatorError, TreeStructureError
from .node import Node, NodeType
from .adjacency import Adjacency
from .builder import ExpressionTree, TreeBuilder
from .config import EvalConfig, DEFAULT_CONFIG
from .buffers import EvalBuffers
from .forward import forward_eval
from .forward_dual import forward_eval_eps
from .evaluator import TreeEvaluator, one_hot_seeds, directional_derivatives

__all__ = [
    "NLTreeError", "UnsupportedOperatorError", "TreeStructureError",
    "Node", "NodeType",
    "Adjacency", "ExpressionTree", "TreeBuilder",
    "EvalConfig", "DEFAULT_CONFIG",
    "EvalBuffers",
    "forward_eval", "forward_eval_eps",
    "TreeEvaluator", "one_hot_seeds", "directional_derivatives",
]
