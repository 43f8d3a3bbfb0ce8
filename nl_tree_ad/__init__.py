# nl_tree_ad/__init__.py
# Value, partial and directional-derivative evaluation of expression trees

from .core.node import Node, NodeType
from .core.errors import NLTreeError, UnsupportedOperatorError, TreeStructureError
from .core.config import EvalConfig, DEFAULT_CONFIG
from .core.adjacency import Adjacency
from .core.builder import ExpressionTree, TreeBuilder
from .core.buffers import EvalBuffers
from .core.dual import Dual
from .core.forward import forward_eval
from .core.forward_dual import forward_eval_eps
from .core.evaluator import TreeEvaluator, one_hot_seeds, directional_derivatives

# Operator tables
from . import ops
from .ops import CallOp, ComparisonOp, LogicOp, univariate_operator_to_id

__all__ = [
    # Tree
    'Node',
    'NodeType',
    'Adjacency',
    'ExpressionTree',
    'TreeBuilder',
    # Evaluation
    'EvalBuffers',
    'EvalConfig',
    'DEFAULT_CONFIG',
    'Dual',
    'forward_eval',
    'forward_eval_eps',
    'TreeEvaluator',
    'one_hot_seeds',
    'directional_derivatives',
    # Errors
    'NLTreeError',
    'UnsupportedOperatorError',
    'TreeStructureError',
    # Operators
    'ops',
    'CallOp',
    'ComparisonOp',
    'LogicOp',
    'univariate_operator_to_id',
]
