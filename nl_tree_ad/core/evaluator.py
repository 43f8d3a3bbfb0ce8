# nl_tree_ad/core/evaluator.py

#-----------------------------------------------------------------------------
# A TreeEvaluator pairs one immutable ExpressionTree with one private set of
# buffers, so callers re-evaluate with new inputs without re-allocating.
#-----------------------------------------------------------------------------
from __future__ import annotations
from typing import Iterable, Optional, Sequence, Tuple
import numpy as np

from .buffers import EvalBuffers
from .builder import ExpressionTree
from .config import DEFAULT_CONFIG, EvalConfig
from .forward import forward_eval
from .forward_dual import forward_eval_eps
from .node import NodeType


def one_hot_seeds(n_vars: int, columns: Iterable[int]) -> np.ndarray:
    """
    Seed matrix of shape [n_vars, len(columns)] whose j-th direction is the
    unit vector of variable columns[j].

    Example
    -------
    one_hot_seeds(3, [2, 0]) -> [[0, 1], [0, 0], [1, 0]]
    """
    columns = list(columns)
    seeds = np.zeros((n_vars, len(columns)), dtype=np.float64)
    for j, var in enumerate(columns):
        seeds[var, j] = 1.0
    return seeds


class TreeEvaluator:
    """
    Owner of a tree and its buffers.

    Usage:
        ev = TreeEvaluator(tree, n_directions=2)
        ev.evaluate(x_values=[1.0, 2.0])
        ev.directional(x_values_eps=one_hot_seeds(2, [0, 1]))

    Not thread-safe: use one TreeEvaluator per thread (the tree itself can be
    shared).
    """

    def __init__(self, tree: ExpressionTree, n_directions: Optional[int] = None,
                 config: Optional[EvalConfig] = None):
        self.tree = tree
        self.config = config or DEFAULT_CONFIG
        self.buffers = EvalBuffers.for_tree(tree, n_directions or self.config.n_directions)

    def evaluate(self, x_values: Sequence[float] = (), *,
                 const_values: Optional[Sequence[float]] = None,
                 parameter_values: Sequence[float] = (),
                 subexpression_values: Sequence[float] = ()) -> float:
        """Value/partial pass. Constants default to the tree's own literals."""
        if const_values is None:
            const_values = self.tree.const_values
        return forward_eval(
            self.buffers.storage, self.buffers.partials_storage,
            self.tree.nodes, self.tree.adj,
            const_values, parameter_values, x_values, subexpression_values,
            config=self.config,
        )

    def directional(self, x_values_eps=None, subexpression_values_eps=None) -> np.ndarray:
        """
        Directional pass along the seeded directions. Call evaluate() first.
        Missing seeds default to zero.
        """
        n_dir = self.buffers.n_directions
        if x_values_eps is None:
            x_values_eps = np.zeros((self.tree.num_operands(NodeType.VARIABLE), n_dir))
        if subexpression_values_eps is None:
            subexpression_values_eps = np.zeros(
                (self.tree.num_operands(NodeType.SUBEXPRESSION), n_dir)
            )
        return forward_eval_eps(
            self.buffers.storage, self.buffers.storage_eps,
            self.buffers.partials_storage, self.buffers.partials_storage_eps,
            self.tree.nodes, self.tree.adj,
            x_values_eps, subexpression_values_eps,
            config=self.config,
        )

    # ----------------------------- accessors ----------------------------- #
    @property
    def values(self) -> np.ndarray:
        return self.buffers.storage[:len(self.tree)]

    @property
    def partials(self) -> np.ndarray:
        return self.buffers.partials_storage[:len(self.tree)]

    @property
    def values_eps(self) -> np.ndarray:
        return self.buffers.storage_eps[:len(self.tree)]

    @property
    def partials_eps(self) -> np.ndarray:
        return self.buffers.partials_storage_eps[:len(self.tree)]


def directional_derivatives(tree: ExpressionTree, x_values: Sequence[float],
                            directions, *, config: Optional[EvalConfig] = None,
                            **inputs) -> Tuple[float, np.ndarray]:
    """
    Value of `tree` at x_values and its derivatives along `directions`.

    Args:
        directions: array [n_vars, N]; column j is the j-th direction in x-space.
        **inputs: const_values / parameter_values / subexpression_values,
            forwarded to TreeEvaluator.evaluate.

    Returns:
        (value, array of N directional derivatives)
    """
    directions = np.asarray(directions, dtype=np.float64)
    if directions.ndim == 1:
        directions = directions[:, None]
    ev = TreeEvaluator(tree, n_directions=directions.shape[1], config=config)
    value = ev.evaluate(x_values, **inputs)
    return float(value), ev.directional(x_values_eps=directions).copy()
