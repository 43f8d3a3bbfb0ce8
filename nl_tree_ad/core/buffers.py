# nl_tree_ad/core/buffers.py
from __future__ import annotations
import numpy as np


class EvalBuffers:
    """
    Caller-owned storage for one expression tree.

    Attributes
    ----------
    storage : np.ndarray [n]
        Forward (primal) value of every node.
    partials_storage : np.ndarray [n]
        partials_storage[k] = d(parent of k)/d(node k). Root entry unused (0).
    storage_eps : np.ndarray [n, N]
        Directional derivative of every node along N directions.
    partials_storage_eps : np.ndarray [n, N]
        Directional derivative of partials_storage along the same N directions.

    Every evaluation overwrites the first n rows in full; nothing carries over
    between calls. One instance must not be shared by concurrent evaluations.
    """

    __slots__ = ("storage", "partials_storage", "storage_eps", "partials_storage_eps")

    def __init__(self, storage, partials_storage, storage_eps, partials_storage_eps):
        self.storage = storage
        self.partials_storage = partials_storage
        self.storage_eps = storage_eps
        self.partials_storage_eps = partials_storage_eps

    @classmethod
    def allocate(cls, n_nodes: int, n_directions: int = 1) -> EvalBuffers:
        if n_nodes < 1:
            raise ValueError(f"n_nodes must be >= 1, got {n_nodes}")
        if n_directions < 1:
            raise ValueError(f"n_directions must be >= 1, got {n_directions}")
        return cls(
            np.zeros(n_nodes, dtype=np.float64),
            np.zeros(n_nodes, dtype=np.float64),
            np.zeros((n_nodes, n_directions), dtype=np.float64),
            np.zeros((n_nodes, n_directions), dtype=np.float64),
        )

    @classmethod
    def for_tree(cls, tree, n_directions: int = 1) -> EvalBuffers:
        """Allocate buffers sized for `tree` (an ExpressionTree)."""
        return cls.allocate(len(tree), n_directions)

    @property
    def n_nodes(self) -> int:
        return self.storage.shape[0]

    @property
    def n_directions(self) -> int:
        return self.storage_eps.shape[1]

    def __repr__(self):
        return f"EvalBuffers(n_nodes={self.n_nodes}, n_directions={self.n_directions})"
