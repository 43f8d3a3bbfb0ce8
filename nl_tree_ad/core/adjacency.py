"""
Child adjacency for expression trees.

Implementation: Compressed Sparse Row (one row per parent)
- indptr[k]:indptr[k+1] is the slice of `children` holding node k's children
- Children appear in increasing position, i.e. left-to-right as written

Lookup cost:
- n_children(k): O(1)
- children_of(k): O(number of children)
- Storage: O(nodes + edges)
"""

import numpy as np
from typing import Sequence

from .errors import TreeStructureError


class Adjacency:
    """
    Immutable parent -> children lookup in CSR layout.

    Maintains two arrays:
    1. indptr: int64[n + 1], row pointers
    2. children: int64[n - 1], child positions grouped by parent

    Both arrays are marked read-only so one instance can be shared by
    concurrent evaluations.
    """

    __slots__ = ("indptr", "children", "parents")

    def __init__(self, indptr: np.ndarray, children: np.ndarray, parents: np.ndarray):
        self.indptr = indptr
        self.children = children
        self.parents = parents
        for arr in (self.indptr, self.children, self.parents):
            arr.setflags(write=False)

    @classmethod
    def from_parents(cls, parents: Sequence[int]) -> "Adjacency":
        """
        Build the adjacency from a parent array.

        Args:
            parents: parents[k] is the position of node k's parent;
                parents[0] must be -1 (the root) and parents[k] < k otherwise.

        Raises:
            TreeStructureError: if the ordering invariant does not hold.
        """
        parents = np.asarray(parents, dtype=np.int64)
        if parents.ndim != 1 or parents.size == 0:
            raise TreeStructureError("parent array must be a non-empty 1-d sequence")
        if parents[0] != -1:
            raise TreeStructureError(
                f"node 0 must be the root (parent -1), got parent {parents[0]}"
            )
        n = parents.size
        positions = np.arange(n, dtype=np.int64)
        rest = parents[1:]
        bad = np.flatnonzero((rest < 0) | (rest >= positions[1:]))
        if bad.size:
            k = int(bad[0]) + 1
            raise TreeStructureError(
                f"node {k} has parent {parents[k]}; parents must precede their children"
            )

        counts = np.bincount(rest, minlength=n)
        indptr = np.zeros(n + 1, dtype=np.int64)
        np.cumsum(counts, out=indptr[1:])
        # Stable sort keeps children of one parent in increasing position
        children = positions[1:][np.argsort(rest, kind="stable")]
        return cls(indptr, children, parents.copy())

    def __len__(self) -> int:
        return self.indptr.size - 1

    @property
    def n_edges(self) -> int:
        return int(self.children.size)

    def n_children(self, k: int) -> int:
        return int(self.indptr[k + 1] - self.indptr[k])

    def children_of(self, k: int) -> np.ndarray:
        """Ordered children positions of node k (read-only view)."""
        return self.children[self.indptr[k]:self.indptr[k + 1]]

    def parent_of(self, k: int) -> int:
        return int(self.parents[k])

    def __repr__(self):
        return f"Adjacency(n_nodes={len(self)}, n_edges={self.n_edges})"
