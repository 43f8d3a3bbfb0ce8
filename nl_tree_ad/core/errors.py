# nl_tree_ad/core/errors.py
"""Exceptions raised by the expression tree engine."""


class NLTreeError(Exception):
    """Base class for all errors raised by nl_tree_ad."""


class UnsupportedOperatorError(NLTreeError, ValueError):
    """
    An operator id has no rule in the table it was looked up in.

    Attributes
    ----------
    operator_id : int
        The offending id.
    family : str
        Which dispatch table was consulted ("call", "univariate", ...).
    """

    def __init__(self, operator_id, family: str = "call", name=None):
        self.operator_id = operator_id
        self.family = family
        self.name = name
        label = f"{operator_id}" if name is None else f"{operator_id} ({name})"
        super().__init__(f"Unsupported {family} operator: {label}")


class TreeStructureError(NLTreeError, ValueError):
    """The node order or adjacency violates the parent-before-child layout."""
