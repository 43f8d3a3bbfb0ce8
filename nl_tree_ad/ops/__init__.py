# nl_tree_ad/ops/__init__.py

# Convenience re-exports so users can do: from nl_tree_ad.ops import CallOp, eval_univariate, ...
from .operators import (
    CallOp, ComparisonOp, LogicOp,
    operators, operator_to_id,
    comparison_operators, comparison_operator_to_id,
    logic_operators, logic_operator_to_id,
)
from .univariate import (
    univariate_operators, univariate_operator_to_id,
    eval_univariate, eval_univariate_2nd_deriv, has_second_derivative,
)

__all__ = [
    "CallOp", "ComparisonOp", "LogicOp",
    "operators", "operator_to_id",
    "comparison_operators", "comparison_operator_to_id",
    "logic_operators", "logic_operator_to_id",
    "univariate_operators", "univariate_operator_to_id",
    "eval_univariate", "eval_univariate_2nd_deriv", "has_second_derivative",
]
