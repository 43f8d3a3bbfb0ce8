# nl_tree_ad/ops/operators.py
"""
Operator ids for the multi-argument node families.

Ids are what a CALL / COMPARISON / LOGIC node stores in `Node.index`.
The symbol tables map the written form of an operator onto its id.
"""
from enum import IntEnum


class CallOp(IntEnum):
    ADD = 0      # n-ary
    SUB = 1      # binary
    MUL = 2      # n-ary
    POW = 3      # binary (base, exponent)
    DIV = 4      # binary (numerator, denominator)
    IFELSE = 5   # ternary (condition, then, else)


class ComparisonOp(IntEnum):
    LE = 0
    EQ = 1
    GE = 2
    LT = 3
    GT = 4


class LogicOp(IntEnum):
    AND = 0
    OR = 1


operators = ("+", "-", "*", "^", "/", "ifelse")
operator_to_id = {sym: CallOp(i) for i, sym in enumerate(operators)}

comparison_operators = ("<=", "==", ">=", "<", ">")
comparison_operator_to_id = {sym: ComparisonOp(i) for i, sym in enumerate(comparison_operators)}

logic_operators = ("&&", "||")
logic_operator_to_id = {sym: LogicOp(i) for i, sym in enumerate(logic_operators)}

# Binary comparison rules, indexed by ComparisonOp
_COMPARE = (
    lambda a, b: a <= b,
    lambda a, b: a == b,
    lambda a, b: a >= b,
    lambda a, b: a < b,
    lambda a, b: a > b,
)


def compare(op_id: int, lhs, rhs) -> bool:
    """Apply comparison `op_id` to one pair. Caller checks the id range."""
    return bool(_COMPARE[op_id](lhs, rhs))
