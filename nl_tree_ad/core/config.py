"""
Evaluation configuration.

Shared settings for the value/partial and directional evaluators. A single
frozen instance can be shared by any number of evaluators and threads.
"""

from dataclasses import dataclass, replace

# Modes accepted by numpy.errstate
_FP_MODES = ("ignore", "warn", "raise", "call", "print", "log")


@dataclass(frozen=True)
class EvalConfig:
    """
    Settings for one or more evaluations.

    Attributes:
        check_bounds: Assert buffer sizes and operator arities before use.
        fp_errors: numpy floating point error mode used while evaluating.
            "ignore" lets inf/NaN propagate silently (IEEE semantics),
            "raise" turns them into FloatingPointError.
        n_directions: Default number of simultaneous epsilon components
            allocated by TreeEvaluator.
    """
    check_bounds: bool = True
    fp_errors: str = "ignore"
    n_directions: int = 1

    def __post_init__(self):
        if self.fp_errors not in _FP_MODES:
            raise ValueError(
                f"fp_errors must be one of {_FP_MODES}, got {self.fp_errors!r}"
            )
        if self.n_directions < 1:
            raise ValueError(f"n_directions must be >= 1, got {self.n_directions}")

    def with_options(self, **changes) -> "EvalConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


DEFAULT_CONFIG = EvalConfig()
