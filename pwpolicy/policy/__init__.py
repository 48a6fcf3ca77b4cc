"""Password policy model, evaluation engine and message formatting."""

from pwpolicy.policy.engine import EvaluationResult, PolicyEvaluator, Violation
from pwpolicy.policy.schema import ConfigError, PolicyConfig, ViolationKind

__all__ = [
    "ConfigError",
    "EvaluationResult",
    "PolicyConfig",
    "PolicyEvaluator",
    "Violation",
    "ViolationKind",
]
