"""Adapter from a PolicyEvaluator to a pydantic field validator.

Example:

    from typing import Annotated
    from pydantic import AfterValidator, BaseModel

    check = password_validator(PolicyEvaluator(PolicyConfig(min_numbers=1)))

    class SignupForm(BaseModel):
        password: Annotated[str, AfterValidator(check)]
"""

from __future__ import annotations

from collections.abc import Callable

from pwpolicy.policy.engine import PolicyEvaluator


def password_validator(evaluator: PolicyEvaluator) -> Callable[[str], str]:
    """Build a validator that raises on policy failure.

    Args:
        evaluator: The evaluator whose policy the field must satisfy.

    Returns:
        A callable that returns the password unchanged when it passes and
        raises ValueError with the primary message otherwise. Pydantic turns
        the ValueError into a ValidationError for the field.
    """

    def validate(value: str) -> str:
        result = evaluator.evaluate(value)
        if not result.passed:
            raise ValueError(evaluator.primary_message(result))
        return value

    return validate
