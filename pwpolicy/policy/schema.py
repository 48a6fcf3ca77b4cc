"""Pydantic v2 models for password policy configuration.

Defines the thresholds a password must satisfy and the message templates
used to explain a failed check. The same model backs both programmatic
construction and the YAML policy file.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    ValidationError,
    field_serializer,
    field_validator,
)

from pwpolicy.policy.messages import MessageTemplate

# Plain ints only: bools and numeric strings are rejected rather than coerced
Threshold = Annotated[StrictInt, Field(ge=0)]


class ViolationKind(str, Enum):
    """The policy checks, in the order the engine runs them.

    The value doubles as the message key of the violation.
    """

    MIN_LENGTH = "min_length"
    MIN_LETTERS = "min_letters"
    MIN_LOWERCASE_LETTERS = "min_lowercase_letters"
    MIN_UPPERCASE_LETTERS = "min_uppercase_letters"
    MIN_NUMBERS = "min_numbers"
    MIN_SPECIAL = "min_special"
    MAX_CONSECUTIVE_WHITESPACE = "max_consecutive_whitespace"
    MAX_CONSECUTIVE_IDENTICAL = "max_consecutive_identical"


DEFAULT_MESSAGES: dict[ViolationKind, str] = {
    ViolationKind.MIN_LENGTH: "The password must be at least :min characters.",
    ViolationKind.MIN_LETTERS: (
        "The password must contain letters."
        "|The password must contain at least :min letters."
    ),
    ViolationKind.MIN_LOWERCASE_LETTERS: (
        "The password must contain lowercase letters."
        "|The password must contain at least :min lowercase letters."
    ),
    ViolationKind.MIN_UPPERCASE_LETTERS: (
        "The password must contain uppercase letters."
        "|The password must contain at least :min uppercase letters."
    ),
    ViolationKind.MIN_NUMBERS: (
        "The password must contain numbers."
        "|The password must contain at least :min numbers."
    ),
    ViolationKind.MIN_SPECIAL: (
        "The password must contain special characters."
        "|The password must contain at least :min special characters."
    ),
    ViolationKind.MAX_CONSECUTIVE_WHITESPACE: (
        "The password can not contain more than :max consecutive space."
        "|The password can not contain more than :max consecutive spaces."
    ),
    ViolationKind.MAX_CONSECUTIVE_IDENTICAL: (
        "The password can not contain more than :max consecutive identical character."
        "|The password can not contain more than :max consecutive identical characters."
    ),
}


class ConfigError(ValueError):
    """Raised when a policy configuration is malformed.

    Attributes:
        details: Structured error details from pydantic validation.
    """

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None) -> None:
        self.details = details or []
        super().__init__(message)


class PolicyConfig(BaseModel):
    """Thresholds a password must satisfy.

    All ``min_*`` fields are non-negative counts; 0 means the check can
    never fail. The two ``max_consecutive_*`` fields may be None, which
    disables the check entirely. That is different from 0, which rejects
    any run at all.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    min_length: Threshold = Field(
        default=6,
        description="Minimum number of characters (Unicode code points).",
    )
    min_letters: Threshold = Field(default=0, description="Minimum letters of any script.")
    min_lowercase_letters: Threshold = 0
    min_uppercase_letters: Threshold = 0
    min_numbers: Threshold = 0
    min_special: Threshold = Field(
        default=0,
        description="Minimum characters that are neither letters nor numbers, "
        "whitespace included.",
    )
    max_consecutive_whitespace: Threshold | None = Field(
        default=2,
        description="Longest allowed run of whitespace characters. None disables the check.",
    )
    max_consecutive_identical: Threshold | None = Field(
        default=None,
        description="Longest allowed run of one repeated character. None disables the check.",
    )
    messages: Mapping[ViolationKind, str] = Field(
        default_factory=lambda: MappingProxyType({}),
        description="Per-check template overrides in 'singular|plural' form.",
    )

    @field_validator("messages", mode="after")
    @classmethod
    def freeze_messages(cls, value: Mapping[ViolationKind, str]) -> Mapping[ViolationKind, str]:
        """Store overrides read-only so a shared config cannot change under an evaluator."""
        return MappingProxyType(dict(value))

    @field_serializer("messages")
    def serialize_messages(self, value: Mapping[ViolationKind, str]) -> dict[str, str]:
        return {kind.value: text for kind, text in value.items()}

    @classmethod
    def build(cls, **fields: Any) -> PolicyConfig:
        """Validated constructor.

        Raises:
            ConfigError: If any field is negative, of the wrong type or unknown.
        """
        try:
            return cls.model_validate(fields)
        except ValidationError as e:
            details = e.errors()
            raise ConfigError(
                f"Invalid password policy:\n{format_validation_errors(details)}",
                details=details,
            ) from e

    def template_for(self, kind: ViolationKind) -> MessageTemplate:
        """The message template for a check, honouring overrides."""
        return MessageTemplate.parse(self.messages.get(kind, DEFAULT_MESSAGES[kind]))


def format_validation_errors(details: list[dict[str, Any]]) -> str:
    """One indented line per failing field, e.g. ``  - min_length: ...``."""
    lines = []
    for err in details:
        loc = " → ".join(str(part) for part in err["loc"]) or "(root)"
        lines.append(f"  - {loc}: {err['msg']}")
    return "\n".join(lines)
