"""Password policy evaluation engine.

Takes a candidate password and a policy configuration, runs every check in
a fixed order and returns the collected violations. Only the first
violation is used for the user-facing message; the rest are kept for
diagnostics.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from pwpolicy.policy.classify import (
    count_matching,
    is_letter,
    is_lowercase_letter,
    is_number,
    is_special,
    is_uppercase_letter,
    is_whitespace,
    longest_identical_run,
    longest_run,
)
from pwpolicy.policy.messages import (
    PRIMARY_TEMPLATE,
    Formatter,
    MessageTemplate,
    format_message,
)
from pwpolicy.policy.schema import PolicyConfig, ViolationKind


@dataclass(frozen=True)
class Violation:
    """A single failed check.

    Attributes:
        kind: Which check failed. ``kind.value`` is the message key.
        template: The singular/plural message template.
        quantity: Count used to pick the singular or plural form.
        params: Named values for the template placeholders (``min`` or ``max``).
    """

    kind: ViolationKind
    template: MessageTemplate
    quantity: int
    params: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Store a read-only copy; the dataclass is frozen so set it directly
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @property
    def key(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of evaluating one password.

    Attributes:
        violations: Every failed check, in check order.
    """

    violations: tuple[Violation, ...] = ()

    @property
    def passed(self) -> bool:
        return not self.violations

    @property
    def primary(self) -> Violation | None:
        """The violation surfaced to the user, or None if the password passed."""
        return self.violations[0] if self.violations else None

    @property
    def keys(self) -> list[str]:
        return [v.key for v in self.violations]


class PolicyEvaluator:
    """Evaluates passwords against an immutable policy.

    The evaluator holds no per-call state, so one instance can be shared
    between threads.
    """

    def __init__(
        self,
        config: PolicyConfig | None = None,
        formatter: Formatter = format_message,
    ) -> None:
        self._config = config if config is not None else PolicyConfig()
        self._formatter = formatter

    @property
    def config(self) -> PolicyConfig:
        """The policy being enforced."""
        return self._config

    def evaluate(self, password: str) -> EvaluationResult:
        """Run every check against ``password``.

        Checks are independent: each one looks at the original string and a
        failing check never prevents a later one from running.

        Args:
            password: The candidate password. Lengths and counts are in
                      Unicode code points, not bytes.

        Returns:
            An EvaluationResult with the violations in check order.

        Raises:
            TypeError: If ``password`` is not a string.
        """
        if not isinstance(password, str):
            msg = f"Password must be a string, got {type(password).__name__}"
            raise TypeError(msg)

        cfg = self._config
        violations: list[Violation] = []

        if len(password) < cfg.min_length:
            violations.append(self._min_violation(ViolationKind.MIN_LENGTH, cfg.min_length))

        if count_matching(password, is_letter) < cfg.min_letters:
            violations.append(self._min_violation(ViolationKind.MIN_LETTERS, cfg.min_letters))

        if count_matching(password, is_lowercase_letter) < cfg.min_lowercase_letters:
            violations.append(
                self._min_violation(ViolationKind.MIN_LOWERCASE_LETTERS, cfg.min_lowercase_letters)
            )

        if count_matching(password, is_uppercase_letter) < cfg.min_uppercase_letters:
            violations.append(
                self._min_violation(ViolationKind.MIN_UPPERCASE_LETTERS, cfg.min_uppercase_letters)
            )

        if count_matching(password, is_number) < cfg.min_numbers:
            violations.append(self._min_violation(ViolationKind.MIN_NUMBERS, cfg.min_numbers))

        if count_matching(password, is_special) < cfg.min_special:
            violations.append(self._min_violation(ViolationKind.MIN_SPECIAL, cfg.min_special))

        max_whitespace = cfg.max_consecutive_whitespace
        if max_whitespace is not None and longest_run(password, is_whitespace) > max(0, max_whitespace):
            violations.append(
                self._max_violation(ViolationKind.MAX_CONSECUTIVE_WHITESPACE, max_whitespace)
            )

        max_identical = cfg.max_consecutive_identical
        if max_identical is not None and longest_identical_run(password) > max(0, max_identical):
            violations.append(
                self._max_violation(ViolationKind.MAX_CONSECUTIVE_IDENTICAL, max_identical)
            )

        return EvaluationResult(violations=tuple(violations))

    def format(self, violation: Violation) -> str:
        """Render one violation with the configured formatter."""
        return self._formatter(violation.template, violation.quantity, violation.params)

    def primary_message(self, result: EvaluationResult) -> str:
        """The user-facing explanation for a failed evaluation.

        Returns the primary template with an empty ``:error`` when the
        password passed.
        """
        error = self.format(result.primary) if result.primary is not None else ""
        return self._formatter(MessageTemplate.parse(PRIMARY_TEMPLATE), 1, {"error": error})

    def messages(self, result: EvaluationResult) -> list[str]:
        """Render every violation, for callers that want full diagnostics."""
        return [self.format(v) for v in result.violations]

    def _min_violation(self, kind: ViolationKind, minimum: int) -> Violation:
        return Violation(
            kind=kind,
            template=self._config.template_for(kind),
            quantity=minimum,
            params={"min": minimum},
        )

    def _max_violation(self, kind: ViolationKind, maximum: int) -> Violation:
        return Violation(
            kind=kind,
            template=self._config.template_for(kind),
            quantity=maximum,
            params={"max": maximum},
        )
