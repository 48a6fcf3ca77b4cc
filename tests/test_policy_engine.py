"""Tests for the password policy evaluation engine."""

from __future__ import annotations

from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from pwpolicy.policy.engine import EvaluationResult, PolicyEvaluator
from pwpolicy.policy.loader import load_policy
from pwpolicy.policy.messages import MessageTemplate
from pwpolicy.policy.schema import PolicyConfig, ViolationKind

FIXTURES = Path(__file__).parent / "fixtures"

# Every threshold zeroed and both run checks disabled
PERMISSIVE = {
    "min_length": 0,
    "max_consecutive_whitespace": None,
    "max_consecutive_identical": None,
}


@pytest.fixture
def default_evaluator() -> PolicyEvaluator:
    return PolicyEvaluator()


@pytest.fixture
def strict_evaluator() -> PolicyEvaluator:
    """Evaluator loaded with the strict fixture policy (every check enabled)."""
    return PolicyEvaluator(load_policy(FIXTURES / "strict_policy.yaml"))


def _evaluator(**fields: object) -> PolicyEvaluator:
    return PolicyEvaluator(PolicyConfig.build(**fields))


class TestDefaults:
    """Tests against the built-in default policy."""

    def test_empty_string_fails_on_length_only(self, default_evaluator: PolicyEvaluator) -> None:
        result = default_evaluator.evaluate("")
        assert not result.passed
        assert result.keys == ["min_length"]

    def test_six_characters_pass(self, default_evaluator: PolicyEvaluator) -> None:
        assert default_evaluator.evaluate("abcdef").passed

    def test_default_whitespace_limit(self, default_evaluator: PolicyEvaluator) -> None:
        assert default_evaluator.evaluate("ab  cdef").passed
        result = default_evaluator.evaluate("ab   cdef")
        assert result.keys == ["max_consecutive_whitespace"]

    def test_identical_runs_unchecked_by_default(self, default_evaluator: PolicyEvaluator) -> None:
        assert default_evaluator.evaluate("aaaaaaaa").passed

    def test_none_config_uses_defaults(self) -> None:
        assert PolicyEvaluator(None).config == PolicyConfig()


class TestIndividualChecks:
    """Each check in isolation, everything else permissive."""

    def test_min_length_counts_code_points(self) -> None:
        evaluator = _evaluator(**{**PERMISSIVE, "min_length": 4})
        # Four code points, eight bytes in UTF-8
        assert evaluator.evaluate("日本語字").passed
        assert evaluator.evaluate("日本語").keys == ["min_length"]

    def test_min_letters(self) -> None:
        evaluator = _evaluator(**{**PERMISSIVE, "min_letters": 2})
        assert evaluator.evaluate("a1b2").passed
        assert evaluator.evaluate("a123").keys == ["min_letters"]

    def test_min_lowercase(self) -> None:
        evaluator = _evaluator(**{**PERMISSIVE, "min_lowercase_letters": 1})
        assert evaluator.evaluate("ABCd").passed
        assert evaluator.evaluate("ABCD").keys == ["min_lowercase_letters"]

    def test_min_uppercase(self) -> None:
        evaluator = _evaluator(**{**PERMISSIVE, "min_uppercase_letters": 2})
        assert evaluator.evaluate("ÀÉio").passed
        assert evaluator.evaluate("Àeio").keys == ["min_uppercase_letters"]

    def test_min_numbers(self) -> None:
        evaluator = _evaluator(**{**PERMISSIVE, "min_numbers": 1})
        assert evaluator.evaluate("abc٣").passed
        assert evaluator.evaluate("abc").keys == ["min_numbers"]

    def test_min_special_counts_whitespace(self) -> None:
        evaluator = _evaluator(**{**PERMISSIVE, "min_special": 1})
        assert evaluator.evaluate("ab cd").passed
        assert evaluator.evaluate("abcd").keys == ["min_special"]

    def test_min_special_scenario(self) -> None:
        evaluator = _evaluator(min_special=1)
        result = evaluator.evaluate("Password1")
        assert not result.passed
        assert result.keys == ["min_special"]
        assert evaluator.evaluate("Password1!").passed


class TestConsecutiveWhitespace:
    """Boundary behaviour of the whitespace run check."""

    def test_run_at_limit_passes(self) -> None:
        evaluator = _evaluator(**{**PERMISSIVE, "max_consecutive_whitespace": 2})
        assert evaluator.evaluate("ab  cd").passed

    def test_run_over_limit_fails(self) -> None:
        evaluator = _evaluator(**{**PERMISSIVE, "max_consecutive_whitespace": 2})
        result = evaluator.evaluate("ab   cd")
        assert result.keys == ["max_consecutive_whitespace"]
        assert result.primary is not None
        assert result.primary.params == {"max": 2}

    def test_zero_rejects_any_whitespace(self) -> None:
        evaluator = _evaluator(**{**PERMISSIVE, "max_consecutive_whitespace": 0})
        assert evaluator.evaluate("abcd").passed
        assert evaluator.evaluate("ab cd").keys == ["max_consecutive_whitespace"]

    def test_mixed_whitespace_forms_one_run(self) -> None:
        evaluator = _evaluator(**{**PERMISSIVE, "max_consecutive_whitespace": 2})
        assert evaluator.evaluate("a \t\nb").keys == ["max_consecutive_whitespace"]

    def test_disabled(self) -> None:
        evaluator = _evaluator(**PERMISSIVE)
        assert evaluator.evaluate("a          b").passed

    def test_information_separator_is_not_whitespace(self) -> None:
        evaluator = _evaluator(**{**PERMISSIVE, "max_consecutive_whitespace": 0})
        assert evaluator.evaluate("abc\x1fdefg").passed


class TestConsecutiveIdentical:
    """Boundary behaviour of the identical-character run check."""

    def test_run_at_limit_passes(self) -> None:
        evaluator = _evaluator(**{**PERMISSIVE, "max_consecutive_identical": 2})
        assert evaluator.evaluate("aab").passed

    def test_run_over_limit_fails(self) -> None:
        evaluator = _evaluator(**{**PERMISSIVE, "max_consecutive_identical": 2})
        result = evaluator.evaluate("aaab")
        assert result.keys == ["max_consecutive_identical"]
        assert result.primary is not None
        assert result.primary.quantity == 2

    def test_zero_rejects_any_character(self) -> None:
        evaluator = _evaluator(**{**PERMISSIVE, "max_consecutive_identical": 0})
        assert evaluator.evaluate("").passed
        assert not evaluator.evaluate("a").passed

    def test_one_rejects_doubles(self) -> None:
        evaluator = _evaluator(**{**PERMISSIVE, "max_consecutive_identical": 1})
        assert evaluator.evaluate("abab").passed
        assert not evaluator.evaluate("abba").passed

    def test_whitespace_runs_count_as_identical(self) -> None:
        evaluator = _evaluator(**{**PERMISSIVE, "max_consecutive_identical": 2})
        assert not evaluator.evaluate("a   b").passed


class TestOrderingAndAggregation:
    """Violations are collected in fixed order; the first is primary."""

    def test_all_violations_in_check_order(self, strict_evaluator: PolicyEvaluator) -> None:
        result = strict_evaluator.evaluate("   ")
        assert result.keys == [
            "min_length",
            "min_letters",
            "min_lowercase_letters",
            "min_uppercase_letters",
            "min_numbers",
            "max_consecutive_whitespace",
            "max_consecutive_identical",
        ]
        assert result.primary is not None
        assert result.primary.kind == ViolationKind.MIN_LENGTH

    def test_checks_do_not_short_circuit(self, strict_evaluator: PolicyEvaluator) -> None:
        result = strict_evaluator.evaluate("abc")
        assert result.keys[0] == "min_length"
        assert "min_uppercase_letters" in result.keys
        assert "min_numbers" in result.keys

    def test_strict_policy_pass(self, strict_evaluator: PolicyEvaluator) -> None:
        assert strict_evaluator.evaluate("Tr0ub4dor&3").passed

    def test_concrete_length_scenario(self) -> None:
        evaluator = _evaluator(
            min_length=8,
            min_letters=1,
            min_numbers=1,
            min_special=0,
            max_consecutive_whitespace=2,
            max_consecutive_identical=None,
        )
        assert evaluator.evaluate("abc12345").passed
        result = evaluator.evaluate("abc1234")
        assert not result.passed
        assert result.primary is not None
        assert result.primary.kind == ViolationKind.MIN_LENGTH
        assert result.primary.params == {"min": 8}

    def test_min_length_quantity_uses_min_length(self) -> None:
        evaluator = _evaluator(min_length=1, min_letters=5)
        result = evaluator.evaluate("")
        assert result.violations[0].quantity == 1
        assert result.violations[1].quantity == 5

    def test_passed_result(self) -> None:
        result = EvaluationResult()
        assert result.passed
        assert result.primary is None
        assert result.keys == []


class TestProperties:
    """Determinism, monotonicity and Unicode handling."""

    def test_deterministic(self, strict_evaluator: PolicyEvaluator) -> None:
        for password in ["", "Password1", "Ωmega 12!!", "aaab"]:
            assert strict_evaluator.evaluate(password) == strict_evaluator.evaluate(password)

    @pytest.mark.parametrize("password", ["abcdef", "日本語の文字列", "      ", "!!!!!!!!"])
    def test_length_alone_is_sufficient(self, password: str) -> None:
        assert _evaluator(**{**PERMISSIVE, "min_length": 6}).evaluate(password).passed

    @pytest.mark.parametrize(
        "field",
        ["min_length", "min_letters", "min_lowercase_letters", "min_uppercase_letters",
         "min_numbers", "min_special"],
    )
    def test_raising_minimum_never_turns_fail_into_pass(self, field: str) -> None:
        password = "Abc de1!"
        outcomes = [
            _evaluator(**{**PERMISSIVE, field: threshold}).evaluate(password).passed
            for threshold in range(12)
        ]
        # Once it fails it keeps failing
        first_fail = outcomes.index(False)
        assert all(outcomes[:first_fail])
        assert not any(outcomes[first_fail:])

    @pytest.mark.parametrize("field", ["max_consecutive_whitespace", "max_consecutive_identical"])
    def test_lowering_maximum_never_turns_fail_into_pass(self, field: str) -> None:
        password = "aaa   bbbb"
        outcomes = [
            _evaluator(**{**PERMISSIVE, field: threshold}).evaluate(password).passed
            for threshold in range(6, -1, -1)
        ]
        first_fail = outcomes.index(False)
        assert all(outcomes[:first_fail])
        assert not any(outcomes[first_fail:])

    def test_non_latin_letters(self) -> None:
        greek = "αβγδεζηθικ"
        assert _evaluator(**{**PERMISSIVE, "min_letters": 5}).evaluate(greek).passed
        result = _evaluator(**{**PERMISSIVE, "min_letters": 5, "min_numbers": 1}).evaluate(greek)
        assert result.keys == ["min_numbers"]

    def test_violation_params_read_only(self) -> None:
        result = _evaluator(min_length=8).evaluate("abc")
        assert result.primary is not None
        with pytest.raises(TypeError):
            result.primary.params["min"] = 1  # type: ignore[index]

    def test_config_messages_cannot_change_under_evaluator(self) -> None:
        config = PolicyConfig(min_length=8)
        evaluator = PolicyEvaluator(config)
        before = evaluator.primary_message(evaluator.evaluate("abc"))
        with pytest.raises(TypeError):
            config.messages[ViolationKind.MIN_LENGTH] = "changed"  # type: ignore[index]
        assert evaluator.primary_message(evaluator.evaluate("abc")) == before
        assert before.endswith("The password must be at least 8 characters.")

    def test_non_string_is_type_error(self, default_evaluator: PolicyEvaluator) -> None:
        with pytest.raises(TypeError, match="must be a string"):
            default_evaluator.evaluate(b"bytes-password")  # type: ignore[arg-type]

    def test_shared_across_threads(self, strict_evaluator: PolicyEvaluator) -> None:
        passwords = ["Tr0ub4dor&3", "short", "NoDigits!!", "Okay 1234x"] * 25
        expected = [strict_evaluator.evaluate(p) for p in passwords]
        with ThreadPoolExecutor(max_workers=8) as pool:
            actual = list(pool.map(strict_evaluator.evaluate, passwords))
        assert actual == expected


class TestMessages:
    """Rendering through the formatter."""

    def test_primary_message_min_length(self) -> None:
        evaluator = _evaluator(min_length=8)
        result = evaluator.evaluate("abc")
        assert evaluator.primary_message(result) == (
            "The password is not good enough: The password must be at least 8 characters."
        )

    def test_primary_message_singular(self) -> None:
        evaluator = _evaluator(min_numbers=1)
        result = evaluator.evaluate("abcdefgh")
        assert evaluator.primary_message(result) == (
            "The password is not good enough: The password must contain numbers."
        )

    def test_primary_message_plural(self) -> None:
        evaluator = _evaluator(min_numbers=3)
        result = evaluator.evaluate("abcdefg1")
        assert evaluator.primary_message(result).endswith(
            "The password must contain at least 3 numbers."
        )

    def test_max_zero_uses_plural(self) -> None:
        evaluator = _evaluator(max_consecutive_whitespace=0)
        result = evaluator.evaluate("abc def")
        assert evaluator.messages(result) == [
            "The password can not contain more than 0 consecutive spaces."
        ]

    def test_passing_result_has_empty_error(self, default_evaluator: PolicyEvaluator) -> None:
        result = default_evaluator.evaluate("long enough")
        assert default_evaluator.primary_message(result) == "The password is not good enough: "

    def test_messages_lists_all(self, strict_evaluator: PolicyEvaluator) -> None:
        result = strict_evaluator.evaluate("abc")
        messages = strict_evaluator.messages(result)
        assert len(messages) == len(result.violations)
        assert messages[0] == "The password must be at least 8 characters."

    def test_custom_templates(self) -> None:
        evaluator = PolicyEvaluator(load_policy(FIXTURES / "custom_messages_policy.yaml"))
        result = evaluator.evaluate("abc1")
        assert evaluator.messages(result) == [
            "Use 10 characters or more.",
            "Add at least 2 digits.",
        ]

    def test_custom_formatter(self) -> None:
        calls: list[tuple[str, int, dict]] = []

        def formatter(template: MessageTemplate, quantity: int, params: Mapping[str, object]) -> str:
            calls.append((template.plural, quantity, dict(params)))
            return f"<{quantity}>"

        evaluator = PolicyEvaluator(PolicyConfig(min_length=8), formatter=formatter)
        result = evaluator.evaluate("abc")
        assert evaluator.primary_message(result) == "<1>"
        assert calls[0] == ("The password must be at least :min characters.", 8, {"min": 8})
        assert calls[1][2] == {"error": "<8>"}
