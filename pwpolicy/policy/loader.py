"""YAML policy loading and validation.

Loads password policy files, validates them against the pydantic schema,
and returns a PolicyConfig. Errors are always actionable.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from pwpolicy.policy.schema import ConfigError, PolicyConfig, format_validation_errors

DEFAULT_POLICY_FILENAME = "pwpolicy.yaml"


class PolicyValidationError(ConfigError):
    """Raised when a policy YAML file is malformed or fails validation.

    Attributes:
        path: The path to the policy file that failed validation.
        details: Structured error details from pydantic validation.
    """

    def __init__(self, path: Path, details: list[dict[str, Any]], message: str) -> None:
        self.path = path
        super().__init__(message, details=details)


def load_policy(path: Path) -> PolicyConfig:
    """Load and validate a password policy from a YAML file.

    Args:
        path: Path to the policy file.

    Returns:
        A validated PolicyConfig.

    Raises:
        FileNotFoundError: If the policy file doesn't exist (with actionable message).
        PolicyValidationError: If the YAML is malformed or fails schema validation.
    """
    if not path.exists():
        raise FileNotFoundError(
            f"Policy file not found at {path}. "
            f"Create one with `pwpolicy init`, or specify a path with --policy."
        )

    raw_text = path.read_text(encoding="utf-8")

    try:
        raw_data = yaml.safe_load(raw_text)
    except yaml.YAMLError as e:
        raise PolicyValidationError(
            path=path,
            details=[{"type": "yaml_parse_error", "msg": str(e)}],
            message=f"Failed to parse YAML in {path}: {e}",
        ) from e

    if raw_data is None:
        raise PolicyValidationError(
            path=path,
            details=[{"type": "empty_file"}],
            message=f"Policy file {path} is empty. It must contain at least one threshold.",
        )

    if not isinstance(raw_data, dict):
        raise PolicyValidationError(
            path=path,
            details=[{"type": "not_a_mapping", "got": type(raw_data).__name__}],
            message=(
                f"Policy file {path} must contain a YAML mapping (key-value pairs) "
                f"at the top level, got {type(raw_data).__name__}."
            ),
        )

    try:
        return PolicyConfig.model_validate(raw_data)
    except ValidationError as e:
        error_details = e.errors()
        raise PolicyValidationError(
            path=path,
            details=error_details,
            message=(
                f"Policy validation failed for {path}:\n"
                f"{format_validation_errors(error_details)}"
            ),
        ) from e


def dump_policy(config: PolicyConfig) -> str:
    """Serialize a policy to YAML in the format ``load_policy`` reads back."""
    data = config.model_dump(mode="json")
    if not data["messages"]:
        del data["messages"]
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
