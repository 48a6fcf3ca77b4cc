"""pwpolicy CLI entry point.

Provides the `pwpolicy` command with subcommands:
  - check: Evaluate a password against a policy
  - show: Print the effective policy thresholds
  - init: Write a default policy YAML to edit
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from pwpolicy import __version__
from pwpolicy.policy.engine import EvaluationResult, PolicyEvaluator
from pwpolicy.policy.schema import ConfigError, PolicyConfig

app = typer.Typer(
    name="pwpolicy",
    help="Check passwords against a configurable strength policy.",
    no_args_is_help=True,
)

_console = Console(stderr=True)

# Exit code for a malformed or missing policy (1 means the password failed)
EXIT_CONFIG_ERROR = 2

PolicyOption = Annotated[
    Optional[Path],
    typer.Option(
        "--policy",
        "-p",
        help="Path to a policy YAML file. Without this, the built-in defaults apply.",
    ),
]


def _version_callback(value: bool) -> None:
    if value:
        _console.print(f"pwpolicy {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """pwpolicy: password strength policy checks."""


def _load_config(policy: Path | None) -> PolicyConfig:
    """Load the policy file, or the defaults when no path is given.

    Exits with EXIT_CONFIG_ERROR on a missing or invalid file.
    """
    if policy is None:
        return PolicyConfig()

    from pwpolicy.policy.loader import load_policy

    try:
        return load_policy(policy)
    except FileNotFoundError as e:
        _console.print(f"[bold red]Error:[/bold red] {e}", highlight=False)
        raise typer.Exit(EXIT_CONFIG_ERROR) from None
    except ConfigError as e:
        _console.print(f"[bold red]Policy error:[/bold red] {e}", highlight=False)
        raise typer.Exit(EXIT_CONFIG_ERROR) from None


def _result_to_json(evaluator: PolicyEvaluator, result: EvaluationResult) -> dict:
    return {
        "passed": result.passed,
        "message": evaluator.primary_message(result) if not result.passed else None,
        "violations": [
            {
                "key": v.key,
                "quantity": v.quantity,
                "params": dict(v.params),
                "message": evaluator.format(v),
            }
            for v in result.violations
        ],
    }


@app.command()
def check(
    password: Annotated[
        Optional[str],
        typer.Argument(
            help="Password to check. If omitted, you are prompted for it "
            "(input hidden), which keeps it out of shell history.",
        ),
    ] = None,
    policy: PolicyOption = None,
    log: Annotated[
        Optional[Path],
        typer.Option(
            "--log",
            "-l",
            help="Path to write a JSON Lines audit log. The password itself is never logged.",
        ),
    ] = None,
    subject: Annotated[
        Optional[str],
        typer.Option("--subject", "-s", help="Label recorded in the audit log (e.g. a username)."),
    ] = None,
    show_all: Annotated[
        bool,
        typer.Option("--all", "-a", help="Show every violated rule, not just the first."),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print the result as JSON on stdout."),
    ] = False,
) -> None:
    """Check a password against the policy.

    Exits 0 when the password passes, 1 when it fails and 2 when the policy
    file cannot be loaded.

    Examples:
      pwpolicy check                                   # prompt for the password
      pwpolicy check --policy pwpolicy.yaml --all      # list every failed rule
      pwpolicy check --json 'hunter2'                  # machine-readable result
    """
    config = _load_config(policy)
    evaluator = PolicyEvaluator(config)

    if password is None:
        password = typer.prompt("Password", hide_input=True)

    result = evaluator.evaluate(password)

    from pwpolicy.audit.logger import AuditLogger

    with AuditLogger(log_path=log, quiet=json_output) as audit_logger:
        audit_logger.log_policy_loaded(policy)
        audit_logger.log_evaluation(result, subject=subject)

    if json_output:
        typer.echo(json.dumps(_result_to_json(evaluator, result), indent=2))
    elif not result.passed:
        _console.print(evaluator.primary_message(result), highlight=False)
        if show_all:
            for message in evaluator.messages(result):
                _console.print(f"  - {message}", highlight=False)

    if not result.passed:
        raise typer.Exit(1)


@app.command()
def show(policy: PolicyOption = None) -> None:
    """Print the effective policy thresholds."""
    config = _load_config(policy)

    table = Table(title=f"Password policy ({policy or 'built-in defaults'})")
    table.add_column("Rule", style="bold")
    table.add_column("Value", justify="right")
    for name in PolicyConfig.model_fields:
        if name == "messages":
            continue
        value = getattr(config, name)
        table.add_row(name, "disabled" if value is None else str(value))
    _console.print(table)

    for kind, text in config.messages.items():
        _console.print(f"  [dim]{kind.value}:[/dim] {text}", highlight=False)


@app.command()
def init(
    output: Annotated[
        Optional[Path],
        typer.Argument(help="Where to write the policy. Default: ./pwpolicy.yaml"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing file."),
    ] = False,
) -> None:
    """Write a policy YAML with the default thresholds, ready to edit."""
    from pwpolicy.policy.loader import DEFAULT_POLICY_FILENAME, dump_policy

    output_path = output or Path(DEFAULT_POLICY_FILENAME)
    if output_path.exists() and not force:
        _console.print(
            f"[bold red]Error:[/bold red] {output_path} already exists. "
            "Use --force to overwrite.",
            highlight=False,
        )
        raise typer.Exit(1)

    try:
        output_path.write_text(dump_policy(PolicyConfig()), encoding="utf-8")
    except OSError as e:
        _console.print(f"[bold red]Error:[/bold red] Could not write {output_path}: {e}", highlight=False)
        raise typer.Exit(1) from None

    _console.print(f"[#00ff88]Policy written to {output_path}[/#00ff88]", highlight=False)
