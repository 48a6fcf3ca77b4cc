"""Structured audit logging for password evaluations.

Logs every evaluation outcome as structured JSON. Writes to stderr (via
rich) for human-readable output, and optionally to a JSON Lines file for
machine consumption. The password itself is never logged: entries carry
only the pass/fail outcome and the violated check keys.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any

from rich.console import Console

from pwpolicy.policy.engine import EvaluationResult

# Human-readable output goes to stderr; stdout is reserved for --json output
_console = Console(stderr=True)


class AuditLogger:
    """Logs policy loads and evaluation outcomes.

    Attributes:
        log_file: Optional open file handle for JSON Lines output.
    """

    def __init__(self, log_path: Path | None = None, *, quiet: bool = False) -> None:
        """Initialize the audit logger.

        Args:
            log_path: Optional path to write structured JSON Lines audit log.
                      If None, only logs to stderr via rich console.
            quiet: Suppress the stderr output (the log file is still written).
        """
        self._log_file: IO[str] | None = None
        self._quiet = quiet
        if log_path is not None:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            self._log_file = open(log_path, "a", encoding="utf-8")  # noqa: SIM115

    def close(self) -> None:
        """Flush and close the log file if open."""
        if self._log_file is not None:
            self._log_file.flush()
            self._log_file.close()
            self._log_file = None

    def __enter__(self) -> AuditLogger:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def log_policy_loaded(self, policy_path: Path | None) -> None:
        """Log which policy is in effect.

        Args:
            policy_path: Path to the loaded policy, or None for the built-in default.
        """
        entry = {
            "timestamp": _now_iso(),
            "event": "policy_loaded",
            "policy_path": str(policy_path) if policy_path else None,
        }
        self._write_entry(entry)

        if self._quiet:
            return
        if policy_path:
            _console.print(f"[dim]Policy: {policy_path}[/dim]", highlight=False)
        else:
            _console.print("[dim]Policy: built-in defaults[/dim]", highlight=False)

    def log_evaluation(self, result: EvaluationResult, subject: str | None = None) -> None:
        """Log the outcome of one evaluation.

        Args:
            result: The evaluation result.
            subject: Optional label for what was evaluated (e.g. a username).
        """
        entry: dict[str, Any] = {
            "timestamp": _now_iso(),
            "event": "evaluation",
            "subject": subject,
            "passed": result.passed,
            "violations": result.keys,
        }
        self._write_entry(entry)

        if self._quiet:
            return
        label = f" {subject}" if subject else ""
        if result.passed:
            _console.print(f"  [#00ff88]✓ PASS[/#00ff88]{label}", highlight=False)
        else:
            _console.print(f"  [bold red]✗ FAIL[/bold red]{label}", highlight=False)
            _console.print(f"    [dim]{', '.join(result.keys)}[/dim]", highlight=False)

    def _write_entry(self, entry: dict[str, Any]) -> None:
        """Write a structured JSON entry to the log file.

        If the write fails (disk full, permission error, etc.), reports the
        failure to stderr and continues. Audit I/O errors never reach the
        caller.

        Args:
            entry: The log entry as a dictionary.
        """
        if self._log_file is not None:
            try:
                self._log_file.write(json.dumps(entry, default=str) + "\n")
                self._log_file.flush()
            except (OSError, ValueError) as e:
                # OSError: disk full, permission denied, etc.
                # ValueError: I/O operation on closed file
                _console.print(
                    f"[bold red]Audit log write failed:[/bold red] {e}",
                    highlight=False,
                )
                try:
                    self._log_file.close()
                except (OSError, ValueError):
                    pass
                self._log_file = None


def _now_iso() -> str:
    """Return the current UTC timestamp in ISO 8601 format."""
    return datetime.now(timezone.utc).isoformat()
