"""Shared helpers for CLI subcommand handlers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from rich.table import Table

from rcl.cli.utils import console, print_error
from rcl.config.config import get_config

if TYPE_CHECKING:
    from rcl.codec.types import ValidationResult
    from rcl.policy.document import PolicyDocument


def _json_dump(data: Any) -> str:
    return json.dumps(data, indent=get_config().output.indent, default=str)


def _json_result(success: bool, message: str, data: Any = None) -> int:
    """Print a result envelope as JSON and return exit code.

    Standard JSON envelope for --json mode:
    ``{"status": "pass"|"fail", "message": "...", "data": {...}}``
    """
    output = {
        "status": "pass" if success else "fail",
        "message": message,
        "data": data,
    }
    print(_json_dump(output))
    return 0 if success else 1


def _print_result(success: bool, message: str) -> int:
    """Print OK/FAIL status line and return exit code."""
    if success:
        console.print(f"\n[bold green]OK {message}[/]")
        return 0
    else:
        console.print(f"\n[bold red]FAIL {message}[/]")
        return 1


def _print_validation_errors(result: ValidationResult, title: str = "Validation Errors") -> None:
    """Print validation errors as a table (one row per violation)."""
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Code", style="yellow")
    table.add_column("Field", style="cyan")
    table.add_column("Message", style="white")

    for i, error in enumerate(result.errors, 1):
        message = error.message
        if error.suggestions:
            message += f" (did you mean: {', '.join(error.suggestions)}?)"
        table.add_row(str(i), error.code.value, error.location or "", message)

    console.print(table)


def _load_policy_arg(path: str | None) -> PolicyDocument | None:
    """Load the policy named on the command line, or RCL_POLICY.

    Prints the failure and returns None when the policy cannot be loaded.
    """
    from rcl.policy.document import load_policy

    path = path or get_config().policy.default_path
    if not path:
        print_error("No policy given", "Pass a policy file or set RCL_POLICY.")
        return None
    try:
        return load_policy(Path(path))
    except (OSError, ValueError, yaml.YAMLError) as e:
        print_error(f"Failed to load policy: {e}")
        return None
