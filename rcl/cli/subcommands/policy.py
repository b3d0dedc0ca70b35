"""Policy subcommand handlers for the rule codec CLI."""

from __future__ import annotations

import json
from pathlib import Path

from rich.table import Table

from rcl.cli.utils import console, print_error, print_header
from rcl.cli.subcommands._helpers import (
    _json_dump,
    _json_result,
    _load_policy_arg,
    _print_result,
    _print_validation_errors,
)
from rcl.utils.logger import get_logger


def handle_validate(args) -> int:
    """Handle `validate` subcommand - validate a whole policy document."""
    from rcl.policy.validator import validate_policy

    document = _load_policy_arg(getattr(args, "policy", None))
    if document is None:
        return 1

    result = validate_policy(document)
    if getattr(args, "json_output", False):
        return _json_result(
            result.is_valid,
            "Policy valid" if result.is_valid else f"{len(result.errors)} error(s)",
            result.to_dict(),
        )

    print_header(
        f"Policy: {document.policy or document.source}",
        f"{len(document.rules)} rule(s) | {len(document.foreign_calls)} foreign call(s) | "
        f"{len(document.trackers) + len(document.mapped_trackers)} tracker(s)",
    )
    if result.is_valid:
        return _print_result(True, "Policy valid")

    _print_validation_errors(result)
    for error in result.errors:
        get_logger().rule("INVALID", error.location or "", message=error.message)
    return _print_result(False, f"{len(result.errors)} error(s)")


def handle_compile(args) -> int:
    """
    Handle `compile` subcommand - compile policy rules to bytecode.

    Writes {"policy": ..., "rules": [...]} to --output, or prints it.
    """
    from rcl.codec.errors import RclError
    from rcl.policy.rules import compile_policy

    document = _load_policy_arg(getattr(args, "policy", None))
    if document is None:
        return 1

    rule_name = getattr(args, "rule", None)
    if rule_name and document.rule(rule_name) is None:
        print_error(f"Rule '{rule_name}' not found", f"Rules: {', '.join(r.name for r in document.rules)}")
        return 1

    try:
        compiled = compile_policy(document)
    except RclError as e:
        errors = getattr(e, "errors", ())
        if errors:
            from rcl.codec.types import ValidationResult
            _print_validation_errors(ValidationResult.from_errors(errors), title="Compile Errors")
        return _print_result(False, f"Policy does not compile: {type(e).__name__}")

    if rule_name:
        compiled = tuple(r for r in compiled if r.name == rule_name)

    logger = get_logger()
    for rule in compiled:
        logger.rule(
            "COMPILED",
            rule.name,
            cells=len(rule.condition.instruction_set),
            placeholders=len(rule.condition.placeholders),
            effects=len(rule.positive_effects) + len(rule.negative_effects),
        )

    output = {"policy": document.policy, "rules": [r.to_dict() for r in compiled]}
    output_path = getattr(args, "output", None)
    if output_path:
        Path(output_path).write_text(_json_dump(output) + "\n", encoding="utf-8")
        return _print_result(True, f"Compiled {len(compiled)} rule(s) to {output_path}")

    print(_json_dump(output))
    return 0


def handle_decompile(args) -> int:
    """Handle `decompile` subcommand - render compiled rules back to text."""
    from rcl.codec.errors import RclError
    from rcl.policy.rules import CompiledRule, decompile_policy

    document = _load_policy_arg(getattr(args, "policy", None))
    if document is None:
        return 1

    try:
        raw = json.loads(Path(args.compiled).read_text(encoding="utf-8"))
        compiled = tuple(CompiledRule.from_dict(r) for r in raw.get("rules", []))
    except (OSError, ValueError, KeyError) as e:
        print_error(f"Failed to read compiled rules: {e}")
        return 1

    try:
        rules = decompile_policy(compiled, document)
    except (RclError, ValueError) as e:
        return _print_result(False, str(e))

    if getattr(args, "json_output", False):
        return _json_result(True, f"Decompiled {len(rules)} rule(s)", [r.to_dict() for r in rules])

    table = Table(title=f"Rules ({len(rules)})")
    table.add_column("Rule", style="cyan")
    table.add_column("Function", style="dim")
    table.add_column("Condition", style="white")
    table.add_column("Positive", style="green")
    table.add_column("Negative", style="red")
    for rule in rules:
        table.add_row(
            rule.name,
            rule.calling_function,
            rule.condition,
            "\n".join(rule.positive_effects),
            "\n".join(rule.negative_effects),
        )
    console.print(table)
    return 0


def handle_config(args) -> int:
    """Handle `config` subcommand - show the active configuration."""
    from rcl.config.config import get_config

    config = get_config()
    console.print(config.summary())
    is_valid, _ = config.validate()
    return 0 if is_valid else 1
