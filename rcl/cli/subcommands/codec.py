"""Condition subcommand handlers for the rule codec CLI."""

from __future__ import annotations

from rich.panel import Panel

from rcl.cli.utils import console
from rcl.cli.subcommands._helpers import (
    _json_result,
    _load_policy_arg,
    _print_result,
    _print_validation_errors,
)


def _render_group(group) -> str:
    return " ".join(item if isinstance(item, str) else item.text for item in group)


def handle_check(args) -> int:
    """
    Handle `check` subcommand - validate one condition.

    Without --function only the grammar is checked. With --function the
    condition is also resolved against that calling function's symbols in
    the policy (argument, RCL_POLICY).
    """
    from rcl.codec.errors import RclError
    from rcl.codec.grammar import check_grammar
    from rcl.codec.validation import validate_condition
    from rcl.policy.document import build_registry

    text = args.condition
    json_output = getattr(args, "json_output", False)

    if not getattr(args, "function", None):
        grammar = check_grammar(text)
        if json_output:
            return _json_result(
                grammar.valid,
                "Grammar valid" if grammar.valid else (grammar.reason or "Grammar invalid"),
                {"condition": text, "groups": [_render_group(g) for g in grammar.groups]},
            )
        if grammar.valid:
            return _print_result(True, f"Grammar valid: {text}")
        return _print_result(False, grammar.reason or "Grammar invalid")

    document = _load_policy_arg(getattr(args, "policy", None))
    if document is None:
        return 1

    try:
        context = build_registry(document).context_for(args.function)
    except (RclError, ValueError) as e:
        return _json_result(False, str(e)) if json_output else _print_result(False, str(e))

    result = validate_condition(text, context)
    if json_output:
        return _json_result(
            result.is_valid,
            "Condition valid" if result.is_valid else f"{len(result.errors)} error(s)",
            result.to_dict(),
        )

    console.print(Panel(
        f"[bold cyan]{text}[/]\n[dim]Calling function: {context.calling_function}[/]",
        border_style="cyan",
    ))
    if result.is_valid:
        return _print_result(True, "Condition valid")
    _print_validation_errors(result)
    return _print_result(False, f"{len(result.errors)} error(s)")
