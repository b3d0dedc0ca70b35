"""Subcommand handlers for the rule codec CLI.

Re-exports all handle_* functions so callers can use
``from rcl.cli.subcommands import handle_validate``.
"""

from rcl.cli.subcommands.codec import handle_check
from rcl.cli.subcommands.policy import (
    handle_validate,
    handle_compile,
    handle_decompile,
    handle_config,
)

__all__ = [
    # Conditions
    "handle_check",
    # Policies
    "handle_validate",
    "handle_compile",
    "handle_decompile",
    "handle_config",
]
