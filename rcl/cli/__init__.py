"""
CLI modules for the rule codec.

This package contains:
- utils: shared rich console and display helpers
- argparser: argument parser setup
- subcommands/: subcommand handlers
"""

from .utils import (
    console,
    apply_output_config,
    print_header,
    print_error,
)

__all__ = [
    "console",
    "apply_output_config",
    "print_header",
    "print_error",
]
