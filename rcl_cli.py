#!/usr/bin/env python3
"""
RCL - Rule Condition Language CLI

Command-line shell over the rule codec. This is a PURE SHELL - it only:
- Parses arguments
- Loads policies and calls codec functions
- Prints results

NO codec logic lives here. All operations go through rcl/*.

Usage:
  python rcl_cli.py check "value > 100 AND FC:IsAllowed!bool == true"
  python rcl_cli.py check "TR:Balances(to) > 10" --policy policy.yaml --function transfer
  python rcl_cli.py validate policy.yaml [--json]
  python rcl_cli.py compile policy.yaml [--rule NAME] [--output compiled.json]
  python rcl_cli.py decompile compiled.json --policy policy.yaml [--json]
  python rcl_cli.py config
"""

import sys

from rcl.cli.argparser import build_parser
from rcl.cli.utils import apply_output_config, console
from rcl.cli.subcommands import (
    handle_check,
    handle_validate,
    handle_compile,
    handle_decompile,
    handle_config,
)
from rcl.config.config import get_config
from rcl.utils.logger import setup_logger


HANDLERS = {
    "check": handle_check,
    "validate": handle_validate,
    "compile": handle_compile,
    "decompile": handle_decompile,
    "config": handle_config,
}


def _log_level(args, default: str) -> str:
    if args.debug:
        return "DEBUG"
    if args.verbose:
        return "INFO"
    if args.quiet:
        return "WARNING"
    return default


def main(argv=None) -> int:
    """Main entry point."""
    # Parse CLI arguments FIRST (before any config or logging)
    parser = build_parser()
    args = parser.parse_args(argv)

    config = get_config()
    apply_output_config()
    setup_logger(
        log_dir=config.log.log_dir,
        log_level=_log_level(args, config.log.level),
        log_to_file=config.log.log_to_file,
        use_color=not config.output.no_color,
        errors_separately=config.log.log_errors_separately,
    )

    handler = HANDLERS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/]")
        return 130


if __name__ == "__main__":
    sys.exit(main())
