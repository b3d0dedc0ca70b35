"""
Argument parser setup for the rule codec CLI.

Defines all subcommands and their arguments:
- check: Grammar (and optionally reference) check of one condition
- validate: Whole-policy validation
- compile: Policy rules to bytecode JSON
- decompile: Bytecode JSON back to rule text
- config: Show active configuration
"""

import argparse


def build_parser() -> argparse.ArgumentParser:
    """Build the rcl_cli argument parser."""
    parser = argparse.ArgumentParser(
        description="RCL - Rule Condition Language codec",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python rcl_cli.py check "(value > 100 AND FC:IsAllowed!bool == true) OR GV:MSG_SENDER == to"
  python rcl_cli.py check "TR:Balances(to) > 10" --policy policy.yaml --function transfer
  python rcl_cli.py validate policy.yaml
  python rcl_cli.py compile policy.yaml --rule Limit --output compiled.json
  python rcl_cli.py decompile compiled.json --policy policy.yaml
        """
    )

    # Verbosity: mutually exclusive group (-q / -v / --debug)
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Quiet mode: WARNING only, minimal output"
    )
    verbosity.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="Verbose mode: INFO"
    )
    verbosity.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Debug mode: full DEBUG including compile/decompile traces"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    _setup_check_subcommand(subparsers)
    _setup_policy_subcommands(subparsers)

    return parser


def _setup_check_subcommand(subparsers) -> None:
    """Set up the check subcommand."""
    check_parser = subparsers.add_parser("check", help="Check one condition")
    check_parser.add_argument("condition", help="Condition text (quote it)")
    check_parser.add_argument("--policy", help="Policy file for reference checks (default: RCL_POLICY)")
    check_parser.add_argument("--function", help="Calling function whose symbols the condition uses")
    check_parser.add_argument("--json", action="store_true", dest="json_output", help="Output results as JSON")


def _setup_policy_subcommands(subparsers) -> None:
    """Set up validate, compile, decompile and config subcommands."""
    validate_parser = subparsers.add_parser("validate", help="Validate a policy document")
    validate_parser.add_argument("policy", nargs="?", help="Policy file (YAML or JSON; default: RCL_POLICY)")
    validate_parser.add_argument("--json", action="store_true", dest="json_output", help="Output results as JSON")

    compile_parser = subparsers.add_parser("compile", help="Compile policy rules to bytecode")
    compile_parser.add_argument("policy", nargs="?", help="Policy file (YAML or JSON; default: RCL_POLICY)")
    compile_parser.add_argument("--rule", help="Compile only the rule with this Name")
    compile_parser.add_argument("--output", "-o", help="Write compiled JSON to this file")

    decompile_parser = subparsers.add_parser("decompile", help="Decompile compiled rules back to text")
    decompile_parser.add_argument("compiled", help="Compiled JSON written by `compile`")
    decompile_parser.add_argument("--policy", help="Policy declaring the symbols (default: RCL_POLICY)")
    decompile_parser.add_argument("--json", action="store_true", dest="json_output", help="Output results as JSON")

    subparsers.add_parser("config", help="Show active configuration")
