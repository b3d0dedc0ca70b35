"""
Policy documents: loading, validation and rule compilation.
"""

from .document import (
    CallingFunctionEntry,
    ForeignCallEntry,
    TrackerEntry,
    MappedTrackerEntry,
    RuleEntry,
    PolicyDocument,
    parse_policy,
    load_policy,
    build_registry,
)
from .validator import validate_policy
from .rules import (
    CompiledRule,
    RuleText,
    compile_rule,
    decompile_rule,
    compile_policy,
    decompile_policy,
)

__all__ = [
    # Document
    "CallingFunctionEntry",
    "ForeignCallEntry",
    "TrackerEntry",
    "MappedTrackerEntry",
    "RuleEntry",
    "PolicyDocument",
    "parse_policy",
    "load_policy",
    "build_registry",
    # Validation
    "validate_policy",
    # Rules
    "CompiledRule",
    "RuleText",
    "compile_rule",
    "decompile_rule",
    "compile_policy",
    "decompile_policy",
]
