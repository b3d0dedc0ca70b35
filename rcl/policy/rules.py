"""
Rule compilation.

compile_rule turns a rule's text (condition plus effects) into bytecode;
decompile_rule turns it back. Each expression is compiled against the
symbol context of the rule's calling function, independently of the
others.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..codec.compiler import compile_condition
from ..codec.decompiler import decompile
from ..codec.effects import decode_effect, encode_effect
from ..codec.symbols import SymbolContext, SymbolRegistry
from ..codec.types import CompiledExpression, Effect
from .document import PolicyDocument, RuleEntry, build_registry
from .validator import validate_policy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledRule:
    """
    A rule in bytecode form.

    Attributes:
        name: Rule name
        description: Rule description
        calling_function: Calling function name the rule is attached to
        condition: Compiled condition
        positive_effects: Effects applied when the condition holds
        negative_effects: Effects applied when it does not
    """
    name: str
    description: str
    calling_function: str
    condition: CompiledExpression
    positive_effects: tuple[Effect, ...] = ()
    negative_effects: tuple[Effect, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "name": self.name,
            "description": self.description,
            "callingFunction": self.calling_function,
            "condition": self.condition.to_dict(),
            "positiveEffects": [e.to_dict() for e in self.positive_effects],
            "negativeEffects": [e.to_dict() for e in self.negative_effects],
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "CompiledRule":
        """Create from dict."""
        return cls(
            name=str(d.get("name", "")),
            description=str(d.get("description", "")),
            calling_function=str(d.get("callingFunction", "")),
            condition=CompiledExpression.from_dict(d["condition"]),
            positive_effects=tuple(Effect.from_dict(e) for e in d.get("positiveEffects", [])),
            negative_effects=tuple(Effect.from_dict(e) for e in d.get("negativeEffects", [])),
        )


@dataclass(frozen=True)
class RuleText:
    """A rule rendered back to text."""
    name: str
    description: str
    calling_function: str
    condition: str
    positive_effects: tuple[str, ...] = ()
    negative_effects: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict (policy document Rules form)."""
        return RuleEntry(
            name=self.name,
            description=self.description,
            condition=self.condition,
            positive_effects=self.positive_effects,
            negative_effects=self.negative_effects,
            calling_function=self.calling_function,
        ).to_dict()


def compile_rule(rule: RuleEntry, registry: SymbolRegistry) -> CompiledRule:
    """
    Compile one rule.

    Args:
        rule: Rule in text form
        registry: Symbol registry of the policy

    Returns:
        CompiledRule

    Raises:
        UnresolvedReferenceError: Undeclared calling function or names
        GrammarError: Malformed condition or effect
        TypeCoercionError: Unrepresentable re-typing suffix
    """
    context = registry.context_for(rule.calling_function)
    compiled = CompiledRule(
        name=rule.name,
        description=rule.description,
        calling_function=context.calling_function,
        condition=compile_condition(rule.condition, context),
        positive_effects=tuple(encode_effect(e, context) for e in rule.positive_effects),
        negative_effects=tuple(encode_effect(e, context) for e in rule.negative_effects),
    )
    logger.debug(
        "Compiled rule %r: %d condition cells, %d effect(s)",
        rule.name,
        len(compiled.condition.instruction_set),
        len(compiled.positive_effects) + len(compiled.negative_effects),
    )
    return compiled


def decompile_rule(compiled: CompiledRule, context: SymbolContext) -> RuleText:
    """
    Decompile one rule against its calling function's symbol context.

    Raises:
        UnknownOpcodeError, PlaceholderResolutionError, TypeCoercionError,
        MalformedInstructionSetError: As raised by decompile
    """
    return RuleText(
        name=compiled.name,
        description=compiled.description,
        calling_function=compiled.calling_function,
        condition=decompile(compiled.condition, context),
        positive_effects=tuple(decode_effect(e, context) for e in compiled.positive_effects),
        negative_effects=tuple(decode_effect(e, context) for e in compiled.negative_effects),
    )


def compile_policy(document: PolicyDocument) -> tuple[CompiledRule, ...]:
    """
    Validate a policy and compile all of its rules.

    Raises:
        GrammarError, UnresolvedReferenceError or TypeCoercionError carrying
        every violation when the document is invalid
    """
    result = validate_policy(document)
    if not result.is_valid:
        logger.warning("Policy %r failed validation with %d error(s)", document.policy, len(result.errors))
    result.raise_for_errors()
    registry = build_registry(document)
    return tuple(compile_rule(rule, registry) for rule in document.rules)


def decompile_policy(compiled: tuple[CompiledRule, ...], document: PolicyDocument) -> tuple[RuleText, ...]:
    """Decompile compiled rules against the symbols declared in a policy."""
    registry = build_registry(document)
    return tuple(
        decompile_rule(rule, registry.context_for(rule.calling_function))
        for rule in compiled
    )
