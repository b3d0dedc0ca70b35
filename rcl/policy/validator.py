"""
Policy validation.

Validates a whole policy document and reports every violation with the
field it belongs to (e.g. "Rules[0].condition"). Any violation invalidates
the document.

Usage:
    result = validate_policy(load_policy("policy.yaml"))
    if not result.is_valid:
        print(format_validation_errors(result.errors))
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Iterable, Iterator

from ..codec.effects import validate_effect
from ..codec.errors import UnresolvedReferenceError
from ..codec.references import validate_values_to_pass
from ..codec.symbols import SymbolContext, SymbolRegistry
from ..codec.trackers import encode_mapped_tracker_values, validate_tracker_value
from ..codec.types import ValidationError, ValidationErrorCode, ValidationResult
from ..codec.validation import validate_condition
from ..config.constants import (
    SUPPORTED_PARAMETER_TYPES,
    SUPPORTED_TRACKER_TYPES,
    split_function_parameters,
)
from .document import PolicyDocument, build_registry

logger = logging.getLogger(__name__)

_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")


def _error(code: ValidationErrorCode, message: str, location: str, token: str | None = None) -> ValidationError:
    return ValidationError(code=code, message=message, location=location, token=token)


def _duplicates(section: str, names: Iterable[str]) -> Iterator[ValidationError]:
    names = list(names)
    for name, count in Counter(names).items():
        if count > 1:
            index = names.index(name)
            yield _error(
                ValidationErrorCode.REFERENCE,
                f"Name '{name}' is declared {count} times",
                f"{section}[{index}].name",
                token=name,
            )


def _unsupported_parameters(signature: str, location: str) -> Iterator[ValidationError]:
    for type_name in split_function_parameters(signature):
        if type_name not in SUPPORTED_PARAMETER_TYPES:
            yield _error(
                ValidationErrorCode.UNSUPPORTED_TYPE,
                f"Unsupported argument type '{type_name}'",
                location,
                token=type_name,
            )


def _context(registry: SymbolRegistry, reference: str, location: str, errors: list) -> SymbolContext | None:
    try:
        return registry.context_for(reference)
    except UnresolvedReferenceError as e:
        errors.append(_error(ValidationErrorCode.REFERENCE, str(e), location, token=reference))
        return None


# =============================================================================
# Sections
# =============================================================================

def _check_calling_functions(document: PolicyDocument) -> Iterator[ValidationError]:
    yield from _duplicates("CallingFunctions", (e.name for e in document.calling_functions))
    for i, entry in enumerate(document.calling_functions):
        if not entry.name:
            yield _error(ValidationErrorCode.GRAMMAR, "Calling function has no name", f"CallingFunctions[{i}].name")
        yield from _unsupported_parameters(
            entry.function_signature, f"CallingFunctions[{i}].functionSignature"
        )
        for pair in filter(None, (p.strip() for p in entry.encoded_values.split(","))):
            type_name = pair.split()[0]
            if type_name not in SUPPORTED_PARAMETER_TYPES:
                yield _error(
                    ValidationErrorCode.UNSUPPORTED_TYPE,
                    f"Unsupported argument type '{type_name}'",
                    f"CallingFunctions[{i}].encodedValues",
                    token=type_name,
                )


def _check_foreign_calls(document: PolicyDocument, registry: SymbolRegistry) -> Iterator[ValidationError]:
    yield from _duplicates("ForeignCalls", (e.name for e in document.foreign_calls))
    for i, entry in enumerate(document.foreign_calls):
        location = f"ForeignCalls[{i}]"
        yield from _unsupported_parameters(entry.function, f"{location}.function")
        if not _ADDRESS.match(entry.address):
            yield _error(
                ValidationErrorCode.GRAMMAR,
                "Address is invalid",
                f"{location}.address",
                token=entry.address,
            )

        errors: list[ValidationError] = []
        context = _context(registry, entry.calling_function, f"{location}.callingFunction", errors)
        yield from errors
        if context is None:
            continue
        yield from validate_values_to_pass(
            entry.values_to_pass, context, f"{location}.valuesToPass"
        ).errors
        yield from validate_values_to_pass(
            entry.mapped_tracker_key_values, context, f"{location}.mappedTrackerKeyValues"
        ).errors


def _check_trackers(document: PolicyDocument) -> Iterator[ValidationError]:
    names = [e.name for e in document.trackers] + [e.name for e in document.mapped_trackers]
    yield from _duplicates("Trackers", names)

    for i, entry in enumerate(document.trackers):
        location = f"Trackers[{i}]"
        if entry.type not in SUPPORTED_TRACKER_TYPES:
            yield _error(
                ValidationErrorCode.UNSUPPORTED_TYPE,
                f"Unsupported tracker type '{entry.type}'",
                f"{location}.type",
                token=entry.type,
            )
        elif not validate_tracker_value(entry.type, entry.initial_value):
            yield _error(
                ValidationErrorCode.TRACKER_VALUE,
                "Initial Value doesn't match type",
                f"{location}.initialValue",
                token=entry.initial_value,
            )

    for i, entry in enumerate(document.mapped_trackers):
        location = f"MappedTrackers[{i}]"
        bad_type = False
        for attr, type_name in (("keyType", entry.key_type), ("valueType", entry.value_type)):
            if type_name not in SUPPORTED_TRACKER_TYPES:
                bad_type = True
                yield _error(
                    ValidationErrorCode.UNSUPPORTED_TYPE,
                    f"Unsupported tracker type '{type_name}'",
                    f"{location}.{attr}",
                    token=type_name,
                )
        if bad_type:
            continue
        try:
            encode_mapped_tracker_values(
                entry.key_type, entry.value_type, entry.initial_keys, entry.initial_values
            )
        except ValueError as e:
            yield _error(ValidationErrorCode.TRACKER_VALUE, str(e), f"{location}.initialValues")


def _check_rules(document: PolicyDocument, registry: SymbolRegistry) -> Iterator[ValidationError]:
    for i, rule in enumerate(document.rules):
        location = f"Rules[{i}]"
        errors: list[ValidationError] = []
        context = _context(registry, rule.calling_function, f"{location}.callingFunction", errors)
        yield from errors
        if context is None:
            continue

        yield from validate_condition(rule.condition, context, f"{location}.condition").errors
        for attr, effects in (("positiveEffects", rule.positive_effects), ("negativeEffects", rule.negative_effects)):
            for j, effect in enumerate(effects):
                yield from validate_effect(effect, context, f"{location}.{attr}[{j}]").errors


# =============================================================================
# Entry point
# =============================================================================

def validate_policy(document: PolicyDocument) -> ValidationResult:
    """
    Validate a whole policy document.

    Args:
        document: Parsed policy

    Returns:
        ValidationResult with one error per violation, each naming its field
    """
    errors: list[ValidationError] = []
    registry = build_registry(document, errors=errors)

    errors.extend(_check_calling_functions(document))
    errors.extend(_check_foreign_calls(document, registry))
    errors.extend(_check_trackers(document))
    errors.extend(_check_rules(document, registry))

    result = ValidationResult.from_errors(errors)
    logger.debug(
        "Validated policy %r: %d rule(s), %d error(s)",
        document.policy or document.source, len(document.rules), len(errors),
    )
    return result
