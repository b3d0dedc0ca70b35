"""
Policy document model.

A policy document declares calling functions, foreign calls, trackers,
mapped trackers and the rules that use them. Keys follow the JSON policy
format:

    Policy: "Transfer policy"
    Description: "..."
    PolicyType: "open"
    CallingFunctions:
      - name: transfer
        functionSignature: "transfer(address,uint256)"
        encodedValues: "address to, uint256 value"
    ForeignCalls:
      - name: IsAllowed
        function: "isAllowed(address)"
        address: "0x..."
        returnType: bool
        valuesToPass: "to"
        mappedTrackerKeyValues: ""
        callingFunction: transfer
    Trackers:
      - {name: TotalVolume, type: uint256, initialValue: "0"}
    MappedTrackers:
      - {name: Balances, keyType: address, valueType: uint256,
         initialKeys: [], initialValues: []}
    Rules:
      - Name: "Limit"
        Description: "..."
        condition: "value > 100"
        positiveEffects: ["revert(\"too large\")"]
        negativeEffects: []
        callingFunction: transfer

YAML and JSON documents are both read with yaml.safe_load.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..codec.symbols import (
    CallingFunctionSymbol,
    ForeignCallSymbol,
    MappedTrackerSymbol,
    SymbolRegistry,
    TrackerSymbol,
)
from ..codec.errors import TypeCoercionError
from ..codec.types import PType, ValidationError, ValidationErrorCode


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def _text_list(value: Any, location: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValueError(f"{location} must be a list, got {type(value).__name__}")
    return tuple(_text(v) for v in value)


# =============================================================================
# Entries
# =============================================================================

@dataclass(frozen=True)
class CallingFunctionEntry:
    """A CallingFunctions entry."""
    name: str
    function_signature: str = ""
    encoded_values: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "CallingFunctionEntry":
        """Create from dict."""
        return cls(
            name=_text(d.get("name")),
            function_signature=_text(d.get("functionSignature")),
            encoded_values=_text(d.get("encodedValues")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "name": self.name,
            "functionSignature": self.function_signature,
            "encodedValues": self.encoded_values,
        }


@dataclass(frozen=True)
class ForeignCallEntry:
    """A ForeignCalls entry."""
    name: str
    function: str = ""
    address: str = ""
    return_type: str = ""
    values_to_pass: str = ""
    mapped_tracker_key_values: str = ""
    calling_function: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "ForeignCallEntry":
        """Create from dict."""
        return cls(
            name=_text(d.get("name")),
            function=_text(d.get("function")),
            address=_text(d.get("address")),
            return_type=_text(d.get("returnType")),
            values_to_pass=_text(d.get("valuesToPass")),
            mapped_tracker_key_values=_text(d.get("mappedTrackerKeyValues")),
            calling_function=_text(d.get("callingFunction")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "name": self.name,
            "function": self.function,
            "address": self.address,
            "returnType": self.return_type,
            "valuesToPass": self.values_to_pass,
            "mappedTrackerKeyValues": self.mapped_tracker_key_values,
            "callingFunction": self.calling_function,
        }


@dataclass(frozen=True)
class TrackerEntry:
    """A Trackers entry."""
    name: str
    type: str = ""
    initial_value: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "TrackerEntry":
        """Create from dict."""
        return cls(
            name=_text(d.get("name")),
            type=_text(d.get("type")),
            initial_value=_text(d.get("initialValue")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {"name": self.name, "type": self.type, "initialValue": self.initial_value}


@dataclass(frozen=True)
class MappedTrackerEntry:
    """A MappedTrackers entry."""
    name: str
    key_type: str = ""
    value_type: str = ""
    initial_keys: tuple[str, ...] = ()
    initial_values: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, d: dict[str, Any], location: str = "MappedTrackers") -> "MappedTrackerEntry":
        """Create from dict."""
        return cls(
            name=_text(d.get("name")),
            key_type=_text(d.get("keyType")),
            value_type=_text(d.get("valueType")),
            initial_keys=_text_list(d.get("initialKeys"), f"{location}.initialKeys"),
            initial_values=_text_list(d.get("initialValues"), f"{location}.initialValues"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "name": self.name,
            "keyType": self.key_type,
            "valueType": self.value_type,
            "initialKeys": list(self.initial_keys),
            "initialValues": list(self.initial_values),
        }


@dataclass(frozen=True)
class RuleEntry:
    """A Rules entry (text form)."""
    name: str
    description: str = ""
    condition: str = ""
    positive_effects: tuple[str, ...] = ()
    negative_effects: tuple[str, ...] = ()
    calling_function: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any], location: str = "Rules") -> "RuleEntry":
        """Create from dict."""
        return cls(
            name=_text(d.get("Name")),
            description=_text(d.get("Description")),
            condition=_text(d.get("condition")),
            positive_effects=_text_list(d.get("positiveEffects"), f"{location}.positiveEffects"),
            negative_effects=_text_list(d.get("negativeEffects"), f"{location}.negativeEffects"),
            calling_function=_text(d.get("callingFunction")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "Name": self.name,
            "Description": self.description,
            "condition": self.condition,
            "positiveEffects": list(self.positive_effects),
            "negativeEffects": list(self.negative_effects),
            "callingFunction": self.calling_function,
        }


# =============================================================================
# Document
# =============================================================================

@dataclass(frozen=True)
class PolicyDocument:
    """A parsed policy document."""
    policy: str = ""
    description: str = ""
    policy_type: str = ""
    calling_functions: tuple[CallingFunctionEntry, ...] = ()
    foreign_calls: tuple[ForeignCallEntry, ...] = ()
    trackers: tuple[TrackerEntry, ...] = ()
    mapped_trackers: tuple[MappedTrackerEntry, ...] = ()
    rules: tuple[RuleEntry, ...] = ()
    source: str | None = field(default=None, compare=False)

    def rule(self, name: str) -> RuleEntry | None:
        """Find a rule by name."""
        for rule in self.rules:
            if rule.name == name:
                return rule
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "Policy": self.policy,
            "Description": self.description,
            "PolicyType": self.policy_type,
            "CallingFunctions": [e.to_dict() for e in self.calling_functions],
            "ForeignCalls": [e.to_dict() for e in self.foreign_calls],
            "Trackers": [e.to_dict() for e in self.trackers],
            "MappedTrackers": [e.to_dict() for e in self.mapped_trackers],
            "Rules": [e.to_dict() for e in self.rules],
        }


def _section(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    entries = data.get(key) or []
    if not isinstance(entries, list):
        raise ValueError(f"{key} must be a list, got {type(entries).__name__}")
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError(f"{key}[{i}] must be a mapping, got {type(entry).__name__}")
    return entries


def parse_policy(data: dict[str, Any], source: str | None = None) -> PolicyDocument:
    """
    Build a PolicyDocument from a loaded mapping.

    Args:
        data: Mapping with the policy keys
        source: Where the mapping came from (for messages)

    Returns:
        PolicyDocument

    Raises:
        ValueError: If the structure is not a policy document
    """
    if not isinstance(data, dict):
        raise ValueError(f"Policy document must be a mapping, got {type(data).__name__}")

    return PolicyDocument(
        policy=_text(data.get("Policy")),
        description=_text(data.get("Description")),
        policy_type=_text(data.get("PolicyType")),
        calling_functions=tuple(
            CallingFunctionEntry.from_dict(d) for d in _section(data, "CallingFunctions")
        ),
        foreign_calls=tuple(
            ForeignCallEntry.from_dict(d) for d in _section(data, "ForeignCalls")
        ),
        trackers=tuple(TrackerEntry.from_dict(d) for d in _section(data, "Trackers")),
        mapped_trackers=tuple(
            MappedTrackerEntry.from_dict(d, f"MappedTrackers[{i}]")
            for i, d in enumerate(_section(data, "MappedTrackers"))
        ),
        rules=tuple(
            RuleEntry.from_dict(d, f"Rules[{i}]")
            for i, d in enumerate(_section(data, "Rules"))
        ),
        source=source,
    )


def load_policy(path: str | Path) -> PolicyDocument:
    """
    Load a policy document from a YAML or JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is empty or not a policy document
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Policy file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    if not raw:
        raise ValueError(f"Empty or invalid policy document in {path}")

    return parse_policy(raw, source=str(path))


# =============================================================================
# Symbol registry
# =============================================================================

def build_registry(
    document: PolicyDocument,
    errors: list[ValidationError] | None = None,
) -> SymbolRegistry:
    """
    Build the symbol registry of a policy.

    Trackers are indexed in declaration order and mapped trackers continue
    the same index space. Foreign call indices are positions in ForeignCalls.

    Args:
        document: Parsed policy
        errors: When given, entries that cannot become symbols are reported
            here and skipped instead of raising

    Returns:
        SymbolRegistry

    Raises:
        ValueError: Malformed encodedValues (only when errors is None)
        TypeCoercionError: Unsupported type name (only when errors is None)
    """
    def fail(e: Exception, code: ValidationErrorCode, location: str) -> None:
        if errors is None:
            raise e
        errors.append(ValidationError(code=code, message=str(e), location=location))

    calling_functions = []
    for i, entry in enumerate(document.calling_functions):
        try:
            calling_functions.append(CallingFunctionSymbol.parse(
                entry.name, entry.encoded_values, entry.function_signature
            ))
        except ValueError as e:
            fail(e, ValidationErrorCode.GRAMMAR, f"CallingFunctions[{i}].encodedValues")

    foreign_calls = []
    for i, entry in enumerate(document.foreign_calls):
        try:
            return_type = PType.from_name(entry.return_type)
        except TypeCoercionError as e:
            fail(e, ValidationErrorCode.UNSUPPORTED_TYPE, f"ForeignCalls[{i}].returnType")
            continue
        foreign_calls.append(ForeignCallSymbol(
            name=entry.name,
            index=i,
            return_type=return_type,
            calling_function=entry.calling_function,
            signature=entry.function,
            values_to_pass=entry.values_to_pass,
        ))

    trackers = tuple(
        TrackerSymbol(name=entry.name, index=i, type_name=entry.type)
        for i, entry in enumerate(document.trackers)
    )
    offset = len(document.trackers)
    mapped_trackers = tuple(
        MappedTrackerSymbol(
            name=entry.name,
            index=offset + j,
            key_type_name=entry.key_type,
            value_type_name=entry.value_type,
        )
        for j, entry in enumerate(document.mapped_trackers)
    )

    return SymbolRegistry(
        calling_functions=tuple(calling_functions),
        foreign_calls=tuple(foreign_calls),
        trackers=trackers,
        mapped_trackers=mapped_trackers,
    )
