"""
Symbol Tables.

Declarations a rule can reference, scoped per calling function:

- arguments: calling-function parameters, addressed by position
- foreign calls: external call results, addressed by foreign call index
- trackers / mapped trackers: persistent values, sharing one index space

Usage:
    registry = SymbolRegistry(
        calling_functions=(CallingFunctionSymbol.parse("transfer", "address to, uint256 value"),),
        foreign_calls=(ForeignCallSymbol("IsActive", 0, PType.BOOL, calling_function="transfer"),),
    )
    context = registry.context_for("transfer")
    context.argument("value").position   # 1
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .errors import PlaceholderResolutionError, UnresolvedReferenceError
from .types import PType


# =============================================================================
# Symbols
# =============================================================================

@dataclass(frozen=True)
class ArgumentSymbol:
    """A calling-function parameter."""
    name: str
    position: int
    type_name: str

    @property
    def p_type(self) -> PType:
        return PType.from_name(self.type_name)


@dataclass(frozen=True)
class ForeignCallSymbol:
    """
    A foreign call whose result a rule may read.

    Attributes:
        name: Reference name (FC:<name>)
        index: Foreign call index, the placeholder's type-specific index
        return_type: Declared return type
        calling_function: Calling function the call is attached to
        signature: Called function signature (e.g., "isActive(address)")
        values_to_pass: Comma-separated values forwarded to the call
    """
    name: str
    index: int
    return_type: PType
    calling_function: str = ""
    signature: str = ""
    values_to_pass: str = ""


@dataclass(frozen=True)
class TrackerSymbol:
    """A scalar tracker."""
    name: str
    index: int
    type_name: str

    @property
    def p_type(self) -> PType:
        return PType.from_name(self.type_name)


@dataclass(frozen=True)
class MappedTrackerSymbol:
    """A key-addressed tracker."""
    name: str
    index: int
    key_type_name: str
    value_type_name: str

    @property
    def key_type(self) -> PType:
        return PType.from_name(self.key_type_name)

    @property
    def value_type(self) -> PType:
        return PType.from_name(self.value_type_name)


@dataclass(frozen=True)
class CallingFunctionSymbol:
    """A rule entry point and the argument names it exposes."""
    name: str
    signature: str
    arguments: tuple[ArgumentSymbol, ...] = ()

    @classmethod
    def parse(cls, name: str, encoded_values: str, signature: str = "") -> "CallingFunctionSymbol":
        return cls(
            name=name,
            signature=signature or name,
            arguments=parse_function_arguments(encoded_values),
        )


def parse_function_arguments(encoded_values: str) -> tuple[ArgumentSymbol, ...]:
    """
    Parse a calling function's encoded values into argument symbols.

    Args:
        encoded_values: "type name" pairs separated by commas,
            e.g. "address to, uint256 value"

    Returns:
        Argument symbols in declaration order

    Raises:
        ValueError: If an entry is not a "type name" pair
    """
    arguments: list[ArgumentSymbol] = []
    if not encoded_values or not encoded_values.strip():
        return ()
    for position, entry in enumerate(encoded_values.split(",")):
        parts = entry.split()
        if len(parts) != 2:
            raise ValueError(
                f"Invalid argument declaration '{entry.strip()}': expected 'type name'"
            )
        type_name, name = parts
        arguments.append(ArgumentSymbol(name=name, position=position, type_name=type_name))
    return tuple(arguments)


# =============================================================================
# Per-calling-function scope
# =============================================================================

@dataclass(frozen=True)
class SymbolContext:
    """
    Symbol tables scoped to one calling function.

    Placeholder indices are only meaningful relative to a context. Name
    lookups return None when the name is not declared; index lookups raise
    PlaceholderResolutionError when the index is out of range.
    """

    calling_function: str = ""
    arguments: tuple[ArgumentSymbol, ...] = ()
    foreign_calls: tuple[ForeignCallSymbol, ...] = ()
    trackers: tuple[TrackerSymbol, ...] = ()
    mapped_trackers: tuple[MappedTrackerSymbol, ...] = ()

    _by_name: dict = field(init=False, repr=False, compare=False)
    _by_index: dict = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        tracker_indices = [t.index for t in self.trackers] + [m.index for m in self.mapped_trackers]
        if len(tracker_indices) != len(set(tracker_indices)):
            raise ValueError("Trackers and mapped trackers must not share an index")

        by_name = {
            "argument": {a.name: a for a in self.arguments},
            "foreign_call": {f.name: f for f in self.foreign_calls},
            "tracker": {t.name: t for t in self.trackers},
            "mapped_tracker": {m.name: m for m in self.mapped_trackers},
        }
        by_index = {
            "foreign_call": {f.index: f for f in self.foreign_calls},
            "tracker": {t.index: t for t in self.trackers},
            "mapped_tracker": {m.index: m for m in self.mapped_trackers},
        }
        object.__setattr__(self, "_by_name", by_name)
        object.__setattr__(self, "_by_index", by_index)

    # ==================== Name lookups ====================

    def argument(self, name: str) -> ArgumentSymbol | None:
        return self._by_name["argument"].get(name)

    def foreign_call(self, name: str) -> ForeignCallSymbol | None:
        return self._by_name["foreign_call"].get(name)

    def tracker(self, name: str) -> TrackerSymbol | None:
        return self._by_name["tracker"].get(name)

    def mapped_tracker(self, name: str) -> MappedTrackerSymbol | None:
        return self._by_name["mapped_tracker"].get(name)

    def names(self, table: str) -> list[str]:
        """Declared names in a table ("argument", "foreign_call", ...)."""
        return sorted(self._by_name[table])

    # ==================== Index lookups ====================

    def argument_at(self, position: int) -> ArgumentSymbol:
        if not 0 <= position < len(self.arguments):
            raise PlaceholderResolutionError("argument", position, len(self.arguments))
        return self.arguments[position]

    def foreign_call_at(self, index: int) -> ForeignCallSymbol:
        symbol = self._by_index["foreign_call"].get(index)
        if symbol is None:
            raise PlaceholderResolutionError("foreign call", index, len(self.foreign_calls))
        return symbol

    def tracker_at(self, index: int) -> TrackerSymbol:
        symbol = self._by_index["tracker"].get(index)
        if symbol is None:
            raise PlaceholderResolutionError("tracker", index, len(self.trackers))
        return symbol

    def mapped_tracker_at(self, index: int) -> MappedTrackerSymbol:
        symbol = self._by_index["mapped_tracker"].get(index)
        if symbol is None:
            raise PlaceholderResolutionError("mapped tracker", index, len(self.mapped_trackers))
        return symbol

    def is_mapped_tracker_index(self, index: int) -> bool:
        return index in self._by_index["mapped_tracker"]


# =============================================================================
# Policy-wide registry
# =============================================================================

@dataclass(frozen=True)
class SymbolRegistry:
    """
    All declarations of a policy.

    Trackers are policy-wide; foreign calls are scoped to the calling
    function they declare.
    """

    calling_functions: tuple[CallingFunctionSymbol, ...] = ()
    foreign_calls: tuple[ForeignCallSymbol, ...] = ()
    trackers: tuple[TrackerSymbol, ...] = ()
    mapped_trackers: tuple[MappedTrackerSymbol, ...] = ()

    def resolve_calling_function(self, reference: str) -> CallingFunctionSymbol | None:
        """
        Find a calling function by name, signature, or case-insensitive name.

        Args:
            reference: Short name ("transfer") or full signature

        Returns:
            Matching calling function, or None
        """
        reference = (reference or "").strip()
        for cf in self.calling_functions:
            if cf.name == reference:
                return cf
        for cf in self.calling_functions:
            if cf.signature == reference:
                return cf
        lowered = reference.lower()
        for cf in self.calling_functions:
            if cf.name.lower() == lowered:
                return cf
        return None

    def context_for(self, reference: str) -> SymbolContext:
        """
        Build the SymbolContext for a calling function.

        Raises:
            UnresolvedReferenceError: If the calling function is not declared
        """
        cf = self.resolve_calling_function(reference)
        if cf is None:
            raise UnresolvedReferenceError(
                f"Calling function '{reference}' is not declared",
                name=reference,
                kind="calling_function",
            )
        foreign_calls = tuple(
            fc for fc in self.foreign_calls
            if self.resolve_calling_function(fc.calling_function) is cf
        )
        return SymbolContext(
            calling_function=cf.name,
            arguments=cf.arguments,
            foreign_calls=foreign_calls,
            trackers=self.trackers,
            mapped_trackers=self.mapped_trackers,
        )
