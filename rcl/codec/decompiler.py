"""
Bytecode Decompiler: {InstructionSet, Placeholders, RawData} to RCL text.

Simulates the engine's stack machine over the flat instruction stream.
Each instruction reduces its operands into one rendered memory cell; the
last cell is the result. Decompiling bytecode produced by the compiler
yields text that re-validates and re-compiles to the same bytecode.

Rendering:
    literal          decimal, or "original" when raw data covers it
    placeholder      placeholders.decode_placeholder
    TR:M(key)        mapped placeholder with its key cell
    a + b            arithmetic; a non-atomic right operand gets [ ]
    a == b           comparison; a comparison operand gets [ ]
    (a AND b)        logical
    NOT a
    TRU:T += v       tracker update, rewritten from the preceding "TR:T + v"

Literals next to a `!bool` / `!address` placeholder render as
true/false or a checksummed address.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config.constants import COERCIBLE_TYPES, TRACKER_PREFIX, TRACKER_UPDATE_PREFIX
from .errors import MalformedInstructionSetError, PlaceholderResolutionError, UnknownOpcodeError
from .literals import can_coerce_literal, coerce_literal
from .opcodes import OpcodeCategory, OpcodeSpec, compound_symbol, get_opcode_spec, is_known_opcode
from .placeholders import (
    decode_placeholder,
    parse_mapped_index,
    placeholder_from_flags,
    split_retype_suffix,
)
from .symbols import SymbolContext
from .types import CompiledExpression, Opcode, PlaceholderKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MemoryCell:
    """
    One reduced instruction.

    Attributes:
        address: Memory address (instruction ordinal)
        text: Rendered RCL text
        category: Category of the producing opcode
        opcode: Producing opcode
        literal: Raw word of a literal not covered by raw data
        retype: Suffix type of a placeholder cell (e.g., "bool")
        tracker_index: Tracker index of a PLH tracker or PLHM cell
        left: Left operand cell of an operator
        right_text: Rendered right operand of an operator
    """
    address: int
    text: str
    category: OpcodeCategory
    opcode: Opcode
    literal: int | None = None
    retype: str | None = None
    tracker_index: int | None = None
    left: "MemoryCell | None" = None
    right_text: str | None = None

    @property
    def is_atomic(self) -> bool:
        return self.category in (
            OpcodeCategory.LITERAL,
            OpcodeCategory.PLACEHOLDER,
            OpcodeCategory.MAPPED,
        )


def _wrap(cell: MemoryCell) -> str:
    return f"[{cell.text}]"


def _coercible(retype: str | None, literal: int | None) -> bool:
    return retype in COERCIBLE_TYPES and literal is not None and can_coerce_literal(literal, retype)


def _outer_parens_span_all(text: str) -> bool:
    """True when text[0] is "(" and its matching ")" is the last character."""
    if not text.startswith("(") or not text.endswith(")"):
        return False
    depth = 0
    in_string = False
    for i, ch in enumerate(text):
        if ch == '"':
            in_string = not in_string
        elif in_string:
            continue
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i == len(text) - 1
    return False


class _Machine:
    """Decompiler state for one instruction set."""

    def __init__(self, compiled: CompiledExpression, context: SymbolContext):
        self.compiled = compiled
        self.context = context
        # flags-only entries load as TRACKER; the context tells mapped ones apart
        self.placeholders = tuple(
            placeholder_from_flags(p.flags, p.type_specific_index, p.p_type, context)
            if p.kind == PlaceholderKind.TRACKER
            else p
            for p in compiled.placeholders
        )
        self.raw_data = {r.instruction_set_index: r for r in compiled.raw_data}
        self.memory: list[MemoryCell] = []
        self.referenced: set[int] = set()
        self._decoded: dict[int, str] = {}

    # ==================== Lookups ====================

    def _cell(self, address: int, position: int) -> MemoryCell:
        if not 0 <= address < len(self.memory):
            raise MalformedInstructionSetError(
                position, f"operand refers to address {address} before it was produced"
            )
        self.referenced.add(address)
        return self.memory[address]

    def _decoded_placeholder(self, index: int) -> str:
        if index not in self._decoded:
            placeholders = self.placeholders
            if not 0 <= index < len(placeholders):
                raise PlaceholderResolutionError("placeholder", index, len(placeholders))
            self._decoded[index] = decode_placeholder(placeholders[index], self.context)
        return self._decoded[index]

    def _mapped_name(self, tracker_index: int) -> str:
        for i, placeholder in enumerate(self.placeholders):
            if placeholder.kind != PlaceholderKind.MAPPED_TRACKER:
                continue
            parsed = parse_mapped_index(self._decoded_placeholder(i))
            if parsed and parsed[1] == tracker_index:
                return parsed[0]
        return self.context.mapped_tracker_at(tracker_index).name

    # ==================== Run ====================

    def run(self) -> str:
        cells = self.compiled.instruction_set
        if not cells:
            raise MalformedInstructionSetError(0, "instruction set is empty")

        position = 0
        while position < len(cells):
            raw = cells[position]
            if not is_known_opcode(raw):
                logger.critical("Unknown opcode %s at position %d in %s", raw, position, list(cells))
                raise UnknownOpcodeError(raw, position)
            spec = get_opcode_spec(raw)
            operands = tuple(cells[position + 1:position + 1 + spec.arity])
            if len(operands) < spec.arity:
                raise MalformedInstructionSetError(
                    position,
                    f"{spec.opcode.name} needs {spec.arity} operand(s), found {len(operands)}",
                )
            self.memory.append(self._reduce(spec, operands, position))
            position += 1 + spec.arity

        unused = [c.address for c in self.memory[:-1] if c.address not in self.referenced]
        if unused:
            raise MalformedInstructionSetError(
                position, f"value(s) at address {unused} never consumed"
            )

        text = self.memory[-1].text
        if _outer_parens_span_all(text):
            text = text[1:-1]
        return text

    def _reduce(self, spec: OpcodeSpec, operands: tuple[int, ...], position: int) -> MemoryCell:
        address = len(self.memory)
        match spec.category:
            case OpcodeCategory.LITERAL:
                return self._literal(address, operands[0], position + 1)
            case OpcodeCategory.PLACEHOLDER:
                return self._placeholder(address, operands[0], position)
            case OpcodeCategory.MAPPED:
                tracker_index, key_address = operands
                key = self._cell(key_address, position)
                name = self._mapped_name(tracker_index)
                return MemoryCell(
                    address=address,
                    text=f"{TRACKER_PREFIX}{name}({key.text})",
                    category=spec.category,
                    opcode=spec.opcode,
                    tracker_index=tracker_index,
                )
            case OpcodeCategory.UNARY:
                operand = self._cell(operands[0], position)
                return MemoryCell(address, f"NOT {operand.text}", spec.category, spec.opcode)
            case OpcodeCategory.LOGICAL:
                left = self._cell(operands[0], position)
                right = self._cell(operands[1], position)
                return MemoryCell(
                    address, f"({left.text} {spec.symbol} {right.text})", spec.category, spec.opcode
                )
            case OpcodeCategory.ARITHMETIC | OpcodeCategory.COMPARISON | OpcodeCategory.ASSIGNMENT:
                return self._binary(address, spec, operands, position)
            case OpcodeCategory.UPDATE:
                return self._update(address, spec, operands, position)
        raise AssertionError(f"Unhandled opcode category {spec.category}")

    # ==================== Reducers ====================

    def _literal(self, address: int, word: int, operand_position: int) -> MemoryCell:
        raw = self.raw_data.get(operand_position)
        if raw is not None:
            return MemoryCell(address, f'"{raw.original_data}"', OpcodeCategory.LITERAL, Opcode.NUM)
        return MemoryCell(address, str(word), OpcodeCategory.LITERAL, Opcode.NUM, literal=word)

    def _placeholder(self, address: int, index: int, position: int) -> MemoryCell:
        text = self._decoded_placeholder(index)
        placeholder = self.placeholders[index]
        if placeholder.kind == PlaceholderKind.MAPPED_TRACKER:
            raise MalformedInstructionSetError(
                position, f"mapped tracker placeholder {index} referenced without a key"
            )
        tracker_index = None
        if placeholder.kind == PlaceholderKind.TRACKER:
            tracker_index = placeholder.type_specific_index
        _, retype = split_retype_suffix(text)
        return MemoryCell(
            address=address,
            text=text,
            category=OpcodeCategory.PLACEHOLDER,
            opcode=Opcode.PLH,
            retype=retype,
            tracker_index=tracker_index,
        )

    def _operand_texts(self, left: MemoryCell, right: MemoryCell) -> tuple[str, str]:
        """Re-type a literal next to a !bool or !address placeholder.

        Values with no representation in that type stay decimal; the suffix
        does not change the placeholder, so the text still recompiles.
        """
        left_text, right_text = left.text, right.text
        if _coercible(left.retype, right.literal):
            right_text = coerce_literal(right.literal, left.retype)
        elif _coercible(right.retype, left.literal):
            left_text = coerce_literal(left.literal, right.retype)
        return left_text, right_text

    def _binary(self, address: int, spec: OpcodeSpec, operands: tuple[int, ...], position: int) -> MemoryCell:
        left = self._cell(operands[0], position)
        right = self._cell(operands[1], position)
        left_text, right_text = self._operand_texts(left, right)

        if spec.category == OpcodeCategory.ARITHMETIC:
            if left.category != OpcodeCategory.ARITHMETIC and not left.is_atomic:
                left_text = _wrap(left)
            if not right.is_atomic:
                right_text = _wrap(right)
        else:
            if left.category == OpcodeCategory.COMPARISON:
                left_text = _wrap(left)
            if right.category == OpcodeCategory.COMPARISON:
                right_text = _wrap(right)

        return MemoryCell(
            address=address,
            text=f"{left_text} {spec.symbol} {right_text}",
            category=spec.category,
            opcode=spec.opcode,
            left=left,
            right_text=right_text,
        )

    def _update(self, address: int, spec: OpcodeSpec, operands: tuple[int, ...], position: int) -> MemoryCell:
        tracker_index, value_address = operands[0], operands[1]
        if spec.opcode == Opcode.TRUM:
            key = self._cell(operands[2], position)
            if key.address >= value_address:
                raise MalformedInstructionSetError(position, "mapped tracker key produced after its update")

        value = self._cell(value_address, position)
        if value_address != len(self.memory) - 1:
            raise MalformedInstructionSetError(
                position, f"{spec.opcode.name} must follow the operation it stores"
            )
        expected_target = OpcodeCategory.MAPPED if spec.opcode == Opcode.TRUM else OpcodeCategory.PLACEHOLDER
        target = value.left
        if (
            value.category not in (OpcodeCategory.ARITHMETIC, OpcodeCategory.ASSIGNMENT)
            or target is None
            or target.category != expected_target
            or target.tracker_index != tracker_index
        ):
            raise MalformedInstructionSetError(
                position, f"{spec.opcode.name} does not update tracker {tracker_index}"
            )

        target_text = TRACKER_UPDATE_PREFIX + target.text[len(TRACKER_PREFIX):]
        symbol = compound_symbol(value.opcode)
        return MemoryCell(
            address=address,
            text=f"{target_text} {symbol} {value.right_text}",
            category=OpcodeCategory.UPDATE,
            opcode=spec.opcode,
        )


def decompile(compiled: CompiledExpression, context: SymbolContext) -> str:
    """
    Decompile an instruction set into RCL text.

    Args:
        compiled: Instruction set with its placeholder table and raw data
        context: Symbol tables the placeholder indices refer to

    Returns:
        RCL text; deterministic for identical inputs

    Raises:
        UnknownOpcodeError: Opcode outside the instruction table (logged)
        PlaceholderResolutionError: Index out of range in its table
        TypeCoercionError: Literal cannot take its partner's re-typed form
        MalformedInstructionSetError: Stream does not reduce to one value
    """
    text = _Machine(compiled, context).run()
    logger.debug("Decompiled %d cells to %r", len(compiled.instruction_set), text)
    return text
