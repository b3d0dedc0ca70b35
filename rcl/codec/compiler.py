"""
RCL compiler: condition text to {InstructionSet, Placeholders, RawData}.

Memory model shared with the decompiler: every instruction produces one
memory cell at the next address (starting at 0), and operator operands are
addresses of earlier cells.

Layouts:
    literal            NUM value
    reference          PLH placeholderIndex
    TR:M(key)          <key> PLHM trackerIndex keyAddr
    a op b             <a> <b> OP aAddr bAddr
    NOT a              <a> NOT aAddr
    TRU:T op= v        PLH T, <v>, OP tAddr vAddr, TRU trackerIndex opAddr flag
    TRU:M(key) op= v   <key> PLHM, <v>, OP mAddr vAddr,
                       TRUM trackerIndex opAddr keyAddr flag

The update flag is 1 for string/bytes trackers, else 0.
"""

from __future__ import annotations

import logging

from .lexer import TokenKind
from .literals import encode_literal
from .nodes import BinaryOp, Expr, Literal, MappedReference, Reference, TrackerUpdate, UnaryOp
from .opcodes import opcode_for_compound, opcode_for_symbol
from .parser import parse_condition
from .placeholders import encode_placeholder
from .symbols import SymbolContext
from .types import CompiledExpression, Opcode, Placeholder, PType, RawDataReplacement
from .validation import validate_condition

logger = logging.getLogger(__name__)

_HASHED_TRACKER_TYPES = (PType.STRING, PType.BYTES)


class _Emitter:
    """Accumulates cells, placeholders and raw data for one expression."""

    def __init__(self, context: SymbolContext):
        self.context = context
        self.cells: list[int] = []
        self.placeholders: list[Placeholder] = []
        self.raw_data: list[RawDataReplacement] = []
        self.next_address = 0

    def _instruction(self, opcode: Opcode, *operands: int) -> int:
        self.cells.append(int(opcode))
        self.cells.extend(operands)
        address = self.next_address
        self.next_address += 1
        return address

    def _placeholder_index(self, placeholder: Placeholder) -> int:
        if placeholder in self.placeholders:
            return self.placeholders.index(placeholder)
        self.placeholders.append(placeholder)
        return len(self.placeholders) - 1

    def emit(self, node: Expr) -> int:
        """Emit a node and return the address of its result cell."""
        match node:
            case Literal():
                value, raw_type = encode_literal(node.token)
                if raw_type is not None:
                    # operand cell follows the opcode cell
                    self.raw_data.append(RawDataReplacement(
                        instruction_set_index=len(self.cells) + 1,
                        argument_type=raw_type,
                        original_data=node.token.value,
                    ))
                return self._instruction(Opcode.NUM, value)
            case Reference():
                index = self._placeholder_index(encode_placeholder(node.token, self.context))
                return self._instruction(Opcode.PLH, index)
            case MappedReference():
                address, _ = self._mapped(node)
                return address
            case UnaryOp():
                operand = self.emit(node.operand)
                return self._instruction(Opcode.NOT, operand)
            case BinaryOp():
                left = self.emit(node.left)
                right = self.emit(node.right)
                return self._instruction(opcode_for_symbol(node.op), left, right)
            case TrackerUpdate():
                return self._update(node)
        raise TypeError(f"Cannot compile node {node!r}")

    def _mapped(self, node: MappedReference) -> tuple[int, int]:
        """Emit a mapped tracker read. Returns (result address, key address)."""
        key_address = self.emit(node.key)
        key_index = None
        if isinstance(node.key, Reference):
            key_index = self._placeholder_index(encode_placeholder(node.key.token, self.context))
        placeholder = encode_placeholder(node.token, self.context, mapped_tracker_key_index=key_index)
        self._placeholder_index(placeholder)
        address = self._instruction(Opcode.PLHM, placeholder.type_specific_index, key_address)
        return address, key_address

    def _update(self, node: TrackerUpdate) -> int:
        opcode = opcode_for_compound(node.op)
        target = node.target

        if isinstance(target, MappedReference):
            mapped = self.context.mapped_tracker(target.name)
            target_address, key_address = self._mapped(target)
            value_address = self.emit(node.value)
            result = self._instruction(opcode, target_address, value_address)
            flag = 1 if mapped.value_type in _HASHED_TRACKER_TYPES else 0
            return self._instruction(Opcode.TRUM, mapped.index, result, key_address, flag)

        if target.kind != TokenKind.TRACKER_UPDATE:
            raise TypeError(f"Update target {target!r} is not a TRU: reference")
        tracker = self.context.tracker(target.name)
        target_address = self._instruction(
            Opcode.PLH,
            self._placeholder_index(encode_placeholder(target.token, self.context)),
        )
        value_address = self.emit(node.value)
        result = self._instruction(opcode, target_address, value_address)
        flag = 1 if tracker.p_type in _HASHED_TRACKER_TYPES else 0
        return self._instruction(Opcode.TRU, tracker.index, result, flag)


def compile_condition(text: str, context: SymbolContext) -> CompiledExpression:
    """
    Compile condition or expression text.

    Args:
        text: RCL text
        context: Symbol tables of the rule's calling function

    Returns:
        CompiledExpression (instruction set, placeholder table, raw data)

    Raises:
        GrammarError: Malformed text, with every violation attached
        UnresolvedReferenceError: Undeclared names, with every violation attached
        TypeCoercionError: Unrepresentable re-typing suffix
    """
    validate_condition(text, context).raise_for_errors()

    emitter = _Emitter(context)
    emitter.emit(parse_condition(text))
    compiled = CompiledExpression(
        instruction_set=tuple(emitter.cells),
        placeholders=tuple(emitter.placeholders),
        raw_data=tuple(emitter.raw_data),
    )
    logger.debug(
        "Compiled %r: %d cells, %d placeholders, %d raw data",
        text, len(compiled.instruction_set), len(compiled.placeholders), len(compiled.raw_data),
    )
    return compiled
