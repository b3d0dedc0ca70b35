"""
Tests for the Bytecode Decompiler.

Validates that:
1. Each opcode renders the documented RCL text
2. Literals next to !bool / !address placeholders are coerced when representable
3. Raw data restores string and bytes literals
4. Tracker updates are rewritten into TRU: compound form
5. Bytecode that cannot come from the compiler is rejected
"""

import logging

import pytest

from rcl.codec.decompiler import decompile
from rcl.codec.errors import (
    MalformedInstructionSetError,
    PlaceholderResolutionError,
    TypeCoercionError,
    UnknownOpcodeError,
)
from rcl.codec.literals import can_coerce_literal, coerce_literal, hash_string_literal
from rcl.codec.types import (
    CompiledExpression,
    GlobalVariable,
    Placeholder,
    PlaceholderKind,
    PType,
    RawDataReplacement,
)


def arg(position, p_type):
    return Placeholder(PlaceholderKind.ARGUMENT, position, p_type)


def fc(index, p_type):
    return Placeholder(PlaceholderKind.FOREIGN_CALL, index, p_type)


SENDER = Placeholder(PlaceholderKind.GLOBAL_VARIABLE, 0, PType.ADDRESS, global_variable=GlobalVariable.MSG_SENDER)


class TestRendering:
    """Text produced per opcode."""

    def test_placeholder_equals_literal(self, context):
        """[PLH 0, NUM 1, EQ 0 1] without a suffix keeps the number."""
        compiled = CompiledExpression((2, 0, 0, 1, 11, 0, 1), (SENDER,))
        assert decompile(compiled, context) == "GV:MSG_SENDER == 1"

    def test_bool_suffix_coerces_literal(self, context):
        """The same bytecode over a bool foreign call renders true."""
        compiled = CompiledExpression((2, 0, 0, 1, 11, 0, 1), (fc(0, PType.BOOL),))
        assert decompile(compiled, context) == "FC:IsAllowed!bool == true"

    def test_bool_coercion_literal_on_left(self, context):
        """Coercion applies whichever side the literal is on."""
        compiled = CompiledExpression((0, 0, 2, 0, 11, 0, 1), (fc(0, PType.BOOL),))
        assert decompile(compiled, context) == "false == FC:IsAllowed!bool"

    def test_address_suffix_coerces_literal(self, context):
        """Literals next to !address render as checksummed addresses."""
        compiled = CompiledExpression((2, 0, 0, 0x1234, 11, 0, 1), (fc(1, PType.ADDRESS),))
        assert decompile(compiled, context) == (
            "FC:Owner!address == 0x0000000000000000000000000000000000001234"
        )

    def test_argument_renders_with_type(self, context):
        """Arguments carry their declared type."""
        compiled = CompiledExpression((2, 0, 0, 100, 10, 0, 1), (arg(1, PType.UINT256),))
        assert decompile(compiled, context) == "value!uint256 > 100"

    def test_logical_outer_parentheses_stripped(self, context):
        """The outermost logical group loses its parentheses."""
        compiled = CompiledExpression(
            (2, 0, 0, 100, 10, 0, 1, 2, 1, 0, 1, 11, 3, 4, 12, 2, 5),
            (arg(1, PType.UINT256), fc(0, PType.BOOL)),
        )
        assert decompile(compiled, context) == "value!uint256 > 100 AND FC:IsAllowed!bool == true"

    def test_nested_logical_keeps_inner_parentheses(self, context):
        """Inner logical groups stay parenthesized."""
        # (value > 1 OR value < 0) AND FC:IsAllowed
        compiled = CompiledExpression(
            (2, 0, 0, 1, 10, 0, 1, 0, 0, 9, 0, 3, 13, 2, 4, 2, 1, 12, 5, 6),
            (arg(1, PType.UINT256), fc(0, PType.BOOL)),
        )
        assert decompile(compiled, context) == (
            "(value!uint256 > 1 OR value!uint256 < 0) AND FC:IsAllowed!bool"
        )

    def test_not(self, context):
        compiled = CompiledExpression((2, 0, 1, 0), (fc(0, PType.BOOL),))
        assert decompile(compiled, context) == "NOT FC:IsAllowed!bool"

    def test_arithmetic_right_operand_bracketed(self, context):
        """A non-atomic right operand of arithmetic gets [ ]."""
        compiled = CompiledExpression(
            (2, 0, 0, 2, 0, 3, 7, 1, 2, 5, 0, 3, 0, 10, 10, 4, 5),
            (arg(1, PType.UINT256),),
        )
        assert decompile(compiled, context) == "value!uint256 + [2 * 3] > 10"

    def test_arithmetic_left_chain_flat(self, context):
        """Left-nested arithmetic renders flat."""
        compiled = CompiledExpression(
            (2, 0, 0, 1, 6, 0, 1, 0, 2, 6, 2, 3, 0, 0, 11, 4, 5),
            (arg(1, PType.UINT256),),
        )
        assert decompile(compiled, context) == "value!uint256 - 1 - 2 == 0"

    def test_comparison_operand_bracketed(self, context):
        """A comparison used as an operand gets [ ]."""
        # [value > 1] == true
        compiled = CompiledExpression((2, 0, 0, 1, 10, 0, 1, 0, 1, 11, 2, 3), (arg(1, PType.UINT256),))
        assert decompile(compiled, context) == "[value!uint256 > 1] == 1"

    def test_string_literal_from_raw_data(self, context):
        """Raw data at the operand position restores the quoted text."""
        compiled = CompiledExpression(
            (2, 0, 0, hash_string_literal("open"), 11, 0, 1),
            (Placeholder(PlaceholderKind.TRACKER, 1, PType.STRING),),
            (RawDataReplacement(3, PType.STRING, "open"),),
        )
        assert decompile(compiled, context) == 'TR:Status == "open"'

    def test_raw_data_position_must_match(self, context):
        """Raw data at another position leaves the word as a number."""
        word = hash_string_literal("open")
        compiled = CompiledExpression(
            (2, 0, 0, word, 11, 0, 1),
            (Placeholder(PlaceholderKind.TRACKER, 1, PType.STRING),),
            (RawDataReplacement(1, PType.STRING, "open"),),
        )
        assert decompile(compiled, context) == f"TR:Status == {word}"

    def test_mapped_read(self, context):
        """PLHM renders TR:name(key)."""
        compiled = CompiledExpression(
            (2, 0, 4, 2, 0, 0, 10, 10, 1, 2),
            (arg(0, PType.ADDRESS), Placeholder(PlaceholderKind.MAPPED_TRACKER, 2, PType.UINT256, mapped_tracker_key_index=0)),
        )
        assert decompile(compiled, context) == "TR:Balances(to!address) > 10"

    def test_mapped_read_name_from_context(self, context):
        """Without a mapped placeholder the name comes from the context."""
        compiled = CompiledExpression((2, 0, 4, 2, 0, 0, 10, 10, 1, 2), (arg(0, PType.ADDRESS),))
        assert decompile(compiled, context) == "TR:Balances(to!address) > 10"


class TestTrackerUpdates:
    """TRU and TRUM rewrite the preceding operation."""

    def test_compound_update(self, context):
        """TR:T + v followed by TRU becomes TRU:T += v."""
        compiled = CompiledExpression(
            (2, 0, 2, 1, 5, 0, 1, 17, 0, 2, 0),
            (Placeholder(PlaceholderKind.TRACKER, 0, PType.UINT256), arg(1, PType.UINT256)),
        )
        assert decompile(compiled, context) == "TRU:TotalVolume += value!uint256"

    def test_assignment(self, context):
        """ASSIGN renders as plain =."""
        compiled = CompiledExpression(
            (2, 0, 0, hash_string_literal("closed"), 3, 0, 1, 17, 1, 2, 1),
            (Placeholder(PlaceholderKind.TRACKER, 1, PType.STRING),),
            (RawDataReplacement(3, PType.STRING, "closed"),),
        )
        assert decompile(compiled, context) == 'TRU:Status = "closed"'

    def test_mapped_update(self, context):
        """TRUM rewrites TR:M(key) - v into TRU:M(key) -= v."""
        compiled = CompiledExpression(
            (2, 0, 4, 2, 0, 2, 2, 6, 1, 2, 18, 2, 3, 0, 0),
            (
                arg(0, PType.ADDRESS),
                Placeholder(PlaceholderKind.MAPPED_TRACKER, 2, PType.UINT256, mapped_tracker_key_index=0),
                arg(1, PType.UINT256),
            ),
        )
        assert decompile(compiled, context) == "TRU:Balances(to!address) -= value!uint256"

    def test_update_of_another_tracker(self, context):
        """TRU must name the tracker its operation reads."""
        compiled = CompiledExpression(
            (2, 0, 2, 1, 5, 0, 1, 17, 1, 2, 0),
            (Placeholder(PlaceholderKind.TRACKER, 0, PType.UINT256), arg(1, PType.UINT256)),
        )
        with pytest.raises(MalformedInstructionSetError):
            decompile(compiled, context)

    def test_update_of_comparison(self, context):
        """TRU cannot store a comparison."""
        compiled = CompiledExpression(
            (2, 0, 2, 1, 10, 0, 1, 17, 0, 2, 0),
            (Placeholder(PlaceholderKind.TRACKER, 0, PType.UINT256), arg(1, PType.UINT256)),
        )
        with pytest.raises(MalformedInstructionSetError):
            decompile(compiled, context)


class TestCoercionFallback:
    """Literals with no representation in the partner's type."""

    def test_bool_out_of_range_stays_decimal(self, context):
        """Only 0 and 1 become false/true."""
        compiled = CompiledExpression((2, 0, 0, 2, 11, 0, 1), (fc(0, PType.BOOL),))
        assert decompile(compiled, context) == "FC:IsAllowed!bool == 2"

    def test_address_out_of_range_stays_decimal(self, context):
        compiled = CompiledExpression((2, 0, 0, 2**160, 11, 0, 1), (fc(1, PType.ADDRESS),))
        assert decompile(compiled, context) == f"FC:Owner!address == {2**160}"

    def test_coerce_literal_rejects(self):
        """The coercion primitive still refuses unrepresentable values."""
        assert not can_coerce_literal(2, "bool")
        assert can_coerce_literal(2**160 - 1, "address")
        with pytest.raises(TypeCoercionError):
            coerce_literal(2, "bool")
        with pytest.raises(TypeCoercionError):
            coerce_literal(2**160, "address")


class TestMalformed:
    """Bytecode the compiler never produces."""

    def test_unknown_opcode_logged_and_raised(self, context, caplog):
        """Opcodes outside 0-18 are a logged defect."""
        compiled = CompiledExpression((2, 0, 99, 0), (SENDER,))
        with caplog.at_level(logging.CRITICAL, logger="rcl"):
            with pytest.raises(UnknownOpcodeError) as exc_info:
                decompile(compiled, context)
        assert exc_info.value.opcode == 99
        assert exc_info.value.position == 2
        assert "Unknown opcode 99" in caplog.text

    def test_empty(self, context):
        with pytest.raises(MalformedInstructionSetError):
            decompile(CompiledExpression(()), context)

    def test_truncated_operands(self, context):
        """An opcode missing operand cells."""
        with pytest.raises(MalformedInstructionSetError):
            decompile(CompiledExpression((2, 0, 11, 0), (SENDER,)), context)

    def test_forward_reference(self, context):
        """Operands address earlier cells only."""
        with pytest.raises(MalformedInstructionSetError):
            decompile(CompiledExpression((2, 0, 11, 0, 5), (SENDER,)), context)

    def test_unconsumed_value(self, context):
        """Every value but the last is an operand of something."""
        with pytest.raises(MalformedInstructionSetError):
            decompile(CompiledExpression((0, 1, 0, 2)), context)

    def test_placeholder_index_out_of_range(self, context):
        """PLH index beyond the placeholder table."""
        with pytest.raises(PlaceholderResolutionError) as exc_info:
            decompile(CompiledExpression((2, 3, 0, 1, 11, 0, 1), (SENDER,)), context)
        assert exc_info.value.index == 3
        assert exc_info.value.size == 1

    def test_symbol_index_out_of_range(self, context):
        """Placeholder pointing past its symbol table."""
        compiled = CompiledExpression((2, 0, 0, 1, 11, 0, 1), (fc(9, PType.BOOL),))
        with pytest.raises(PlaceholderResolutionError):
            decompile(compiled, context)

    def test_mapped_placeholder_without_key(self, context):
        """Mapped trackers are read through PLHM only."""
        compiled = CompiledExpression(
            (2, 0, 0, 1, 11, 0, 1),
            (Placeholder(PlaceholderKind.MAPPED_TRACKER, 2, PType.UINT256),),
        )
        with pytest.raises(MalformedInstructionSetError):
            decompile(compiled, context)


class TestDeterminism:
    """Repeated decompiles are identical."""

    def test_byte_identical(self, context):
        compiled = CompiledExpression(
            (2, 0, 0, 100, 10, 0, 1, 2, 1, 0, 1, 11, 3, 4, 12, 2, 5),
            (arg(1, PType.UINT256), fc(0, PType.BOOL)),
        )
        results = {decompile(compiled, context) for _ in range(5)}
        assert len(results) == 1
