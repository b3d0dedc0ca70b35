"""
Round-trip tests: compile -> decompile -> compile.

For every valid condition C, decompile(compile(C)) passes the grammar
validator and re-compiles to the same instruction set, placeholder table
and raw data.
"""

import pytest

from rcl.codec.compiler import compile_condition
from rcl.codec.decompiler import decompile
from rcl.codec.grammar import validate_grammar
from rcl.codec.types import CompiledExpression
from rcl.codec.validation import validate_condition


CONDITIONS = [
    "value > 100",
    "FC:IsAllowed == 1",
    "value > 100 AND FC:IsAllowed == true",
    "(TR:Balances(to) >= value AND FC:Score > 10) OR GV:MSG_SENDER == FC:Owner",
    "value > 1 OR (FC:IsAllowed == false AND TR:TotalVolume < 5)",
    "NOT (value > 1 AND value < 10)",
    "TR:Balances(GV:MSG_SENDER) > 0 OR NOT FC:IsAllowed",
    "GV:BLOCK_TIMESTAMP >= 1700000000 AND to != GV:TX_ORIGIN",
    'TR:Status == "open"',
    'GV:MSG_DATA == "0x12ab"',
    "value + [2 * 3] > 10",
    "value - 1 - 2 == 0",
    "[value * 2] + 1 > FC:Score",
    "TR:Balances([value + 1]) <= TR:TotalVolume / 2",
    "FC:Owner == 0x1234",
    "(value > 1)",
    "TRU:TotalVolume += value",
    'TRU:Status = "closed"',
    "TRU:Balances(to) -= value",
    "TRU:TotalVolume *= [FC:Score + 1]",
    "FC:IsAllowed == 2",
    "FC:IsAllowed + 5 > 3",
    f"FC:Owner == {2**200}",
    'TR:Balances(")") > 1',
    'TR:Balances("a(b") >= value',
]


class TestRoundTrip:
    """Decompiled text is a faithful source for the same bytecode."""

    @pytest.mark.parametrize("condition", CONDITIONS)
    def test_recompiles_identically(self, context, condition):
        """compile(decompile(compile(C))) == compile(C)"""
        compiled = compile_condition(condition, context)
        text = decompile(compiled, context)

        assert validate_grammar(text), text
        assert validate_condition(text, context).is_valid, text
        assert compile_condition(text, context) == compiled

    @pytest.mark.parametrize("condition", CONDITIONS)
    def test_decompile_is_idempotent(self, context, condition):
        """Decompiling the recompiled text yields the same text."""
        first = decompile(compile_condition(condition, context), context)
        second = decompile(compile_condition(first, context), context)
        assert first == second

    @pytest.mark.parametrize("condition", CONDITIONS)
    def test_engine_placeholder_shape(self, context, condition):
        """Placeholders carrying only flags decompile to the same text."""
        compiled = compile_condition(condition, context)
        data = compiled.to_dict()
        for entry in data["placeholders"]:
            del entry["kind"]
            entry.pop("globalVariable", None)
        assert decompile(CompiledExpression.from_dict(data), context) == decompile(compiled, context)

    def test_normalization(self, context):
        """Suffixes are added and redundant parentheses dropped."""
        compiled = compile_condition("(value > 100 AND FC:IsAllowed == 1)", context)
        assert decompile(compiled, context) == "value!uint256 > 100 AND FC:IsAllowed!bool == true"

    def test_deterministic(self, context):
        """Two decompiles of the same input are byte-identical."""
        compiled = compile_condition(CONDITIONS[3], context)
        assert decompile(compiled, context) == decompile(compiled, context)
