"""
Tests for the Reference Validator and whole-condition validation.
"""

from rcl.codec.references import validate_references, validate_values_to_pass
from rcl.codec.types import ValidationErrorCode
from rcl.codec.validation import validate_condition


class TestConditionReferences:
    """Names in conditions resolve against the calling function's symbols."""

    def test_declared_foreign_call_accepted(self, context):
        """FC:IsAllowed == 1 with a declared foreign call."""
        assert validate_references("FC:IsAllowed == 1", context).is_valid

    def test_undeclared_foreign_call_rejected(self, context):
        """The error names the missing foreign call."""
        result = validate_references("FC:IsActive == 1", context)
        assert not result.is_valid
        (error,) = result.errors
        assert error.code == ValidationErrorCode.REFERENCE
        assert error.token == "IsActive"
        assert "IsActive" in error.message
        assert error.location == "condition"

    def test_suggestion_for_near_miss(self, context):
        """Near misses carry did-you-mean suggestions."""
        result = validate_references("FC:IsAlowed == true", context)
        assert result.errors[0].suggestions == ("IsAllowed",)
        assert "did you mean: IsAllowed?" in str(result.errors[0])

    def test_all_violations_collected(self, context):
        """Every unresolved name is reported."""
        result = validate_references("FC:Nope > 1 AND TR:Missing == amount", context)
        assert [e.token for e in result.errors] == ["Nope", "Missing", "amount"]

    def test_trackers_and_updates(self, context):
        """TR: and TRU: resolve against scalar trackers."""
        assert validate_references("TR:TotalVolume > 1", context).is_valid
        assert validate_references("TRU:TotalVolume += 1", context).is_valid

    def test_mapped_tracker_without_key(self, context):
        """A mapped tracker used like a scalar tracker is an issue."""
        result = validate_references("TR:Balances > 1", context)
        assert "without a key" in result.errors[0].message

    def test_scalar_tracker_with_key(self, context):
        """A scalar tracker used with a key is an issue."""
        result = validate_references("TR:TotalVolume(to) > 1", context)
        assert "takes no key" in result.errors[0].message

    def test_mapped_key_checked_recursively(self, context):
        """Names inside a mapped tracker key are validated too."""
        assert validate_references("TR:Balances(to) > 1", context).is_valid
        result = validate_references("TR:Balances(receiver) > 1", context)
        assert [e.token for e in result.errors] == ["receiver"]

    def test_global_variables(self, context):
        """Only the five global values exist."""
        assert validate_references("GV:BLOCK_NUMBER > GV:BLOCK_TIMESTAMP", context).is_valid
        result = validate_references("GV:MSG_SENDERS == to", context)
        assert result.errors[0].suggestions == ("MSG_SENDER",)

    def test_void_suffix_is_coercion_error(self, context):
        """A re-typing suffix must name a value type."""
        result = validate_references("FC:Score!void > 1", context)
        assert result.errors[0].code == ValidationErrorCode.TYPE_COERCION

    def test_unlexable_text(self, context):
        """Text the lexer rejects yields a single GRAMMAR error."""
        result = validate_references("a # b", context, field="Rules[0].condition")
        (error,) = result.errors
        assert error.code == ValidationErrorCode.GRAMMAR
        assert error.location == "Rules[0].condition"


class TestValuesToPass:
    """Foreign call value lists."""

    def test_mixed_entries(self, context):
        """Arguments, references and mapped trackers."""
        result = validate_values_to_pass("to, FC:Score, TR:TotalVolume, TR:Balances(to), GV:TX_ORIGIN", context)
        assert result.is_valid

    def test_empty_list(self, context):
        """No values is valid."""
        assert validate_values_to_pass("", context).is_valid

    def test_entry_positions_in_location(self, context):
        """Each violation names its entry."""
        result = validate_values_to_pass("to, sender", context, field="ForeignCalls[0].valuesToPass")
        (error,) = result.errors
        assert error.location == "ForeignCalls[0].valuesToPass[1]"
        assert error.token == "sender"

    def test_expression_entry_rejected(self, context):
        """An entry must be a single reference."""
        result = validate_values_to_pass("value + 1", context)
        assert "single reference" in result.errors[0].message


class TestValidateCondition:
    """Grammar, structure and references in one pass."""

    def test_valid_condition(self, context):
        """A grouped condition over declared symbols."""
        result = validate_condition(
            "(TR:Balances(to) >= value AND FC:Score > 10) OR GV:MSG_SENDER == FC:Owner", context
        )
        assert result.is_valid
        assert result.errors == ()

    def test_grammar_stops_validation(self, context):
        """Bad grouping is reported alone."""
        result = validate_condition("FC:Nope > 1 AND b OR c", context)
        (error,) = result.errors
        assert error.code == ValidationErrorCode.GRAMMAR

    def test_structure_errors(self, context):
        """Well grouped text can still be malformed."""
        for text in ("value > > 1", "value > 1 > 2", "TR:TotalVolume = 1", "TRU:TotalVolume > 1"):
            result = validate_condition(text, context)
            assert not result.is_valid, text
            assert result.errors[0].code == ValidationErrorCode.GRAMMAR

    def test_literal_range(self, context):
        """Numbers must fit in 256 bits."""
        result = validate_condition(f"value > {2**256}", context)
        assert result.errors[0].code == ValidationErrorCode.GRAMMAR
        assert "exceeds uint256" in result.errors[0].message

    def test_field_name_in_every_error(self, context):
        """Violations name the field they came from."""
        result = validate_condition("FC:A > 1 AND FC:B > 2", context, field="Rules[3].condition")
        assert len(result.errors) == 2
        assert all(e.location == "Rules[3].condition" for e in result.errors)
        assert result.message.count("Field Rules[3].condition") == 2
