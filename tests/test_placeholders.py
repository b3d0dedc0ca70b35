"""
Tests for the Placeholder Codec.
"""

import pytest

from rcl.codec.errors import PlaceholderResolutionError, TypeCoercionError, UnresolvedReferenceError
from rcl.codec.lexer import tokenize
from rcl.codec.placeholders import (
    decode_placeholder,
    encode_placeholder,
    parse_mapped_index,
    placeholder_from_flags,
    split_retype_suffix,
)
from rcl.codec.types import GlobalVariable, Placeholder, PlaceholderKind, PType


def token(text):
    (tok,) = tokenize(text)
    return tok


class TestEncode:
    """Reference token to placeholder."""

    def test_argument(self, context):
        """Arguments are addressed by position with flag 0."""
        placeholder = encode_placeholder(token("value"), context)
        assert placeholder.kind == PlaceholderKind.ARGUMENT
        assert placeholder.type_specific_index == 1
        assert placeholder.p_type == PType.UINT256
        assert placeholder.flags == 0x00

    def test_foreign_call(self, context):
        """Foreign calls carry their index and return type."""
        placeholder = encode_placeholder(token("FC:Owner"), context)
        assert placeholder.kind == PlaceholderKind.FOREIGN_CALL
        assert placeholder.type_specific_index == 1
        assert placeholder.p_type == PType.ADDRESS
        assert placeholder.flags == 0x01

    def test_suffix_does_not_change_placeholder(self, context):
        """FC:Owner and FC:Owner!address encode identically."""
        assert encode_placeholder(token("FC:Owner!address"), context) == \
            encode_placeholder(token("FC:Owner"), context)

    def test_tracker_and_update_share_placeholder(self, context):
        """TR:x and TRU:x are the same tracker cell."""
        read = encode_placeholder(token("TR:Status"), context)
        assert read == encode_placeholder(token("TRU:Status"), context)
        assert read.type_specific_index == 1
        assert read.p_type == PType.STRING
        assert read.flags == 0x02

    def test_mapped_tracker(self, context):
        """Mapped trackers use the value type and continue the tracker index space."""
        placeholder = encode_placeholder(token("TR:Balances(to)"), context, mapped_tracker_key_index=0)
        assert placeholder.kind == PlaceholderKind.MAPPED_TRACKER
        assert placeholder.type_specific_index == 2
        assert placeholder.p_type == PType.UINT256
        assert placeholder.mapped_tracker_key_index == 0
        assert placeholder.flags == 0x02

    @pytest.mark.parametrize("name,flag,p_type", [
        ("MSG_SENDER", 0x04, PType.ADDRESS),
        ("BLOCK_TIMESTAMP", 0x08, PType.UINT256),
        ("MSG_DATA", 0x0C, PType.BYTES),
        ("BLOCK_NUMBER", 0x10, PType.UINT256),
        ("TX_ORIGIN", 0x14, PType.ADDRESS),
    ])
    def test_global_values(self, context, name, flag, p_type):
        """Each global value has its own flag."""
        placeholder = encode_placeholder(token(f"GV:{name}"), context)
        assert placeholder.global_variable == GlobalVariable[name]
        assert placeholder.flags == flag
        assert placeholder.p_type == p_type

    def test_unresolved_name(self, context):
        """Undeclared names raise with the name attached."""
        with pytest.raises(UnresolvedReferenceError) as exc_info:
            encode_placeholder(token("FC:Missing"), context)
        assert exc_info.value.name == "Missing"
        assert exc_info.value.kind == "foreign_call"

    def test_unrepresentable_suffix(self, context):
        """Suffixes must name a value type."""
        with pytest.raises(TypeCoercionError):
            encode_placeholder(token("FC:Owner!void"), context)
        with pytest.raises(TypeCoercionError):
            encode_placeholder(token("FC:Owner!int8"), context)


class TestDecode:
    """Placeholder to reference text."""

    def test_argument_keeps_raw_type(self, context):
        """Arguments render as name!type."""
        assert decode_placeholder(Placeholder(PlaceholderKind.ARGUMENT, 0, PType.ADDRESS), context) == "to!address"

    def test_foreign_call_suffixes(self, context):
        """bool and address results are suffixed; uint256 is not."""
        fc = PlaceholderKind.FOREIGN_CALL
        assert decode_placeholder(Placeholder(fc, 0, PType.BOOL), context) == "FC:IsAllowed!bool"
        assert decode_placeholder(Placeholder(fc, 1, PType.ADDRESS), context) == "FC:Owner!address"
        assert decode_placeholder(Placeholder(fc, 2, PType.UINT256), context) == "FC:Score"

    def test_tracker(self, context):
        """Trackers render with TR:."""
        assert decode_placeholder(Placeholder(PlaceholderKind.TRACKER, 0, PType.UINT256), context) == "TR:TotalVolume"

    def test_mapped_tracker_carries_index(self, context):
        """Mapped trackers render as TR:name~index until paired with a key."""
        text = decode_placeholder(Placeholder(PlaceholderKind.MAPPED_TRACKER, 2, PType.UINT256), context)
        assert text == "TR:Balances~2"
        assert parse_mapped_index(text) == ("Balances", 2)

    def test_global_value(self, context):
        """Global values render with GV:."""
        placeholder = Placeholder(
            PlaceholderKind.GLOBAL_VARIABLE, 0, PType.UINT256,
            global_variable=GlobalVariable.BLOCK_TIMESTAMP,
        )
        assert decode_placeholder(placeholder, context) == "GV:BLOCK_TIMESTAMP"

    @pytest.mark.parametrize("kind,index", [
        (PlaceholderKind.ARGUMENT, 2),
        (PlaceholderKind.FOREIGN_CALL, 7),
        (PlaceholderKind.TRACKER, 2),
        (PlaceholderKind.MAPPED_TRACKER, 0),
    ])
    def test_out_of_range(self, context, kind, index):
        """Indices outside their table raise PlaceholderResolutionError."""
        with pytest.raises(PlaceholderResolutionError):
            decode_placeholder(Placeholder(kind, index, PType.UINT256), context)


class TestFlags:
    """Engine-side flag values back to placeholders."""

    def test_tracker_flag_resolves_mapped(self, context):
        """Flag 0x02 picks the mapped kind when the index is a mapped tracker."""
        assert placeholder_from_flags(0x02, 0, PType.UINT256, context).kind == PlaceholderKind.TRACKER
        assert placeholder_from_flags(0x02, 2, PType.UINT256, context).kind == PlaceholderKind.MAPPED_TRACKER

    def test_global_flags(self, context):
        """Global flags map onto GlobalVariable."""
        placeholder = placeholder_from_flags(0x14, 0, PType.ADDRESS, context)
        assert placeholder.global_variable == GlobalVariable.TX_ORIGIN

    def test_other_flags_address_arguments(self, context):
        """Any other flag value is an argument position."""
        assert placeholder_from_flags(0x00, 1, PType.UINT256, context).kind == PlaceholderKind.ARGUMENT
        assert placeholder_from_flags(0x03, 1, PType.UINT256, context).kind == PlaceholderKind.ARGUMENT
        assert placeholder_from_flags(0x01, 1, PType.ADDRESS, context).kind == PlaceholderKind.FOREIGN_CALL

    def test_from_dict_without_kind(self):
        """Engine-side entries (flags, index, pType) load by their flags."""
        origin = Placeholder.from_dict({"flags": 0x14, "typeSpecificIndex": 0, "pType": int(PType.ADDRESS)})
        assert origin.kind == PlaceholderKind.GLOBAL_VARIABLE
        assert origin.global_variable == GlobalVariable.TX_ORIGIN

        tracker = Placeholder.from_dict({"flags": 0x02, "typeSpecificIndex": 2, "pType": int(PType.UINT256)})
        assert tracker == Placeholder(PlaceholderKind.TRACKER, 2, PType.UINT256)

        keyed = Placeholder.from_dict(
            {"flags": 0x02, "typeSpecificIndex": 2, "pType": int(PType.UINT256), "mappedTrackerKeyIndex": 0}
        )
        assert keyed.mapped_tracker_key_index == 0

    def test_from_flags_matches_context_free(self, context):
        """Only the mapped tracker split needs a symbol context."""
        for flags in (0x00, 0x01, 0x08, 0x14):
            assert placeholder_from_flags(flags, 1, PType.UINT256, context) == Placeholder.from_flags(
                flags, 1, PType.UINT256
            )

    def test_round_trip_through_dict(self):
        """to_dict/from_dict preserve every field."""
        placeholder = Placeholder(
            PlaceholderKind.MAPPED_TRACKER, 2, PType.UINT256, mapped_tracker_key_index=0
        )
        assert Placeholder.from_dict(placeholder.to_dict()) == placeholder

    def test_inconsistent_global(self):
        """Only GLOBAL_VARIABLE placeholders name a global value."""
        with pytest.raises(ValueError):
            Placeholder(PlaceholderKind.ARGUMENT, 0, PType.ADDRESS, global_variable=GlobalVariable.MSG_SENDER)


class TestSuffix:
    """token!type splitting."""

    def test_split(self):
        assert split_retype_suffix("FC:Owner!address") == ("FC:Owner", "address")
        assert split_retype_suffix("TR:Count") == ("TR:Count", None)
        assert split_retype_suffix("!bool") == ("!bool", None)
