"""
Tests for the account codec: key derivation, amount parsing and value encoding
"""

import json
import pytest

from bank_ledger import codec
from bank_ledger.errors import InvalidAmountError, InvalidNameError, MalformedValueError


class TestKeyDerivation:
    """Test holding and account key construction"""

    def test_plain_names_concatenate(self):
        """Names without separators produce account_bank keys"""
        assert codec.holding_key("alice", "bofa") == "alice_bofa"
        assert codec.account_key("alice") == "alice"

    def test_escaped_keys_do_not_collide(self):
        """("a_b", "c") and ("a", "b_c") map to different keys"""
        first = codec.holding_key("a_b", "c")
        second = codec.holding_key("a", "b_c")

        assert first != second
        assert first == "a\\_b_c"
        assert second == "a_b\\_c"

    def test_backslash_is_escaped(self):
        """A trailing backslash cannot swallow the separator"""
        assert codec.holding_key("a\\", "b") != codec.holding_key("a", "\\b")
        assert codec.escape_component("a\\b") == "a\\\\b"

    def test_account_key_never_looks_like_holding_key(self):
        """An account named x_y differs from holding (x, y)"""
        assert codec.account_key("x_y") != codec.holding_key("x", "y")

    def test_legacy_keys_collide(self):
        """Without escaping the literal concatenation is used"""
        assert codec.holding_key("a_b", "c", escape=False) == "a_b_c"
        assert codec.holding_key("a", "b_c", escape=False) == "a_b_c"
        assert codec.account_key("x_y", escape=False) == "x_y"


class TestParseAmount:
    """Test integer argument parsing"""

    @pytest.mark.parametrize("text,expected", [
        ("100", 100),
        ("0", 0),
        ("-25", -25),
        ("+7", 7),
        ("007", 7),
        ("9223372036854775807", 2 ** 63 - 1),
        ("-9223372036854775808", -(2 ** 63)),
    ])
    def test_valid_amounts(self, text, expected):
        assert codec.parse_amount(text) == expected

    @pytest.mark.parametrize("text", [
        "", "notanumber", "1.5", " 10", "10 ", "1_000", "0x10", "--1", "+", "١٢",
    ])
    def test_invalid_amounts(self, text):
        with pytest.raises(InvalidAmountError):
            codec.parse_amount(text)

    def test_out_of_range(self):
        """Values beyond a signed 64-bit integer are rejected"""
        with pytest.raises(InvalidAmountError, match="out of range"):
            codec.parse_amount("9223372036854775808")

    def test_error_carries_value(self):
        with pytest.raises(InvalidAmountError) as exc_info:
            codec.parse_amount("abc")
        assert exc_info.value.value == "abc"


class TestValueEncoding:
    """Test balance, bank list and query payload encoding"""

    def test_encode_balance(self):
        assert codec.encode_balance(130) == b"130"
        assert codec.encode_balance(-5) == b"-5"

    def test_decode_balance(self):
        assert codec.decode_balance("k", b"130") == 130
        assert codec.decode_balance("k", b"-5") == -5

    @pytest.mark.parametrize("raw", [b"", b"abc", b" 1", b"\xff", b"1.0"])
    def test_decode_malformed_balance(self, raw):
        with pytest.raises(MalformedValueError) as exc_info:
            codec.decode_balance("alice_bofa", raw)
        assert exc_info.value.key == "alice_bofa"

    def test_decode_balance_out_of_range(self):
        assert codec.decode_balance("k", b"9223372036854775807") == 2 ** 63 - 1
        with pytest.raises(MalformedValueError):
            codec.decode_balance("k", b"9223372036854775808")

    def test_bank_name_with_comma_rejected(self):
        assert codec.check_bank_name("bofa") == "bofa"
        with pytest.raises(InvalidNameError, match="must not contain"):
            codec.check_bank_name("bo,fa")
        with pytest.raises(InvalidNameError):
            codec.encode_bank_list(["bofa", "chase,citi"])

    def test_encode_bank_list(self):
        assert codec.encode_bank_list(["bofa", "chase"]) == b"bofa,chase"
        assert codec.encode_bank_list(["bofa", "bofa"]) == b"bofa,bofa"
        assert codec.encode_bank_list([]) == b""

    def test_query_response_list(self):
        payload = codec.encode_query_response("alice", codec.LABEL_LIST, b"bofa,chase")
        assert payload == b'{"Name":"alice","List":"bofa,chase"}'

    def test_query_response_amount(self):
        payload = codec.encode_query_response("alice_bofa", codec.LABEL_AMOUNT, b"130")
        assert json.loads(payload) == {"Name": "alice_bofa", "Amount": "130"}

    def test_query_label(self):
        assert codec.query_label(None) == "List"
        assert codec.query_label("bofa") == "Amount"
