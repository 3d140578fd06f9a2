"""
Tests for the URL-safe codec.
"""

import pytest

from tokenseal.encoding import (
    ALPHABET,
    decode,
    decode_int,
    encode,
    encode_int,
    in_alphabet,
    int_to_bytes,
    want_bytes,
)
from tokenseal.error_handling import BadData, BadSignature
from tokenseal.timed import LEGACY_EPOCH


class TestEncode:
    """Test byte encoding."""

    def test_known_value(self):
        assert encode(b"hello world") == "aGVsbG8gd29ybGQ"

    def test_padding_is_stripped(self):
        for data in [b"a", b"ab", b"abc", b"abcd"]:
            assert "=" not in encode(data)

    def test_text_is_utf8_encoded(self):
        assert encode("héllo") == encode("héllo".encode("utf-8"))

    def test_output_is_url_safe(self):
        encoded = encode(bytes(range(256)))
        assert "+" not in encoded
        assert "/" not in encoded
        assert all(in_alphabet(c) for c in encoded)

    def test_empty(self):
        assert encode(b"") == ""


class TestDecode:
    """Test byte decoding and its failure modes."""

    def test_known_value(self):
        assert decode("aGVsbG8gd29ybGQ") == b"hello world"

    def test_accepts_bytes(self):
        assert decode(b"aGVsbG8gd29ybGQ") == b"hello world"

    @pytest.mark.parametrize("length", range(0, 10))
    def test_restores_padding(self, length):
        data = bytes(range(length))
        assert decode(encode(data)) == data

    @pytest.mark.parametrize("text", ["abc!", "ab cd", "a+bc", "a/bc", "aGVsbG8=", "é"])
    def test_rejects_characters_outside_alphabet(self, text):
        with pytest.raises(BadData):
            decode(text)

    @pytest.mark.parametrize("text", ["a", "abcde", "abcdefghi"])
    def test_rejects_impossible_length(self, text):
        with pytest.raises(BadData):
            decode(text)

    @pytest.mark.parametrize("text", ["aGVsbG8gd29ybGR", "aGVsbG8gd29ybGT", "YR", "YWJ"])
    def test_rejects_non_zero_unused_bits(self, text):
        # Each of these decodes to the same bytes as a canonical encoding.
        with pytest.raises(BadData):
            decode(text)

    def test_non_ascii_bytes(self):
        with pytest.raises(BadData):
            decode(b"\xff\xfe")

    def test_decode_error_is_not_a_signature_error(self):
        with pytest.raises(BadData) as exc_info:
            decode("!!!!")
        assert not isinstance(exc_info.value, BadSignature)


class TestIntegerEncoding:
    """Test the compact integer encoding used for timestamps."""

    def test_known_timestamp(self):
        assert encode_int(1560181622) == "XP57dg"
        assert decode_int("XP57dg") == 1560181622

    def test_known_legacy_timestamp(self):
        assert encode_int(1560181622 - LEGACY_EPOCH) == "D-AM9g"

    def test_zero(self):
        assert encode_int(0) == ""
        assert decode_int("") == 0

    def test_leading_zero_bytes_stripped(self):
        assert int_to_bytes(1) == b"\x01"
        assert int_to_bytes(256) == b"\x01\x00"

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            encode_int(-1)

    def test_max_64_bit(self):
        value = 2**64 - 1
        assert decode_int(encode_int(value)) == value

    def test_overflow(self):
        with pytest.raises(BadData):
            decode_int(encode_int(2**64))

    def test_invalid_characters(self):
        with pytest.raises(BadData):
            decode_int("XP5*dg")

    def test_not_decimal(self):
        assert encode_int(1560181622) != "1560181622"


class TestAlphabet:
    """Test alphabet membership."""

    @pytest.mark.parametrize("char", list("azAZ09-_="))
    def test_members(self, char):
        assert in_alphabet(char)

    @pytest.mark.parametrize("char", list(".!:|~$ "))
    def test_non_members(self, char):
        assert not in_alphabet(char)

    def test_multi_character_strings_are_not_members(self):
        assert not in_alphabet("ab")

    def test_alphabet_size(self):
        assert len(set(ALPHABET)) == 65

    def test_want_bytes(self):
        assert want_bytes("abc") == b"abc"
        assert want_bytes(bytearray(b"abc")) == b"abc"
