"""Tests for little-endian scalar readers."""

import struct

import pytest

from aseflat import scalars
from aseflat.errors import ParseError, TruncatedDataError


class TestIntegers:
    """Tests for fixed-width integer readers."""

    def test_word_returns_value_and_rest(self):
        value, rest = scalars.word(b"\x34\x12\xff")
        assert value == 0x1234
        assert bytes(rest) == b"\xff"

    def test_signed_readers(self):
        assert scalars.short(struct.pack("<h", -2))[0] == -2
        assert scalars.long(struct.pack("<i", -70000))[0] == -70000

    def test_dword(self):
        assert scalars.dword(struct.pack("<I", 0xDEADBEEF))[0] == 0xDEADBEEF

    def test_fixed_point(self):
        value, _ = scalars.fixed(struct.pack("<i", 0x00018000))
        assert value == 1.5

    def test_truncated_names_the_field(self):
        with pytest.raises(TruncatedDataError, match="cel width"):
            scalars.word(b"\x01", "cel width")

    def test_truncated_is_parse_error(self):
        with pytest.raises(ParseError):
            scalars.dword(b"\x01\x02\x03")


class TestBytes:
    """Tests for byte runs and strings."""

    def test_take_splits(self):
        head, rest = scalars.take(b"abcdef", 2)
        assert bytes(head) == b"ab"
        assert bytes(rest) == b"cdef"

    def test_take_too_much(self):
        with pytest.raises(TruncatedDataError):
            scalars.take(b"abc", 4)

    def test_take_negative(self):
        with pytest.raises(TruncatedDataError):
            scalars.take(b"abc", -1)

    def test_skip(self):
        assert bytes(scalars.skip(b"abc", 2)) == b"c"

    def test_string(self):
        raw = "héllo".encode("utf-8")
        value, rest = scalars.string(struct.pack("<H", len(raw)) + raw + b"!")
        assert value == "héllo"
        assert bytes(rest) == b"!"

    def test_string_length_past_end(self):
        with pytest.raises(TruncatedDataError):
            scalars.string(b"\x05\x00abc")

    def test_string_invalid_utf8(self):
        with pytest.raises(ParseError, match="UTF-8"):
            scalars.string(b"\x02\x00\xff\xfe")

    def test_colors(self):
        assert scalars.rgb(b"\x01\x02\x03")[0] == (1, 2, 3)
        assert scalars.rgba(b"\x01\x02\x03\x04")[0] == (1, 2, 3, 4)
