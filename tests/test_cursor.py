"""Tests for the byte cursor."""

import io

import pytest

from pyjclass.cursor import ByteCursor
from pyjclass.errors import DecodeError, UnexpectedEnd


class TestReads:
    def test_big_endian_integers(self):
        cursor = ByteCursor(bytes([0xCA, 0xFE, 0xBA, 0xBE, 0x00, 0x37, 0x7F]))
        assert cursor.read_u4() == 0xCAFEBABE
        assert cursor.read_u2() == 55
        assert cursor.read_u1() == 0x7F
        assert cursor.at_end()

    def test_signed_int(self):
        cursor = ByteCursor(b"\xff\xff\xff\xfe")
        assert cursor.read_i4() == -2

    def test_read_bytes_returns_owned_copy(self):
        buf = bytearray(b"main!")
        cursor = ByteCursor(buf)
        data = cursor.read_bytes(4)
        buf[0] = 0
        assert data == b"main"
        assert isinstance(data, bytes)
        assert cursor.position == 4
        assert cursor.remaining == 1

    def test_zero_length_read(self):
        cursor = ByteCursor(b"")
        assert cursor.read_bytes(0) == b""
        assert cursor.at_end()

    def test_binary_stream_source(self):
        cursor = ByteCursor(io.BytesIO(b"\x00\x01\x00\x02"))
        assert cursor.read_u2() == 1
        assert cursor.read_u2() == 2

    def test_text_stream_rejected(self):
        with pytest.raises(TypeError):
            ByteCursor(io.StringIO("abc"))


class TestUnexpectedEnd:
    @pytest.mark.parametrize("method", ["read_u1", "read_u2", "read_u4", "read_i4"])
    def test_empty_source(self, method):
        cursor = ByteCursor(b"")
        with pytest.raises(UnexpectedEnd):
            getattr(cursor, method)()

    def test_short_read_reports_position(self):
        cursor = ByteCursor(b"\x00\x01\x02")
        cursor.read_u1()
        with pytest.raises(UnexpectedEnd) as exc_info:
            cursor.read_u4()
        err = exc_info.value
        assert err.position == 1
        assert err.requested == 4
        assert err.available == 2
        # Nothing consumed by the failed read
        assert cursor.position == 1

    def test_read_bytes_past_end(self):
        cursor = ByteCursor(b"abc")
        with pytest.raises(UnexpectedEnd):
            cursor.read_bytes(4)

    def test_is_decode_error(self):
        with pytest.raises(DecodeError):
            ByteCursor(b"\x01").read_u2()


class TestSubCursor:
    def test_bounded_and_offset(self):
        cursor = ByteCursor(b"\xaa\xbb\x00\x01\x02\xcc")
        cursor.read_u2()
        body = cursor.sub_cursor(3)
        assert cursor.position == 5
        assert body.position == 2
        assert body.read_u2() == 1
        with pytest.raises(UnexpectedEnd) as exc_info:
            body.read_u2()
        assert exc_info.value.position == 4

    def test_sub_cursor_past_end(self):
        cursor = ByteCursor(b"\x00\x01")
        with pytest.raises(UnexpectedEnd):
            cursor.sub_cursor(3)
