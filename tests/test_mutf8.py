import pytest

from pyjclass.mutf8 import decode_mutf8


def test_ascii() -> None:
    assert decode_mutf8(b"java/lang/Object") == "java/lang/Object"


def test_two_byte_forms() -> None:
    assert decode_mutf8(b"caf\xc3\xa9") == "café"
    # NUL is encoded as C0 80
    assert decode_mutf8(b"a\xc0\x80b") == "a\x00b"


def test_three_byte_form() -> None:
    assert decode_mutf8(b"\xe2\x82\xac") == "€"


def test_surrogate_pair() -> None:
    # U+1F600 as two 3-byte encoded surrogates
    assert decode_mutf8(b"\xed\xa0\xbd\xed\xb8\x80") == "\U0001F600"


def test_empty() -> None:
    assert decode_mutf8(b"") == ""


@pytest.mark.parametrize("data", [
    b"\x00",                  # raw NUL is not allowed
    b"\xc3",                  # truncated sequence
    b"\xf0\x9f\x98\x80",      # standard 4-byte UTF-8
    b"\xed\xa0\xbd",          # lone high surrogate
])
def test_invalid_strict(data) -> None:
    with pytest.raises(UnicodeDecodeError):
        decode_mutf8(data)


def test_invalid_replace() -> None:
    assert decode_mutf8(b"a\x00b", errors="replace") == "a\ufffdb"
    assert decode_mutf8(b"\xed\xa0\xbd", errors="replace") == "\ufffd"


def test_unknown_error_handler() -> None:
    with pytest.raises(ValueError):
        decode_mutf8(b"", errors="ignore")
