"""
Decoder for the modified UTF-8 used by CONSTANT_Utf8 entries.

Differences from standard UTF-8: NUL is written as the two bytes C0 80, and
supplementary characters are written as a surrogate pair, each half encoded
as a 3-byte sequence. Four-byte forms never occur.
"""

import struct

REPLACEMENT = 0xFFFD


def _is_continuation(data: bytes, i: int) -> bool:
    return i < len(data) and (data[i] & 0xC0) == 0x80


def decode_mutf8(data: bytes, errors: str = "strict") -> str:
    """Decode modified UTF-8 bytes to str.

    With errors="strict" an invalid sequence raises UnicodeDecodeError;
    with errors="replace" each invalid byte becomes U+FFFD.
    """
    if errors not in ("strict", "replace"):
        raise ValueError(f"Unsupported error handler: {errors}")

    data = bytes(data)
    units = []
    i = 0
    while i < len(data):
        b = data[i]
        if 0 < b < 0x80:
            units.append(b)
            i += 1
            continue

        if (b & 0xE0) == 0xC0 and _is_continuation(data, i + 1):
            units.append(((b & 0x1F) << 6) | (data[i + 1] & 0x3F))
            i += 2
            continue

        if (b & 0xF0) == 0xE0 and _is_continuation(data, i + 1) and _is_continuation(data, i + 2):
            units.append(((b & 0x0F) << 12) | ((data[i + 1] & 0x3F) << 6) | (data[i + 2] & 0x3F))
            i += 3
            continue

        if errors == "strict":
            raise UnicodeDecodeError("mutf8", data, i, i + 1, "invalid modified UTF-8 byte")
        units.append(REPLACEMENT)
        i += 1

    # Code units are UTF-16; let the codec pair up surrogates.
    raw = struct.pack(f">{len(units)}H", *units)
    if errors == "strict":
        try:
            return raw.decode("utf-16-be")
        except UnicodeDecodeError as e:
            raise UnicodeDecodeError("mutf8", data, 0, len(data), f"unpaired surrogate: {e.reason}") from e
    return raw.decode("utf-16-be", errors="replace")
