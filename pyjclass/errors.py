"""
Errors raised while decoding a class file.
"""

from typing import Optional


class DecodeError(Exception):
    """Error during class file decoding."""
    pass


class UnexpectedEnd(DecodeError):
    """The input ended before a field or length could be satisfied."""

    def __init__(self, position: int, requested: int, available: int):
        self.position = position
        self.requested = requested
        self.available = available
        super().__init__(
            f"Unexpected end of input at offset {position}: "
            f"needed {requested} byte(s), {available} available"
        )


class BadMagic(DecodeError):
    """The header sentinel is not 0xCAFEBABE."""

    def __init__(self, found: int):
        self.found = found
        super().__init__(f"Invalid class file magic: {found:#010x}")


class UnsupportedConstantTag(DecodeError):
    """A constant pool entry carries a tag outside the known set."""

    def __init__(self, tag: int, position: int):
        self.tag = tag
        self.position = position
        super().__init__(f"Unknown constant pool tag {tag} at offset {position}")


class InvalidConstantIndex(DecodeError):
    """A constant pool reference does not resolve to a usable entry."""

    def __init__(self, index: int, reason: str = "out of range"):
        self.index = index
        self.reason = reason
        super().__init__(f"Invalid constant pool index {index}: {reason}")


class InvalidAttributeName(DecodeError):
    """An attribute name index does not resolve to a Utf8 entry."""

    def __init__(self, name_index: int, reason: Optional[str] = None):
        self.name_index = name_index
        self.reason = reason
        message = f"Attribute name index {name_index} is not a Utf8 constant"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class MalformedAttribute(DecodeError):
    """A structured attribute does not consume exactly its declared length,
    or its payload holds a value the structure does not allow."""

    def __init__(self, name: str, expected: int, consumed: Optional[int] = None,
                 reason: Optional[str] = None):
        self.name = name
        self.expected = expected
        self.consumed = consumed
        self.reason = reason
        if reason:
            detail = reason
        elif consumed is None:
            detail = f"body overruns declared length {expected}"
        else:
            detail = f"declared length {expected}, structure consumed {consumed}"
        super().__init__(f"Malformed {name} attribute: {detail}")


class RecursionLimitExceeded(DecodeError):
    """Nested attributes went deeper than the configured limit."""

    def __init__(self, depth: int, limit: int):
        self.depth = depth
        self.limit = limit
        super().__init__(f"Attribute nesting depth {depth} exceeds limit {limit}")
