"""
Java class file reader.

Decodes the structural skeleton (magic, versions, class linkage, interface
list), then the field and method tables and the class attributes. The
constant pool is fully read before any attribute is decoded and is only
consulted read-only afterwards.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from .attributes import DEFAULT_MAX_DEPTH, AttributeDecoder
from .classfile import MAGIC, ClassFile, FieldInfo, MemberInfo, MethodInfo
from .constant_pool import ConstantPool, read_constant_pool
from .cursor import ByteCursor, ByteSource
from .errors import BadMagic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecoderOptions:
    """Decoder settings.

    ``max_depth`` bounds nesting of attribute lists and annotation values.
    Each Code body nested in an attribute list costs one level, as does each
    annotation or array element value nested in another.
    ``logger`` receives the decoder's DEBUG diagnostics; defaults to this
    module's logger.
    """
    max_depth: int = DEFAULT_MAX_DEPTH
    logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None


def read_members(cursor: ByteCursor, attributes: AttributeDecoder,
                 kind: type[MemberInfo] = MemberInfo,
                 log: Union[logging.Logger, logging.LoggerAdapter] = logger) -> tuple[MemberInfo, ...]:
    """Read a u2 count followed by that many field_info/method_info records."""
    count = cursor.read_u2()
    members = []
    for _ in range(count):
        access = cursor.read_u2()
        name_idx = cursor.read_u2()
        desc_idx = cursor.read_u2()
        log.debug("%s: flags=0x%04x name=#%d descriptor=#%d",
                  kind.__name__, access, name_idx, desc_idx)
        attrs = attributes.read_attributes(cursor)
        members.append(kind(
            access_flags=access,
            name_index=name_idx,
            descriptor_index=desc_idx,
            attributes=attrs,
        ))
    return tuple(members)


class ClassReader:
    """Reads Java class files."""

    def __init__(self, source: ByteSource, options: Optional[DecoderOptions] = None):
        self.cursor = ByteCursor(source)
        self.options = options or DecoderOptions()
        self.log = self.options.logger or logger

    def _read_constant_pool(self) -> ConstantPool:
        count = self.cursor.read_u2()
        return read_constant_pool(self.cursor, count, self.log)

    def read(self) -> ClassFile:
        """Read the class file and return ClassFile."""
        cursor = self.cursor

        # Magic number
        magic = cursor.read_u4()
        if magic != MAGIC:
            raise BadMagic(magic)

        # Version
        minor = cursor.read_u2()
        major = cursor.read_u2()
        self.log.debug("Class file version %d.%d", major, minor)

        constant_pool = self._read_constant_pool()

        access_flags = cursor.read_u2()
        this_class_idx = cursor.read_u2()
        super_class_idx = cursor.read_u2()

        interfaces_count = cursor.read_u2()
        interfaces = tuple(cursor.read_u2() for _ in range(interfaces_count))

        attributes = AttributeDecoder(constant_pool, self.options.max_depth, self.log)

        fields = read_members(cursor, attributes, FieldInfo, self.log)
        self.log.debug("Read %d field(s)", len(fields))
        methods = read_members(cursor, attributes, MethodInfo, self.log)
        self.log.debug("Read %d method(s)", len(methods))

        # Class attributes
        class_attrs = attributes.read_attributes(cursor)

        if not cursor.at_end():
            self.log.debug("Ignoring %d trailing byte(s) after class attributes", cursor.remaining)

        return ClassFile(
            magic=magic,
            minor_version=minor,
            major_version=major,
            constant_pool=constant_pool,
            access_flags=access_flags,
            this_class=this_class_idx,
            super_class=super_class_idx,
            interfaces=interfaces,
            fields=fields,
            methods=methods,
            attributes=class_attrs,
        )


def decode(source: ByteSource, options: Optional[DecoderOptions] = None) -> ClassFile:
    """Decode a class file from bytes or a binary stream.

    Raises a DecodeError subclass on the first structural error; nothing is
    returned for a partially decoded input.
    """
    return ClassReader(source, options).read()
