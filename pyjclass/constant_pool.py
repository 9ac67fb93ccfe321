"""
Constant pool entries and the constant pool decoder.

The pool is a 1-indexed table. Slot 0 and the slot after every Long or
Double hold the Unusable placeholder; looking either up is an error.
"""

import logging
import struct
from dataclasses import dataclass
from typing import ClassVar, Iterator, Optional, Union

from .classfile import ConstantPoolTag, ReferenceKind
from .cursor import ByteCursor
from .errors import InvalidConstantIndex, UnsupportedConstantTag
from .mutf8 import decode_mutf8

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConstantPoolEntry:
    """Base class for constant pool entries."""
    tag: ClassVar[Optional[ConstantPoolTag]] = None
    # Long and Double occupy two slots
    slots: ClassVar[int] = 1


@dataclass(frozen=True)
class Unusable(ConstantPoolEntry):
    """Placeholder for slot 0 and the second slot of 8-byte constants."""
    pass


UNUSABLE = Unusable()


@dataclass(frozen=True)
class Utf8(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.UTF8
    bytes: bytes

    @property
    def text(self) -> str:
        """Lenient modified UTF-8 decoding of the payload."""
        return decode_mutf8(self.bytes, errors="replace")

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Integer(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.INTEGER
    value: int


@dataclass(frozen=True)
class Float(ConstantPoolEntry):
    """Float constant, kept as its raw IEEE 754 bit pattern."""
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.FLOAT
    bits: int

    @property
    def value(self) -> float:
        return struct.unpack(">f", struct.pack(">I", self.bits))[0]


@dataclass(frozen=True)
class Long(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.LONG
    slots: ClassVar[int] = 2
    high_bytes: int
    low_bytes: int

    @property
    def value(self) -> int:
        return struct.unpack(">q", struct.pack(">II", self.high_bytes, self.low_bytes))[0]


@dataclass(frozen=True)
class Double(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.DOUBLE
    slots: ClassVar[int] = 2
    high_bytes: int
    low_bytes: int

    @property
    def value(self) -> float:
        return struct.unpack(">d", struct.pack(">II", self.high_bytes, self.low_bytes))[0]


@dataclass(frozen=True)
class Class(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.CLASS
    name_index: int


@dataclass(frozen=True)
class String(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.STRING
    string_index: int


@dataclass(frozen=True)
class MemberRef(ConstantPoolEntry):
    """Shared shape of Fieldref, Methodref and InterfaceMethodref."""
    class_index: int
    name_and_type_index: int


@dataclass(frozen=True)
class Fieldref(MemberRef):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.FIELDREF


@dataclass(frozen=True)
class Methodref(MemberRef):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.METHODREF


@dataclass(frozen=True)
class InterfaceMethodref(MemberRef):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.INTERFACE_METHODREF


@dataclass(frozen=True)
class NameAndType(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.NAME_AND_TYPE
    name_index: int
    descriptor_index: int


@dataclass(frozen=True)
class MethodHandle(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.METHOD_HANDLE
    reference_kind: int
    reference_index: int

    @property
    def kind(self) -> ReferenceKind:
        return ReferenceKind(self.reference_kind)


@dataclass(frozen=True)
class MethodType(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.METHOD_TYPE
    descriptor_index: int


@dataclass(frozen=True)
class Dynamic(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.DYNAMIC
    bootstrap_method_attr_index: int
    name_and_type_index: int


@dataclass(frozen=True)
class InvokeDynamic(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.INVOKE_DYNAMIC
    bootstrap_method_attr_index: int
    name_and_type_index: int


@dataclass(frozen=True)
class Module(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.MODULE
    name_index: int


@dataclass(frozen=True)
class Package(ConstantPoolEntry):
    tag: ClassVar[ConstantPoolTag] = ConstantPoolTag.PACKAGE
    name_index: int


@dataclass(frozen=True)
class ConstantPool:
    """Index-addressable, read-only constant pool.

    ``slots[i]`` is the entry at pool index ``i``; ``len(pool)`` is the
    declared constant_pool_count.
    """
    slots: tuple[ConstantPoolEntry, ...]

    def __len__(self) -> int:
        return len(self.slots)

    def __getitem__(self, index: int) -> ConstantPoolEntry:
        return self.get(index)

    def get(self, index: int) -> ConstantPoolEntry:
        if index <= 0 or index >= len(self.slots):
            raise InvalidConstantIndex(index, f"outside 1..{len(self.slots) - 1}")
        entry = self.slots[index]
        if isinstance(entry, Unusable):
            raise InvalidConstantIndex(index, "second slot of an 8-byte constant")
        return entry

    def entries(self) -> Iterator[tuple[int, ConstantPoolEntry]]:
        """Iterate (index, entry) over usable slots."""
        for index, entry in enumerate(self.slots):
            if not isinstance(entry, Unusable):
                yield index, entry

    def _get_typed(self, index: int, kind):
        entry = self.get(index)
        if not isinstance(entry, kind):
            expected = kind.__name__ if isinstance(kind, type) else "/".join(k.__name__ for k in kind)
            raise InvalidConstantIndex(
                index, f"expected {expected}, found {type(entry).__name__}"
            )
        return entry

    def get_utf8(self, index: int) -> str:
        """Get UTF8 string from constant pool."""
        return self._get_typed(index, Utf8).text

    def get_class_name(self, index: int) -> str:
        """Get internal class name from constant pool."""
        return self.get_utf8(self._get_typed(index, Class).name_index)

    def get_string(self, index: int) -> str:
        return self.get_utf8(self._get_typed(index, String).string_index)

    def get_name_and_type(self, index: int) -> tuple[str, str]:
        nat = self._get_typed(index, NameAndType)
        return self.get_utf8(nat.name_index), self.get_utf8(nat.descriptor_index)

    def get_member_ref(self, index: int) -> tuple[str, str, str]:
        """Resolve a field/method reference to (class, name, descriptor)."""
        ref = self._get_typed(index, MemberRef)
        name, descriptor = self.get_name_and_type(ref.name_and_type_index)
        return self.get_class_name(ref.class_index), name, descriptor

    def get_constant_value(self, index: int) -> Union[int, float, str]:
        """Value of a loadable Integer/Float/Long/Double/String constant."""
        entry = self._get_typed(index, (Integer, Float, Long, Double, String))
        if isinstance(entry, String):
            return self.get_utf8(entry.string_index)
        return entry.value


def read_constant_pool(cursor: ByteCursor, count: int,
                       log: Union[logging.Logger, logging.LoggerAdapter] = logger) -> ConstantPool:
    """Read the constant pool; ``count`` is the constant_pool_count field."""
    slots: list[ConstantPoolEntry] = [UNUSABLE]  # 1-indexed
    i = 1
    while i < count:
        position = cursor.position
        tag = cursor.read_u1()
        entry = None

        if tag == ConstantPoolTag.UTF8:
            length = cursor.read_u2()
            entry = Utf8(cursor.read_bytes(length))

        elif tag == ConstantPoolTag.INTEGER:
            entry = Integer(cursor.read_i4())

        elif tag == ConstantPoolTag.FLOAT:
            entry = Float(cursor.read_u4())

        elif tag == ConstantPoolTag.LONG:
            high = cursor.read_u4()
            low = cursor.read_u4()
            entry = Long(high, low)

        elif tag == ConstantPoolTag.DOUBLE:
            high = cursor.read_u4()
            low = cursor.read_u4()
            entry = Double(high, low)

        elif tag == ConstantPoolTag.CLASS:
            entry = Class(cursor.read_u2())

        elif tag == ConstantPoolTag.STRING:
            entry = String(cursor.read_u2())

        elif tag == ConstantPoolTag.FIELDREF:
            class_idx = cursor.read_u2()
            nat_idx = cursor.read_u2()
            entry = Fieldref(class_idx, nat_idx)

        elif tag == ConstantPoolTag.METHODREF:
            class_idx = cursor.read_u2()
            nat_idx = cursor.read_u2()
            entry = Methodref(class_idx, nat_idx)

        elif tag == ConstantPoolTag.INTERFACE_METHODREF:
            class_idx = cursor.read_u2()
            nat_idx = cursor.read_u2()
            entry = InterfaceMethodref(class_idx, nat_idx)

        elif tag == ConstantPoolTag.NAME_AND_TYPE:
            name_idx = cursor.read_u2()
            desc_idx = cursor.read_u2()
            entry = NameAndType(name_idx, desc_idx)

        elif tag == ConstantPoolTag.METHOD_HANDLE:
            kind = cursor.read_u1()
            ref_idx = cursor.read_u2()
            entry = MethodHandle(kind, ref_idx)

        elif tag == ConstantPoolTag.METHOD_TYPE:
            entry = MethodType(cursor.read_u2())

        elif tag == ConstantPoolTag.DYNAMIC:
            bootstrap_idx = cursor.read_u2()
            nat_idx = cursor.read_u2()
            entry = Dynamic(bootstrap_idx, nat_idx)

        elif tag == ConstantPoolTag.INVOKE_DYNAMIC:
            bootstrap_idx = cursor.read_u2()
            nat_idx = cursor.read_u2()
            entry = InvokeDynamic(bootstrap_idx, nat_idx)

        elif tag == ConstantPoolTag.MODULE:
            entry = Module(cursor.read_u2())

        elif tag == ConstantPoolTag.PACKAGE:
            entry = Package(cursor.read_u2())

        else:
            raise UnsupportedConstantTag(tag, position)

        slots.append(entry)
        if entry.slots == 2:
            if i + 1 >= count:
                raise InvalidConstantIndex(
                    i + 1, f"8-byte constant at index {i} needs a slot past the pool count {count}"
                )
            slots.append(UNUSABLE)
        i += entry.slots

    log.debug("Read constant pool: %d slots", len(slots))
    return ConstantPool(tuple(slots))
