"""
Class file format constants and the decoded class file model.
"""

from dataclasses import dataclass
from enum import IntEnum, IntFlag
from typing import Optional, TYPE_CHECKING

from .descriptors import parse_field_descriptor, parse_method_descriptor

if TYPE_CHECKING:
    from .attributes import AttributeInfo, CodeAttribute
    from .constant_pool import ConstantPool
    from .descriptors import FieldType, MethodDescriptor


MAGIC = 0xCAFEBABE


class AccessFlags(IntFlag):
    PUBLIC = 0x0001
    PRIVATE = 0x0002
    PROTECTED = 0x0004
    STATIC = 0x0008
    FINAL = 0x0010
    SUPER = 0x0020  # For classes (invokespecial semantics)
    SYNCHRONIZED = 0x0020  # For methods
    VOLATILE = 0x0040
    BRIDGE = 0x0040
    TRANSIENT = 0x0080
    VARARGS = 0x0080
    NATIVE = 0x0100
    INTERFACE = 0x0200
    ABSTRACT = 0x0400
    STRICT = 0x0800
    SYNTHETIC = 0x1000
    ANNOTATION = 0x2000
    ENUM = 0x4000
    MODULE = 0x8000  # For classes
    MANDATED = 0x8000  # For method parameters


class ConstantPoolTag(IntEnum):
    UTF8 = 1
    INTEGER = 3
    FLOAT = 4
    LONG = 5
    DOUBLE = 6
    CLASS = 7
    STRING = 8
    FIELDREF = 9
    METHODREF = 10
    INTERFACE_METHODREF = 11
    NAME_AND_TYPE = 12
    METHOD_HANDLE = 15
    METHOD_TYPE = 16
    DYNAMIC = 17
    INVOKE_DYNAMIC = 18
    MODULE = 19
    PACKAGE = 20


class ReferenceKind(IntEnum):
    """reference_kind values of a MethodHandle constant."""
    GET_FIELD = 1
    GET_STATIC = 2
    PUT_FIELD = 3
    PUT_STATIC = 4
    INVOKE_VIRTUAL = 5
    INVOKE_STATIC = 6
    INVOKE_SPECIAL = 7
    NEW_INVOKE_SPECIAL = 8
    INVOKE_INTERFACE = 9


@dataclass(frozen=True)
class MemberInfo:
    """A field_info or method_info record; indices are kept verbatim."""
    access_flags: int
    name_index: int
    descriptor_index: int
    attributes: tuple["AttributeInfo", ...] = ()

    @property
    def flags(self) -> AccessFlags:
        return AccessFlags(self.access_flags)

    def name(self, pool: "ConstantPool") -> str:
        return pool.get_utf8(self.name_index)

    def descriptor(self, pool: "ConstantPool") -> str:
        return pool.get_utf8(self.descriptor_index)

    def get_attribute(self, name: str) -> Optional["AttributeInfo"]:
        """Return the first attribute with the given name."""
        for attr in self.attributes:
            if attr.name == name:
                return attr
        return None


@dataclass(frozen=True)
class FieldInfo(MemberInfo):
    """Field in a class file."""

    def parsed_descriptor(self, pool: "ConstantPool") -> "FieldType":
        return parse_field_descriptor(self.descriptor(pool))


@dataclass(frozen=True)
class MethodInfo(MemberInfo):
    """Method in a class file."""

    @property
    def code(self) -> Optional["CodeAttribute"]:
        return self.get_attribute("Code")

    def parsed_descriptor(self, pool: "ConstantPool") -> "MethodDescriptor":
        return parse_method_descriptor(self.descriptor(pool))


@dataclass(frozen=True)
class ClassFile:
    """A fully decoded class file.

    Every cross-reference is stored as the raw constant pool index. The
    helper properties resolve names through the pool and raise
    InvalidConstantIndex when a reference is dangling.
    """
    magic: int
    minor_version: int
    major_version: int
    constant_pool: "ConstantPool"
    access_flags: int
    this_class: int
    super_class: int
    interfaces: tuple[int, ...]
    fields: tuple[FieldInfo, ...]
    methods: tuple[MethodInfo, ...]
    attributes: tuple["AttributeInfo", ...]

    @property
    def version(self) -> tuple[int, int]:
        return (self.major_version, self.minor_version)

    @property
    def flags(self) -> AccessFlags:
        return AccessFlags(self.access_flags)

    @property
    def name(self) -> str:
        return self.constant_pool.get_class_name(self.this_class)

    @property
    def super_name(self) -> Optional[str]:
        # Only java/lang/Object has no superclass.
        if self.super_class == 0:
            return None
        return self.constant_pool.get_class_name(self.super_class)

    @property
    def interface_names(self) -> tuple[str, ...]:
        return tuple(self.constant_pool.get_class_name(i) for i in self.interfaces)

    def get_attribute(self, name: str) -> Optional["AttributeInfo"]:
        for attr in self.attributes:
            if attr.name == name:
                return attr
        return None

    def find_method(self, name: str, descriptor: Optional[str] = None) -> Optional[MethodInfo]:
        """Find a method by name and, optionally, descriptor."""
        for method in self.methods:
            if method.name(self.constant_pool) != name:
                continue
            if descriptor is None or method.descriptor(self.constant_pool) == descriptor:
                return method
        return None

    def find_field(self, name: str) -> Optional[FieldInfo]:
        for field_info in self.fields:
            if field_info.name(self.constant_pool) == name:
                return field_info
        return None
