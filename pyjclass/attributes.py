"""
Attribute model and the recursive attribute decoder.

Every attribute is (name_index, length, payload). The payload is read in
full from the enclosing stream first; a structured reader then decodes it
from a bounded cursor and must consume it exactly. Names without a
structured reader decode to RawAttribute.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Optional, Union

from .constant_pool import ConstantPool, Utf8
from .cursor import ByteCursor
from .errors import (
    InvalidAttributeName,
    InvalidConstantIndex,
    MalformedAttribute,
    RecursionLimitExceeded,
    UnexpectedEnd,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 16


@dataclass(frozen=True)
class AttributeInfo:
    """Base class for decoded attributes."""
    name_index: int
    length: int

    ATTRIBUTE_NAME: ClassVar[str] = ""

    @property
    def name(self) -> str:
        return self.ATTRIBUTE_NAME


@dataclass(frozen=True)
class RawAttribute(AttributeInfo):
    """An attribute kept as its opaque payload."""
    attribute_name: str
    info: bytes

    @property
    def name(self) -> str:
        return self.attribute_name


@dataclass(frozen=True)
class ConstantValueAttribute(AttributeInfo):
    ATTRIBUTE_NAME: ClassVar[str] = "ConstantValue"
    constantvalue_index: int


@dataclass(frozen=True)
class ExceptionTableEntry:
    """An entry in the exception table."""
    start_pc: int
    end_pc: int  # exclusive
    handler_pc: int
    catch_type: int  # 0 for finally (catches all), otherwise constant pool index of class

    @property
    def catches_all(self) -> bool:
        return self.catch_type == 0

    def covers(self, pc: int) -> bool:
        return self.start_pc <= pc < self.end_pc


@dataclass(frozen=True)
class CodeAttribute(AttributeInfo):
    """Code attribute for a method."""
    ATTRIBUTE_NAME: ClassVar[str] = "Code"
    max_stack: int
    max_locals: int
    code: bytes
    exception_table: tuple[ExceptionTableEntry, ...]
    attributes: tuple[AttributeInfo, ...]

    def get_attribute(self, name: str) -> Optional[AttributeInfo]:
        for attr in self.attributes:
            if attr.name == name:
                return attr
        return None


@dataclass(frozen=True)
class ExceptionsAttribute(AttributeInfo):
    ATTRIBUTE_NAME: ClassVar[str] = "Exceptions"
    exception_index_table: tuple[int, ...]


@dataclass(frozen=True)
class InnerClassEntry:
    inner_class_info_index: int
    outer_class_info_index: int  # 0 if not a member
    inner_name_index: int  # 0 if anonymous
    inner_class_access_flags: int


@dataclass(frozen=True)
class InnerClassesAttribute(AttributeInfo):
    ATTRIBUTE_NAME: ClassVar[str] = "InnerClasses"
    classes: tuple[InnerClassEntry, ...]


@dataclass(frozen=True)
class EnclosingMethodAttribute(AttributeInfo):
    ATTRIBUTE_NAME: ClassVar[str] = "EnclosingMethod"
    class_index: int
    method_index: int  # 0 when not enclosed by a method


@dataclass(frozen=True)
class SyntheticAttribute(AttributeInfo):
    ATTRIBUTE_NAME: ClassVar[str] = "Synthetic"


@dataclass(frozen=True)
class DeprecatedAttribute(AttributeInfo):
    ATTRIBUTE_NAME: ClassVar[str] = "Deprecated"


@dataclass(frozen=True)
class SignatureAttribute(AttributeInfo):
    ATTRIBUTE_NAME: ClassVar[str] = "Signature"
    signature_index: int


@dataclass(frozen=True)
class SourceFileAttribute(AttributeInfo):
    ATTRIBUTE_NAME: ClassVar[str] = "SourceFile"
    sourcefile_index: int


@dataclass(frozen=True)
class LineNumberEntry:
    start_pc: int
    line_number: int


@dataclass(frozen=True)
class LineNumberTableAttribute(AttributeInfo):
    ATTRIBUTE_NAME: ClassVar[str] = "LineNumberTable"
    line_number_table: tuple[LineNumberEntry, ...]

    def line_for(self, pc: int) -> Optional[int]:
        """Source line of the instruction at ``pc``, if known."""
        best = None
        for entry in self.line_number_table:
            if entry.start_pc <= pc and (best is None or entry.start_pc >= best.start_pc):
                best = entry
        return best.line_number if best else None


@dataclass(frozen=True)
class LocalVariableEntry:
    """Row of LocalVariableTable (descriptor) or LocalVariableTypeTable (signature)."""
    start_pc: int
    length: int
    name_index: int
    descriptor_index: int
    index: int


@dataclass(frozen=True)
class LocalVariableTableAttribute(AttributeInfo):
    ATTRIBUTE_NAME: ClassVar[str] = "LocalVariableTable"
    local_variable_table: tuple[LocalVariableEntry, ...]


@dataclass(frozen=True)
class LocalVariableTypeTableAttribute(AttributeInfo):
    ATTRIBUTE_NAME: ClassVar[str] = "LocalVariableTypeTable"
    local_variable_type_table: tuple[LocalVariableEntry, ...]


@dataclass(frozen=True)
class EnumConstValue:
    type_name_index: int
    const_name_index: int


@dataclass(frozen=True)
class ElementValue:
    """An annotation element value.

    ``value`` depends on ``tag``: a constant pool index for B C D F I J S Z s
    and c, an EnumConstValue for e, an Annotation for @, and a tuple of
    ElementValue for [.
    """
    tag: str
    value: Any


@dataclass(frozen=True)
class ElementValuePair:
    element_name_index: int
    value: ElementValue


@dataclass(frozen=True)
class Annotation:
    type_index: int
    element_value_pairs: tuple[ElementValuePair, ...] = ()


@dataclass(frozen=True)
class RuntimeVisibleAnnotationsAttribute(AttributeInfo):
    ATTRIBUTE_NAME: ClassVar[str] = "RuntimeVisibleAnnotations"
    annotations: tuple[Annotation, ...]


@dataclass(frozen=True)
class RuntimeInvisibleAnnotationsAttribute(AttributeInfo):
    ATTRIBUTE_NAME: ClassVar[str] = "RuntimeInvisibleAnnotations"
    annotations: tuple[Annotation, ...]


@dataclass(frozen=True)
class BootstrapMethod:
    bootstrap_method_ref: int
    bootstrap_arguments: tuple[int, ...]


@dataclass(frozen=True)
class BootstrapMethodsAttribute(AttributeInfo):
    ATTRIBUTE_NAME: ClassVar[str] = "BootstrapMethods"
    bootstrap_methods: tuple[BootstrapMethod, ...]


@dataclass(frozen=True)
class MethodParameter:
    name_index: int  # 0 for a formal parameter with no name
    access_flags: int


@dataclass(frozen=True)
class MethodParametersAttribute(AttributeInfo):
    ATTRIBUTE_NAME: ClassVar[str] = "MethodParameters"
    parameters: tuple[MethodParameter, ...]


CONSTANT_ELEMENT_TAGS = "BCDFIJSZs"


class AttributeDecoder:
    """Decodes attribute lists against an already complete constant pool.

    Nested attribute lists (inside Code) and nested annotation values
    increase the depth; going past ``max_depth`` raises
    RecursionLimitExceeded.
    """

    def __init__(self, constant_pool: ConstantPool, max_depth: int = DEFAULT_MAX_DEPTH,
                 log: Union[logging.Logger, logging.LoggerAdapter] = logger):
        self.constant_pool = constant_pool
        self.max_depth = max_depth
        self.log = log
        self._readers: dict[str, Callable[..., AttributeInfo]] = {
            "ConstantValue": self._read_constant_value,
            "Code": self._read_code,
            "Exceptions": self._read_exceptions,
            "InnerClasses": self._read_inner_classes,
            "EnclosingMethod": self._read_enclosing_method,
            "Synthetic": self._read_marker,
            "Deprecated": self._read_marker,
            "Signature": self._read_signature,
            "SourceFile": self._read_source_file,
            "LineNumberTable": self._read_line_number_table,
            "LocalVariableTable": self._read_local_variable_table,
            "LocalVariableTypeTable": self._read_local_variable_table,
            "RuntimeVisibleAnnotations": self._read_annotations,
            "RuntimeInvisibleAnnotations": self._read_annotations,
            "BootstrapMethods": self._read_bootstrap_methods,
            "MethodParameters": self._read_method_parameters,
        }

    def _check_depth(self, depth: int):
        if depth > self.max_depth:
            raise RecursionLimitExceeded(depth, self.max_depth)

    def _resolve_name(self, name_index: int) -> str:
        try:
            entry = self.constant_pool.get(name_index)
        except InvalidConstantIndex as e:
            raise InvalidAttributeName(name_index, e.reason) from e
        if not isinstance(entry, Utf8):
            raise InvalidAttributeName(name_index, f"found {type(entry).__name__}")
        return entry.text

    def read_attributes(self, cursor: ByteCursor, depth: int = 0) -> tuple[AttributeInfo, ...]:
        """Read a u2 count followed by that many attributes."""
        self._check_depth(depth)
        count = cursor.read_u2()
        return tuple(self.read_attribute(cursor, depth) for _ in range(count))

    def read_attribute(self, cursor: ByteCursor, depth: int = 0) -> AttributeInfo:
        """Read one attribute_info structure."""
        start = cursor.position
        name_index = cursor.read_u2()
        length = cursor.read_u4()
        body = cursor.sub_cursor(length)
        name = self._resolve_name(name_index)
        self.log.debug("Attribute %s (%d bytes) at offset %d", name, length, start)

        reader = self._readers.get(name)
        if reader is None:
            self.log.debug("No structured reader for %s, keeping raw payload", name)
            return RawAttribute(name_index, length, name, body.read_bytes(length))

        try:
            attr = reader(body, name_index, name, length, depth)
        except UnexpectedEnd as e:
            raise MalformedAttribute(name, length) from e
        if not body.at_end():
            raise MalformedAttribute(name, length, body.pos)
        return attr

    def _read_constant_value(self, body: ByteCursor, name_index: int, name: str, length: int, depth: int):
        return ConstantValueAttribute(name_index, length, body.read_u2())

    def _read_code(self, body: ByteCursor, name_index: int, name: str, length: int, depth: int):
        max_stack = body.read_u2()
        max_locals = body.read_u2()
        code_length = body.read_u4()
        code = body.read_bytes(code_length)

        exception_table_length = body.read_u2()
        exception_table = []
        for _ in range(exception_table_length):
            start_pc = body.read_u2()
            end_pc = body.read_u2()
            handler_pc = body.read_u2()
            catch_type = body.read_u2()
            exception_table.append(ExceptionTableEntry(start_pc, end_pc, handler_pc, catch_type))

        attributes = self.read_attributes(body, depth + 1)
        return CodeAttribute(
            name_index=name_index,
            length=length,
            max_stack=max_stack,
            max_locals=max_locals,
            code=code,
            exception_table=tuple(exception_table),
            attributes=attributes,
        )

    def _read_exceptions(self, body: ByteCursor, name_index: int, name: str, length: int, depth: int):
        num_exc = body.read_u2()
        exc_indices = tuple(body.read_u2() for _ in range(num_exc))
        return ExceptionsAttribute(name_index, length, exc_indices)

    def _read_inner_classes(self, body: ByteCursor, name_index: int, name: str, length: int, depth: int):
        num_classes = body.read_u2()
        inner = []
        for _ in range(num_classes):
            inner_class_idx = body.read_u2()
            outer_class_idx = body.read_u2()
            inner_name_idx = body.read_u2()
            inner_access = body.read_u2()
            inner.append(InnerClassEntry(inner_class_idx, outer_class_idx, inner_name_idx, inner_access))
        return InnerClassesAttribute(name_index, length, tuple(inner))

    def _read_enclosing_method(self, body: ByteCursor, name_index: int, name: str, length: int, depth: int):
        class_idx = body.read_u2()
        method_idx = body.read_u2()
        return EnclosingMethodAttribute(name_index, length, class_idx, method_idx)

    def _read_marker(self, body: ByteCursor, name_index: int, name: str, length: int, depth: int):
        # Zero-length attributes; leftover bytes are caught by the caller.
        if name == "Synthetic":
            return SyntheticAttribute(name_index, length)
        return DeprecatedAttribute(name_index, length)

    def _read_signature(self, body: ByteCursor, name_index: int, name: str, length: int, depth: int):
        return SignatureAttribute(name_index, length, body.read_u2())

    def _read_source_file(self, body: ByteCursor, name_index: int, name: str, length: int, depth: int):
        return SourceFileAttribute(name_index, length, body.read_u2())

    def _read_line_number_table(self, body: ByteCursor, name_index: int, name: str, length: int, depth: int):
        count = body.read_u2()
        rows = []
        for _ in range(count):
            start_pc = body.read_u2()
            line_number = body.read_u2()
            rows.append(LineNumberEntry(start_pc, line_number))
        return LineNumberTableAttribute(name_index, length, tuple(rows))

    def _read_local_variable_table(self, body: ByteCursor, name_index: int, name: str, length: int, depth: int):
        count = body.read_u2()
        rows = []
        for _ in range(count):
            start_pc = body.read_u2()
            var_length = body.read_u2()
            var_name_idx = body.read_u2()
            desc_idx = body.read_u2()
            slot = body.read_u2()
            rows.append(LocalVariableEntry(start_pc, var_length, var_name_idx, desc_idx, slot))
        if name == "LocalVariableTypeTable":
            return LocalVariableTypeTableAttribute(name_index, length, tuple(rows))
        return LocalVariableTableAttribute(name_index, length, tuple(rows))

    def _read_annotations(self, body: ByteCursor, name_index: int, name: str, length: int, depth: int):
        num_ann = body.read_u2()
        annotations = tuple(self._read_annotation(body, name, length, depth + 1) for _ in range(num_ann))
        if name == "RuntimeInvisibleAnnotations":
            return RuntimeInvisibleAnnotationsAttribute(name_index, length, annotations)
        return RuntimeVisibleAnnotationsAttribute(name_index, length, annotations)

    def _read_annotation(self, body: ByteCursor, name: str, length: int, depth: int) -> Annotation:
        """Read a single annotation; its element values sit one level deeper."""
        self._check_depth(depth)
        type_idx = body.read_u2()
        num_pairs = body.read_u2()
        pairs = []
        for _ in range(num_pairs):
            name_idx = body.read_u2()
            value = self._read_element_value(body, name, length, depth + 1)
            pairs.append(ElementValuePair(name_idx, value))
        return Annotation(type_idx, tuple(pairs))

    def _read_element_value(self, body: ByteCursor, name: str, length: int, depth: int) -> ElementValue:
        """Read an annotation element value.

        A nested annotation shares the level of the element value holding it,
        so each level of ``@A(v=@A(...))`` nesting costs one level of depth.
        """
        self._check_depth(depth)
        position = body.position
        tag = chr(body.read_u1())

        if tag in CONSTANT_ELEMENT_TAGS:
            return ElementValue(tag, body.read_u2())

        elif tag == "e":
            type_idx = body.read_u2()
            const_idx = body.read_u2()
            return ElementValue(tag, EnumConstValue(type_idx, const_idx))

        elif tag == "c":
            return ElementValue(tag, body.read_u2())

        elif tag == "@":
            return ElementValue(tag, self._read_annotation(body, name, length, depth))

        elif tag == "[":
            num_values = body.read_u2()
            values = tuple(self._read_element_value(body, name, length, depth + 1) for _ in range(num_values))
            return ElementValue(tag, values)

        else:
            raise MalformedAttribute(
                name, length, reason=f"unknown element value tag {tag!r} at offset {position}")

    def _read_bootstrap_methods(self, body: ByteCursor, name_index: int, name: str, length: int, depth: int):
        count = body.read_u2()
        methods = []
        for _ in range(count):
            method_ref = body.read_u2()
            num_args = body.read_u2()
            args = tuple(body.read_u2() for _ in range(num_args))
            methods.append(BootstrapMethod(method_ref, args))
        return BootstrapMethodsAttribute(name_index, length, tuple(methods))

    def _read_method_parameters(self, body: ByteCursor, name_index: int, name: str, length: int, depth: int):
        count = body.read_u1()
        params = []
        for _ in range(count):
            param_name_idx = body.read_u2()
            access = body.read_u2()
            params.append(MethodParameter(param_name_idx, access))
        return MethodParametersAttribute(name_index, length, tuple(params))
