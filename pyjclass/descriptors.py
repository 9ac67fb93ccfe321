"""
JVM field and method descriptor parser using Lark.

Descriptors are the raw type strings referenced by field_info and
method_info (``I``, ``[Ljava/lang/String;``, ``(IJ)V``). The decoder keeps
them as constant pool indices; this module turns the resolved text into
type objects for disassemblers and other consumers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from lark import Lark, Transformer
from lark.exceptions import LarkError


GRAMMAR_FILE = Path(__file__).parent / "descriptors.lark"


class InvalidDescriptor(ValueError):
    """A descriptor string does not match the descriptor grammar."""

    def __init__(self, text: str, kind: str):
        self.text = text
        self.kind = kind
        super().__init__(f"Invalid {kind} descriptor: {text!r}")


class FieldType(ABC):
    """Base class for descriptor types."""

    @abstractmethod
    def descriptor(self) -> str:
        """Return the JVM type descriptor."""
        pass

    @property
    def slot_size(self) -> int:
        """Local variable / operand stack slots used by this type (1 or 2)."""
        return 1

    def __str__(self) -> str:
        return self.descriptor()


@dataclass(frozen=True)
class BaseType(FieldType):
    """Primitive types (and void, for return types)."""
    name: str
    _descriptor: str
    _size: int = 1

    def descriptor(self) -> str:
        return self._descriptor

    @property
    def slot_size(self) -> int:
        return self._size


VOID = BaseType("void", "V", 0)
BOOLEAN = BaseType("boolean", "Z")
BYTE = BaseType("byte", "B")
CHAR = BaseType("char", "C")
SHORT = BaseType("short", "S")
INT = BaseType("int", "I")
LONG = BaseType("long", "J", 2)
FLOAT = BaseType("float", "F")
DOUBLE = BaseType("double", "D", 2)

BASE_TYPES = {t.descriptor(): t for t in (BOOLEAN, BYTE, CHAR, SHORT, INT, LONG, FLOAT, DOUBLE)}


@dataclass(frozen=True)
class ObjectType(FieldType):
    """Class or interface type."""
    class_name: str  # internal form: java/lang/String

    def descriptor(self) -> str:
        return f"L{self.class_name};"

    @property
    def java_name(self) -> str:
        return self.class_name.replace("/", ".")


@dataclass(frozen=True)
class ArrayType(FieldType):
    """Array type."""
    element_type: FieldType
    dimensions: int = 1

    def descriptor(self) -> str:
        return "[" * self.dimensions + self.element_type.descriptor()


@dataclass(frozen=True)
class MethodDescriptor:
    """Method descriptor: parameter types and return type."""
    parameter_types: tuple[FieldType, ...]
    return_type: FieldType

    def descriptor(self) -> str:
        params = "".join(p.descriptor() for p in self.parameter_types)
        return f"({params}){self.return_type.descriptor()}"

    @property
    def argument_slots(self) -> int:
        """Slots taken by the arguments, not counting ``this``."""
        return sum(p.slot_size for p in self.parameter_types)

    def __str__(self) -> str:
        return self.descriptor()


class DescriptorTransformer(Transformer):
    """Transforms Lark parse tree to descriptor types."""

    def base_type(self, items):
        return BASE_TYPES[str(items[0])]

    def object_type(self, items):
        return ObjectType(str(items[0]))

    def array_type(self, items):
        element = items[0]
        if isinstance(element, ArrayType):
            return ArrayType(element.element_type, element.dimensions + 1)
        return ArrayType(element)

    def void_type(self, items):
        return VOID

    def field_descriptor(self, items):
        return items[0]

    def method_descriptor(self, items):
        return MethodDescriptor(parameter_types=tuple(items[:-1]), return_type=items[-1])


class DescriptorParser:
    """Parses field and method descriptors."""

    def __init__(self):
        with open(GRAMMAR_FILE, "r") as f:
            grammar = f.read()

        self._parser = Lark(
            grammar,
            parser="earley",
            start=["field_descriptor", "method_descriptor"],
            maybe_placeholders=False,
        )
        self._transformer = DescriptorTransformer()

    def _parse(self, text: str, start: str, kind: str):
        try:
            tree = self._parser.parse(text, start=start)
            return self._transformer.transform(tree)
        except LarkError as e:
            raise InvalidDescriptor(text, kind) from e

    def parse_field(self, text: str) -> FieldType:
        return self._parse(text, "field_descriptor", "field")

    def parse_method(self, text: str) -> MethodDescriptor:
        return self._parse(text, "method_descriptor", "method")


_default_parser: Optional[DescriptorParser] = None


def _get_parser() -> DescriptorParser:
    global _default_parser
    if _default_parser is None:
        _default_parser = DescriptorParser()
    return _default_parser


def parse_field_descriptor(text: str) -> FieldType:
    """Parse a field descriptor such as ``[Ljava/lang/String;``."""
    return _get_parser().parse_field(text)


def parse_method_descriptor(text: str) -> MethodDescriptor:
    """Parse a method descriptor such as ``(IJ)V``."""
    return _get_parser().parse_method(text)
