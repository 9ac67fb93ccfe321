"""
pyjclass - Python Java class file decoder.
"""

import logging

from .classfile import ClassFile, FieldInfo, MethodInfo, MemberInfo, AccessFlags, ConstantPoolTag
from .classreader import ClassReader, DecoderOptions, decode
from .constant_pool import ConstantPool
from .errors import (
    DecodeError,
    UnexpectedEnd,
    BadMagic,
    UnsupportedConstantTag,
    InvalidConstantIndex,
    InvalidAttributeName,
    MalformedAttribute,
    RecursionLimitExceeded,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
__all__ = [
    'decode',
    'ClassReader',
    'DecoderOptions',
    'ClassFile',
    'ConstantPool',
    'FieldInfo',
    'MethodInfo',
    'MemberInfo',
    'AccessFlags',
    'ConstantPoolTag',
    'DecodeError',
    'UnexpectedEnd',
    'BadMagic',
    'UnsupportedConstantTag',
    'InvalidConstantIndex',
    'InvalidAttributeName',
    'MalformedAttribute',
    'RecursionLimitExceeded',
]
