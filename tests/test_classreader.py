"""Tests for decoding complete class files."""

import io
import logging

import pytest

from pyjclass import (
    AccessFlags,
    BadMagic,
    ClassReader,
    DecodeError,
    DecoderOptions,
    RecursionLimitExceeded,
    UnexpectedEnd,
    UnsupportedConstantTag,
    decode,
)
from pyjclass.attributes import CodeAttribute, LineNumberTableAttribute, SourceFileAttribute
from pyjclass.classfile import FieldInfo, MethodInfo
from pyjclass.constant_pool import Utf8
from pyjclass.descriptors import INT, VOID, ArrayType, ObjectType

from . import _classbytes as cb


@pytest.fixture
def class_bytes():
    return cb.sample_class()


@pytest.fixture
def cls(class_bytes):
    return decode(class_bytes)


class TestScenarios:
    def test_single_utf8_pool(self):
        data = cb.class_file([cb.utf8("main")])
        result = decode(data)
        assert result.magic == 0xCAFEBABE
        assert result.minor_version == 0
        assert result.major_version == 55
        assert len(result.constant_pool) == 2
        assert result.constant_pool[1] == Utf8(bytes([0x6D, 0x61, 0x69, 0x6E]))

    def test_unassigned_pool_tag(self):
        data = cb.class_file([cb.utf8("a"), cb.u1(2) + cb.u2(0)], count=3)
        with pytest.raises(UnsupportedConstantTag) as exc_info:
            decode(data)
        assert exc_info.value.tag == 2
        # magic, versions, count, then the 4-byte Utf8 entry
        assert exc_info.value.position == 10 + 4

    def test_method_with_minimal_code(self):
        pool = [cb.utf8("Code"), cb.utf8("run"), cb.utf8("()V")]
        code = bytes([0x03, 0xB1])
        method = cb.member(0x0001, 2, 3, [cb.attribute(1, cb.code_body(2, 4, code))])
        result = decode(cb.class_file(pool, methods=[method]))
        (m,) = result.methods
        assert isinstance(m, MethodInfo)
        (attr,) = m.attributes
        assert isinstance(attr, CodeAttribute)
        assert attr.max_stack == 2
        assert attr.max_locals == 4
        assert attr.code == code
        assert attr.exception_table == ()
        assert attr.attributes == ()


class TestSampleClass:
    def test_header(self, cls):
        assert cls.version == (55, 0)
        assert cls.flags == AccessFlags.PUBLIC | AccessFlags.SUPER
        assert cls.this_class == 2
        assert cls.super_class == 3
        assert cls.name == "Test"
        assert cls.super_name == "java/lang/Object"
        assert cls.interfaces == ()
        assert cls.fields == ()
        assert len(cls.constant_pool) == 15

    def test_methods(self, cls):
        pool = cls.constant_pool
        names = [(m.name(pool), m.descriptor(pool)) for m in cls.methods]
        assert names == [("<init>", "()V"), ("main", "([Ljava/lang/String;)V")]

        init = cls.find_method("<init>")
        assert init.code.code == cb.INIT_CODE
        assert init.code.max_stack == 1

        main = cls.find_method("main", "([Ljava/lang/String;)V")
        assert main.flags & AccessFlags.STATIC
        lines = main.code.get_attribute("LineNumberTable")
        assert isinstance(lines, LineNumberTableAttribute)
        assert lines.line_for(0) == 3

        assert cls.find_method("main", "()V") is None

    def test_method_descriptor(self, cls):
        main = cls.find_method("main")
        desc = main.parsed_descriptor(cls.constant_pool)
        assert desc.parameter_types == (ArrayType(ObjectType("java/lang/String")),)
        assert desc.return_type == VOID

    def test_source_file(self, cls):
        attr = cls.get_attribute("SourceFile")
        assert isinstance(attr, SourceFileAttribute)
        assert cls.constant_pool.get_utf8(attr.sourcefile_index) == "Test.java"
        assert cls.get_attribute("Signature") is None

    def test_deterministic(self, class_bytes):
        first = decode(bytes(class_bytes))
        second = decode(bytearray(class_bytes))
        assert first == second

    def test_stream_source(self, class_bytes, cls):
        assert decode(io.BytesIO(class_bytes)) == cls

    def test_model_is_immutable(self, cls):
        with pytest.raises(AttributeError):
            cls.major_version = 52


class TestStructure:
    def test_interfaces_and_fields(self):
        pool = [
            cb.utf8("Foo"),                  # 1
            cb.class_ref(1),                 # 2
            cb.utf8("java/lang/Runnable"),   # 3
            cb.class_ref(3),                 # 4
            cb.utf8("count"),                # 5
            cb.utf8("I"),                    # 6
            cb.utf8("ConstantValue"),        # 7
            cb.integer(42),                  # 8
        ]
        field = cb.member(0x0019, 5, 6, [cb.attribute(7, cb.u2(8))])
        result = decode(cb.class_file(pool, this_class=2, interfaces=[4], fields=[field]))
        assert result.super_name is None
        assert result.interfaces == (4,)
        assert result.interface_names == ("java/lang/Runnable",)

        f = result.find_field("count")
        assert isinstance(f, FieldInfo)
        assert f.parsed_descriptor(result.constant_pool) == INT
        value = f.get_attribute("ConstantValue")
        assert result.constant_pool.get_constant_value(value.constantvalue_index) == 42

    def test_member_indices_stored_verbatim(self):
        # Name/descriptor indices that do not resolve are kept as-is
        method = cb.member(0, 40, 41)
        result = decode(cb.class_file([cb.utf8("x")], methods=[method]))
        assert result.methods[0].name_index == 40
        assert result.methods[0].descriptor_index == 41


class TestErrors:
    def test_bad_magic(self):
        with pytest.raises(BadMagic) as exc_info:
            decode(cb.class_file([], magic=0xDEADBEEF))
        assert exc_info.value.found == 0xDEADBEEF

    def test_empty_input(self):
        with pytest.raises(UnexpectedEnd):
            decode(b"")

    def test_every_truncation_is_unexpected_end(self, class_bytes):
        for size in range(len(class_bytes)):
            with pytest.raises(UnexpectedEnd):
                decode(class_bytes[:size])

    def test_errors_share_base(self, class_bytes):
        with pytest.raises(DecodeError):
            decode(class_bytes[:20])

    def test_recursion_limit_option(self, class_bytes):
        # Code attributes nest one level of attributes
        with pytest.raises(RecursionLimitExceeded):
            decode(class_bytes, DecoderOptions(max_depth=0))
        assert decode(class_bytes, DecoderOptions(max_depth=1)).name == "Test"


class TestLogging:
    def test_injected_logger(self, class_bytes, caplog):
        log = logging.getLogger("test.classreader")
        with caplog.at_level(logging.DEBUG, logger="test.classreader"):
            ClassReader(class_bytes, DecoderOptions(logger=log)).read()
        messages = [r.getMessage() for r in caplog.records if r.name == "test.classreader"]
        assert "Class file version 55.0" in messages
        assert "Read constant pool: 15 slots" in messages
        assert "Read 2 method(s)" in messages

    def test_each_member_logged(self, caplog):
        field = cb.member(0x0019, 5, 6)
        method = cb.member(0x0009, 1, 2)
        data = cb.class_file([cb.utf8("x")], fields=[field], methods=[method])
        log = logging.getLogger("test.members")
        with caplog.at_level(logging.DEBUG, logger="test.members"):
            decode(data, DecoderOptions(logger=log))
        messages = [r.getMessage() for r in caplog.records if r.name == "test.members"]
        assert "FieldInfo: flags=0x0019 name=#5 descriptor=#6" in messages
        assert "MethodInfo: flags=0x0009 name=#1 descriptor=#2" in messages

    def test_logger_adapter(self, class_bytes, caplog):
        adapter = logging.LoggerAdapter(logging.getLogger("test.adapter"), {})
        with caplog.at_level(logging.DEBUG, logger="test.adapter"):
            decode(class_bytes, DecoderOptions(logger=adapter))
        assert any(r.name == "test.adapter" for r in caplog.records)

    def test_silent_by_default(self, class_bytes, capsys):
        decode(class_bytes)
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""
