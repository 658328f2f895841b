"""Tests for class file header parsing."""
import io

import pytest

from bytecode_version_analyzer.classfile import buffered, read_class_file, read_class_file_version
from bytecode_version_analyzer.exceptions import (
    ArchiveOpenError,
    ClassFileError,
    ClassFileReadError,
    InvalidClassFileError,
    NotAFileError,
    PathNotFoundError,
)
from bytecode_version_analyzer.models import ClassFileVersion
from tests.conftest import class_bytes


def test_reads_java_8_header():
    stream = io.BytesIO(bytes.fromhex("CAFEBABE00000034"))
    assert read_class_file_version(stream) == ClassFileVersion(52, 0)


def test_minor_comes_before_major():
    stream = io.BytesIO(bytes.fromhex("CAFEBABE0003002D"))
    assert read_class_file_version(stream) == ClassFileVersion(45, 3)


def test_preview_header():
    stream = io.BytesIO(class_bytes(61, 0xFFFF))
    assert read_class_file_version(stream).is_preview()


def test_consumes_exactly_eight_bytes():
    stream = io.BytesIO(class_bytes(55) + b"trailing")
    read_class_file_version(stream)
    assert stream.tell() == 8


def test_invalid_magic_is_rejected():
    stream = io.BytesIO(class_bytes(52, magic=0xDEADBEEF))
    with pytest.raises(InvalidClassFileError):
        read_class_file_version(stream)


def test_invalid_magic_allowed_without_verification():
    stream = io.BytesIO(class_bytes(52, magic=0xDEADBEEF))
    assert read_class_file_version(stream, verify=False) == ClassFileVersion(52, 0)


@pytest.mark.parametrize("data", [b"", b"\xca\xfe", bytes.fromhex("CAFEBABE0000")])
def test_truncated_header(data):
    with pytest.raises(ClassFileReadError) as excinfo:
        read_class_file_version(io.BytesIO(data))
    assert isinstance(excinfo.value, ClassFileError)
    assert isinstance(excinfo.value, IOError)
    assert not isinstance(excinfo.value, InvalidClassFileError)


def test_read_class_file(tmp_path):
    path = tmp_path / "Foo.class"
    path.write_bytes(class_bytes(65))

    assert read_class_file(str(path)) == ClassFileVersion(65, 0)
    assert read_class_file(str(path), use_buffer=False) == ClassFileVersion(65, 0)


def test_read_class_file_missing(tmp_path):
    with pytest.raises(PathNotFoundError) as excinfo:
        read_class_file(str(tmp_path / "Missing.class"))
    assert "file does not exist" in str(excinfo.value)


def test_read_class_file_directory(tmp_path):
    with pytest.raises(NotAFileError) as excinfo:
        read_class_file(str(tmp_path))
    assert isinstance(excinfo.value, ArchiveOpenError)


def test_buffered_keeps_buffered_streams():
    stream = io.BytesIO(b"")
    assert buffered(stream, True) is stream


def test_buffered_wraps_raw_streams(tmp_path):
    path = tmp_path / "Foo.class"
    path.write_bytes(class_bytes(52))

    with open(path, "rb", buffering=0) as raw:
        assert isinstance(buffered(raw, True), io.BufferedReader)
        assert buffered(raw, False) is raw
