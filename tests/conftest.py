"""Shared fixtures: class file headers and JAR archives built on the fly."""
import logging
import struct
import zipfile

import pytest

from bytecode_version_analyzer.config import ScanConfig

MULTI_RELEASE_MANIFEST = "Manifest-Version: 1.0\r\nMulti-Release: true\r\n\r\n"
PLAIN_MANIFEST = "Manifest-Version: 1.0\r\nCreated-By: tests\r\n\r\n"


def class_bytes(major, minor=0, magic=0xCAFEBABE, body=b"\x00\x10rest-of-class"):
    """Header of a class file followed by some filler bytes."""
    return struct.pack(">IHH", magic, minor, major) + body


def write_jar(path, entries, manifest=None):
    """Write a ZIP archive; entries is a list of (name, bytes) pairs and may repeat names."""
    with zipfile.ZipFile(path, "w") as zf:
        if manifest is not None:
            zf.writestr("META-INF/MANIFEST.MF", manifest)
        for name, data in entries:
            zf.writestr(name, data)
    return str(path)


def patch_central_directory(path, name, flag_bits=None, compress_type=None, crc=None):
    """Rewrite fields of one member's central directory record in place."""
    data = bytearray(open(path, "rb").read())
    encoded = name.encode("utf-8")
    start = data.find(b"PK\x01\x02")
    while start != -1:
        name_length, = struct.unpack_from("<H", data, start + 28)
        if data[start + 46:start + 46 + name_length] == encoded:
            if flag_bits is not None:
                flags, = struct.unpack_from("<H", data, start + 8)
                struct.pack_into("<H", data, start + 8, flags | flag_bits)
            if compress_type is not None:
                struct.pack_into("<H", data, start + 10, compress_type)
            if crc is not None:
                struct.pack_into("<I", data, start + 16, crc)
            break
        start = data.find(b"PK\x01\x02", start + 4)
    else:
        raise AssertionError(f"no central directory record for {name}")

    with open(path, "wb") as f:
        f.write(bytes(data))
    return path


def serial_config(**overrides):
    """Single threaded scan without the progress thread."""
    options = {"parallel": False, "threads": 1, "track_progress": False}
    options.update(overrides)
    return ScanConfig(**options)


@pytest.fixture
def make_jar(tmp_path):
    def _make(entries, manifest=None, name="test.jar"):
        return write_jar(tmp_path / name, entries, manifest)
    return _make


@pytest.fixture
def multi_release_jar(make_jar):
    """Foo has a Java 11 copy, its anonymous class Foo$1 only exists at the top level."""
    return make_jar(
        [
            ("com/example/Foo.class", class_bytes(52)),
            ("com/example/Foo$1.class", class_bytes(52)),
            ("com/example/Bar.class", class_bytes(52)),
            ("META-INF/versions/11/com/example/Foo.class", class_bytes(55)),
        ],
        manifest=MULTI_RELEASE_MANIFEST,
        name="multi.jar",
    )


@pytest.fixture(autouse=True)
def restore_package_logger():
    """The CLI reconfigures the package logger; put it back after every test."""
    logger = logging.getLogger("bytecode_version_analyzer")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
