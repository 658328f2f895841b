"""
Class file header parsing.

Only the fixed 8-byte prologue of a class file is decoded: the 0xCAFEBABE magic
number followed by the minor and major version, all big-endian. Nothing after
the header (constant pool, fields, methods, attributes) is ever read.
"""

import io
import os
import struct
from typing import BinaryIO

from .exceptions import (
    ClassFileReadError,
    InvalidClassFileError,
    NotAFileError,
    PathNotFoundError,
    PathNotReadableError,
)
from .logging_config import get_logger
from .models import ClassFileVersion

logger = get_logger('classfile')

CLASS_FILE_MAGIC = 0xCAFEBABE

_MAGIC = struct.Struct('>I')
# Minor comes before major in the file, do not swap
_VERSION = struct.Struct('>HH')


def _read_exactly(stream: BinaryIO, size: int, what: str) -> bytes:
    data = b''
    while len(data) < size:
        chunk = stream.read(size - len(data))
        if not chunk:
            raise ClassFileReadError(
                f"unexpected end of class file while reading {what} "
                f"(got {len(data)} of {size} bytes)"
            )
        data += chunk
    return data


def read_class_file_version(stream: BinaryIO, verify: bool = True) -> ClassFileVersion:
    """
    Read the class file version from the start of a class file.

    Exactly 8 bytes are consumed. The stream is left open.

    Args:
        stream: Binary stream positioned at the start of a class file
        verify: Whether to reject streams not starting with 0xCAFEBABE

    Returns:
        ClassFileVersion read from the header

    Raises:
        InvalidClassFileError: If verify is on and the magic number is wrong
        ClassFileReadError: If the stream ends before the header is complete
    """
    magic, = _MAGIC.unpack(_read_exactly(stream, _MAGIC.size, "magic number"))
    if magic != CLASS_FILE_MAGIC:
        if verify:
            raise InvalidClassFileError(f"invalid Java class (magic 0x{magic:08X})")
        logger.debug(f"ignoring invalid magic 0x{magic:08X} as verification is disabled")

    minor, major = _VERSION.unpack(_read_exactly(stream, _VERSION.size, "version"))
    return ClassFileVersion.get(major, minor)


def buffered(stream: BinaryIO, enabled: bool = True) -> BinaryIO:
    """
    Wrap a raw stream in a buffer unless it is already buffered or buffering is off.

    Args:
        stream: Stream to wrap
        enabled: The "buffered" scan option

    Returns:
        The original or a buffered stream
    """
    if isinstance(stream, io.BufferedIOBase):
        logger.debug(f"note: {stream!r} is already buffered")
        return stream

    if not enabled:
        logger.debug(f"skipping buffering of {stream!r} as requested by buffered parameter")
        return stream

    return io.BufferedReader(stream)


def check_readable_file(path: str) -> None:
    """
    Make sure a path is an existing, readable regular file.

    Raises:
        PathNotFoundError: If nothing exists at the path
        NotAFileError: If the path is a directory or another non-file
        PathNotReadableError: If the file can't be read
    """
    if not os.path.exists(path):
        raise PathNotFoundError("file does not exist", path)
    if not os.path.isfile(path):
        raise NotAFileError("can't process a directory", path)
    if not os.access(path, os.R_OK):
        raise PathNotReadableError("can't read the file", path)


def read_class_file(path: str, verify: bool = True, use_buffer: bool = True) -> ClassFileVersion:
    """
    Read the class file version of a standalone .class file.

    Args:
        path: Path to the class file
        verify: Whether to reject files not starting with 0xCAFEBABE
        use_buffer: Whether to read through a buffer

    Returns:
        ClassFileVersion of the file

    Raises:
        ArchiveOpenError: If the file is missing or unreadable
        ClassFileError: If the header is invalid or truncated
    """
    check_readable_file(path)

    with open(path, 'rb', buffering=0) as raw:
        return read_class_file_version(buffered(raw, use_buffer), verify)
