"""
Archive access adapters.

Two views of a JAR/ZIP are provided: the base view, which returns the
top-level entry stored under a name, and the effective view, which applies
multi-release layering (META-INF/versions/<N>/) for a target release. The
adapter is picked once when the archive is opened: VersionedArchive when
release-aware lookup is requested and the archive is a multi-release JAR,
PlainArchive otherwise.
"""

import zipfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Dict, Iterator, List, Optional, Tuple

from ..classfile import check_readable_file
from ..exceptions import CorruptArchiveError, PathNotReadableError
from ..logging_config import get_logger
from .metadata import MANIFEST_NAME, VERSIONS_PREFIX, ZIP_MEMBER_ERRORS, Manifest

logger = get_logger('archive.access')

# Versioned directories below this are ignored, Java 8 is the base release
MIN_VERSIONED_RELEASE = 9

EntryIdentity = Tuple[int, int, int]


@dataclass(frozen=True)
class ArchiveEntry:
    """An entry as seen through one of the archive views."""
    name: str
    info: zipfile.ZipInfo

    @property
    def physical_name(self) -> str:
        """Name the bytes are stored under, e.g. META-INF/versions/11/Foo.class."""
        return self.info.filename

    @property
    def is_dir(self) -> bool:
        return self.info.is_dir()

    @property
    def is_versioned(self) -> bool:
        return self.physical_name != self.name

    @property
    def identity(self) -> EntryIdentity:
        """Physical identity: local header offset, CRC and compressed size."""
        return (self.info.header_offset, self.info.CRC, self.info.compress_size)


def _versioned_parts(name: str) -> Optional[Tuple[int, str]]:
    """Split META-INF/versions/<N>/<rest> into (N, rest)."""
    if not name.startswith(VERSIONS_PREFIX):
        return None

    release, _, rest = name[len(VERSIONS_PREFIX):].partition('/')
    if not release.isdigit() or not rest:
        return None
    return int(release), rest


class ArchiveAccess(ABC):
    """Read-only access to the entries of an open archive."""

    versioned = False

    def __init__(self, path: str, zip_file: zipfile.ZipFile, manifest: Optional[Manifest] = None):
        self.path = path
        self._zip = zip_file
        self._infos: List[zipfile.ZipInfo] = zip_file.infolist()
        self._manifest = manifest

        # First physical entry wins for duplicated names
        self._index: Dict[str, zipfile.ZipInfo] = {}
        for info in self._infos:
            self._index.setdefault(info.filename, info)

    @property
    def manifest(self) -> Optional[Manifest]:
        return self._manifest

    def names(self) -> List[str]:
        """Distinct physical entry names in archive order."""
        return list(self._index)

    def read(self, name: str) -> bytes:
        """Read a whole entry by physical name."""
        info = self._index.get(name)
        if info is None:
            raise KeyError(f"no entry named {name!r} in {self.path}")
        return self._zip.read(info)

    def get_base_entry(self, name: str) -> Optional[ArchiveEntry]:
        """Look up a name ignoring multi-release layering."""
        info = self._index.get(name)
        if info is None:
            return None
        return ArchiveEntry(name, info)

    @abstractmethod
    def entries(self) -> Iterator[ArchiveEntry]:
        """Enumerate entries as seen through this adapter."""
        pass

    @abstractmethod
    def get_entry(self, name: str) -> Optional[ArchiveEntry]:
        """Look up a logical name through the effective view."""
        pass

    def open_entry(self, entry: ArchiveEntry) -> BinaryIO:
        """Open the bytes of an entry. The caller closes the stream."""
        return self._zip.open(entry.info)

    def close(self) -> None:
        self._zip.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r})"


class PlainArchive(ArchiveAccess):
    """Archive without release awareness: every entry is its own effective entry."""

    def entries(self) -> Iterator[ArchiveEntry]:
        for info in self._infos:
            yield ArchiveEntry(info.filename, info)

    def get_entry(self, name: str) -> Optional[ArchiveEntry]:
        return self.get_base_entry(name)


class VersionedArchive(ArchiveAccess):
    """
    Multi-release archive resolved for a target release.

    For a logical name, the entry under the highest META-INF/versions/<N>/
    with MIN_VERSIONED_RELEASE <= N <= release wins, falling back to the
    top-level entry. A release of None applies every versioned directory.
    """

    versioned = True

    def __init__(self, path: str, zip_file: zipfile.ZipFile, manifest: Optional[Manifest] = None,
                 release: Optional[int] = None):
        super().__init__(path, zip_file, manifest)
        self.release = release

        layers: Dict[int, Dict[str, zipfile.ZipInfo]] = {}
        for info in self._infos:
            parts = _versioned_parts(info.filename)
            if parts is None or info.is_dir():
                continue
            version, logical_name = parts
            if version < MIN_VERSIONED_RELEASE or (release is not None and version > release):
                continue
            # META-INF/ itself is never versioned
            if logical_name.startswith('META-INF/'):
                continue
            layers.setdefault(version, {}).setdefault(logical_name, info)

        self._overlay: Dict[str, zipfile.ZipInfo] = {}
        for version in sorted(layers, reverse=True):
            for logical_name, info in layers[version].items():
                self._overlay.setdefault(logical_name, info)

        logger.debug(
            f"resolving {path} for release {release if release is not None else 'latest'}: "
            f"{len(self._overlay)} versioned entries in {sorted(layers)}"
        )

    def get_entry(self, name: str) -> Optional[ArchiveEntry]:
        if not name.startswith('META-INF/'):
            info = self._overlay.get(name)
            if info is not None:
                return ArchiveEntry(name, info)
        return self.get_base_entry(name)

    def entries(self) -> Iterator[ArchiveEntry]:
        """
        Enumerate logical entries.

        Raw META-INF/versions/ entries are never yielded; names that only
        exist in a versioned directory are yielded once under their logical name.
        """
        for info in self._infos:
            name = info.filename
            if name.startswith(VERSIONS_PREFIX):
                continue
            if info.is_dir():
                yield ArchiveEntry(name, info)
            else:
                yield self.get_entry(name)

        for name, info in self._overlay.items():
            if name not in self._index:
                yield ArchiveEntry(name, info)


def _read_manifest(zip_file: zipfile.ZipFile, path: str) -> Optional[Manifest]:
    try:
        data = zip_file.read(MANIFEST_NAME)
    except KeyError:
        return None
    except ZIP_MEMBER_ERRORS as e:
        logger.warning(f"can't read the manifest of {path}: {e}")
        return None

    return Manifest.parse(data.decode('utf-8', errors='replace'))


def open_archive(path: str, versioned: bool = True, release: Optional[int] = None,
                 force_multi_release: bool = False) -> ArchiveAccess:
    """
    Open a JAR/ZIP archive.

    Args:
        path: Path to the archive
        versioned: Whether to use release-aware lookup for multi-release JARs
        release: Target release for multi-release resolution, None for the newest
        force_multi_release: Apply versioned directories even without Multi-Release: true

    Returns:
        VersionedArchive or PlainArchive

    Raises:
        PathNotFoundError: If the path does not exist
        NotAFileError: If the path is a directory
        PathNotReadableError: If the file can't be read
        CorruptArchiveError: If the file is not a readable ZIP archive
    """
    check_readable_file(path)

    try:
        zip_file = zipfile.ZipFile(path, 'r')
    except zipfile.BadZipFile as e:
        raise CorruptArchiveError(f"not a valid JAR/ZIP archive ({e})", path) from e
    except OSError as e:
        raise PathNotReadableError(f"can't read the file ({e})", path) from e

    try:
        manifest = _read_manifest(zip_file, path)
        multi_release = manifest is not None and manifest.is_multi_release

        if versioned and (multi_release or force_multi_release):
            return VersionedArchive(path, zip_file, manifest, release)

        if versioned:
            logger.debug(f"{path} is not a multi release jar, versioned directories are ignored")
        return PlainArchive(path, zip_file, manifest)
    except Exception:
        zip_file.close()
        raise
