"""
JAR manifest parsing and archive metadata extraction.
"""

import fnmatch
import zipfile
import zlib
from dataclasses import dataclass, field
from typing import Dict, Optional, TYPE_CHECKING

import defusedxml.ElementTree as ET

from ..logging_config import get_logger
from ..models import ArchiveMetadata

if TYPE_CHECKING:
    from .access import ArchiveAccess

logger = get_logger('archive.metadata')

MANIFEST_NAME = 'META-INF/MANIFEST.MF'
VERSIONS_PREFIX = 'META-INF/versions/'

# zipfile failures confined to one member; encrypted members raise RuntimeError
ZIP_MEMBER_ERRORS = (OSError, EOFError, zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError)

SIGNATURE_DIGEST_SUFFIXES = ('-Digest-Manifest-Main-Attributes', '-Digest-Manifest', '-Digest')

POM_NAMESPACE = '{http://maven.apache.org/POM/4.0.0}'


@dataclass
class Manifest:
    """Parsed MANIFEST.MF: main attributes plus per-entry sections."""
    main_attributes: Dict[str, str] = field(default_factory=dict)
    entries: Dict[str, Dict[str, str]] = field(default_factory=dict)

    @classmethod
    def parse(cls, text: str) -> 'Manifest':
        """
        Parse manifest text.

        Sections are separated by blank lines; a line starting with a single
        space continues the previous value.
        """
        manifest = cls()
        sections = []
        current: Dict[str, str] = {}
        last_key = None

        for line in text.replace('\r\n', '\n').replace('\r', '\n').split('\n'):
            if not line:
                if current:
                    sections.append(current)
                current = {}
                last_key = None
                continue

            if line.startswith(' ') and last_key is not None:
                current[last_key] += line[1:]
                continue

            if ':' not in line:
                logger.debug(f"ignoring malformed manifest line: {line!r}")
                continue

            key, value = line.split(':', 1)
            last_key = key.strip()
            current[last_key] = value.strip()

        if current:
            sections.append(current)

        if sections:
            manifest.main_attributes = sections[0]
            for section in sections[1:]:
                name = section.pop('Name', None)
                if name is not None:
                    manifest.entries[name] = section

        return manifest

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.main_attributes.get(key, default)

    def _flag(self, key: str) -> bool:
        return (self.get(key) or '').strip().lower() == 'true'

    @property
    def is_multi_release(self) -> bool:
        return self._flag('Multi-Release')

    @property
    def is_sealed(self) -> bool:
        return self._flag('Sealed')

    @property
    def is_signed(self) -> bool:
        """True if any attribute looks like a signature digest."""
        sections = [self.main_attributes, *self.entries.values()]
        return any(
            key.endswith(SIGNATURE_DIGEST_SUFFIXES)
            for section in sections
            for key in section
        )


def _parse_properties(text: str) -> Dict[str, str]:
    properties = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith(('#', '!')):
            continue
        if '=' in line:
            key, value = line.split('=', 1)
        elif ':' in line:
            key, value = line.split(':', 1)
        else:
            continue
        properties[key.strip()] = value.strip()
    return properties


def _pom_text(element, tag: str) -> Optional[str]:
    for candidate in (POM_NAMESPACE + tag, tag):
        child = element.find(candidate)
        if child is not None and child.text:
            return child.text.strip()
    return None


def _parse_pom(data: bytes) -> Dict[str, str]:
    root = ET.fromstring(data)
    coordinates = {}

    parent = None
    for candidate in (POM_NAMESPACE + 'parent', 'parent'):
        parent = root.find(candidate)
        if parent is not None:
            break

    for key in ('groupId', 'artifactId', 'version'):
        value = _pom_text(root, key)
        if value is None and parent is not None and key != 'artifactId':
            value = _pom_text(parent, key)
        if value is not None:
            coordinates[key] = value

    return coordinates


def read_maven_coordinates(archive: 'ArchiveAccess') -> Dict[str, str]:
    """
    Read groupId/artifactId/version from embedded Maven descriptors.

    The first META-INF/maven/**/pom.properties wins; pom.xml is used when no
    properties file exists or it can't be read.
    """
    names = archive.names()
    properties_names = [name for name in names if fnmatch.fnmatch(name, 'META-INF/maven/*/*/pom.properties')]
    pom_names = [name for name in names if fnmatch.fnmatch(name, 'META-INF/maven/*/*/pom.xml')]

    for name in properties_names:
        try:
            properties = _parse_properties(archive.read(name).decode('utf-8', errors='replace'))
        except ZIP_MEMBER_ERRORS as e:
            logger.debug(f"Failed to read {name}: {e}")
            continue
        if properties.get('artifactId'):
            return {key: properties[key] for key in ('groupId', 'artifactId', 'version') if key in properties}

    for name in pom_names:
        try:
            return _parse_pom(archive.read(name))
        except ZIP_MEMBER_ERRORS + (ValueError, ET.ParseError) as e:
            logger.debug(f"Failed to parse {name}: {e}")

    return {}


def read_archive_metadata(archive: 'ArchiveAccess') -> ArchiveMetadata:
    """
    Collect informational metadata for an open archive.

    Args:
        archive: Open archive

    Returns:
        ArchiveMetadata with manifest flags and Maven coordinates
    """
    manifest = archive.manifest
    metadata = ArchiveMetadata(
        has_manifest=manifest is not None,
        has_versions_directory=any(name.startswith(VERSIONS_PREFIX) for name in archive.names()),
    )

    if manifest is not None:
        metadata.multi_release = manifest.is_multi_release
        metadata.sealed = manifest.is_sealed
        metadata.signed = manifest.is_signed

    coordinates = read_maven_coordinates(archive)
    metadata.group_id = coordinates.get('groupId')
    metadata.artifact_id = coordinates.get('artifactId')
    metadata.version = coordinates.get('version')

    return metadata


def log_manifest_information(metadata: ArchiveMetadata) -> None:
    """Log what the manifest says about the archive."""
    if metadata.coordinates:
        logger.info(f"archive artifact: {metadata.coordinates}")

    if not metadata.has_manifest:
        logger.warning("the jar has no manifest")
        return

    if metadata.multi_release:
        logger.info("the jar is a multi release jar")
    else:
        logger.info("the jar is not a multi release jar")
        if metadata.has_versions_directory:
            logger.warning(
                "the jar is not a multi release jar; but it has META-INF/versions. "
                "consider adding Multi-Release: true to MANIFEST.MF, otherwise the "
                "versioned classes have no effect at runtime"
            )

    if metadata.sealed:
        logger.info("the jar is sealed globally")
    else:
        logger.info("the jar is not sealed globally")

    if metadata.signed:
        logger.info("the jar is signed from manifest")
    else:
        logger.info("the jar is not signed from manifest")
