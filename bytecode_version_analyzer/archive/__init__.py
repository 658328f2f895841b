"""
Archive Module

Contains JAR/ZIP access adapters, manifest parsing and the archive resolver.
"""

from .access import ArchiveAccess, ArchiveEntry, PlainArchive, VersionedArchive, open_archive
from .metadata import Manifest, read_archive_metadata
from .resolver import ArchiveResolver, scan_archive

__all__ = [
    'ArchiveAccess',
    'ArchiveEntry',
    'PlainArchive',
    'VersionedArchive',
    'open_archive',
    'Manifest',
    'read_archive_metadata',
    'ArchiveResolver',
    'scan_archive',
]
