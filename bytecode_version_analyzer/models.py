"""
Core data models for the Bytecode Version Analyzer.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_UP
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

# Class file major versions start here; major - 44 is the Java version
JAVA_CLASS_FILE_VERSION_START = 44

# Minor version of classes compiled with --enable-preview
PREVIEW_CLASS_FILE_MINOR_VERSION = 0xFFFF

_BYTECODE_VERSION_PATTERN = re.compile(r'^\s*([+-]?\d+)\.([+-]?\d+)\s*$')

# Versions with a zero minor, keyed by major
_VERSION_CACHE: Dict[int, 'ClassFileVersion'] = {}


@dataclass(frozen=True, order=True)
class ClassFileVersion:
    """A class file version, ordered by (major, minor)."""
    major: int
    minor: int = 0

    def __post_init__(self):
        for label, value in (('major', self.major), ('minor', self.minor)):
            if not 0 <= value <= 0xFFFF:
                raise ValueError(f"class file {label} version out of range [0..65535]: {value}")

    @classmethod
    def get(cls, major: int, minor: int = 0) -> 'ClassFileVersion':
        """Return a version, possibly a shared instance when minor is 0."""
        if minor != 0:
            return cls(major, minor)

        version = _VERSION_CACHE.get(major)
        if version is None:
            version = _VERSION_CACHE.setdefault(major, cls(major, 0))
        return version

    @classmethod
    def from_java_version(cls, java_version: Union[str, int]) -> 'ClassFileVersion':
        """
        Create a version from a Java version number.

        Args:
            java_version: Java version, e.g. 8 or "17"

        Returns:
            ClassFileVersion with major = java_version + 44 and minor 0

        Raises:
            ValueError: If the value is not an integer or out of range
        """
        return cls.get(int(java_version) + JAVA_CLASS_FILE_VERSION_START, 0)

    @classmethod
    def from_bytecode_version_string(cls, text: str) -> 'ClassFileVersion':
        """
        Parse a "major.minor" string such as "52.0".

        Raises:
            ValueError: If the text is not exactly two dot separated integers
        """
        match = _BYTECODE_VERSION_PATTERN.match(text)
        if not match:
            raise ValueError(f"not in major.minor format: {text}")

        return cls.get(int(match.group(1)), int(match.group(2)))

    @classmethod
    def from_string(cls, text: str) -> 'ClassFileVersion':
        """
        Parse user input as "major.minor", falling back to a Java version.

        A bare integer like "17" is always a Java version (61.0).
        """
        try:
            return cls.from_bytecode_version_string(text)
        except ValueError:
            return cls.from_java_version(text)

    def is_higher_than(self, other: 'ClassFileVersion') -> bool:
        """True if this version is strictly greater in major, or equal major and greater minor."""
        return (self.major, self.minor) > (other.major, other.minor)

    def is_preview(self) -> bool:
        """True if the class was compiled with preview language features enabled."""
        return self.minor == PREVIEW_CLASS_FILE_MINOR_VERSION

    def to_java_version(self) -> int:
        return self.major - JAVA_CLASS_FILE_VERSION_START

    def describe(self) -> str:
        """Version string with the Java version, e.g. "52.0 (Java 8)"."""
        suffix = ", with preview features enabled)" if self.is_preview() else ")"
        return f"{self} (Java {self.to_java_version()}{suffix}"

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


@dataclass(frozen=True)
class ArchiveEntryRecord:
    """A class found in an archive, keyed by its logical path."""
    name: str
    version: ClassFileVersion


class VersionTally:
    """Number of classes observed per class file version."""

    def __init__(self, counts: Optional[Dict[ClassFileVersion, int]] = None):
        self._counts = Counter(counts or {})

    @classmethod
    def from_records(cls, records: Iterable[ArchiveEntryRecord]) -> 'VersionTally':
        tally = cls()
        for record in records:
            tally.add(record.version)
        return tally

    def add(self, version: ClassFileVersion, amount: int = 1) -> None:
        self._counts[version] += amount

    @property
    def total(self) -> int:
        return sum(self._counts.values())

    def count(self, version: ClassFileVersion) -> int:
        return self._counts.get(version, 0)

    def percent_of(self, version: ClassFileVersion) -> float:
        total = self.total
        if total == 0:
            return 0.0
        return self.count(version) * 100 / total

    def format_percent(self, version: ClassFileVersion) -> str:
        """
        Percentage with at most two decimals, rounded up.

        Computed exactly so that 6 out of 10 is "60" and 1 out of 3 is "33.34".
        """
        total = self.total
        if total == 0:
            return "0"

        percent = (Decimal(self.count(version)) * 100 / Decimal(total)).quantize(Decimal('0.01'), rounding=ROUND_UP)
        text = f"{percent:f}"
        if '.' in text:
            text = text.rstrip('0').rstrip('.')
        return text

    def versions(self) -> List[ClassFileVersion]:
        """Observed versions, highest first."""
        return sorted(self._counts, reverse=True)

    def items(self) -> List[Tuple[ClassFileVersion, int]]:
        return [(version, self._counts[version]) for version in self.versions()]

    def __iter__(self) -> Iterator[ClassFileVersion]:
        return iter(self.versions())

    def __len__(self) -> int:
        return len(self._counts)

    def __contains__(self, version) -> bool:
        return version in self._counts

    def __eq__(self, other) -> bool:
        if not isinstance(other, VersionTally):
            return NotImplemented
        return +self._counts == +other._counts

    def __repr__(self) -> str:
        inner = ', '.join(f"{version}: {count}" for version, count in self.items())
        return f"VersionTally({{{inner}}})"


class DiagnosticKind(Enum):
    """Kinds of non-fatal events reported while scanning an archive."""
    DUPLICATE_ENTRY = "duplicate_entry"
    DUPLICATE_CLASS = "duplicate_class"
    SIGNING_FILE = "signing_file"
    SYNTHETIC_SKIP = "synthetic_skip"
    ENTRY_ERROR = "entry_error"


@dataclass(frozen=True)
class Diagnostic:
    """A single diagnostic about an archive entry."""
    kind: DiagnosticKind
    name: str
    message: str
    level: int = logging.INFO

    @property
    def level_name(self) -> str:
        return logging.getLevelName(self.level)


@dataclass
class ScanResult:
    """Everything an archive scan produced."""
    archive_path: str
    classes: Dict[str, ClassFileVersion]
    diagnostics: List[Diagnostic] = field(default_factory=list)
    entries_processed: int = 0
    versioned: bool = False
    processing_time: float = 0.0

    def records(self) -> Iterator[ArchiveEntryRecord]:
        for name, version in self.classes.items():
            yield ArchiveEntryRecord(name, version)

    def diagnostics_of(self, kind: DiagnosticKind) -> List[Diagnostic]:
        return [diagnostic for diagnostic in self.diagnostics if diagnostic.kind is kind]

    @property
    def errors(self) -> List[Diagnostic]:
        return self.diagnostics_of(DiagnosticKind.ENTRY_ERROR)


@dataclass
class ArchiveMetadata:
    """Informational metadata read from an archive's manifest and Maven descriptors."""
    has_manifest: bool = False
    multi_release: bool = False
    sealed: bool = False
    signed: bool = False
    has_versions_directory: bool = False
    group_id: Optional[str] = None
    artifact_id: Optional[str] = None
    version: Optional[str] = None

    @property
    def coordinates(self) -> Optional[str]:
        """Maven coordinates as group:artifact:version, when known."""
        if not self.artifact_id:
            return None
        parts = [self.group_id or '?', self.artifact_id]
        if self.version:
            parts.append(self.version)
        return ':'.join(parts)


class FindingKind(Enum):
    """Why a class was flagged by the audit."""
    PREVIEW = "preview"
    BELOW = "below"
    ABOVE = "above"


@dataclass(frozen=True)
class AuditFinding:
    """A class flagged by the threshold or preview audit."""
    kind: FindingKind
    class_name: str
    version: ClassFileVersion
    threshold: Optional[ClassFileVersion] = None


@dataclass
class AnalysisResult:
    """Complete analysis result for one archive."""
    archive_path: str
    scan: ScanResult
    tally: VersionTally
    findings: List[AuditFinding] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Optional[ArchiveMetadata] = None
    processing_time: float = 0.0

    @property
    def total_classes(self) -> int:
        return self.tally.total

    def findings_of(self, kind: FindingKind) -> List[AuditFinding]:
        return [finding for finding in self.findings if finding.kind is kind]
