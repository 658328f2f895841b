"""
Archive traversal and multi-release resolution.

The resolver walks every entry of an archive, decides which entries are real
class files under their effective (multi-release) identity, reads their class
file headers and collects a ``path -> ClassFileVersion`` mapping. Problems with
single entries are recorded as diagnostics and never abort the scan.
"""

import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Set, Tuple

from ..classfile import buffered, read_class_file_version
from ..config import MAX_THREADS, ScanConfig, default_thread_count, limit_range
from ..exceptions import ArchiveScanError, ClassFileError
from ..logging_config import get_logger
from ..models import ArchiveMetadata, ClassFileVersion, Diagnostic, DiagnosticKind, ScanResult
from ..progress import ProgressTracker, Timing
from .access import ArchiveAccess, ArchiveEntry, open_archive
from .metadata import VERSIONS_PREFIX, ZIP_MEMBER_ERRORS, log_manifest_information, read_archive_metadata

logger = get_logger('archive.resolver')

SIGNING_FILE_PREFIX = 'SIG-'
SIGNING_FILE_SUFFIXES = ('.RSA', '.DSA', '.SF', '.EC')

CLASS_SUFFIX = '.class'

# ClassName$1.class, ClassName$2.class, ... are anonymous/synthetic classes
_SYNTHETIC_ID = re.compile(r'[0-9]+')

# Failures that only cost the entry being read
ENTRY_READ_ERRORS = (ClassFileError,) + ZIP_MEMBER_ERRORS

WORKER_THREAD_NAME = "Bytecode version analyzer entry processor thread"


class SerialCollections:
    """Result containers for a scan running on a single thread."""

    concurrent = False

    def __init__(self):
        self.seen: Set[str] = set()
        self.duplicates: Set[str] = set()
        self.classes = {}
        self.diagnostics: List[Diagnostic] = []

    @property
    def seen_count(self) -> int:
        return len(self.seen)

    def add_seen(self, name: str) -> bool:
        """Record a name, returning False if it was seen before."""
        if name in self.seen:
            self.duplicates.add(name)
            return False
        self.seen.add(name)
        return True

    def is_duplicate(self, name: str) -> bool:
        return name in self.duplicates

    def put_class(self, name: str, version: ClassFileVersion) -> bool:
        """Insert a class unless present, returning False if it was already there."""
        if name in self.classes:
            return False
        self.classes[name] = version
        return True

    def add_diagnostic(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)


class ConcurrentCollections(SerialCollections):
    """Lock guarded result containers shared by worker threads."""

    concurrent = True

    def __init__(self):
        super().__init__()
        self._lock = threading.Lock()

    def add_seen(self, name: str) -> bool:
        with self._lock:
            return super().add_seen(name)

    def is_duplicate(self, name: str) -> bool:
        with self._lock:
            return super().is_duplicate(name)

    def put_class(self, name: str, version: ClassFileVersion) -> bool:
        with self._lock:
            return super().put_class(name, version)

    def add_diagnostic(self, diagnostic: Diagnostic) -> None:
        with self._lock:
            super().add_diagnostic(diagnostic)


def is_signing_file(name: str) -> bool:
    """True if the entry name looks like a JAR signature artifact."""
    base_name = name.rsplit('/', 1)[-1]
    return base_name.startswith(SIGNING_FILE_PREFIX) or name.endswith(SIGNING_FILE_SUFFIXES)


def synthetic_base_class_name(name: str) -> Optional[str]:
    """
    Name of the enclosing class for compiler generated classes.

    ``com/example/Foo$1.class`` gives ``com/example/Foo.class``; names whose
    last ``$`` segment is not purely numeric give None.
    """
    if '$' not in name:
        return None

    segments = name.split('$')
    last = segments[-1]
    if last.endswith(CLASS_SUFFIX):
        last = last[:-len(CLASS_SUFFIX)]

    if not _SYNTHETIC_ID.fullmatch(last):
        return None
    return segments[0] + CLASS_SUFFIX


class ArchiveResolver:
    """
    Resolves the class file version of every class in an archive.

    Works the same on both archive adapters: with a PlainArchive the effective
    and base views are identical, so multi-release layering and the synthetic
    class exclusion have no effect.
    """

    def __init__(self, archive: ArchiveAccess, config: Optional[ScanConfig] = None):
        self.archive = archive
        self.config = config or ScanConfig()

    def scan(self) -> ScanResult:
        """
        Scan every entry of the archive.

        Returns:
            ScanResult with the class map and diagnostics

        Raises:
            ArchiveScanError: If a worker fails outside of per-entry processing
            KeyboardInterrupt: Re-raised after the worker pool is torn down
        """
        threads = limit_range("thread count", self.config.threads, 1, MAX_THREADS, default_thread_count())
        parallel = self.config.parallel and threads > 1

        # Picked once per scan
        collections = ConcurrentCollections() if parallel else SerialCollections()

        entries = list(self.archive.entries())
        total_files = sum(1 for entry in entries if not entry.is_dir)

        logger.debug(
            f"scanning {len(entries)} entries of {self.archive.path} "
            f"({'versioned' if self.archive.versioned else 'plain'} view, "
            f"{f'{threads} threads' if parallel else 'single threaded'})"
        )

        tracker = ProgressTracker(
            self.config.progress_interval,
            current=lambda: collections.seen_count,
            total=lambda: total_files,
            notify=self._report_progress,
        )
        timing = Timing().start()

        try:
            if self.config.track_progress:
                tracker.start()

            if parallel:
                self._process_parallel(entries, collections, threads)
            else:
                self._process_serial(entries, collections)
        finally:
            tracker.stop()
            timing.stop()

        if self.config.track_progress:
            logger.info(f"Processed {collections.seen_count} entries in {timing}")

        return ScanResult(
            archive_path=self.archive.path,
            classes=dict(collections.classes),
            diagnostics=list(collections.diagnostics),
            entries_processed=collections.seen_count,
            versioned=self.archive.versioned,
            processing_time=timing.elapsed,
        )

    @staticmethod
    def _report_progress(current: int, total: int) -> None:
        if total >= 0:
            logger.info(f"Processing entries... ({current}/{total})")
        else:
            logger.info(f"Processing entries... ({current})")

    def _process_parallel(self, entries: List[ArchiveEntry], collections: SerialCollections, threads: int) -> None:
        executor = ThreadPoolExecutor(max_workers=threads, thread_name_prefix=WORKER_THREAD_NAME)
        futures = []

        try:
            if self.config.fair:
                # One task per entry, picked up in submission order
                futures = [executor.submit(self.process_entry, entry, collections) for entry in entries]
            else:
                chunk_size = max(1, -(-len(entries) // threads))
                futures = [
                    executor.submit(self._process_entries, entries[start:start + chunk_size], collections)
                    for start in range(0, len(entries), chunk_size)
                ]

            for future in futures:
                future.result()
        except KeyboardInterrupt:
            for future in futures:
                future.cancel()
            logger.warning("interrupted, stopping entry processing")
            raise
        except Exception as e:
            raise ArchiveScanError(f"entry processing failed: {e}", self.archive.path) from e
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

    def _process_serial(self, entries: List[ArchiveEntry], collections: SerialCollections) -> None:
        try:
            self._process_entries(entries, collections)
        except Exception as e:
            raise ArchiveScanError(f"entry processing failed: {e}", self.archive.path) from e

    def _process_entries(self, entries: List[ArchiveEntry], collections: SerialCollections) -> None:
        for entry in entries:
            self.process_entry(entry, collections)

    def process_entry(self, entry: ArchiveEntry, collections: SerialCollections) -> None:
        """Run the skip decisions for one enumerated entry and record its version."""
        if entry.is_dir:
            return

        name = entry.name
        if not collections.add_seen(name):
            self._emit(collections, DiagnosticKind.DUPLICATE_ENTRY, name, logging.WARNING,
                       f"duplicate entry: {name}")

        if is_signing_file(name):
            self._emit(collections, DiagnosticKind.SIGNING_FILE, name, logging.INFO,
                       f"found signing file: {name}")
            return

        if not name.endswith(CLASS_SUFFIX) or name.startswith(VERSIONS_PREFIX):
            return

        # Identity may differ from the enumerated entry once layering applies
        effective = self.archive.get_entry(name)
        if effective is None:
            return

        if self.should_skip(effective, collections):
            return

        version = self._read_version(effective, collections)
        if version is None:
            return

        if not collections.put_class(name, version):
            if collections.is_duplicate(name):
                logger.debug(f"keeping the first {name}, later copies are duplicate entries")
            else:
                self._emit(collections, DiagnosticKind.DUPLICATE_CLASS, name, logging.WARNING,
                           f"duplicate class: {name}")

    def should_skip(self, effective: ArchiveEntry, collections: Optional[SerialCollections] = None) -> bool:
        """
        Decide whether a compiler generated class must be left out.

        A non-versioned ``Foo$1.class`` is skipped when ``Foo.class`` has a
        distinct versioned copy: the versioned base class ships its own nested
        classes, so the top-level one is only the fallback for old releases.
        """
        name = effective.name
        if '$' not in name:
            return False

        base = self.archive.get_base_entry(name)
        if base is None or base.identity != effective.identity:
            return False

        base_class_name = synthetic_base_class_name(name)
        if base_class_name is None:
            return False

        versioned_base = self.archive.get_entry(base_class_name)
        plain_base = self.archive.get_base_entry(base_class_name)

        if versioned_base is not None and plain_base is not None and versioned_base.identity != plain_base.identity:
            message = f"skipping {name} (non-versioned compiler generated class whose base class is found and versioned)"
            if collections is not None:
                self._emit(collections, DiagnosticKind.SYNTHETIC_SKIP, name, logging.DEBUG, message)
            else:
                logger.debug(message)
            return True

        return False

    def _read_version(self, entry: ArchiveEntry, collections: SerialCollections) -> Optional[ClassFileVersion]:
        try:
            with self.archive.open_entry(entry) as stream:
                return read_class_file_version(buffered(stream, self.config.buffered), self.config.verify)
        except ENTRY_READ_ERRORS as e:
            self._emit(collections, DiagnosticKind.ENTRY_ERROR, entry.name, logging.ERROR,
                       f"error when processing class {entry.name}: {e}")
            return None

    @staticmethod
    def _emit(collections: SerialCollections, kind: DiagnosticKind, name: str, level: int, message: str) -> None:
        collections.add_diagnostic(Diagnostic(kind, name, message, level))
        logger.log(level, message)


def scan_archive(path: str, config: Optional[ScanConfig] = None,
                 log_metadata: bool = True) -> Tuple[ScanResult, ArchiveMetadata]:
    """
    Open an archive, read its metadata and scan it.

    Args:
        path: Path to the JAR/ZIP archive
        config: Scan options, defaults if None
        log_metadata: Whether to log the manifest information

    Returns:
        Tuple of (ScanResult, ArchiveMetadata)

    Raises:
        ArchiveOpenError: If the archive can't be opened
    """
    config = config or ScanConfig()

    with open_archive(path, versioned=config.versioned, release=config.release,
                      force_multi_release=config.force_multi_release) as archive:
        metadata = read_archive_metadata(archive)
        if log_metadata:
            log_manifest_information(metadata)

        return ArchiveResolver(archive, config).scan(), metadata
