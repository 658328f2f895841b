"""
Version statistics and threshold auditing of scan results.
"""

from typing import List, Optional

from .logging_config import get_logger
from .models import (
    AnalysisResult,
    ArchiveMetadata,
    AuditFinding,
    ClassFileVersion,
    FindingKind,
    ScanResult,
    VersionTally,
)

logger = get_logger('analysis')


def _matches(class_name: str, filter_text: Optional[str]) -> bool:
    return not filter_text or filter_text in class_name


def audit_class(class_name: str, version: ClassFileVersion,
                print_if_below: Optional[ClassFileVersion] = None,
                print_if_above: Optional[ClassFileVersion] = None,
                filter_text: Optional[str] = None) -> List[AuditFinding]:
    """
    Check a single class against the preview flag and the thresholds.

    The filter only narrows the below/above checks; preview classes are always reported.

    Returns:
        List of AuditFinding objects, empty if nothing was flagged
    """
    findings = []

    if version.is_preview():
        logger.warning(
            f"class {class_name} uses preview language features "
            f"({version}, Java {version.to_java_version()} with preview language features)"
        )
        findings.append(AuditFinding(FindingKind.PREVIEW, class_name, version))

    if print_if_below is not None and print_if_below.is_higher_than(version) and _matches(class_name, filter_text):
        logger.warning(
            f"class {class_name} uses version {version.describe()} which is below specified "
            f"({print_if_below}, Java {print_if_below.to_java_version()})"
        )
        findings.append(AuditFinding(FindingKind.BELOW, class_name, version, print_if_below))

    if print_if_above is not None and version.is_higher_than(print_if_above) and _matches(class_name, filter_text):
        logger.warning(
            f"class {class_name} uses version {version.describe()} which is above specified "
            f"({print_if_above}, Java {print_if_above.to_java_version()})"
        )
        findings.append(AuditFinding(FindingKind.ABOVE, class_name, version, print_if_above))

    return findings


def analyze(scan: ScanResult, metadata: Optional[ArchiveMetadata] = None,
            print_if_below: Optional[ClassFileVersion] = None,
            print_if_above: Optional[ClassFileVersion] = None,
            filter_text: Optional[str] = None) -> AnalysisResult:
    """
    Tally class file versions and audit every class.

    Args:
        scan: Result of an archive scan
        metadata: Optional archive metadata to carry into the result
        print_if_below: Flag classes strictly below this version
        print_if_above: Flag classes strictly above this version
        filter_text: Only flag below/above classes whose path contains this text

    Returns:
        AnalysisResult with the version tally and audit findings
    """
    tally = VersionTally()
    findings = []

    for record in scan.records():
        tally.add(record.version)
        findings.extend(audit_class(record.name, record.version, print_if_below, print_if_above, filter_text))

    total = tally.total
    for version, usages in tally.items():
        logger.info(
            f"{usages} out of total {total} classes (%{tally.format_percent(version)}) "
            f"use {version.describe()} class file version"
        )

    return AnalysisResult(
        archive_path=scan.archive_path,
        scan=scan,
        tally=tally,
        findings=findings,
        errors=[diagnostic.message for diagnostic in scan.errors],
        metadata=metadata,
        processing_time=scan.processing_time,
    )
