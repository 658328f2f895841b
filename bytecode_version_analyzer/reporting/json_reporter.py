"""
JSON report generator for bytecode version analysis results.
"""

import json
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .base import ReportGenerator
from ..models import AnalysisResult, ClassFileVersion


class JSONReporter(ReportGenerator):
    """
    JSON report generator that serves as the foundation for all other report formats.
    Generates structured JSON output with version statistics and audit findings.
    """

    def __init__(self, include_metadata: bool = True, pretty_print: bool = True, include_classes: bool = True):
        """
        Initialize JSON reporter.

        Args:
            include_metadata: Whether to include metadata like timestamps
            pretty_print: Whether to format JSON with indentation
            include_classes: Whether to list every class with its version
        """
        self.include_metadata = include_metadata
        self.pretty_print = pretty_print
        self.include_classes = include_classes

    def generate_report(self, analysis_result: AnalysisResult, output_path: Optional[str] = None) -> str:
        """
        Generate JSON report from analysis results.

        Args:
            analysis_result: AnalysisResult to generate report from
            output_path: Optional path to write report to file

        Returns:
            JSON report content as string
        """
        report_data = self._build_report_structure(analysis_result)

        if self.pretty_print:
            json_content = json.dumps(report_data, indent=2, ensure_ascii=False)
        else:
            json_content = json.dumps(report_data, ensure_ascii=False)

        if output_path:
            self.write_text(json_content, output_path)

        return json_content

    def get_format_name(self) -> str:
        """Get the name of the report format."""
        return "json"

    def get_structured_data(self, analysis_result: AnalysisResult) -> Dict[str, Any]:
        """
        Get structured data without converting to JSON string.
        Used by other reporters that need the data structure.
        """
        return self._build_report_structure(analysis_result)

    def _build_report_structure(self, analysis_result: AnalysisResult) -> Dict[str, Any]:
        report = {
            "summary": self._build_summary(analysis_result),
            "versions": self._build_versions(analysis_result),
            "findings": self._build_findings(analysis_result),
            "diagnostics": self._build_diagnostics(analysis_result),
            "errors": list(analysis_result.errors),
        }

        if self.include_classes:
            report["classes"] = self._build_classes(analysis_result)

        if analysis_result.metadata is not None:
            archive = asdict(analysis_result.metadata)
            archive["coordinates"] = analysis_result.metadata.coordinates
            report["archive"] = archive

        if self.include_metadata:
            report["metadata"] = self._build_metadata(analysis_result)

        return report

    @staticmethod
    def _version_fields(version: ClassFileVersion) -> Dict[str, Any]:
        return {
            "version": str(version),
            "major": version.major,
            "minor": version.minor,
            "java_version": version.to_java_version(),
            "preview": version.is_preview(),
        }

    def _build_summary(self, analysis_result: AnalysisResult) -> Dict[str, Any]:
        tally = analysis_result.tally
        versions = tally.versions()

        return {
            "archive_path": analysis_result.archive_path,
            "total_classes": tally.total,
            "distinct_versions": len(versions),
            "highest_version": str(versions[0]) if versions else None,
            "lowest_version": str(versions[-1]) if versions else None,
            "preview_classes": sum(tally.count(version) for version in versions if version.is_preview()),
            "findings": len(analysis_result.findings),
            "errors": len(analysis_result.errors),
            "entries_processed": analysis_result.scan.entries_processed,
            "versioned_view": analysis_result.scan.versioned,
            "processing_time_seconds": round(analysis_result.processing_time, 3),
        }

    def _build_versions(self, analysis_result: AnalysisResult) -> List[Dict[str, Any]]:
        tally = analysis_result.tally
        versions = []
        for version, count in tally.items():
            entry = self._version_fields(version)
            entry["count"] = count
            entry["percent"] = tally.format_percent(version)
            versions.append(entry)
        return versions

    def _build_classes(self, analysis_result: AnalysisResult) -> List[Dict[str, Any]]:
        return [
            {"name": name, "version": str(version), "java_version": version.to_java_version()}
            for name, version in sorted(analysis_result.scan.classes.items())
        ]

    def _build_findings(self, analysis_result: AnalysisResult) -> List[Dict[str, Any]]:
        return [
            {
                "kind": finding.kind.value,
                "class": finding.class_name,
                "version": str(finding.version),
                "java_version": finding.version.to_java_version(),
                "threshold": str(finding.threshold) if finding.threshold is not None else None,
            }
            for finding in analysis_result.findings
        ]

    def _build_diagnostics(self, analysis_result: AnalysisResult) -> List[Dict[str, Any]]:
        return [
            {
                "kind": diagnostic.kind.value,
                "level": diagnostic.level_name.lower(),
                "name": diagnostic.name,
                "message": diagnostic.message,
            }
            for diagnostic in analysis_result.scan.diagnostics
        ]

    def _build_metadata(self, analysis_result: AnalysisResult) -> Dict[str, Any]:
        from ..version import TOOL_NAME, get_version

        return {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "generator": TOOL_NAME,
            "version": get_version(),
            "report_format": self.get_format_name(),
        }
