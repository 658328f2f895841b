"""
Human-readable text report generator for bytecode version analysis results.
"""

import os
import re
import sys
from typing import Any, Dict, List, Optional

from .base import ReportGenerator
from .json_reporter import JSONReporter
from ..models import AnalysisResult


class HumanReadableReporter(ReportGenerator):
    """
    Human-readable text report generator for console output.
    Uses JSONReporter internally for data structuring and includes color coding.
    """

    # ANSI color codes
    COLORS = {
        'RED': '\033[91m',
        'GREEN': '\033[92m',
        'YELLOW': '\033[93m',
        'BLUE': '\033[94m',
        'MAGENTA': '\033[95m',
        'CYAN': '\033[96m',
        'BOLD': '\033[1m',
        'RESET': '\033[0m'
    }

    FINDING_COLORS = {
        'preview': 'MAGENTA',
        'below': 'YELLOW',
        'above': 'RED',
    }

    def __init__(self, use_colors: bool = None, width: int = 80, detailed: bool = False):
        """
        Initialize human-readable text reporter.

        Args:
            use_colors: Whether to use ANSI color codes. Auto-detects if None.
            width: Console width for formatting (default: 80)
            detailed: Whether to list every class (default: False)
        """
        if use_colors is None:
            self.use_colors = self._supports_color()
        else:
            self.use_colors = use_colors

        self.width = width
        self.detailed = detailed
        self.json_reporter = JSONReporter(include_metadata=True, include_classes=detailed)

    def generate_report(self, analysis_result: AnalysisResult, output_path: Optional[str] = None) -> str:
        """
        Generate human-readable text report from analysis results.

        Args:
            analysis_result: AnalysisResult to generate report from
            output_path: Optional path to write report to file

        Returns:
            Text report content as string
        """
        data = self.json_reporter.get_structured_data(analysis_result)
        text_content = self._build_text_report(data)

        # Files never get color codes
        if output_path:
            self.write_text(self._strip_colors(text_content), output_path)

        return text_content

    def get_format_name(self) -> str:
        """Get the name of the report format."""
        return "text"

    def _supports_color(self) -> bool:
        """Auto-detect if the terminal supports color output."""
        if os.environ.get('NO_COLOR'):
            return False

        ci_with_colors = ['GITHUB_ACTIONS', 'GITLAB_CI', 'BUILDKITE']
        if any(os.environ.get(var) for var in ci_with_colors):
            return True

        if not hasattr(sys.stdout, 'isatty') or not sys.stdout.isatty():
            return False

        term = os.environ.get('TERM', '').lower()
        return 'color' in term or term in ['xterm', 'xterm-256color', 'screen']

    def _colorize(self, text: str, color: str) -> str:
        if not self.use_colors or color not in self.COLORS:
            return text
        return f"{self.COLORS[color]}{text}{self.COLORS['RESET']}"

    def _strip_colors(self, text: str) -> str:
        ansi_escape = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')
        return ansi_escape.sub('', text)

    def _build_text_report(self, data: Dict[str, Any]) -> str:
        sections = [
            self._build_header(data),
            self._build_summary_section(data["summary"]),
            self._build_versions_section(data["versions"], data["summary"]["total_classes"]),
        ]

        if data["findings"]:
            sections.append(self._build_findings_section(data["findings"]))

        if self.detailed and data.get("classes"):
            sections.append(self._build_classes_section(data["classes"]))

        if data["errors"]:
            sections.append(self._build_errors_section(data["errors"]))

        if "metadata" in data:
            sections.append(self._build_footer(data["metadata"]))

        return "\n\n".join(sections)

    def _build_header(self, data: Dict[str, Any]) -> str:
        summary = data["summary"]

        if summary["errors"]:
            status_text = self._colorize("ERRORS", "RED")
        elif summary["findings"]:
            status_text = self._colorize("REVIEW NEEDED", "YELLOW")
        else:
            status_text = self._colorize("OK", "GREEN")

        title = f"BYTECODE VERSION REPORT - {status_text}"
        separator = "=" * min(self.width, len(self._strip_colors(title)))

        lines = [
            self._colorize(separator, 'BOLD'),
            self._colorize(title, 'BOLD'),
            self._colorize(separator, 'BOLD'),
            "",
            f"Archive: {summary['archive_path']}",
        ]

        archive = data.get("archive")
        if archive:
            if archive.get("coordinates"):
                lines.append(f"Artifact: {self._colorize(archive['coordinates'], 'CYAN')}")
            flags = [
                "multi-release" if archive.get("multi_release") else None,
                "sealed" if archive.get("sealed") else None,
                "signed" if archive.get("signed") else None,
            ]
            flags = [flag for flag in flags if flag]
            if flags:
                lines.append(f"Flags: {', '.join(flags)}")

        return "\n".join(lines)

    def _build_summary_section(self, summary: Dict[str, Any]) -> str:
        lines = [
            self._colorize('SUMMARY', 'BOLD'),
            "",
            f"   Total Classes:        {self._colorize(str(summary['total_classes']), 'BOLD')}",
            f"   Distinct Versions:    {summary['distinct_versions']}",
        ]

        if summary["highest_version"] is not None:
            lines.append(f"   Highest Version:      {summary['highest_version']}")
            lines.append(f"   Lowest Version:       {summary['lowest_version']}")

        if summary["preview_classes"]:
            lines.append(f"   Preview Classes:      {self._colorize(str(summary['preview_classes']), 'MAGENTA')}")

        lines.extend([
            f"   Findings:             {summary['findings']}",
            f"   Errors:               {self._colorize(str(summary['errors']), 'RED') if summary['errors'] else 0}",
            f"   Processing Time:      {summary['processing_time_seconds']}s",
        ])
        return "\n".join(lines)

    def _build_versions_section(self, versions: List[Dict[str, Any]], total: int) -> str:
        lines = [self._colorize('CLASS FILE VERSIONS', 'BOLD'), ""]

        if not versions:
            lines.append("   No classes found")
            return "\n".join(lines)

        for entry in versions:
            java = f"Java {entry['java_version']}"
            if entry["preview"]:
                java += ", preview"
            lines.append(
                f"   {entry['version']:<10} ({java}){'':<4}"
                f"{entry['count']:>8} of {total}  ({entry['percent']}%)"
            )
        return "\n".join(lines)

    def _build_findings_section(self, findings: List[Dict[str, Any]]) -> str:
        lines = [self._colorize('FINDINGS', 'BOLD'), ""]
        for finding in findings:
            kind = self._colorize(finding["kind"].upper(), self.FINDING_COLORS.get(finding["kind"], 'YELLOW'))
            line = f"   [{kind}] {finding['class']} uses {finding['version']} (Java {finding['java_version']})"
            if finding["threshold"]:
                line += f", threshold {finding['threshold']}"
            lines.append(line)
        return "\n".join(lines)

    def _build_classes_section(self, classes: List[Dict[str, Any]]) -> str:
        lines = [self._colorize('CLASSES', 'BOLD'), ""]
        for entry in classes:
            lines.append(f"   {entry['version']:<10} {entry['name']}")
        return "\n".join(lines)

    def _build_errors_section(self, errors: List[str]) -> str:
        lines = [self._colorize('ERRORS', 'BOLD'), ""]
        lines.extend(f"   {self._colorize('-', 'RED')} {error}" for error in errors)
        return "\n".join(lines)

    def _build_footer(self, metadata: Dict[str, Any]) -> str:
        return f"Generated by {metadata['generator']} v{metadata['version']} at {metadata['generated_at']}"
