"""
Excel report generator for bytecode version analysis results.
"""

import io
from typing import Any, Dict, List, Optional

from openpyxl import Workbook
from openpyxl.chart import PieChart, Reference
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from .base import ReportGenerator
from .json_reporter import JSONReporter
from ..exceptions import ReportGenerationError
from ..models import AnalysisResult


class ExcelReporter(ReportGenerator):
    """
    Excel report generator that creates an Excel workbook per archive.
    Uses JSONReporter internally for data structuring.
    """

    def __init__(self, include_charts: bool = True):
        """
        Initialize Excel reporter.

        Args:
            include_charts: Whether to add a version distribution chart
        """
        self.include_charts = include_charts
        self.json_reporter = JSONReporter(include_metadata=True, include_classes=True)

        self.header_font = Font(bold=True, color="FFFFFF")
        self.header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        self.preview_fill = PatternFill(start_color="E4DFEC", end_color="E4DFEC", fill_type="solid")
        self.finding_fill = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
        self.error_fill = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
        self.center_alignment = Alignment(horizontal="center", vertical="center")
        self.border = Border(
            left=Side(style="thin"),
            right=Side(style="thin"),
            top=Side(style="thin"),
            bottom=Side(style="thin")
        )

    def generate_report(self, analysis_result: AnalysisResult, output_path: Optional[str] = None) -> str:
        """
        Generate Excel report from analysis results.

        Args:
            analysis_result: AnalysisResult to generate report from
            output_path: Optional path to write report to file

        Returns:
            Message describing where the workbook went
        """
        data = self.json_reporter.get_structured_data(analysis_result)
        workbook = self.create_workbook(data)

        if output_path:
            try:
                workbook.save(output_path)
            except OSError as e:
                raise ReportGenerationError(str(e), self.get_format_name(), output_path)
            return f"Excel report saved to {output_path}"

        buffer = io.BytesIO()
        workbook.save(buffer)
        return f"Excel workbook generated ({len(buffer.getvalue())} bytes)"

    def get_format_name(self) -> str:
        """Get the name of the report format."""
        return "excel"

    def create_workbook(self, data: Dict[str, Any]) -> Workbook:
        """
        Create complete Excel workbook from structured data.

        Args:
            data: Structured report data from JSON reporter

        Returns:
            Configured Excel workbook
        """
        wb = Workbook()
        wb.remove(wb.active)

        self._create_summary_sheet(wb, data)
        self._create_versions_sheet(wb, data)
        self._create_classes_sheet(wb, data)
        self._create_findings_sheet(wb, data)

        if data["diagnostics"]:
            self._create_diagnostics_sheet(wb, data)

        wb.active = wb["Summary"]
        return wb

    def _write_header(self, ws, headers: List[str]) -> None:
        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = self.center_alignment
            cell.border = self.border
        ws.freeze_panes = "A2"

    def _auto_width(self, ws) -> None:
        for column in ws.columns:
            length = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column)
            ws.column_dimensions[column[0].column_letter].width = min(max(10, length + 2), 80)

    def _create_summary_sheet(self, workbook: Workbook, data: Dict[str, Any]):
        ws = workbook.create_sheet("Summary")
        summary = data["summary"]

        ws["A1"] = "Bytecode Version Analysis Summary"
        ws["A1"].font = Font(size=16, bold=True)
        ws.merge_cells("A1:D1")

        rows = [
            ("Archive", summary["archive_path"]),
            ("Total classes", summary["total_classes"]),
            ("Distinct versions", summary["distinct_versions"]),
            ("Highest version", summary["highest_version"]),
            ("Lowest version", summary["lowest_version"]),
            ("Preview classes", summary["preview_classes"]),
            ("Findings", summary["findings"]),
            ("Errors", summary["errors"]),
            ("Processing time (s)", summary["processing_time_seconds"]),
        ]

        archive = data.get("archive")
        if archive:
            rows.extend([
                ("Artifact", archive.get("coordinates")),
                ("Multi-release", archive.get("multi_release")),
                ("Sealed", archive.get("sealed")),
                ("Signed", archive.get("signed")),
            ])

        if "metadata" in data:
            rows.extend([
                ("Generated", data["metadata"]["generated_at"]),
                ("Generator", f"{data['metadata']['generator']} v{data['metadata']['version']}"),
            ])

        for offset, (label, value) in enumerate(rows):
            row = 3 + offset
            ws.cell(row=row, column=1, value=label).font = Font(bold=True)
            ws.cell(row=row, column=2, value=value)

        ws.column_dimensions["A"].width = 22
        ws.column_dimensions["B"].width = 60

    def _create_versions_sheet(self, workbook: Workbook, data: Dict[str, Any]):
        ws = workbook.create_sheet("Versions")
        self._write_header(ws, ["Class File Version", "Java Version", "Preview", "Classes", "Percent"])

        for row, entry in enumerate(data["versions"], 2):
            values = [entry["version"], entry["java_version"], entry["preview"], entry["count"], float(entry["percent"])]
            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row, column=col, value=value)
                cell.border = self.border
                if entry["preview"]:
                    cell.fill = self.preview_fill

        self._auto_width(ws)

        if self.include_charts and data["versions"]:
            chart = PieChart()
            chart.title = "Classes per class file version"
            labels = Reference(ws, min_col=1, min_row=2, max_row=len(data["versions"]) + 1)
            counts = Reference(ws, min_col=4, min_row=1, max_row=len(data["versions"]) + 1)
            chart.add_data(counts, titles_from_data=True)
            chart.set_categories(labels)
            ws.add_chart(chart, "G2")

    def _create_classes_sheet(self, workbook: Workbook, data: Dict[str, Any]):
        ws = workbook.create_sheet("Classes")
        self._write_header(ws, ["Class", "Class File Version", "Java Version"])

        for row, entry in enumerate(data.get("classes", []), 2):
            ws.cell(row=row, column=1, value=entry["name"])
            ws.cell(row=row, column=2, value=entry["version"])
            ws.cell(row=row, column=3, value=entry["java_version"])

        self._auto_width(ws)

    def _create_findings_sheet(self, workbook: Workbook, data: Dict[str, Any]):
        ws = workbook.create_sheet("Findings")
        self._write_header(ws, ["Kind", "Class", "Class File Version", "Java Version", "Threshold"])

        for row, finding in enumerate(data["findings"], 2):
            values = [finding["kind"], finding["class"], finding["version"], finding["java_version"], finding["threshold"]]
            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row, column=col, value=value)
                cell.fill = self.finding_fill

        self._auto_width(ws)

    def _create_diagnostics_sheet(self, workbook: Workbook, data: Dict[str, Any]):
        ws = workbook.create_sheet("Diagnostics")
        self._write_header(ws, ["Level", "Kind", "Entry", "Message"])

        for row, diagnostic in enumerate(data["diagnostics"], 2):
            values = [diagnostic["level"], diagnostic["kind"], diagnostic["name"], diagnostic["message"]]
            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row, column=col, value=value)
                if diagnostic["level"] == "error":
                    cell.fill = self.error_fill

        self._auto_width(ws)
