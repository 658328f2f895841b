"""
Base class shared by the report generators.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..exceptions import ReportGenerationError
from ..models import AnalysisResult


class ReportGenerator(ABC):
    """Renders the AnalysisResult of one archive in a single output format."""

    @abstractmethod
    def generate_report(self, analysis_result: AnalysisResult, output_path: Optional[str] = None) -> str:
        """
        Render a report, optionally writing it to output_path.

        Returns:
            The rendered report, or a short message for binary formats
        """
        pass

    @abstractmethod
    def get_format_name(self) -> str:
        """Format identifier as accepted by create_reporter, e.g. "json"."""
        pass

    def write_text(self, content: str, output_path: str) -> None:
        """
        Write a rendered text report as UTF-8.

        Raises:
            ReportGenerationError: If the file can't be written
        """
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            raise ReportGenerationError(str(e), self.get_format_name(), output_path) from e
