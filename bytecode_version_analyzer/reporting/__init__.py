"""
Reporting Module

Contains report generators for different output formats (text, JSON, Excel).
"""

from .base import ReportGenerator
from .excel_reporter import ExcelReporter
from .json_reporter import JSONReporter
from .text_reporter import HumanReadableReporter

REPORTERS = {
    'text': HumanReadableReporter,
    'json': JSONReporter,
    'excel': ExcelReporter,
}


def create_reporter(format_name: str, **kwargs) -> ReportGenerator:
    """
    Create a report generator by format name.

    Args:
        format_name: One of "text", "json" or "excel"
        **kwargs: Passed to the reporter constructor

    Returns:
        ReportGenerator instance

    Raises:
        ValueError: If the format is unknown
    """
    try:
        reporter_class = REPORTERS[format_name]
    except KeyError:
        raise ValueError(f"Unknown report format '{format_name}', expected one of: {', '.join(REPORTERS)}")
    return reporter_class(**kwargs)


__all__ = ['ReportGenerator', 'JSONReporter', 'HumanReadableReporter', 'ExcelReporter', 'create_reporter']
