"""
Custom exceptions for the Bytecode Version Analyzer.
"""


class BytecodeAnalyzerError(Exception):
    """Base exception class for all Bytecode Version Analyzer errors."""
    pass


class ClassFileError(BytecodeAnalyzerError):
    """Raised when a class file header can't be decoded."""

    def __init__(self, message: str, name: str = None):
        self.name = name

        if name:
            message = f"{name}: {message}"

        super().__init__(message)


class InvalidClassFileError(ClassFileError):
    """Raised when the class file magic number is not 0xCAFEBABE."""
    pass


class ClassFileReadError(ClassFileError, IOError):
    """Raised when a class file ends before its 8-byte header is complete."""
    pass


class ArchiveOpenError(BytecodeAnalyzerError):
    """Raised when an archive or class file can't be opened."""

    def __init__(self, message: str, path: str = None):
        self.path = path

        if path:
            message = f"{message}: {path}"

        super().__init__(message)


class PathNotFoundError(ArchiveOpenError):
    """Raised when the given path does not exist."""
    pass


class PathNotReadableError(ArchiveOpenError):
    """Raised when the given path exists but can't be read."""
    pass


class NotAFileError(PathNotReadableError):
    """Raised when the given path is a directory or another non-file."""
    pass


class CorruptArchiveError(ArchiveOpenError):
    """Raised when the ZIP central directory can't be read."""
    pass


class ArchiveScanError(BytecodeAnalyzerError):
    """Raised when an archive scan fails outside of per-entry processing."""

    def __init__(self, message: str, path: str = None):
        self.path = path

        if path:
            message = f"Error scanning archive '{path}': {message}"

        super().__init__(message)


class ConfigurationError(BytecodeAnalyzerError):
    """Raised when configuration is invalid."""
    pass


class ReportGenerationError(BytecodeAnalyzerError):
    """Raised when report generation fails."""

    def __init__(self, message: str, format_name: str = None, output_path: str = None):
        self.format_name = format_name
        self.output_path = output_path

        if format_name:
            message = f"Report generation error for format '{format_name}': {message}"
            if output_path:
                message += f" (output: {output_path})"

        super().__init__(message)
