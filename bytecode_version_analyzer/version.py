"""
Tool name and version, shared by the CLI and the report metadata.
"""

from . import __version__

TOOL_NAME = "Bytecode Version Analyzer"


def get_version() -> str:
    """Return the package version, e.g. "1.0.0"."""
    return __version__


def get_version_info() -> dict:
    """
    Split the package version into numeric parts.

    Returns:
        Dictionary with version, major, minor and patch
    """
    parts = [int(part) if part.isdigit() else 0 for part in __version__.split('.')[:3]]
    parts += [0] * (3 - len(parts))

    return {
        "version": __version__,
        "major": parts[0],
        "minor": parts[1],
        "patch": parts[2],
    }


def get_full_name_with_version() -> str:
    """Tool name with version, as shown by --version and in report footers."""
    return f"{TOOL_NAME} v{__version__}"
