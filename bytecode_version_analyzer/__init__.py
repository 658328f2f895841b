"""
Bytecode Version Analyzer

Reports the class file version of standalone .class files and of every class
inside JAR/ZIP archives, including multi-release JARs, with threshold auditing
and version statistics.
"""

__version__ = "1.0.0"
__author__ = "Bytecode Version Analyzer Team"


# Make version easily importable
def get_version():
    """Get the current version of the Bytecode Version Analyzer."""
    return __version__


def main(argv=None) -> int:
    """Run the command line interface."""
    from .cli import main as cli_main
    return cli_main(argv)


__all__ = ['get_version', 'main']
