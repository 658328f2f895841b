"""
Command line interface for the Bytecode Version Analyzer.
"""

import argparse
import os
import sys
from enum import IntEnum
from typing import List, Optional

from .analysis import analyze, audit_class
from .archive import scan_archive
from .classfile import read_class_file
from .config import (
    REPORT_FORMATS,
    Config,
    OutputConfig,
    get_default_config_path,
    load_config,
    parse_int,
    parse_thread_count,
    parse_version,
)
from .exceptions import (
    ArchiveOpenError,
    ArchiveScanError,
    ClassFileError,
    ConfigurationError,
    ReportGenerationError,
)
from .logging_config import get_logger, install_failure_tracker, parse_level, setup_logging
from .models import AnalysisResult
from .progress import Timing
from .reporting import ReportGenerator, create_reporter
from .version import get_full_name_with_version

logger = get_logger('cli')


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    FAILURE = 1
    USAGE = 2
    INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='bytecode-version-analyzer',
        description='Report the class file versions used by .class files and JAR/ZIP archives',
    )
    parser.add_argument('paths', nargs='*', metavar='PATH',
                        help='JAR/ZIP archives or .class files to analyze')

    audit = parser.add_argument_group('audit')
    audit.add_argument('--print-if-below', metavar='VERSION',
                       help='Warn about classes below this version, e.g. 52.0 or 8')
    audit.add_argument('--print-if-above', metavar='VERSION',
                       help='Warn about classes above this version, e.g. 61.0 or 17')
    audit.add_argument('--filter', metavar='TEXT',
                       help='Only warn about classes whose path contains TEXT')

    scan = parser.add_argument_group('scanning')
    scan.add_argument('--parallel', action=argparse.BooleanOptionalAction, default=None,
                      help='Process archive entries on a thread pool (default: on)')
    scan.add_argument('--threads', metavar='N|NC',
                      help='Worker threads, or a multiplier of the CPU count such as 2C')
    scan.add_argument('--fair', action=argparse.BooleanOptionalAction, default=None,
                      help='Submit one task per entry instead of one chunk per thread (default: on)')
    scan.add_argument('--buffered', action=argparse.BooleanOptionalAction, default=None,
                      help='Read class files through a buffer (default: on)')
    scan.add_argument('--verify', action=argparse.BooleanOptionalAction, default=None,
                      help='Reject class files without the 0xCAFEBABE magic (default: on)')
    scan.add_argument('--track', action=argparse.BooleanOptionalAction, default=None,
                      help='Log progress while scanning (default: on)')
    scan.add_argument('--release', metavar='N',
                      help='Target release for multi release jars, or "latest"')
    scan.add_argument('--no-versioned', dest='versioned', action='store_false', default=None,
                      help='Ignore META-INF/versions/ and read the top-level entries only')
    scan.add_argument('--force-multi-release', action='store_true', default=None,
                      help='Apply META-INF/versions/ even without Multi-Release: true')

    output = parser.add_argument_group('output')
    output.add_argument('--format', choices=REPORT_FORMATS,
                        help='Report format (default: text)')
    output.add_argument('-o', '--output', metavar='FILE',
                        help='Write the report to FILE instead of the console')
    output.add_argument('--timing', action=argparse.BooleanOptionalAction, default=None,
                        help='Log the total time taken (default: on)')

    logging_group = parser.add_argument_group('logging')
    logging_group.add_argument('--verbosity', metavar='LEVEL',
                               help='debug, info, warning, error, fatal or none (default: info)')
    logging_group.add_argument('--fail-verbosity', metavar='LEVEL',
                               help='Exit with a failure code if anything at LEVEL or above is logged '
                                    '(default: error)')
    logging_group.add_argument('--debug', action='store_true',
                               help='Shortcut for --verbosity debug with detailed log lines')
    logging_group.add_argument('--log-file', metavar='FILE',
                               help='Also write debug logs to FILE')

    parser.add_argument('--config', metavar='FILE',
                        help='YAML configuration file')
    parser.add_argument('--version', action='version', version=get_full_name_with_version())

    return parser


def build_config(args: argparse.Namespace) -> Config:
    """
    Load the configuration file and apply command line overrides.

    Raises:
        ConfigurationError: If a setting is invalid
    """
    if args.config and not os.path.exists(args.config):
        raise ConfigurationError(f"Configuration file not found: {args.config}")
    config = load_config(args.config or get_default_config_path())

    scan = config.scan
    for name in ('parallel', 'fair', 'buffered', 'verify', 'versioned', 'force_multi_release'):
        value = getattr(args, name)
        if value is not None:
            setattr(scan, name, value)
    if args.track is not None:
        scan.track_progress = args.track
    if args.threads is not None:
        scan.threads = parse_thread_count(args.threads, '--threads')
    if args.release is not None:
        scan.release = None if args.release.strip().lower() == 'latest' else parse_int(args.release, '--release')

    if args.print_if_below is not None:
        config.audit.print_if_below = parse_version(args.print_if_below, '--print-if-below')
    if args.print_if_above is not None:
        config.audit.print_if_above = parse_version(args.print_if_above, '--print-if-above')
    if args.filter is not None:
        config.audit.filter = args.filter

    if args.format is not None:
        config.output.format = args.format
    if args.output is not None:
        config.output.output_file = args.output
    if args.timing is not None:
        config.output.timing = args.timing
    if config.output.format == 'excel' and not config.output.output_file:
        raise ConfigurationError("the excel format needs an output file, use --output")

    if args.verbosity is not None:
        config.logging.level = args.verbosity
    if args.fail_verbosity is not None:
        config.logging.fail_level = args.fail_verbosity
    if args.log_file is not None:
        config.logging.log_file = args.log_file
    if args.debug:
        config.logging.level = 'DEBUG'
        config.logging.verbose = True

    parse_level(config.logging.level)
    parse_level(config.logging.fail_level)

    return config


def _create_reporter(output: OutputConfig) -> ReportGenerator:
    if output.format == 'text':
        return create_reporter('text', use_colors=output.use_colors)
    return create_reporter(output.format)


def _report_path(output_file: Optional[str], archive_path: str, multiple: bool) -> Optional[str]:
    """One report file per archive when several archives are analyzed."""
    if not output_file or not multiple:
        return output_file
    root, extension = os.path.splitext(output_file)
    archive_name = os.path.splitext(os.path.basename(archive_path))[0]
    return f"{root}-{archive_name}{extension}"


def write_report(result: AnalysisResult, output: OutputConfig, multiple: bool = False) -> None:
    """
    Render the report for one archive to the console or a file.

    Raises:
        ReportGenerationError: If the report can't be written
    """
    reporter = _create_reporter(output)
    output_path = _report_path(output.output_file, result.archive_path, multiple)

    content = reporter.generate_report(result, output_path)
    if output_path:
        logger.info(f"{reporter.get_format_name()} report written to {output_path}")
    else:
        print(content)


def analyze_class_file(path: str, config: Config) -> bool:
    """Read and audit a standalone class file. Returns False on failure."""
    try:
        version = read_class_file(path, config.scan.verify, config.scan.buffered)
    except (ArchiveOpenError, ClassFileError) as e:
        logger.error(f"error when processing class {path}: {e}")
        return False

    logger.info(f"class file version of {path}: {version.describe()}")
    audit_class(path, version, config.audit.print_if_below, config.audit.print_if_above, config.audit.filter)
    return True


def analyze_archive(path: str, config: Config, multiple: bool = False) -> bool:
    """Scan, audit and report one archive. Returns False on failure."""
    logger.debug(f"analyzing archive {path}")

    try:
        scan, metadata = scan_archive(path, config.scan)
    except (ArchiveOpenError, ArchiveScanError) as e:
        logger.error(str(e))
        return False

    result = analyze(scan, metadata, config.audit.print_if_below, config.audit.print_if_above, config.audit.filter)

    try:
        write_report(result, config.output, multiple)
    except ReportGenerationError as e:
        logger.error(str(e))
        return False

    return True


def run(paths: List[str], config: Config) -> ExitCode:
    """Analyze every path in order, continuing after failures."""
    exit_code = ExitCode.SUCCESS
    archives = [path for path in paths if not path.lower().endswith('.class')]

    for path in paths:
        if path.lower().endswith('.class'):
            ok = analyze_class_file(path, config)
        else:
            ok = analyze_archive(path, config, multiple=len(archives) > 1)
        if not ok:
            exit_code = ExitCode.FAILURE

    return exit_code


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Args:
        argv: Command line arguments, sys.argv[1:] if None

    Returns:
        Process exit code
    """
    parser = build_parser()

    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else ExitCode.USAGE

    if not args.paths:
        # Nothing to analyze, probably started without arguments
        parser.print_help()
        return ExitCode.SUCCESS

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return ExitCode.USAGE

    root_logger = setup_logging(
        config.logging.level,
        config.logging.log_file,
        config.logging.verbose,
        config.output.use_colors,
    )
    tracker = install_failure_tracker(config.logging.fail_level)

    timing = Timing().start()
    try:
        exit_code = run(args.paths, config)
    except KeyboardInterrupt:
        logger.warning("interrupted")
        return ExitCode.INTERRUPTED
    finally:
        timing.stop()
        root_logger.removeHandler(tracker)

    if config.output.timing:
        logger.info(f"Took {timing}")

    if tracker.failed and exit_code == ExitCode.SUCCESS:
        logger.debug(f"failing because of: {tracker.first_message}")
        exit_code = ExitCode.FAILURE

    return exit_code
