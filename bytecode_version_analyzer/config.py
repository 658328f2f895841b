"""
Configuration management for the Bytecode Version Analyzer.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from .exceptions import ConfigurationError
from .logging_config import get_logger, parse_level
from .models import ClassFileVersion

logger = get_logger('config')

# Same cap as the JDK's ForkJoinPool
MAX_THREADS = 32767

REPORT_FORMATS = ('text', 'json', 'excel')


def default_thread_count() -> int:
    return os.cpu_count() or 1


@dataclass
class ScanConfig:
    """Options read by the archive resolver at the start of a scan."""
    verify: bool = True
    parallel: bool = True
    threads: int = field(default_factory=default_thread_count)
    fair: bool = True
    buffered: bool = True
    track_progress: bool = True
    progress_interval: float = 0.5
    versioned: bool = True
    release: Optional[int] = None
    force_multi_release: bool = False


@dataclass
class AuditConfig:
    """Threshold audit settings."""
    print_if_below: Optional[ClassFileVersion] = None
    print_if_above: Optional[ClassFileVersion] = None
    filter: Optional[str] = None


@dataclass
class OutputConfig:
    """Configuration for output formatting."""
    format: str = "text"
    output_file: Optional[str] = None
    timing: bool = True
    use_colors: Optional[bool] = None


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    log_file: Optional[str] = None
    verbose: bool = False
    fail_level: str = "ERROR"


@dataclass
class Config:
    """Main configuration class."""
    scan: ScanConfig = field(default_factory=ScanConfig)
    audit: AuditConfig = field(default_factory=AuditConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def limit_range(name: str, value: int, minimum: int, maximum: int, default: int) -> int:
    """
    Return value if it lies in [minimum..maximum], otherwise log an error and return default.
    """
    if value < minimum or value > maximum:
        logger.error(
            f"{name} not in required range, expected [{minimum}..{maximum}], "
            f"got {value}, falling back to default of {default}"
        )
        return default
    return value


def parse_bool(value: Any, name: str) -> bool:
    """Accept YAML booleans and the strings "true"/"false"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ('true', 'false'):
        return value.strip().lower() == 'true'
    raise ConfigurationError(f"invalid boolean value for {name}, expected true or false, got {value!r}")


def parse_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"invalid integer value for {name}: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"invalid integer value for {name}: {value!r}")


def parse_thread_count(value: Any, name: str = 'threads') -> int:
    """
    Parse a thread count; a trailing "C" multiplies the CPU count (e.g. "1.5C").
    """
    if isinstance(value, str) and value.strip().upper().endswith('C'):
        multiplier = value.strip()[:-1]
        try:
            return max(1, int(float(multiplier) * default_thread_count()))
        except ValueError:
            raise ConfigurationError(f"invalid thread multiplier for {name}: {value!r}")
    return parse_int(value, name)


def parse_version(value: Any, name: str) -> Optional[ClassFileVersion]:
    """Parse a "major.minor" or Java version setting."""
    if value is None:
        return None
    try:
        return ClassFileVersion.from_string(str(value))
    except ValueError as e:
        raise ConfigurationError(f"invalid class file version for {name}: {value!r} ({e})")


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from file or use defaults.

    Args:
        config_path: Optional path to configuration file

    Returns:
        Config object with loaded settings

    Raises:
        ConfigurationError: If configuration file is invalid
    """
    config = Config()

    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ConfigurationError(f"Error loading configuration file: {e}")

        if config_data:
            if not isinstance(config_data, dict):
                raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")
            # Update configuration with loaded data
            _update_config_from_dict(config, config_data)
            logger.info(f"Loaded configuration from {config_path}")

    elif config_path:
        logger.warning(f"Configuration file not found: {config_path}")

    return config


def _section(config_data: Dict, name: str) -> Dict:
    data = config_data.get(name) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration section '{name}' must be a mapping")
    return data


def _update_config_from_dict(config: Config, config_data: Dict) -> None:
    """
    Update configuration object from dictionary data.

    Args:
        config: Config object to update
        config_data: Dictionary with configuration data
    """
    scan_data = _section(config_data, 'scan')
    for key in ('verify', 'parallel', 'fair', 'buffered', 'track_progress', 'versioned', 'force_multi_release'):
        if key in scan_data:
            setattr(config.scan, key, parse_bool(scan_data[key], f"scan.{key}"))
    if 'threads' in scan_data:
        config.scan.threads = parse_thread_count(scan_data['threads'], 'scan.threads')
    if 'progress_interval' in scan_data:
        try:
            config.scan.progress_interval = float(scan_data['progress_interval'])
        except (TypeError, ValueError):
            raise ConfigurationError(f"invalid number for scan.progress_interval: {scan_data['progress_interval']!r}")
    if 'release' in scan_data:
        release = scan_data['release']
        config.scan.release = None if release in (None, 'latest') else parse_int(release, 'scan.release')

    audit_data = _section(config_data, 'audit')
    if 'print_if_below' in audit_data:
        config.audit.print_if_below = parse_version(audit_data['print_if_below'], 'audit.print_if_below')
    if 'print_if_above' in audit_data:
        config.audit.print_if_above = parse_version(audit_data['print_if_above'], 'audit.print_if_above')
    if 'filter' in audit_data:
        config.audit.filter = audit_data['filter']

    output_data = _section(config_data, 'output')
    if 'format' in output_data:
        if output_data['format'] not in REPORT_FORMATS:
            raise ConfigurationError(
                f"Unknown output format '{output_data['format']}', expected one of: {', '.join(REPORT_FORMATS)}"
            )
        config.output.format = output_data['format']
    if 'output_file' in output_data:
        config.output.output_file = output_data['output_file']
    if 'timing' in output_data:
        config.output.timing = parse_bool(output_data['timing'], 'output.timing')
    if 'use_colors' in output_data:
        use_colors = output_data['use_colors']
        config.output.use_colors = None if use_colors is None else parse_bool(use_colors, 'output.use_colors')

    logging_data = _section(config_data, 'logging')
    if 'level' in logging_data:
        parse_level(logging_data['level'])
        config.logging.level = logging_data['level']
    if 'log_file' in logging_data:
        config.logging.log_file = logging_data['log_file']
    if 'verbose' in logging_data:
        config.logging.verbose = parse_bool(logging_data['verbose'], 'logging.verbose')
    if 'fail_level' in logging_data:
        parse_level(logging_data['fail_level'])
        config.logging.fail_level = logging_data['fail_level']


def get_default_config_path() -> Optional[str]:
    """
    Get the default configuration file path.

    Returns:
        Path to default config file if it exists, None otherwise
    """
    possible_paths = [
        'bytecode_version_analyzer.yaml',
        'bytecode_version_analyzer.yml',
        os.path.expanduser('~/.bytecode_version_analyzer.yaml'),
        os.path.expanduser('~/.bytecode_version_analyzer.yml'),
    ]

    for path in possible_paths:
        if os.path.exists(path):
            return path

    return None
