"""Tests for YAML configuration loading."""
import pytest

from bytecode_version_analyzer.config import (
    Config,
    limit_range,
    load_config,
    parse_thread_count,
)
from bytecode_version_analyzer.exceptions import ConfigurationError
from bytecode_version_analyzer.models import ClassFileVersion


def write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return str(path)


def test_defaults():
    config = Config()
    assert config.scan.verify
    assert config.scan.parallel
    assert config.scan.fair
    assert config.scan.versioned
    assert config.scan.release is None
    assert config.scan.threads >= 1
    assert config.output.format == "text"
    assert config.logging.fail_level == "ERROR"


def test_load_full_config(tmp_path):
    path = write(tmp_path, """
scan:
  parallel: false
  threads: 3
  verify: "false"
  release: 11
  progress_interval: 2
audit:
  print_if_below: "52.0"
  print_if_above: 17
  filter: com/acme
output:
  format: json
  output_file: out.json
  timing: false
logging:
  level: warn
  fail_level: warning
""")
    config = load_config(path)

    assert not config.scan.parallel
    assert config.scan.threads == 3
    assert not config.scan.verify
    assert config.scan.release == 11
    assert config.scan.progress_interval == 2.0
    assert config.audit.print_if_below == ClassFileVersion(52, 0)
    assert config.audit.print_if_above == ClassFileVersion(61, 0)
    assert config.audit.filter == "com/acme"
    assert config.output.format == "json"
    assert config.output.output_file == "out.json"
    assert not config.output.timing
    assert config.logging.level == "warn"


def test_latest_release(tmp_path):
    assert load_config(write(tmp_path, "scan:\n  release: latest\n")).scan.release is None


def test_missing_file_gives_defaults(tmp_path):
    assert load_config(str(tmp_path / "nope.yaml")) == Config()


def test_empty_file_gives_defaults(tmp_path):
    assert load_config(write(tmp_path, "")) == Config()


@pytest.mark.parametrize("text", [
    "scan: [1, 2\n",
    "- just\n- a list\n",
    "scan: 5\n",
    "scan:\n  parallel: maybe\n",
    "scan:\n  threads: many\n",
    "audit:\n  print_if_below: java8\n",
    "output:\n  format: pdf\n",
    "logging:\n  level: loud\n",
])
def test_invalid_config(tmp_path, text):
    with pytest.raises(ConfigurationError):
        load_config(write(tmp_path, text))


def test_thread_multiplier(monkeypatch):
    monkeypatch.setattr("bytecode_version_analyzer.config.os.cpu_count", lambda: 4)
    assert parse_thread_count("2C") == 8
    assert parse_thread_count("0.5c") == 2
    assert parse_thread_count("6") == 6
    with pytest.raises(ConfigurationError):
        parse_thread_count("xC")


def test_limit_range(caplog):
    assert limit_range("threads", 5, 1, 10, 2) == 5
    assert limit_range("threads", 0, 1, 10, 2) == 2
    assert "threads not in required range, expected [1..10], got 0" in caplog.text
