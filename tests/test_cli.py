"""Tests for the command line interface."""
import json

import pytest

from bytecode_version_analyzer import cli
from bytecode_version_analyzer.cli import ExitCode, main
from tests.conftest import PLAIN_MANIFEST, class_bytes

QUIET = ["--no-parallel", "--no-track"]


@pytest.fixture
def jar(make_jar):
    return make_jar(
        [("com/acme/A.class", class_bytes(52)), ("com/acme/B.class", class_bytes(55))],
        manifest=PLAIN_MANIFEST,
        name="lib.jar",
    )


def test_no_arguments_shows_help(capsys):
    assert main([]) == ExitCode.SUCCESS
    assert "usage:" in capsys.readouterr().out


def test_version(capsys):
    assert main(["--version"]) == ExitCode.SUCCESS
    assert "Bytecode Version Analyzer v" in capsys.readouterr().out


def test_unknown_option():
    assert main(["--no-such-option"]) == ExitCode.USAGE


@pytest.mark.parametrize("options", [
    ["--threads", "lots"],
    ["--print-if-below", "abc"],
    ["--release", "eleven"],
    ["--verbosity", "loud"],
    ["--format", "excel"],
])
def test_invalid_settings(jar, options, capsys):
    assert main([jar, *options]) == ExitCode.USAGE
    assert "Error:" in capsys.readouterr().err


def test_missing_config_file(jar, tmp_path):
    assert main([jar, "--config", str(tmp_path / "missing.yaml")]) == ExitCode.USAGE


def test_class_file(tmp_path, capsys):
    path = tmp_path / "Foo.class"
    path.write_bytes(class_bytes(52))

    assert main([str(path), "--no-timing"]) == ExitCode.SUCCESS
    output = capsys.readouterr().out
    assert "52.0 (Java 8)" in output
    assert "Took" not in output


def test_missing_class_file(tmp_path, capsys):
    assert main([str(tmp_path / "Missing.class")]) == ExitCode.FAILURE
    assert "file does not exist" in capsys.readouterr().out


def test_missing_archive(tmp_path):
    assert main([str(tmp_path / "missing.jar"), *QUIET]) == ExitCode.FAILURE


def test_archive_text_report(jar, capsys):
    assert main([jar, *QUIET]) == ExitCode.SUCCESS
    output = capsys.readouterr().out
    assert "1 out of total 2 classes (%50) use 52.0 (Java 8) class file version" in output
    assert "BYTECODE VERSION REPORT" in output
    assert "Took" in output


def test_archive_json_report(jar, tmp_path):
    report = tmp_path / "report.json"

    assert main([jar, *QUIET, "--format", "json", "--output", str(report)]) == ExitCode.SUCCESS
    data = json.loads(report.read_text(encoding="utf-8"))
    assert data["summary"]["total_classes"] == 2


def test_excel_report(jar, tmp_path):
    report = tmp_path / "report.xlsx"

    assert main([jar, *QUIET, "--format", "excel", "-o", str(report)]) == ExitCode.SUCCESS
    assert report.exists()


def test_one_report_per_archive(make_jar, tmp_path):
    first = make_jar([("A.class", class_bytes(52))], manifest=PLAIN_MANIFEST, name="first.jar")
    second = make_jar([("B.class", class_bytes(55))], manifest=PLAIN_MANIFEST, name="second.jar")
    report = tmp_path / "report.json"

    assert main([first, second, *QUIET, "--format", "json", "-o", str(report)]) == ExitCode.SUCCESS
    assert (tmp_path / "report-first.json").exists()
    assert (tmp_path / "report-second.json").exists()


def test_entry_errors_fail_the_run(make_jar):
    path = make_jar([("Bad.class", b"junk"), ("Good.class", class_bytes(52))], manifest=PLAIN_MANIFEST)

    assert main([path, *QUIET]) == ExitCode.FAILURE
    assert main([path, *QUIET, "--fail-verbosity", "none"]) == ExitCode.SUCCESS


def test_threshold_warnings_with_fail_verbosity(jar):
    assert main([jar, *QUIET, "--print-if-below", "11"]) == ExitCode.SUCCESS
    assert main([jar, *QUIET, "--print-if-below", "11", "--fail-verbosity", "warning"]) == ExitCode.FAILURE


def test_filter_limits_threshold_warnings(jar):
    options = [*QUIET, "--print-if-below", "11", "--fail-verbosity", "warning"]
    assert main([jar, *options, "--filter", "org/other"]) == ExitCode.SUCCESS


def test_config_file(jar, tmp_path):
    report = tmp_path / "from-config.json"
    config = tmp_path / "config.yaml"
    config.write_text(
        "scan:\n  parallel: false\n  track_progress: false\n"
        f"output:\n  format: json\n  output_file: {report}\n"
    )

    assert main([jar, "--config", str(config)]) == ExitCode.SUCCESS
    assert json.loads(report.read_text(encoding="utf-8"))["summary"]["archive_path"] == jar


def test_parallel_run(jar):
    assert main([jar, "--parallel", "--threads", "2", "--no-fair", "--no-track"]) == ExitCode.SUCCESS


def test_keyboard_interrupt(jar, monkeypatch):
    def interrupted(paths, config):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli, "run", interrupted)
    assert main([jar]) == ExitCode.INTERRUPTED
