from __future__ import annotations

import json

from typer.testing import CliRunner

from cmdrun.cli import app

runner = CliRunner()


def test_cli_echoes_stdout_on_success() -> None:
    result = runner.invoke(app, ["run", """sh -c 'echo "1 2 3 4"'"""])
    assert result.exit_code == 0
    assert result.stdout == "1 2 3 4\n"


def test_cli_exits_with_child_exit_code() -> None:
    result = runner.invoke(app, ["run", "sh -c 'echo partial; exit 3'"])
    assert result.exit_code == 3
    assert "partial" in result.stdout


def test_cli_exits_127_when_program_is_missing() -> None:
    result = runner.invoke(app, ["run", "definitely-not-a-real-program-cmdrun"])
    assert result.exit_code == 127


def test_cli_exits_2_on_empty_command() -> None:
    result = runner.invoke(app, ["run", "  "])
    assert result.exit_code == 2


def test_cli_pipes_own_stdin_to_command() -> None:
    result = runner.invoke(app, ["run", "cat", "--stdin"], input="Hello, world!")
    assert result.exit_code == 0
    assert result.stdout == "Hello, world!"


def test_cli_json_report_on_success() -> None:
    result = runner.invoke(app, ["run", "echo 'a b'", "--json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["status"] == "succeeded"
    assert payload["argv"] == ["echo", "a b"]
    assert payload["stdout"] == "a b\n"


def test_cli_json_report_on_failure() -> None:
    result = runner.invoke(app, ["run", "sh -c 'echo oops >&2; exit 5'", "--json"])
    assert result.exit_code == 5
    payload = json.loads(result.stdout)
    assert payload["status"] == "process_failed"
    assert payload["exit_code"] == 5
    assert payload["stderr"] == "oops\n"


def test_cli_json_report_on_parse_error() -> None:
    result = runner.invoke(app, ["run", "echo 'open", "--json"])
    assert result.exit_code == 2
    payload = json.loads(result.stdout)
    assert payload["status"] == "parse_failed"
    assert payload["argv"] == []


def test_cli_reports_invalid_configuration_without_traceback(monkeypatch) -> None:
    monkeypatch.setenv("CMDRUN_LOG_LEVEL", "chatty")
    result = runner.invoke(app, ["run", "true"])
    assert result.exit_code == 78
    assert isinstance(result.exception, SystemExit)


def test_cli_passes_configuration_to_runner(monkeypatch) -> None:
    monkeypatch.setenv("CMDRUN_ERROR_EXCERPT_CHARS", "3")
    result = runner.invoke(app, ["run", "sh -c 'printf abcdef >&2; exit 1'", "--json"])
    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["error"].endswith("stderr=def")
    assert payload["stderr"] == "abcdef"
