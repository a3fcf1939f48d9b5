from __future__ import annotations

import pytest

from cmdrun.process.command_line import CommandLine, parse_command_line, split_command
from cmdrun.process.errors import CommandParseError


@pytest.mark.parametrize(
    ("command", "expected"),
    [
        ("ls", ["ls"]),
        ("ls -la /tmp", ["ls", "-la", "/tmp"]),
        ("  echo   a\tb\n c  ", ["echo", "a", "b", "c"]),
        ("""sh -c 'echo "1 2 3 4"'""", ["sh", "-c", 'echo "1 2 3 4"']),
        ('echo "a b" c', ["echo", "a b", "c"]),
        (r"echo 'a\nb'", ["echo", r"a\nb"]),
        (r'echo "say \"hi\""', ["echo", 'say "hi"']),
        (r'echo "C:\path"', ["echo", r"C:\path"]),
        (r"echo a\ b", ["echo", "a b"]),
        (r"echo \'", ["echo", "'"]),
        ("echo ''", ["echo", ""]),
        ("echo 'a'\"b\"c", ["echo", "abc"]),
        ("grep x | wc -l > out", ["grep", "x", "|", "wc", "-l", ">", "out"]),
        ("echo $HOME *.py", ["echo", "$HOME", "*.py"]),
        ("echo # not a comment", ["echo", "#", "not", "a", "comment"]),
    ],
)
def test_split_command_follows_posix_quoting(command: str, expected: list[str]) -> None:
    assert split_command(command) == expected


def test_parse_command_line_separates_program_and_args() -> None:
    command_line = parse_command_line("git -C 'my repo' status")
    assert command_line == CommandLine(program="git", args=("-C", "my repo", "status"))
    assert command_line.argv == ["git", "-C", "my repo", "status"]


def test_parse_command_line_without_args() -> None:
    command_line = parse_command_line("true")
    assert command_line.program == "true"
    assert command_line.args == ()


@pytest.mark.parametrize("command", ["", "   ", "\t\n"])
def test_parse_command_line_rejects_empty_command(command: str) -> None:
    with pytest.raises(CommandParseError) as excinfo:
        parse_command_line(command)
    assert "must not be empty" in str(excinfo.value)
    assert excinfo.value.command == command


@pytest.mark.parametrize("command", ["echo 'unterminated", 'echo "unterminated', "echo trailing\\"])
def test_parse_command_line_rejects_bad_quoting(command: str) -> None:
    with pytest.raises(CommandParseError):
        parse_command_line(command)


def test_command_parse_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        parse_command_line("")
