"""Splitting command strings into a program and its arguments.

Quoting follows POSIX shell rules through ``shlex``: single quotes are
literal, double quotes allow backslash escapes, unquoted whitespace separates
tokens. Nothing else a shell does (expansion, globbing, pipes, redirection)
happens here, so ``|`` or ``>`` end up as plain argument text.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass

from cmdrun.process.errors import CommandParseError


@dataclass(frozen=True)
class CommandLine:
    """A tokenized command."""

    program: str
    args: tuple[str, ...] = ()

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]


def split_command(command: str) -> list[str]:
    """Splits ``command`` into tokens.

    Raises:
        CommandParseError: On unbalanced quotes or a dangling escape.
    """

    try:
        return shlex.split(command, comments=False, posix=True)
    except ValueError as exc:
        raise CommandParseError(message=f"invalid command line: {exc}", command=command) from exc


def parse_command_line(command: str) -> CommandLine:
    """Parses a command string into a ``CommandLine``.

    Args:
        command: Program name followed by its arguments, e.g. ``sh -c 'echo hi'``.

    Returns:
        The program and its arguments.

    Raises:
        CommandParseError: If the string is empty, whitespace-only or badly quoted.
    """

    tokens = split_command(command)
    if not tokens:
        raise CommandParseError(message="command must not be empty", command=command)
    return CommandLine(program=tokens[0], args=tuple(tokens[1:]))
