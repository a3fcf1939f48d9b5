"""Errors raised while running a command.

Two runtime kinds exist: ``ProcessIoError`` when the process could not be
spawned or talked to, and ``ProcessFailure`` when it ran but exited
unsuccessfully. ``CommandParseError`` is raised before anything is spawned.
"""

from __future__ import annotations

from cmdrun.process.output import ExitStatus, Output

DEFAULT_EXCERPT_CHARS = 2000


class ProcessError(RuntimeError):
    """Base class for every error raised by the runner."""


class CommandParseError(ProcessError, ValueError):
    """Raised when a command string cannot be split into a program and arguments."""

    def __init__(self, *, message: str, command: str) -> None:
        super().__init__(f"{message} | command={command!r}")
        self.command = command


class ProcessIoError(ProcessError):
    """Raised when spawning or communicating with a process fails."""

    def __init__(self, *, error: OSError, program: str | None = None) -> None:
        parts: list[str] = [f"unexpected I/O error: {error}"]
        if program:
            parts.append(f"program={program}")
        super().__init__(" | ".join(parts))
        self.error = error
        self.program = program


class ProcessFailure(ProcessError):
    """Raised when a process exits unsuccessfully.

    Attributes:
        status: Exit status reported by the operating system.
        output: Whatever the process wrote before exiting.
    """

    def __init__(
        self,
        *,
        status: ExitStatus,
        output: Output | None = None,
        program: str | None = None,
        excerpt_chars: int = DEFAULT_EXCERPT_CHARS,
    ) -> None:
        self.status = status
        self.output = output if output is not None else Output()
        self.program = program

        parts: list[str] = ["process failed"]
        if program:
            parts.append(f"program={program}")
        if status.code is not None:
            parts.append(f"exit_code={status.code}")
        else:
            parts.append(f"signal={status.signal}")
        stderr_text = self.output.stderr.strip()
        if stderr_text and excerpt_chars > 0:
            if len(stderr_text) > excerpt_chars:
                stderr_text = stderr_text[-excerpt_chars:]
            parts.append(f"stderr={stderr_text}")
        super().__init__(" | ".join(parts))

    @property
    def exit_code(self) -> int | None:
        return self.status.code
