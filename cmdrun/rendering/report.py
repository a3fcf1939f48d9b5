"""Serializable summary of a single run."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from cmdrun.process.errors import (
    CommandParseError,
    ProcessError,
    ProcessFailure,
    ProcessIoError,
)
from cmdrun.process.output import Output

RunStatus = Literal["succeeded", "process_failed", "io_failed", "parse_failed"]


class RunReport(BaseModel):
    """Outcome of one run, suitable for JSON output."""

    command: str = Field(..., description="Command string as given.")
    argv: list[str] = Field(default_factory=list)
    status: RunStatus
    exit_code: int | None = None
    signal: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"

    @classmethod
    def from_output(cls, *, command: str, argv: list[str], output: Output) -> RunReport:
        return cls(
            command=command,
            argv=argv,
            status="succeeded",
            exit_code=0,
            stdout=output.stdout,
            stderr=output.stderr,
        )

    @classmethod
    def from_error(cls, *, command: str, argv: list[str], error: ProcessError) -> RunReport:
        """Builds a report from any error the runner raises."""

        if isinstance(error, ProcessFailure):
            return cls(
                command=command,
                argv=argv,
                status="process_failed",
                exit_code=error.status.code,
                signal=error.status.signal,
                stdout=error.output.stdout,
                stderr=error.output.stderr,
                error=str(error),
            )
        if isinstance(error, CommandParseError):
            return cls(command=command, argv=argv, status="parse_failed", error=str(error))
        if isinstance(error, ProcessIoError):
            return cls(command=command, argv=argv, status="io_failed", error=str(error))
        raise TypeError(f"unsupported error type: {type(error).__name__}")
