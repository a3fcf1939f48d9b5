"""Captured process output and exit status."""

from __future__ import annotations

from dataclasses import dataclass


def decode_lossy(data: bytes | None) -> str:
    """Decodes captured bytes as UTF-8, replacing invalid sequences."""

    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class Output:
    """Text captured from a finished process.

    Attributes:
        stdout: Decoded standard output.
        stderr: Decoded standard error.
    """

    stdout: str = ""
    stderr: str = ""

    @classmethod
    def from_bytes(cls, stdout: bytes | None, stderr: bytes | None) -> Output:
        """Builds an Output from raw pipe contents (``None`` means nothing captured)."""

        return cls(stdout=decode_lossy(stdout), stderr=decode_lossy(stderr))


@dataclass(frozen=True)
class ExitStatus:
    """Outcome of a finished process.

    ``code`` is None when the process was killed by a signal; ``signal`` is
    set instead.
    """

    code: int | None
    signal: int | None = None

    @classmethod
    def from_returncode(cls, returncode: int) -> ExitStatus:
        # POSIX: a negative return code means the child died from signal -N.
        if returncode < 0:
            return cls(code=None, signal=-returncode)
        return cls(code=returncode)

    @property
    def success(self) -> bool:
        return self.code == 0

    def __str__(self) -> str:
        if self.code is None:
            return f"signal: {self.signal}"
        return f"exit code: {self.code}"
