"""Running commands given as a single command-line string.

The command is tokenized with POSIX quoting rules and executed without a
shell. Output of both streams is captured and decoded lossily. A process that
exits unsuccessfully raises ``ProcessFailure`` carrying the captured output,
so callers cannot mistake a failed run for a successful one.
"""

from __future__ import annotations

import logging
import subprocess
import time
from collections.abc import Callable, Iterable
from typing import IO, Any, NoReturn

from cmdrun.core.config import RunnerSettings
from cmdrun.process.command_line import CommandLine, parse_command_line
from cmdrun.process.errors import ProcessError, ProcessFailure, ProcessIoError
from cmdrun.process.output import ExitStatus, Output


class StdinWriter:
    """Writable handle to a child's standard input.

    The pipe is unbuffered, so every write reaches the child as it happens.
    Text is encoded as UTF-8.
    """

    def __init__(self, stream: IO[bytes], *, program: str, pid: int) -> None:
        self._stream = stream
        self._program = program
        self._pid = pid
        self._error: ProcessIoError | None = None

    @property
    def pid(self) -> int:
        """Process id of the child this handle writes to."""

        return self._pid

    @property
    def closed(self) -> bool:
        return self._stream.closed

    @property
    def error(self) -> ProcessIoError | None:
        """Last I/O error raised by this handle, if any."""

        return self._error

    def write(self, data: bytes | bytearray | memoryview | str) -> int:
        """Writes all of ``data`` to the child.

        Returns:
            Number of bytes written.

        Raises:
            ValueError: If the handle was already closed.
            ProcessIoError: If the pipe is broken or otherwise unwritable.
        """

        self._check_open()
        if isinstance(data, str):
            data = data.encode("utf-8")
        view = memoryview(data).cast("B")
        total = len(view)
        written = 0
        try:
            while written < total:
                count = self._stream.write(view[written:])
                # Raw pipes may accept only part of a large write.
                written += count or 0
        except OSError as exc:
            raise self._io_error(exc) from exc
        return total

    def writelines(self, lines: Iterable[bytes | str]) -> None:
        for line in lines:
            self.write(line)

    def flush(self) -> None:
        self._check_open()
        try:
            self._stream.flush()
        except OSError as exc:
            raise self._io_error(exc) from exc

    def close(self) -> None:
        try:
            self._stream.close()
        except OSError as exc:
            raise self._io_error(exc) from exc

    def _check_open(self) -> None:
        if self._stream.closed:
            raise ValueError(f"stdin of {self._program} (pid {self._pid}) is already closed")

    def _io_error(self, exc: OSError) -> ProcessIoError:
        self._error = ProcessIoError(error=exc, program=self._program)
        return self._error


StdinCallback = Callable[[StdinWriter], Any]
ErrorFactory = Callable[[ProcessError], BaseException]


def _raise_converted(error: ProcessError, error_factory: ErrorFactory | None) -> NoReturn:
    if error_factory is None:
        raise error
    raise error_factory(error) from error


class CommandRunner:
    """Runs command-line strings and classifies their exit status.

    A runner keeps no per-run state, so one instance can serve concurrent
    calls from several threads.
    """

    _logger = logging.getLogger(__name__)

    def __init__(self, *, settings: RunnerSettings | None = None) -> None:
        self._settings = settings or RunnerSettings()

    @property
    def settings(self) -> RunnerSettings:
        return self._settings

    def run(self, command: str) -> Output:
        """Runs ``command`` and waits for it to exit.

        The child gets no standard input (reads see end-of-file).

        Args:
            command: Program name followed by arguments, POSIX-quoted.

        Returns:
            Captured stdout and stderr of a successful run.

        Raises:
            CommandParseError: If the command string is empty or badly quoted.
            ProcessIoError: If the program cannot be spawned or waited on.
            ProcessFailure: If the program exits unsuccessfully.
        """

        command_line = parse_command_line(command)
        self._logger.debug(
            "Command started: program=%s arg_count=%s",
            command_line.program,
            len(command_line.args),
        )
        start_time = time.monotonic()
        try:
            completed = subprocess.run(
                command_line.argv,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                check=False,
            )
        except OSError as exc:
            raise ProcessIoError(error=exc, program=command_line.program) from exc
        return self._classify(
            command_line,
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
            start_time=start_time,
        )

    def run_with_stdin(
        self,
        command: str,
        writer: StdinCallback,
        *,
        error_factory: ErrorFactory | None = None,
    ) -> Output:
        """Runs ``command`` and lets ``writer`` feed its standard input.

        ``writer`` is called with a ``StdinWriter`` while the child is running.
        Once it returns, stdin is closed and the child is waited on. If it
        raises, the exception propagates unchanged and at once, and the child
        is not waited for; it may keep running.

        Args:
            command: Program name followed by arguments, POSIX-quoted.
            writer: Callback that writes the child's input.
            error_factory: Converts errors raised by this call (parsing,
                spawning, stdin I/O, waiting, exit status) into the caller's
                own exception type. The original is chained as cause. Other
                exceptions from ``writer`` are never converted.

        Returns:
            Captured stdout and stderr of a successful run.

        Raises:
            CommandParseError: If the command string is empty or badly quoted.
            ProcessIoError: If the program cannot be spawned or waited on.
            ProcessFailure: If the program exits unsuccessfully.
        """

        try:
            command_line = parse_command_line(command)
            start_time = time.monotonic()
            process = self._spawn_with_stdin(command_line)
        except ProcessError as exc:
            _raise_converted(exc, error_factory)

        assert process.stdin is not None
        stdin = StdinWriter(process.stdin, program=command_line.program, pid=process.pid)
        try:
            writer(stdin)
        except BaseException as exc:
            self._log_writer_failure(command_line, process)
            # Only failures of the stdin handle itself are ours to convert.
            if exc is stdin.error:
                _raise_converted(stdin.error, error_factory)
            raise

        try:
            return self._wait(command_line, process, start_time=start_time)
        except ProcessError as exc:
            _raise_converted(exc, error_factory)

    def _spawn_with_stdin(self, command_line: CommandLine) -> subprocess.Popen[bytes]:
        try:
            process = subprocess.Popen(
                command_line.argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                bufsize=0,
            )
        except OSError as exc:
            raise ProcessIoError(error=exc, program=command_line.program) from exc
        self._logger.debug(
            "Command started: program=%s pid=%s arg_count=%s",
            command_line.program,
            process.pid,
            len(command_line.args),
        )
        return process

    def _wait(
        self,
        command_line: CommandLine,
        process: subprocess.Popen[bytes],
        *,
        start_time: float,
    ) -> Output:
        if process.stdin is not None and process.stdin.closed:
            # communicate() flushes stdin first, which fails on a closed pipe.
            process.stdin = None
        try:
            # communicate() closes stdin before draining stdout/stderr.
            stdout, stderr = process.communicate()
        except OSError as exc:
            raise ProcessIoError(error=exc, program=command_line.program) from exc
        return self._classify(
            command_line,
            returncode=process.returncode,
            stdout=stdout,
            stderr=stderr,
            start_time=start_time,
        )

    def _log_writer_failure(
        self, command_line: CommandLine, process: subprocess.Popen[bytes]
    ) -> None:
        returncode = process.poll()
        if returncode is None:
            self._logger.warning(
                "Stdin writer failed; child left running: program=%s pid=%s",
                command_line.program,
                process.pid,
            )
        else:
            self._logger.info(
                "Stdin writer failed; child already exited: program=%s pid=%s status=%s",
                command_line.program,
                process.pid,
                ExitStatus.from_returncode(returncode),
            )

    def _classify(
        self,
        command_line: CommandLine,
        *,
        returncode: int,
        stdout: bytes | None,
        stderr: bytes | None,
        start_time: float,
    ) -> Output:
        status = ExitStatus.from_returncode(returncode)
        output = Output.from_bytes(stdout, stderr)
        self._logger.debug(
            "Command finished: program=%s status=%s elapsed_seconds=%.3f",
            command_line.program,
            status,
            time.monotonic() - start_time,
        )
        if not status.success:
            raise ProcessFailure(
                status=status,
                output=output,
                program=command_line.program,
                excerpt_chars=self._settings.error_excerpt_chars,
            )
        return output


_default_runner: CommandRunner | None = None


def get_default_runner() -> CommandRunner:
    """Returns the runner used by the module-level helpers, creating it on first use."""

    global _default_runner
    if _default_runner is None:
        _default_runner = CommandRunner()
    return _default_runner


def run(command: str) -> Output:
    """Runs ``command`` with the default runner. See ``CommandRunner.run``."""

    return get_default_runner().run(command)


def run_with_stdin(
    command: str,
    writer: StdinCallback,
    *,
    error_factory: ErrorFactory | None = None,
) -> Output:
    """Runs ``command`` feeding stdin through ``writer``. See ``CommandRunner.run_with_stdin``."""

    return get_default_runner().run_with_stdin(command, writer, error_factory=error_factory)
