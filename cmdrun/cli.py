"""Command-line front end.

    cmdrun run "sh -c 'echo hi'"
    printf 'abc' | cmdrun run rev --stdin
"""

from __future__ import annotations

import logging

import typer
from pydantic import ValidationError

from cmdrun.core.config import RunnerSettings
from cmdrun.process.command_line import split_command
from cmdrun.process.errors import (
    CommandParseError,
    ProcessError,
    ProcessFailure,
    ProcessIoError,
)
from cmdrun.process.output import Output
from cmdrun.process.runner import CommandRunner, StdinWriter
from cmdrun.rendering.report import RunReport

EXIT_SPAWN_FAILED = 127
EXIT_PARSE_FAILED = 2
EXIT_CONFIG_INVALID = 78
COPY_CHUNK_SIZE = 64 * 1024

app = typer.Typer(help="Run a command line and report its output and exit status.")


@app.callback()
def main_callback(ctx: typer.Context) -> None:
    """Configure logging from CMDRUN_* settings."""
    try:
        settings = RunnerSettings()
    except ValidationError as exc:
        typer.echo(f"cmdrun: invalid configuration: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIG_INVALID) from exc
    logging.basicConfig(level=settings.log_level)
    ctx.obj = settings


def _copy_own_stdin(stdin: StdinWriter) -> None:
    source = typer.get_binary_stream("stdin")
    for chunk in iter(lambda: source.read(COPY_CHUNK_SIZE), b""):
        stdin.write(chunk)


def _exit_code_for(error: ProcessError) -> int:
    if isinstance(error, ProcessFailure):
        if error.status.code is not None:
            return error.status.code
        return 128 + (error.status.signal or 0)
    if isinstance(error, CommandParseError):
        return EXIT_PARSE_FAILED
    if isinstance(error, ProcessIoError):
        return EXIT_SPAWN_FAILED
    return 1


def _echo_output(output: Output) -> None:
    if output.stdout:
        typer.echo(output.stdout, nl=False)
    if output.stderr:
        typer.echo(output.stderr, nl=False, err=True)


@app.command()
def run(
    ctx: typer.Context,
    command: str = typer.Argument(..., help="Program and arguments as one POSIX-quoted string."),
    stdin: bool = typer.Option(False, "--stdin", help="Pipe this process's stdin to the command."),
    as_json: bool = typer.Option(False, "--json", help="Print a JSON report instead of the output."),
) -> None:
    """Run COMMAND, echo its output and exit with its status."""
    runner = CommandRunner(settings=ctx.obj)
    try:
        argv = split_command(command)
    except CommandParseError:
        argv = []

    try:
        if stdin:
            output = runner.run_with_stdin(command, _copy_own_stdin)
        else:
            output = runner.run(command)
    except ProcessError as exc:
        if as_json:
            report = RunReport.from_error(command=command, argv=argv, error=exc)
            typer.echo(report.model_dump_json(indent=2))
        else:
            if isinstance(exc, ProcessFailure):
                _echo_output(exc.output)
            else:
                typer.echo(f"cmdrun: {exc}", err=True)
        raise typer.Exit(code=_exit_code_for(exc)) from exc

    if as_json:
        report = RunReport.from_output(command=command, argv=argv, output=output)
        typer.echo(report.model_dump_json(indent=2))
    else:
        _echo_output(output)


def main() -> None:
    """Console script entry point."""

    app()


if __name__ == "__main__":
    main()
