import logging
import subprocess
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from .constants import APP_NAME, OUTPUT_WORKERS

logger = logging.getLogger(APP_NAME)


class CommandError(Exception):
    """Base class for failures of an external command."""

    def __init__(self, command: Sequence[str], message: str):
        super().__init__(message)
        self.command = tuple(command)


class ProcessLaunchError(CommandError):
    """Raised when the executable could not be started at all."""

    def __init__(self, command: Sequence[str], reason: str):
        super().__init__(command, f"Could not start '{command[0]}': {reason}")


class NonZeroExitError(CommandError):
    """Raised when a command ran but exited with a nonzero status.

    Attributes:
        exit_code (int): The status reported by the process.
    """

    def __init__(self, command: Sequence[str], exit_code: int):
        super().__init__(
            command,
            f"Command '{' '.join(command)}' failed with exit code: {exit_code}",
        )
        self.exit_code = exit_code


@dataclass(frozen=True)
class CommandSpec:
    """An argument vector and the directory it runs in.

    Attributes:
        args (tuple[str, ...]): Program followed by its arguments.
        cwd (Path): Working directory of the child process.
    """

    args: tuple[str, ...]
    cwd: Path

    @classmethod
    def of(cls, command: Sequence[str], cwd: Path | str = ".") -> "CommandSpec":
        if not command:
            raise ValueError("Command must contain at least the program name")
        return cls(tuple(str(part) for part in command), Path(cwd))


@dataclass(frozen=True)
class CommandResult:
    """Completion status of a command. Output is logged, never retained."""

    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class OutputPump:
    """A small fixed-size worker pool that drains child process output.

    One pump is created per program run and shared by every command it
    launches. Each command occupies two workers (stdout and stderr) for the
    lifetime of the child, so commands must not overlap.
    """

    def __init__(self, workers: int = OUTPUT_WORKERS):
        self._executor = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="output-pump"
        )
        self.closed = False

    def drain(self, stream: IO[str], level: int) -> Future:
        """Schedules a task that logs every line of `stream` at `level`.

        Raises:
            RuntimeError: If the pump has already been shut down.
        """
        if self.closed:
            raise RuntimeError("Output pump has been shut down")
        return self._executor.submit(_log_stream, stream, level)

    def shutdown(self) -> None:
        """Waits for pending drain tasks and releases the worker threads."""
        if self.closed:
            return
        self.closed = True
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "OutputPump":
        return self

    def __exit__(self, *exc: object) -> None:
        self.shutdown()


def _log_stream(stream: IO[str], level: int) -> None:
    """Forwards each line of a child stream to the application logger."""
    try:
        with stream:
            for line in stream:
                logger.log(level, line.rstrip("\r\n"))
    except (OSError, ValueError) as e:
        logger.warning(f"Error reading process output: {e}")


def run(
    command: Sequence[str] | CommandSpec,
    cwd: Path | str = ".",
    pump: OutputPump | None = None,
) -> CommandResult:
    """Runs an external command to completion, streaming its output to the log.

    Standard output lines are logged at INFO and standard error lines at
    WARNING while the process is running. Both streams are fully drained
    before this function returns or raises.

    Args:
        command (Sequence[str] | CommandSpec): The argument vector (no shell).
        cwd (Path | str, optional): Working directory. Ignored when `command`
                                    is already a CommandSpec. Defaults to ".".
        pump (OutputPump | None, optional): The pool draining the output. A
                                            private pump is used when omitted.

    Returns:
        CommandResult: The successful result (exit code 0).

    Raises:
        ProcessLaunchError: If the executable could not be started.
        NonZeroExitError: If the process exited with a nonzero code.
    """
    spec = command if isinstance(command, CommandSpec) else CommandSpec.of(command, cwd)

    if pump is None:
        with OutputPump() as private_pump:
            return run(spec, pump=private_pump)

    if pump.closed:
        raise RuntimeError("Output pump has been shut down")

    logger.debug(f"Running {list(spec.args)} in {spec.cwd}")
    try:
        proc = subprocess.Popen(
            list(spec.args),
            cwd=spec.cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
        )
    except OSError as e:
        raise ProcessLaunchError(spec.args, e.strerror or str(e)) from e

    drains = [
        pump.drain(proc.stdout, logging.INFO),
        pump.drain(proc.stderr, logging.WARNING),
    ]
    try:
        exit_code = proc.wait()
    finally:
        wait(drains)

    if exit_code != 0:
        raise NonZeroExitError(spec.args, exit_code)
    return CommandResult(exit_code)
