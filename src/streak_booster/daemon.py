import enum
import logging
import signal
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from logging.handlers import MemoryHandler, RotatingFileHandler
from pathlib import Path
from types import FrameType
from typing import IO

from . import ops
from .config import Config
from .constants import APP_NAME, LOG_FORMAT, TIMESTAMP_FORMAT
from .git_wrapper import GitRepo
from .network import is_reachable
from .process import OutputPump
from .retry import RetryPolicy, push_with_retries

logger = logging.getLogger(APP_NAME)
logger.setLevel(logging.INFO)


class RunOutcome(enum.Enum):
    """How a single orchestration run ended."""

    PUSHED = "pushed"
    PUSH_FAILED = "push_failed"
    OFFLINE = "offline"
    FAILED = "failed"

    @property
    def exit_code(self) -> int:
        return 0 if self in (RunOutcome.PUSHED, RunOutcome.OFFLINE) else 1


class LogSink:
    """The log destinations of one run, with an explicit open/close lifecycle.

    Opening attaches a rotating file handler (append mode) and a stream handler
    to the application logger, stops propagation to the root logger, and
    replays any records held back from before the sink existed. Closing
    flushes, closes and detaches the handlers and restores propagation.

    Attributes:
        log_file (Path): The log file, created if absent.
        max_bytes (int): Rotation threshold in bytes (0 disables rotation).
        backup_count (int): Number of rotated files to keep.
        backlog (list[logging.LogRecord]): Records emitted before `open`.
    """

    def __init__(
        self,
        log_file: Path,
        max_bytes: int = 0,
        backup_count: int = 0,
        stream: IO[str] | None = None,
        backlog: list[logging.LogRecord] | None = None,
    ):
        self.log_file = log_file
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.stream = stream
        self.backlog = list(backlog or [])
        self.handlers: list[logging.Handler] = []
        self._propagate = logger.propagate

    @classmethod
    def from_config(
        cls,
        repo_path: Path,
        config: Config,
        backlog: list[logging.LogRecord] | None = None,
    ) -> "LogSink":
        return cls(
            repo_path / config.files.log_file,
            max_bytes=config.limits.max_log_size,
            backup_count=config.limits.log_backup_count,
            backlog=backlog,
        )

    def open(self) -> None:
        if self.handlers:
            return
        formatter = logging.Formatter(LOG_FORMAT, TIMESTAMP_FORMAT)

        file_handler = RotatingFileHandler(
            self.log_file,
            mode="a",
            maxBytes=self.max_bytes,
            backupCount=self.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)

        # Always log to stderr as well (captured by systemd/cron mail).
        stream_handler = logging.StreamHandler(self.stream or sys.stderr)
        stream_handler.setFormatter(formatter)

        self.handlers = [file_handler, stream_handler]
        for handler in self.handlers:
            logger.addHandler(handler)

        # Root handlers would otherwise see every record twice.
        self._propagate = logger.propagate
        logger.propagate = False

        for record in self.backlog:
            logger.handle(record)
        self.backlog = []

    def close(self) -> None:
        if not self.handlers:
            return
        for handler in self.handlers:
            handler.flush()
            handler.close()
            logger.removeHandler(handler)
        self.handlers = []
        logger.propagate = self._propagate


@contextmanager
def held_records() -> Iterator[list[logging.LogRecord]]:
    """Holds back application records until a LogSink can replay them.

    Yields the list the held records end up in once the block exits.
    """
    held: list[logging.LogRecord] = []
    buffer = MemoryHandler(capacity=1000, flushLevel=logging.CRITICAL + 1)
    logger.addHandler(buffer)
    try:
        yield held
    finally:
        logger.removeHandler(buffer)
        held.extend(buffer.buffer)
        buffer.close()


class Orchestrator:
    """Runs one commit-and-push cycle for a repository.

    Sequence: write the timestamp, stage and commit it together with the
    log file, probe connectivity, then push with bounded retries. Whatever
    happens, the output pump and the log sink are released exactly once at
    the end of `run`.

    Attributes:
        repo_path (Path): The repository root.
        config (Config): Effective configuration for the repository.
        sink (LogSink): The log destinations for this run.
        pump (OutputPump): The pool draining git output.
        stop_event (threading.Event): Set when shutdown is requested.
    """

    def __init__(
        self,
        repo_path: Path,
        config: Config | None = None,
        sink: LogSink | None = None,
        pump: OutputPump | None = None,
        stop_event: threading.Event | None = None,
    ):
        self.repo_path = repo_path
        self.config = config or Config()
        self.sink = sink or LogSink.from_config(repo_path, self.config)
        self.pump = pump or OutputPump()
        self.stop_event = stop_event or threading.Event()

    def run(self) -> RunOutcome:
        """Executes the cycle and maps its result to a RunOutcome.

        Returns:
            RunOutcome: PUSHED, PUSH_FAILED, OFFLINE, or FAILED when any step
                        or the final cleanup raised.
        """
        try:
            self.sink.open()
            outcome = self._execute()
        except Exception:
            logger.critical("An error occurred", exc_info=True)
            outcome = RunOutcome.FAILED
        finally:
            finalized = self._finalize()
        return outcome if finalized else RunOutcome.FAILED

    def _execute(self) -> RunOutcome:
        files = self.config.files
        repo = GitRepo(
            self.repo_path, executable=self.config.git.executable, pump=self.pump
        )

        ops.write_timestamp(self.repo_path / files.tracked_file)

        # Local and deterministic: a failure here is a real problem, not retried.
        repo.add(files.tracked_file, files.log_file)
        repo.commit(self.config.git.commit_message)

        probe = self.config.probe
        if not is_reachable(probe.url, probe.connect_timeout, probe.read_timeout):
            logger.warning("No internet connection. Skipping Git push.")
            return RunOutcome.OFFLINE

        policy = RetryPolicy(self.config.retry.max_retries, self.config.retry.delay)
        if push_with_retries(repo.push, policy, self.stop_event):
            logger.info("Git push successful.")
            return RunOutcome.PUSHED

        if self.stop_event.is_set():
            logger.error("Git push abandoned: shutdown requested.")
        else:
            logger.error(f"Git push failed after {policy.attempts} attempts.")
        return RunOutcome.PUSH_FAILED

    def _finalize(self) -> bool:
        logger.info("Shutting down resources...")
        try:
            self.pump.shutdown()
            logger.info("Shutdown completed successfully.")
            return True
        except Exception:
            logger.critical("Error during shutdown", exc_info=True)
            return False
        finally:
            self.sink.close()


@contextmanager
def shutdown_signals(stop_event: threading.Event) -> Iterator[threading.Event]:
    """Routes SIGINT and SIGTERM to `stop_event` for the duration of the block.

    An in-flight git command is left to finish; only the retry wait reacts.
    """

    def handler(signum: int, _frame: FrameType | None) -> None:
        logger.warning(f"Signal {signum} received. Requesting shutdown.")
        stop_event.set()

    previous = {
        sig: signal.signal(sig, handler) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        yield stop_event
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)


def main(repo_path: Path | None = None) -> int:
    """Performs a single run for the repository in `repo_path`.

    Args:
        repo_path (Path | None, optional): Repository root. Defaults to the
                                           current working directory.

    Returns:
        int: Process exit status (0 when pushed or offline, 1 otherwise).
    """
    repo_path = (repo_path or Path.cwd()).resolve()
    # Config problems are logged before the log file is open.
    with held_records() as early_records:
        config = Config.load(repo_path)
    sink = LogSink.from_config(repo_path, config, backlog=early_records)

    with shutdown_signals(threading.Event()) as stop_event:
        outcome = Orchestrator(
            repo_path, config, sink=sink, stop_event=stop_event
        ).run()
    return outcome.exit_code


if __name__ == "__main__":
    sys.exit(main())
