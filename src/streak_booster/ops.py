import datetime
import logging
from pathlib import Path

from .constants import APP_NAME, TIMESTAMP_FORMAT

logger = logging.getLogger(APP_NAME)


def write_timestamp(path: Path, now: datetime.datetime | None = None) -> str:
    """Appends the current time as a new line of the tracked file.

    The file is created if it does not exist. Existing content is never
    rewritten.

    Args:
        path (Path): The tracked artifact.
        now (datetime.datetime | None, optional): Time to record. Defaults to now.

    Returns:
        str: The timestamp that was written.
    """
    timestamp = (now or datetime.datetime.now()).strftime(TIMESTAMP_FORMAT)
    with open(path, "a", encoding="utf-8") as f:
        f.write(timestamp + "\n")
    logger.info(f"Timestamp written to file: {timestamp}")
    return timestamp


def last_timestamp(path: Path) -> str | None:
    """Returns the most recent timestamp recorded in the tracked file."""
    if not path.exists():
        return None
    lines = [line.strip() for line in path.read_text(encoding="utf-8").splitlines()]
    lines = [line for line in lines if line]
    return lines[-1] if lines else None


def recent_errors(log_file: Path, seconds: int = 86400) -> list[str]:
    """Scans the run log for error messages within a recent time window.

    Args:
        log_file (Path): The log file written by the logging sink.
        seconds (int, optional): The number of seconds to look back.
                                 Defaults to 86400 (24h).

    Returns:
        list[str]: ERROR and CRITICAL lines found within the time window.
    """
    if not log_file.exists():
        return []

    errors = []
    threshold = datetime.datetime.now() - datetime.timedelta(seconds=seconds)

    try:
        # Only the last 50KB is needed for recent context.
        file_size = log_file.stat().st_size
        read_size = min(file_size, 50 * 1024)

        with open(log_file, encoding="utf-8", errors="replace") as f:
            if file_size > read_size:
                f.seek(file_size - read_size)
            lines = f.readlines()

        for line in lines:
            if "ERROR" not in line and "CRITICAL" not in line:
                continue
            # Lines start with [YYYY-MM-DD HH:MM:SS]; anything else is a
            # traceback fragment and is kept.
            if line.startswith("["):
                try:
                    line_dt = datetime.datetime.strptime(line[1:20], TIMESTAMP_FORMAT)
                except ValueError:
                    line_dt = None
                if line_dt and line_dt < threshold:
                    continue
            errors.append(line.strip())
    except OSError as e:
        return [f"Error reading log file: {e}"]

    return errors
