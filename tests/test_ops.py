import datetime
from pathlib import Path

from streak_booster import ops


def test_write_timestamp_appends_lines(tmp_path: Path) -> None:
    """Verifies that each run appends a distinct line and keeps earlier ones."""
    tracked = tmp_path / "records.txt"
    tracked.write_text("2020-01-01 00:00:00\n")

    first = ops.write_timestamp(tracked, datetime.datetime(2026, 10, 18, 9, 0, 0))
    second = ops.write_timestamp(tracked, datetime.datetime(2026, 10, 18, 10, 0, 0))

    assert first == "2026-10-18 09:00:00"
    assert second == "2026-10-18 10:00:00"
    assert tracked.read_text().splitlines() == [
        "2020-01-01 00:00:00",
        "2026-10-18 09:00:00",
        "2026-10-18 10:00:00",
    ]


def test_write_timestamp_creates_file(tmp_path: Path) -> None:
    tracked = tmp_path / "records.txt"

    stamp = ops.write_timestamp(tracked)

    assert tracked.read_text() == stamp + "\n"
    datetime.datetime.strptime(stamp, "%Y-%m-%d %H:%M:%S")


def test_last_timestamp(tmp_path: Path) -> None:
    tracked = tmp_path / "records.txt"
    assert ops.last_timestamp(tracked) is None

    tracked.write_text("")
    assert ops.last_timestamp(tracked) is None

    tracked.write_text("2026-10-17 09:00:00\n2026-10-18 09:00:00\n\n")
    assert ops.last_timestamp(tracked) == "2026-10-18 09:00:00"


def test_recent_errors_filters_by_window(tmp_path: Path) -> None:
    """Verifies that only recent ERROR/CRITICAL lines are reported."""
    now = datetime.datetime.now()
    old = (now - datetime.timedelta(days=3)).strftime("%Y-%m-%d %H:%M:%S")
    new = (now - datetime.timedelta(minutes=5)).strftime("%Y-%m-%d %H:%M:%S")

    log_file = tmp_path / "logRecords.log"
    log_file.write_text(
        f"[{old}] ERROR: Git push failed after 3 attempts.\n"
        f"[{new}] INFO: Git push successful.\n"
        f"[{new}] CRITICAL: An error occurred\n"
        "RuntimeError: ERROR in traceback\n"
        f"[{new}] WARNING: No internet connection. Skipping Git push.\n"
    )

    errors = ops.recent_errors(log_file)

    assert errors == [
        f"[{new}] CRITICAL: An error occurred",
        "RuntimeError: ERROR in traceback",
    ]


def test_recent_errors_missing_log(tmp_path: Path) -> None:
    assert ops.recent_errors(tmp_path / "nope.log") == []
