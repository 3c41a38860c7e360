from pathlib import Path

"""Global constants and default settings for Streak Booster.

This module defines the application identity, the files a run touches inside
the repository, and the default retry and connectivity policy used when no
configuration overrides them.
"""

# --- Identity ---
APP_NAME = "streak-booster"
"""str: The human-readable application name (also the logger name)."""

# --- Repository Files ---
TIMESTAMP_FILE = "records.txt"
"""str: The tracked artifact, relative to the repository root."""

LOG_FILE = "logRecords.log"
"""str: The run log, relative to the repository root. Committed with each run."""

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
"""str: strftime format of the lines appended to the tracked artifact."""

LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
"""str: Format of every record written by the logging sink."""

# --- Configuration Paths ---
CONFIG_DIR: Path = Path.home() / ".config/streak-booster"
"""Path: The directory for user configuration files."""

CONFIG_FILE: Path = CONFIG_DIR / "config.toml"
"""Path: The global configuration file path."""

LOCAL_CONFIG_NAME = "streak.toml"
"""str: Per-repository configuration file name."""

PYPROJECT_SECTION = "tool.streak-booster"
"""str: Section read from a repository's pyproject.toml."""

# --- Git ---
GIT_EXECUTABLE = "git"
"""str: Default version-control executable."""

COMMIT_MESSAGE = "Auto commit: Update timestamp and logs"
"""str: Default message for the automatic commit."""

# --- Push / Retry Policy ---
MAX_RETRIES = 2
"""int: Retries after the first push attempt (three attempts in total)."""

RETRY_DELAY = 60
"""int: Seconds to wait between push attempts."""

# --- Connectivity Probe ---
PROBE_URL = "https://www.github.com"
"""str: Well-known host probed before pushing."""

CONNECT_TIMEOUT = 3.0
"""float: Probe connect timeout in seconds."""

READ_TIMEOUT = 3.0
"""float: Probe read timeout in seconds."""

# --- Process Output ---
OUTPUT_WORKERS = 2
"""int: Size of the worker pool draining child stdout and stderr."""
