import logging
import re
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .constants import (
    APP_NAME,
    COMMIT_MESSAGE,
    CONFIG_FILE,
    CONNECT_TIMEOUT,
    GIT_EXECUTABLE,
    LOCAL_CONFIG_NAME,
    LOG_FILE,
    MAX_RETRIES,
    PROBE_URL,
    PYPROJECT_SECTION,
    READ_TIMEOUT,
    RETRY_DELAY,
    TIMESTAMP_FILE,
)

logger = logging.getLogger(APP_NAME)


def parse_size(value: int | str) -> int:
    """Converts human-readable size strings (e.g., '100MB') to bytes."""
    if isinstance(value, int) and not isinstance(value, bool):
        if value < 0:
            raise ValueError(f"Invalid size format '{value}'")
        return value
    match = re.match(r"^(\d+(?:\.\d+)?)\s*([kmg]b?)$", str(value).strip().lower())
    if not match:
        raise ValueError(f"Invalid size format '{value}'")
    num, unit = float(match.group(1)), match.group(2)
    multiplier = {
        "k": 1024,
        "kb": 1024,
        "m": 1024**2,
        "mb": 1024**2,
        "g": 1024**3,
        "gb": 1024**3,
    }
    return int(num * multiplier[unit])


def parse_time(value: float | str) -> float:
    """Converts human-readable time strings (e.g., '1m', '500ms') to seconds."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value < 0:
            raise ValueError(f"Invalid time format '{value}'")
        return float(value)
    match = re.match(
        r"^(\d+(?:\.\d+)?)\s*(ms|s|sec|m|min|h|hr)s?$", str(value).strip().lower()
    )
    if not match:
        raise ValueError(f"Invalid time format '{value}'")
    num, unit = float(match.group(1)), match.group(2)
    multiplier = {
        "ms": 0.001,
        "s": 1,
        "sec": 1,
        "m": 60,
        "min": 60,
        "h": 3600,
        "hr": 3600,
    }
    return num * multiplier[unit]


@dataclass
class FilesConfig:
    """Repository files touched by a run.

    Attributes:
        tracked_file (str): The timestamp file, relative to the repository root.
        log_file (str): The run log, relative to the repository root.
    """

    tracked_file: str = TIMESTAMP_FILE
    log_file: str = LOG_FILE


@dataclass
class GitConfig:
    """Version-control settings.

    Attributes:
        executable (str): The git binary to invoke.
        commit_message (str): Message used for the automatic commit.
    """

    executable: str = GIT_EXECUTABLE
    commit_message: str = COMMIT_MESSAGE


@dataclass
class RetryConfig:
    """Push retry policy.

    Attributes:
        max_retries (int): Retries after the first attempt.
        delay (float): Seconds between attempts.
    """

    max_retries: int = MAX_RETRIES
    delay: float = RETRY_DELAY


@dataclass
class ProbeConfig:
    """Connectivity probe settings.

    Attributes:
        url (str): The host probed with a HEAD request.
        connect_timeout (float): Connect timeout in seconds.
        read_timeout (float): Read timeout in seconds.
    """

    url: str = PROBE_URL
    connect_timeout: float = CONNECT_TIMEOUT
    read_timeout: float = READ_TIMEOUT


@dataclass
class LimitsConfig:
    """Resource limitation settings.

    Attributes:
        max_log_size (int): Max bytes for the log file before rotation (0 disables).
        log_backup_count (int): Rotated log files kept alongside the current one.
    """

    max_log_size: int = 5 * 1024 * 1024
    log_backup_count: int = 5


@dataclass
class Config:
    """Global configuration aggregator.

    Attributes:
        files (FilesConfig): Repository file settings.
        git (GitConfig): Version-control settings.
        retry (RetryConfig): Push retry policy.
        probe (ProbeConfig): Connectivity probe settings.
        limits (LimitsConfig): Resource limits.
    """

    files: FilesConfig = field(default_factory=FilesConfig)
    git: GitConfig = field(default_factory=GitConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)

    @classmethod
    def load(cls, repo_path: Path | None = None) -> "Config":
        """Loads and merges configuration from defaults, global, and local sources.

        Args:
            repo_path (Path | None): The repository root to search for local config.

        Returns:
            Config: The fully merged configuration object.
        """
        instance = cls()
        if CONFIG_FILE.exists():
            instance._merge_from_file(CONFIG_FILE)

        if repo_path:
            local_toml = repo_path / LOCAL_CONFIG_NAME
            pyproject = repo_path / "pyproject.toml"

            if local_toml.exists():
                instance._merge_from_file(local_toml)
            elif pyproject.exists():
                instance._merge_from_file(pyproject, section=PYPROJECT_SECTION)

        return instance

    def _merge_from_file(self, path: Path, section: str | None = None) -> None:
        """Parses a TOML file and merges it into the current instance.

        Args:
            path (Path): Path to the TOML file.
            section (str | None): Dot-separated section path (e.g., 'tool.streak-booster').
        """
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)

            if section:
                for key in section.split("."):
                    data = data.get(key, {})

            if not data:
                return

            for name in ("files", "git", "retry", "probe", "limits"):
                if name in data:
                    current = getattr(self, name)
                    setattr(
                        self, name, self._update_dataclass(name, current, data[name])
                    )

        except tomllib.TOMLDecodeError as e:
            logger.error(f"Config syntax error in {path}: {e}")
        except Exception as e:
            logger.warning(f"Failed to load config from {path}: {e}")

    @staticmethod
    def _update_dataclass(section_name: str, instance: Any, updates: dict) -> Any:
        """Updates a dataclass, warning on invalid keys and parsing human-readable formats."""
        valid_keys = instance.__dataclass_fields__.keys()
        filtered_updates = {}

        invalid_keys = set(updates.keys()) - set(valid_keys)
        if invalid_keys:
            logger.warning(
                f"Unknown config keys in [{section_name}]: "
                f"{', '.join(sorted(invalid_keys))}. Ignoring."
            )

        for k, v in updates.items():
            if k not in valid_keys:
                continue

            try:
                if k == "max_log_size":
                    filtered_updates[k] = parse_size(v)
                elif k in ["delay", "connect_timeout", "read_timeout"]:
                    filtered_updates[k] = parse_time(v)
                elif k in ["max_retries", "log_backup_count"]:
                    if isinstance(v, bool) or not isinstance(v, int) or v < 0:
                        raise ValueError(f"Expected a non-negative integer, got '{v}'")
                    filtered_updates[k] = v
                else:
                    if not isinstance(v, str) or not v:
                        raise ValueError(f"Expected a non-empty string, got '{v}'")
                    filtered_updates[k] = v
            except ValueError as e:
                logger.warning(
                    f"Config error in [{section_name}].{k}: {e}. Falling back to default."
                )

        return replace(instance, **filtered_updates)
