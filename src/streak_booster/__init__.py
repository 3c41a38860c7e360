"""Streak Booster: keeps a git repository active from a scheduled job.

Each run appends a timestamp to a tracked file, commits it together with the
run log, and pushes it with bounded retries when the network is reachable.
"""

from . import (
    cli,
    config,
    constants,
    daemon,
    git_wrapper,
    network,
    ops,
    process,
    retry,
)

__all__ = [
    "cli",
    "config",
    "constants",
    "daemon",
    "git_wrapper",
    "network",
    "ops",
    "process",
    "retry",
]
