from pathlib import Path
from unittest.mock import MagicMock

import pytest

from streak_booster.git_wrapper import GitRepo
from streak_booster.process import CommandResult


@pytest.fixture
def repo(tmp_path: Path) -> GitRepo:
    (tmp_path / ".git").mkdir()
    return GitRepo(tmp_path, executable="/usr/bin/git", pump=MagicMock())


def test_rejects_non_repository(tmp_path: Path) -> None:
    """Verifies that a directory without .git is refused."""
    with pytest.raises(ValueError, match="Not a git repository"):
        GitRepo(tmp_path)


def test_fixed_command_vectors(repo: GitRepo, mocker: MagicMock) -> None:
    """Verifies the exact argument vectors for add, commit and push."""
    mock_run = mocker.patch(
        "streak_booster.git_wrapper.process.run", return_value=CommandResult(0)
    )

    repo.add("records.txt", "logRecords.log")
    repo.commit("Auto commit: Update timestamp and logs")
    repo.push()

    calls = [c.args[0] for c in mock_run.call_args_list]
    assert calls == [
        ["/usr/bin/git", "add", "records.txt", "logRecords.log"],
        ["/usr/bin/git", "commit", "-m", "Auto commit: Update timestamp and logs"],
        ["/usr/bin/git", "push"],
    ]
    for call in mock_run.call_args_list:
        assert call.kwargs == {"cwd": repo.path, "pump": repo.pump}
