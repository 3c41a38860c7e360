from pathlib import Path

from . import process
from .constants import GIT_EXECUTABLE
from .process import CommandResult, OutputPump


class GitRepo:
    """A wrapper around the Git command-line interface for a specific repository.

    Every command is executed through the subprocess runner, so its output
    ends up in the application log rather than being captured.

    Attributes:
        path (Path): The file system path to the repository root.
        executable (str): The git binary to invoke.
        pump (OutputPump | None): Shared pool draining command output.
    """

    def __init__(
        self,
        path: Path,
        executable: str = GIT_EXECUTABLE,
        pump: OutputPump | None = None,
    ):
        """Initializes the GitRepo instance.

        Args:
            path (Path): The path to the repository root directory.
            executable (str, optional): The git binary. Defaults to "git".
            pump (OutputPump | None, optional): The pool draining output.

        Raises:
            ValueError: If the specified path does not contain a .git entry.
        """
        self.path = path
        self.executable = executable
        self.pump = pump
        if not (self.path / ".git").exists():
            raise ValueError(f"Not a git repository: {self.path}")

    def _run(self, args: list[str]) -> CommandResult:
        """Executes a Git command within the repository context.

        Raises:
            ProcessLaunchError: If the git executable cannot be started.
            NonZeroExitError: If the git command returns a non-zero exit code.
        """
        return process.run([self.executable, *args], cwd=self.path, pump=self.pump)

    def add(self, *paths: str) -> CommandResult:
        """Stages the given paths."""
        return self._run(["add", *paths])

    def commit(self, message: str) -> CommandResult:
        """Creates a new commit with the provided message."""
        return self._run(["commit", "-m", message])

    def push(self) -> CommandResult:
        """Pushes the current branch to its configured upstream."""
        return self._run(["push"])
