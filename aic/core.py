import git
import logging
from abc import ABC, abstractmethod

from aic.errors import (
    CommitFailedError,
    GitError,
    NoStagedChangesError,
    NotARepositoryError,
    PushFailedError,
)

# Initialize module-level logger
logger = logging.getLogger(__name__)


class GitBackend(ABC):
    """The git operations the commit workflow needs."""

    @abstractmethod
    def staged_diff(self) -> str:
        """Returns the diff of the index against HEAD."""

    @abstractmethod
    def stage_all(self) -> None:
        """Stages every working-tree change."""

    @abstractmethod
    def commit(self, message: str) -> str:
        """Creates a commit and returns git's summary output."""

    @abstractmethod
    def push(self) -> str:
        """Pushes the current branch to its upstream."""

    @abstractmethod
    def repository_root(self) -> str:
        """Returns the working tree root of the enclosing repository."""


class GitRepositoryContext:
    def __init__(self, repo_path: str):
        self.repo_path = repo_path
        self._repo: git.Repo | None = None

    def __enter__(self) -> git.Repo:
        try:
            self._repo = git.Repo(self.repo_path, search_parent_directories=True)
            return self._repo
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            raise NotARepositoryError(
                f"'{self.repo_path}' is not inside a Git repository."
            )

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._repo:
            self._repo.close()


def _command_output(error: git.exc.GitCommandError) -> str:
    """Extracts git's own message from a GitCommandError."""
    # GitPython wraps the streams as "\n  stderr: '<text>'".
    for raw in (error.stderr, error.stdout):
        text = str(raw or "").strip()
        for prefix in ("stderr:", "stdout:"):
            if text.startswith(prefix):
                text = text[len(prefix):].strip()
        text = text.strip("'").strip()
        if text:
            return text
    return f"exit status {error.status}"


class GitRepository(GitBackend):
    """GitBackend that shells out to the git binary through GitPython."""

    def __init__(self, path: str = "."):
        self.path = path

    def _run(self, command: str, *args) -> str:
        with GitRepositoryContext(self.path) as repo:
            logger.info(f"Running git {command}")
            try:
                return getattr(repo.git, command)(*args)
            except git.exc.GitCommandNotFound as e:
                raise GitError("git executable not found. Is git installed?") from e

    def staged_diff(self) -> str:
        try:
            diff = self._run("diff", "--cached")
        except git.exc.GitCommandError as e:
            raise GitError(f"git diff failed: {_command_output(e)}") from e

        if not diff.strip():
            raise NoStagedChangesError("No staged changes detected.")
        logger.info(f"Staged diff is {len(diff)} characters")
        return diff

    def stage_all(self) -> None:
        try:
            self._run("add", "--all")
        except git.exc.GitCommandError as e:
            raise GitError(f"git add failed: {_command_output(e)}") from e

    def commit(self, message: str) -> str:
        try:
            return self._run("commit", "-m", message)
        except git.exc.GitCommandError as e:
            output = _command_output(e)
            logger.error(f"Commit failed: {output}")
            raise CommitFailedError(output) from e

    def push(self) -> str:
        try:
            return self._run("push")
        except git.exc.GitCommandError as e:
            output = _command_output(e)
            logger.error(f"Push failed: {output}")
            raise PushFailedError(output) from e

    def repository_root(self) -> str:
        with GitRepositoryContext(self.path) as repo:
            if repo.working_tree_dir is None:
                raise NotARepositoryError(f"'{self.path}' is a bare repository.")
            return str(repo.working_tree_dir)
