import pytest
import git
from unittest.mock import MagicMock

from aic.core import GitBackend
from aic.errors import CommitFailedError, NoStagedChangesError, PushFailedError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keeps the developer's AIC_* variables and EDITOR out of the tests."""
    for name in (
        "AIC_API_TOKEN",
        "AIC_API_BASE_URL",
        "AIC_MODEL",
        "AIC_SYSTEM_PROMPT",
        "AIC_USER_PROMPT",
        "EDITOR",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_git_repo(tmp_path):
    """
    Creates a temporary git repo with one commit.
    returns the path to the repo.
    """
    repo_dir = tmp_path / "test_repo"
    repo_dir.mkdir()

    repo = git.Repo.init(repo_dir)

    # Configure author (required for commits)
    repo.config_writer().set_value("user", "name", "Test Bot").release()
    repo.config_writer().set_value("user", "email", "test@bot.com").release()

    # Create a file and commit it (History)
    file_path = repo_dir / "hello.py"
    file_path.write_text("print('Hello World')\n")
    repo.index.add([str(file_path)])
    repo.index.commit("Initial commit")
    repo.close()

    return repo_dir


class FakeGit(GitBackend):
    """In-memory GitBackend that records every call."""

    def __init__(self, diff="", commit_error=None, push_error=None):
        self.diff = diff
        self.commit_error = commit_error
        self.push_error = push_error
        self.calls = []
        self.commits = []

    def staged_diff(self):
        self.calls.append("staged_diff")
        if not self.diff.strip():
            raise NoStagedChangesError("No staged changes detected.")
        return self.diff

    def stage_all(self):
        self.calls.append("stage_all")

    def commit(self, message):
        self.calls.append("commit")
        if self.commit_error:
            raise CommitFailedError(self.commit_error)
        self.commits.append(message)
        return f"[main abc1234] {message.splitlines()[0]}"

    def push(self):
        self.calls.append("push")
        if self.push_error:
            raise PushFailedError(self.push_error)
        return ""

    def repository_root(self):
        return "/fake/repo"


class FakeEditor:
    def __init__(self, result):
        self.result = result
        self.seen = []

    def edit(self, text):
        self.seen.append(text)
        return self.result


@pytest.fixture
def fake_git_factory():
    return FakeGit


@pytest.fixture
def fake_editor_factory():
    return FakeEditor


@pytest.fixture
def mock_console():
    """Mock of the Rich Console."""
    return MagicMock()
