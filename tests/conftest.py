"""Pytest fixtures for git-worktree-keeper tests"""
import io
import tempfile
from pathlib import Path
from unittest.mock import Mock

import git
import pytest
from rich.console import Console

from git_worktree_keeper.config import Config
from git_worktree_keeper.core.cleaner import WorktreeCleaner
from git_worktree_keeper.core.creator import WorktreeCreator
from git_worktree_keeper.core.remover import WorktreeRemover
from git_worktree_keeper.services.env_files import EnvFileService
from git_worktree_keeper.services.git.inspector import RepositoryInspector
from git_worktree_keeper.services.git.worktrees import WorktreeService
from git_worktree_keeper.services.terminal_tab import TerminalTabService
from git_worktree_keeper.ui.prompts import ScriptedPrompter


class ScriptedSelector:
    """Selector that picks by index (or cancels with None) without a terminal."""

    def __init__(self, pick=0):
        self.pick = pick
        self.calls = []

    def choose(self, title, items, label=str):
        self.calls.append((title, list(items)))
        if self.pick is None or not items:
            return None
        return items[self.pick]


def configure_user(repo: git.Repo) -> None:
    """Set a commit identity on a repository."""
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()


def commit_file(repo_path, name: str, content: str, message: str) -> str:
    """Write a file in a worktree, commit it and return the new sha."""
    repo = git.Repo(repo_path)
    (Path(repo_path) / name).write_text(content)
    repo.git.add(name)
    repo.git.commit("-m", message)
    return repo.git.rev_parse("HEAD")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config():
    """Engine configuration that never prompts about env files."""
    return Config(copy_envs=False)


@pytest.fixture
def remote_repo(temp_dir):
    """Create a bare repository acting as ``origin``."""
    remote_path = temp_dir / "remote.git"
    remote = git.Repo.init(remote_path, bare=True)
    remote.git.symbolic_ref("HEAD", "refs/heads/main")
    yield remote
    remote.close()


@pytest.fixture
def git_repo(temp_dir, remote_repo):
    """Create a real Git repository named ``repo`` with ``main`` pushed to origin."""
    repo_path = temp_dir / "repo"
    repo_path.mkdir()

    # Initialize repository
    repo = git.Repo.init(repo_path)
    configure_user(repo)

    # Create initial commit on main branch
    commit_file(repo_path, "README.md", "# Test Repository\n", "Initial commit")

    # Rename master to main if needed
    repo.git.branch("-M", "main")

    repo.create_remote("origin", str(temp_dir / "remote.git"))
    repo.git.push("-u", "origin", "main")

    yield repo

    # Cleanup
    repo.close()


@pytest.fixture
def other_clone(temp_dir, git_repo):
    """A second clone of origin, standing in for the hosting service."""
    clone = git.Repo.clone_from(str(temp_dir / "remote.git"), temp_dir / "other")
    configure_user(clone)
    yield clone
    clone.close()


@pytest.fixture
def in_repo(git_repo, monkeypatch):
    """Run the test from inside the main worktree."""
    monkeypatch.chdir(git_repo.working_dir)
    return git_repo


@pytest.fixture
def quiet_console():
    """Console that writes into a buffer."""
    return Console(file=io.StringIO(), width=200)


@pytest.fixture
def inspector(git_repo, config):
    return RepositoryInspector(git_repo.working_dir, config)


@pytest.fixture
def worktree_service(git_repo, config):
    return WorktreeService(git_repo.working_dir, config)


@pytest.fixture
def prompter():
    """Prompter that declines everything and records what it was asked."""
    return ScriptedPrompter(default=False)


@pytest.fixture
def package_setup():
    """Package setup stub that always succeeds."""
    setup = Mock()
    setup.setup.return_value = True
    return setup


@pytest.fixture
def make_creator(inspector, worktree_service, config, prompter, package_setup, quiet_console):
    """Factory for WorktreeCreator with overridable collaborators."""
    def factory(**overrides):
        cfg = overrides.pop("config", config)
        kwargs = dict(
            env_files=EnvFileService(cfg),
            package_setup=package_setup,
            terminal_tab=TerminalTabService(False),
            selector=ScriptedSelector(),
            console=quiet_console,
        )
        kwargs.update(overrides)
        return WorktreeCreator(
            inspector,
            kwargs.pop("worktree_service", worktree_service),
            cfg,
            kwargs.pop("prompter", prompter),
            **kwargs,
        )
    return factory


@pytest.fixture
def make_remover(inspector, worktree_service, config, prompter, quiet_console):
    """Factory for WorktreeRemover with overridable collaborators."""
    def factory(**overrides):
        cfg = overrides.pop("config", config)
        kwargs = dict(
            selector=ScriptedSelector(),
            terminal_tab=TerminalTabService(False),
            console=quiet_console,
        )
        kwargs.update(overrides)
        return WorktreeRemover(
            inspector,
            kwargs.pop("worktree_service", worktree_service),
            cfg,
            kwargs.pop("prompter", prompter),
            **kwargs,
        )
    return factory


@pytest.fixture
def make_cleaner(inspector, worktree_service, config, prompter, quiet_console):
    def factory(**overrides):
        cfg = overrides.pop("config", config)
        return WorktreeCleaner(
            inspector,
            worktree_service,
            cfg,
            overrides.pop("prompter", prompter),
            console=quiet_console,
        )
    return factory
