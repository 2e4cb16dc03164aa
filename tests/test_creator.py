"""Tests for worktree creation"""
import os
import stat
from unittest.mock import Mock

import git
import pytest

from git_worktree_keeper.config import Config
from git_worktree_keeper.exceptions import (
    AlreadyExistsError,
    CancelledError,
    InvalidIdentifierError,
    VcsCommandFailedError,
    WorktreeNotFoundError,
)
from git_worktree_keeper.ui.prompts import ScriptedPrompter
from conftest import ScriptedSelector, commit_file


def branches(repo):
    return [head.name for head in repo.heads]


class TestStart:
    """Test 'gw start' semantics."""

    def test_issue_number_creates_impl_branch_next_to_main(self, make_creator, git_repo, temp_dir):
        record = make_creator().create("42")

        expected = temp_dir / "repo-42"
        assert os.path.realpath(record.path) == os.path.realpath(expected)
        assert record.branch == "42/impl"
        assert expected.is_dir()
        assert "42/impl" in branches(git_repo)
        assert git.Repo(expected).git.rev_parse("--abbrev-ref", "HEAD") == "42/impl"

    def test_branch_name_is_slugged_for_directory(self, make_creator, temp_dir):
        record = make_creator().create("feature/login")
        assert record.branch == "feature/login"
        assert os.path.basename(record.path) == "repo-feature-login"

    def test_starts_from_base_branch(self, make_creator, git_repo):
        git_repo.git.checkout("-b", "develop")
        sha = commit_file(git_repo.working_dir, "dev.txt", "dev\n", "Develop work")
        git_repo.git.checkout("main")

        record = make_creator().create("7", "develop")
        assert git.Repo(record.path).git.rev_parse("HEAD") == sha

    def test_second_start_fails_without_side_effects(self, make_creator, git_repo, temp_dir):
        creator = make_creator()
        creator.create("42")
        before = sorted(os.listdir(temp_dir))

        with pytest.raises(AlreadyExistsError) as exc_info:
            creator.create("42")
        assert exc_info.value.kind == AlreadyExistsError.WORKTREE
        assert sorted(os.listdir(temp_dir)) == before
        assert len(git_repo.git.worktree("list").splitlines()) == 2

    def test_existing_directory_blocks(self, make_creator, git_repo, temp_dir):
        (temp_dir / "repo-42").mkdir()
        with pytest.raises(AlreadyExistsError) as exc_info:
            make_creator().create("42")
        assert exc_info.value.kind == AlreadyExistsError.WORKTREE
        assert "42/impl" not in branches(git_repo)

    def test_existing_branch_blocks(self, make_creator, git_repo, temp_dir):
        git_repo.git.branch("42/impl")
        with pytest.raises(AlreadyExistsError) as exc_info:
            make_creator().create("42")
        assert exc_info.value.kind == AlreadyExistsError.BRANCH
        assert not (temp_dir / "repo-42").exists()

    def test_invalid_base_rolls_back(self, make_creator, git_repo, temp_dir):
        with pytest.raises(VcsCommandFailedError):
            make_creator().create("42", "no-such-base")
        assert not (temp_dir / "repo-42").exists()
        assert "42/impl" not in branches(git_repo)
        assert len(git_repo.git.worktree("list").splitlines()) == 1

    def test_empty_identifier(self, make_creator):
        with pytest.raises(InvalidIdentifierError):
            make_creator().create("  ")


class TestPreparation:
    """Test env files, package setup and tab title after creation."""

    def _with_env(self, git_repo):
        root = git_repo.working_dir
        with open(os.path.join(root, ".env"), "w") as f:
            f.write("SECRET=1\n")
        os.makedirs(os.path.join(root, "web"))
        with open(os.path.join(root, "web", ".env.local"), "w") as f:
            f.write("PORT=3000\n")
        commit_file(root, ".env.example", "SECRET=\n", "Add env example")

    def test_copies_untracked_env_files_owner_only(self, make_creator, git_repo):
        self._with_env(git_repo)
        record = make_creator(config=Config(copy_envs=True)).create("42")

        copied = os.path.join(record.path, ".env")
        assert open(copied).read() == "SECRET=1\n"
        assert stat.S_IMODE(os.stat(copied).st_mode) == 0o600
        assert os.path.isfile(os.path.join(record.path, "web", ".env.local"))

    def test_tracked_env_file_not_copied_over(self, make_creator, git_repo):
        self._with_env(git_repo)
        # Modify the tracked file; the new worktree keeps the committed version
        with open(os.path.join(git_repo.working_dir, ".env.example"), "w") as f:
            f.write("SECRET=local\n")
        record = make_creator(config=Config(copy_envs=True)).create("42")
        assert open(os.path.join(record.path, ".env.example")).read() == "SECRET=\n"

    def test_config_false_skips_copy_without_asking(self, make_creator, git_repo, prompter):
        self._with_env(git_repo)
        record = make_creator().create("42")
        assert not os.path.exists(os.path.join(record.path, ".env"))
        assert prompter.asked == []

    def test_unset_config_asks(self, make_creator, git_repo):
        self._with_env(git_repo)
        prompter = ScriptedPrompter([True])
        record = make_creator(config=Config(), prompter=prompter).create("42")
        assert prompter.asked == ["Copy them to the new worktree?"]
        assert os.path.isfile(os.path.join(record.path, ".env"))

    def test_flag_overrides_config(self, make_creator, git_repo):
        self._with_env(git_repo)
        record = make_creator().create("42", copy_envs=True)
        assert os.path.isfile(os.path.join(record.path, ".env"))

    def test_env_copy_failure_is_a_warning(self, make_creator, git_repo):
        self._with_env(git_repo)
        env_files = Mock()
        env_files.discover.return_value = [".env"]
        env_files.copy.side_effect = OSError("disk full")
        creator = make_creator(env_files=env_files)

        record = creator.create("42", copy_envs=True)
        assert os.path.isdir(record.path)
        assert any("env files" in warning for warning in creator.warnings)

    def test_package_setup_failure_is_a_warning(self, make_creator, package_setup):
        package_setup.setup.return_value = False
        creator = make_creator()
        record = creator.create("42")
        package_setup.setup.assert_called_once_with(record.path)
        assert creator.warnings == ["Package setup failed"]

    def test_tab_updated_when_active(self, make_creator):
        tab = Mock(active=True)
        tab.update.return_value = True
        make_creator(terminal_tab=tab).create("42")
        tab.update.assert_called_once_with("repo", "42")


class TestCheckout:
    """Test 'gw checkout' semantics."""

    def test_existing_local_branch(self, make_creator, git_repo):
        git_repo.git.branch("feature/x")
        record = make_creator().checkout("feature/x")
        assert os.path.basename(record.path) == "repo-feature-x"
        assert git.Repo(record.path).git.rev_parse("--abbrev-ref", "HEAD") == "feature/x"

    def test_remote_only_branch_gets_tracking_branch(self, make_creator, git_repo):
        git_repo.git.branch("feature/remote")
        git_repo.git.push("origin", "feature/remote")
        git_repo.git.branch("-D", "feature/remote")

        record = make_creator().checkout("origin/feature/remote")
        assert record.branch == "feature/remote"
        assert "feature/remote" in branches(git_repo)
        tracking = git_repo.heads["feature/remote"].tracking_branch()
        assert tracking is not None and tracking.name == "origin/feature/remote"

    def test_missing_branch(self, make_creator, temp_dir):
        with pytest.raises(InvalidIdentifierError):
            make_creator().checkout("does-not-exist")
        assert not (temp_dir / "repo-does-not-exist").exists()

    def test_branch_already_checked_out(self, make_creator, git_repo):
        with pytest.raises(AlreadyExistsError):
            make_creator().checkout("main")


class TestSelectCheckoutBranch:
    """Test the interactive branch pick."""

    def test_offers_everything_but_current_and_main(self, make_creator, git_repo):
        git_repo.git.branch("feature/x")
        git_repo.git.branch("master")
        git_repo.git.push("origin", "feature/x")
        selector = ScriptedSelector()

        choice = make_creator(selector=selector).select_checkout_branch()
        offered = selector.calls[0][1]
        assert offered == ["feature/x", "origin/feature/x"]
        assert choice == "feature/x"

    def test_nothing_to_offer(self, make_creator):
        with pytest.raises(WorktreeNotFoundError):
            make_creator().select_checkout_branch()

    def test_cancel(self, make_creator, git_repo):
        git_repo.git.branch("feature/x")
        with pytest.raises(CancelledError):
            make_creator(selector=ScriptedSelector(pick=None)).select_checkout_branch()

    def test_requires_selector(self, make_creator, git_repo):
        git_repo.git.branch("feature/x")
        with pytest.raises(InvalidIdentifierError):
            make_creator(selector=None).select_checkout_branch()
