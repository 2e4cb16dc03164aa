"""End-to-end lifecycle tests with a real remote"""
import os

import git

from git_worktree_keeper.models.safety import ReasonCode
from conftest import commit_file


class TestLifecycle:
    """Start, push, merge elsewhere, end."""

    def test_merged_and_deleted_remote_branch_ends_without_prompt(
        self, make_creator, make_remover, git_repo, other_clone, prompter, temp_dir
    ):
        record = make_creator().create("42")
        assert os.path.realpath(record.path) == os.path.realpath(temp_dir / "repo-42")

        commit_file(record.path, "feature.txt", "feature\n", "Implement 42")
        git.Repo(record.path).git.push("-u", "origin", "42/impl")

        # The pull request is merged and its branch deleted on the hosting side
        other_clone.git.fetch("origin")
        other_clone.git.merge("--no-ff", "origin/42/impl", "-m", "Merge pull request #42")
        other_clone.git.push("origin", "main")
        other_clone.git.push("origin", "--delete", "42/impl")

        result = make_remover().remove("42")

        assert prompter.asked == []
        assert not os.path.exists(record.path)
        assert result.verdict.is_merged_to_main
        assert not result.verdict.has_unpushed_commits
        assert not (result.verdict.warnings & {ReasonCode.UNPUSHED_ASSUMED, ReasonCode.UNPUSHED_COMMITS})
        assert not result.verdict.possibly_stale

    def test_unpushed_work_is_caught(self, make_creator, make_remover, prompter):
        record = make_creator().create("7")
        commit_file(record.path, "wip.txt", "wip\n", "Local only")

        remover = make_remover()
        verdict = remover.evaluator.assess(remover.inspector, record)
        assert verdict.has_unpushed_commits
        assert ReasonCode.UNPUSHED_ASSUMED in verdict.warnings

    def test_offline_remote_falls_back_to_local_state(self, make_creator, make_remover, git_repo, temp_dir):
        record = make_creator().create("8")
        commit_file(record.path, "work.txt", "work\n", "Work")
        git_repo.git.merge("--no-ff", "8/impl", "-m", "Merge 8")
        git_repo.remote("origin").set_url(str(temp_dir / "unreachable.git"))

        result = make_remover().remove("8")
        assert not os.path.exists(record.path)
        assert result.verdict.is_clean
        assert result.verdict.possibly_stale
