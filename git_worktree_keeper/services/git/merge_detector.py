"""Merge detection service for git-worktree-keeper."""

from typing import Callable, Optional, Union, TYPE_CHECKING

import git

from git_worktree_keeper.exceptions import VcsCommandFailedError
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.safety import MergeCheck
from git_worktree_keeper.services.git.commands import git_succeeds, run_git

if TYPE_CHECKING:
    from git_worktree_keeper.config import Config

logger = get_logger(__name__)

# Merge detection methods, reported in MergeCheck.method
METHOD_ANCESTOR = "ancestor"
METHOD_REACHABLE = "reachable"
METHOD_PATCH_ID = "patch-id"
METHOD_SQUASH = "squash"

SQUASH_SEARCH_DEPTH = 50
MIN_SQUASH_DIFF_SIZE = 100


class MergeDetector:
    """Decides whether a branch already landed on the integration branch.

    Two families of checks are used:

    * direct: the branch tip is an ancestor of the local integration branch,
      or of its remote-tracking ref once that ref has just been refreshed;
    * fallback: the branch's own remote ref is gone (typically deleted after
      the pull request was merged) and its work can be found in the last
      known integration state, by reachability, patch-id or squash diff.
    """

    def __init__(self, repo: git.Repo, config: Union["Config", dict]):
        self.repo = repo
        self.remote_name = config.get("remote_name", "origin")
        self.timeout = config.get("command_timeout", 60.0)

    def _git(self, operation: str, *args: str) -> str:
        return run_git(self.repo, operation, *args, timeout=self.timeout)

    def _ref_exists(self, ref: str) -> bool:
        return git_succeeds(
            self.repo, "show-ref", "show-ref", "--verify", "--quiet", ref, timeout=self.timeout
        )

    def is_merged(self, branch: str, integration_branch: str, refreshed: bool) -> MergeCheck:
        """Run the detection methods in order, cheapest first.

        Args:
            branch: Local branch name
            integration_branch: Integration branch name, e.g. ``main``
            refreshed: Whether the remote-tracking integration ref was just fetched

        Returns:
            MergeCheck with the method that proved the merge, if any
        """
        stale = not refreshed
        if branch == integration_branch:
            logger.debug(f"Skipping merge check: {branch} is the integration branch")
            return MergeCheck(merged=False, possibly_stale=stale)

        local_ref = f"refs/heads/{integration_branch}"
        remote_ref = f"refs/remotes/{self.remote_name}/{integration_branch}"
        local_target = local_ref if self._ref_exists(local_ref) else None
        remote_target = remote_ref if self._ref_exists(remote_ref) else None

        direct_targets = [local_target]
        if refreshed:
            direct_targets.append(remote_target)
        for target in filter(None, direct_targets):
            if self._check_ancestor(branch, target):
                return MergeCheck(merged=True, method=METHOD_ANCESTOR, possibly_stale=stale)

        if self._ref_exists(f"refs/remotes/{self.remote_name}/{branch}"):
            logger.debug(f"Remote ref for {branch} still exists, not trying fallback checks")
            return MergeCheck(merged=False, possibly_stale=stale)

        fallbacks: list[tuple[str, Callable[[str, str], bool]]] = [
            (METHOD_REACHABLE, self._check_all_commits_reachable),
            (METHOD_PATCH_ID, self._check_patch_equivalent),
            (METHOD_SQUASH, self._check_squash_merge),
        ]
        for target in filter(None, [remote_target, local_target]):
            for method, check in fallbacks:
                if check(branch, target):
                    return MergeCheck(merged=True, method=method, possibly_stale=stale)

        return MergeCheck(merged=False, possibly_stale=stale)

    def _check_ancestor(self, branch: str, target: str) -> bool:
        """Check if the branch tip is an ancestor of target."""
        merged = git_succeeds(
            self.repo,
            "merge-base",
            "merge-base",
            "--is-ancestor",
            f"refs/heads/{branch}",
            target,
            timeout=self.timeout,
        )
        if merged:
            logger.debug(f"[ancestor] {branch} is merged into {target}")
        return merged

    def _check_all_commits_reachable(self, branch: str, target: str) -> bool:
        """Check that no commit of the branch is missing from target."""
        count = self._git("rev-list", "rev-list", "--count", f"{target}..refs/heads/{branch}")
        if count == "0":
            logger.debug(f"[reachable] every commit of {branch} is in {target}")
            return True
        return False

    def _check_patch_equivalent(self, branch: str, target: str) -> bool:
        """Check that every branch commit has a patch-equivalent in target.

        Covers rebase merges, which rewrite the commits but keep their diffs.
        """
        output = self._git("cherry", "cherry", target, f"refs/heads/{branch}")
        lines = [line for line in output.splitlines() if line.strip()]
        if lines and all(line.startswith("-") for line in lines):
            logger.debug(f"[patch-id] all {len(lines)} commits of {branch} found in {target}")
            return True
        return False

    def _check_squash_merge(self, branch: str, target: str) -> bool:
        """Check for a squash merge by comparing the combined branch diff.

        The diff of the whole branch is compared against recent commits on
        target; an exact match, or a near-complete containment, counts.
        """
        branch_diff = self._git(
            "diff",
            "diff",
            f"{target}...refs/heads/{branch}",
            "--no-color",
            "--ignore-space-change",
            "--ignore-blank-lines",
        )
        if not branch_diff or len(branch_diff) < MIN_SQUASH_DIFF_SIZE:
            return False

        shas = self._git("log", "log", "--format=%H", f"--max-count={SQUASH_SEARCH_DEPTH}", target)
        for sha in shas.split():
            try:
                commit_diff = self._git(
                    "show",
                    "show",
                    sha,
                    "--no-color",
                    "--format=",
                    "--ignore-space-change",
                    "--ignore-blank-lines",
                )
            except VcsCommandFailedError as e:
                logger.debug(f"[squash] skipping {sha[:7]}: {e}")
                continue

            if branch_diff == commit_diff:
                logger.debug(f"[squash] exact diff match in {sha[:7]}")
                return True
            if len(branch_diff) > 2 * MIN_SQUASH_DIFF_SIZE and branch_diff in commit_diff:
                if len(branch_diff) / len(commit_diff) > 0.9:
                    logger.debug(f"[squash] near-complete diff match in {sha[:7]}")
                    return True

        return False


def describe_method(method: Optional[str]) -> str:
    """Human readable name of a merge detection method."""
    names = {
        METHOD_ANCESTOR: "branch tip is in the integration branch",
        METHOD_REACHABLE: "all commits reachable after the remote branch was deleted",
        METHOD_PATCH_ID: "equivalent patches found (rebase merge)",
        METHOD_SQUASH: "matching squash commit found",
    }
    return names.get(method or "", "not merged")
