"""Read-only repository queries for git-worktree-keeper."""

import os
from typing import Any, Dict, Optional, Union, TYPE_CHECKING

import git

from git_worktree_keeper.exceptions import GitWorktreeKeeperError, VcsCommandFailedError
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.safety import MergeCheck
from git_worktree_keeper.models.worktree import WorktreeRecord
from git_worktree_keeper.services.git.commands import git_succeeds, open_repo, run_git
from git_worktree_keeper.services.git.merge_detector import MergeDetector

if TYPE_CHECKING:
    from git_worktree_keeper.config import Config

logger = get_logger(__name__)

UPSTREAM_GONE = "gone"


def _is_within(path: str, directory: str) -> bool:
    path = os.path.realpath(path)
    directory = os.path.realpath(directory)
    try:
        return os.path.commonpath([path, directory]) == directory
    except ValueError:
        # Different drives on Windows
        return False


def parse_worktree_porcelain(output: str, cwd: Optional[str] = None) -> list[WorktreeRecord]:
    """Parse ``git worktree list --porcelain`` output.

    Format, one block per worktree separated by blank lines::

        worktree /path/to/worktree
        HEAD commit_sha
        branch refs/heads/branch-name   (or "detached")

    The first block is always the main worktree. When ``cwd`` is given, the
    deepest worktree containing it is flagged as current.
    """
    records: list[WorktreeRecord] = []
    entry: Dict[str, Any] = {}

    def flush():
        path = entry.get("path")
        if path:
            records.append(
                WorktreeRecord(
                    path=path,
                    branch=entry.get("branch", ""),
                    commit_sha=entry.get("HEAD", ""),
                    is_main=not records,
                    is_detached=entry.get("detached", False),
                    is_orphaned=not os.path.isdir(path),
                )
            )
        entry.clear()

    for line in output.splitlines():
        line = line.strip()
        if not line:
            flush()
            continue

        key, _, value = line.partition(" ")
        if key == "worktree":
            flush()
            entry["path"] = value
        elif key == "HEAD":
            entry["HEAD"] = value
        elif key == "branch":
            entry["branch"] = value[len("refs/heads/"):] if value.startswith("refs/heads/") else value
        elif key == "detached":
            entry["detached"] = True
    flush()

    if cwd:
        containing = [r for r in records if not r.is_orphaned and _is_within(cwd, r.path)]
        if containing:
            current = max(containing, key=lambda r: len(os.path.realpath(r.path)))
            current.is_current = True

    return records


class RepositoryInspector:
    """Read-only view of a repository, its worktrees and branches.

    Nothing is cached: every call asks git again, so results always reflect
    the repository as it is now.
    """

    def __init__(self, repo_path: str, config: Union["Config", dict]):
        """Initialize the inspector.

        Args:
            repo_path: Any path inside the repository (or one of its worktrees)
            config: Configuration dictionary or Config object
        """
        self.repo_path = repo_path
        self.config = config
        self.main_branch = config.get("main_branch", "main")
        self.remote_name = config.get("remote_name", "origin")
        self.command_timeout = config.get("command_timeout", 60.0)
        self.fetch_timeout = config.get("fetch_timeout", 10.0)

    def _get_repo(self) -> git.Repo:
        """Open a fresh git.Repo for this call."""
        return open_repo(self.repo_path)

    def _git(self, operation: str, *args: str, cwd: Optional[str] = None) -> str:
        return run_git(self._get_repo(), operation, *args, timeout=self.command_timeout, cwd=cwd)

    def _ref_exists(self, ref: str) -> bool:
        return git_succeeds(
            self._get_repo(), "show-ref", "show-ref", "--verify", "--quiet", ref,
            timeout=self.command_timeout,
        )

    # Worktrees

    def list_worktrees(self) -> list[WorktreeRecord]:
        """List every registered worktree, the main one first."""
        output = self._git("worktree list", "worktree", "list", "--porcelain")
        records = parse_worktree_porcelain(output, cwd=os.getcwd())
        logger.debug(f"Found {len(records)} worktrees")
        for record in records:
            logger.debug(f"  {record}")
        return records

    def main_worktree_path(self) -> str:
        """Absolute path of the main worktree."""
        records = self.list_worktrees()
        if not records:
            raise VcsCommandFailedError("worktree list", "no worktrees reported")
        return records[0].path

    def repo_name(self) -> str:
        """Repository name, taken from the main worktree directory."""
        return os.path.basename(self.main_worktree_path().rstrip(os.sep))

    def toplevel(self) -> str:
        """Root of the worktree containing ``repo_path``."""
        return self._git("rev-parse", "rev-parse", "--show-toplevel")

    def status_clean(self, path: str) -> bool:
        """True if the worktree at ``path`` has no staged, unstaged or untracked changes."""
        if not os.path.isdir(path):
            raise VcsCommandFailedError("status", f"worktree directory {path} does not exist")
        status = self._git("status", "status", "--porcelain", cwd=path)
        return not status.strip()

    # Branches

    def current_branch(self) -> str:
        """Branch checked out where ``repo_path`` points, empty when detached."""
        name = self._git("rev-parse", "rev-parse", "--abbrev-ref", "HEAD")
        return "" if name == "HEAD" else name

    def branch_exists(self, name: str, include_remote: bool = False) -> bool:
        """Check for a local branch, and optionally its remote-tracking ref.

        ``name`` may carry the remote prefix (``origin/feature``) when
        ``include_remote`` is set.
        """
        if self._ref_exists(f"refs/heads/{name}"):
            return True
        if not include_remote:
            return False

        prefix = f"{self.remote_name}/"
        remote_name = name if name.startswith(prefix) else f"{prefix}{name}"
        return self._ref_exists(f"refs/remotes/{remote_name}")

    def list_all_branches(self) -> list[str]:
        """Local branch names followed by remote-tracking names like ``origin/x``."""
        output = self._git(
            "for-each-ref", "for-each-ref", "--format=%(refname)", "refs/heads", "refs/remotes"
        )
        local, remote = [], []
        for ref in output.splitlines():
            ref = ref.strip()
            if ref.startswith("refs/heads/"):
                local.append(ref[len("refs/heads/"):])
            elif ref.startswith("refs/remotes/") and not ref.endswith("/HEAD"):
                remote.append(ref[len("refs/remotes/"):])
        return local + remote

    def _upstream_info(self, branch: str) -> tuple[str, str]:
        """Return ``(upstream_ref, track)`` for a local branch.

        ``track`` is ``"gone"`` when an upstream is configured but its
        remote-tracking ref no longer exists.
        """
        output = self._git(
            "for-each-ref",
            "for-each-ref",
            "--format=%(upstream)|%(upstream:track,nobracket)",
            f"refs/heads/{branch}",
        )
        first = output.splitlines()[0] if output else ""
        upstream, _, track = first.partition("|")
        return upstream.strip(), track.strip()

    def has_upstream(self, branch: str) -> bool:
        """True if the branch tracks an upstream that still exists locally."""
        upstream, track = self._upstream_info(branch)
        if not upstream:
            return False
        if track == UPSTREAM_GONE:
            logger.debug(f"Upstream {upstream} of {branch} is gone")
            return False
        return True

    def ahead_behind(self, branch: str) -> tuple[int, int]:
        """Count commits ahead of and behind the upstream.

        Raises:
            VcsCommandFailedError: when the branch has no usable upstream
        """
        if not self.has_upstream(branch):
            raise VcsCommandFailedError("rev-list", "no upstream configured", branch=branch)
        output = self._git(
            "rev-list",
            "rev-list",
            "--left-right",
            "--count",
            f"refs/heads/{branch}...{branch}@{{upstream}}",
        )
        try:
            ahead, behind = (int(part) for part in output.split())
        except ValueError as e:
            raise VcsCommandFailedError("rev-list", f"unexpected output '{output}'", branch=branch) from e
        return ahead, behind

    # Integration branch

    def fetch_integration_branch(self, integration_branch: Optional[str] = None) -> bool:
        """Best-effort refresh of remote-tracking refs.

        Fetches the whole remote with ``--prune`` so that the integration
        branch is current and branches deleted on the remote disappear
        locally. Never raises: any failure (no remote, offline, timeout)
        is logged and reported as ``False``.
        """
        integration_branch = integration_branch or self.main_branch
        try:
            repo = self._get_repo()
            if self.remote_name not in [remote.name for remote in repo.remotes]:
                logger.info(f"No remote '{self.remote_name}', using local state")
                return False
            run_git(repo, "fetch", "fetch", "--prune", self.remote_name, timeout=self.fetch_timeout)
        except GitWorktreeKeeperError as e:
            logger.warning(f"Could not fetch {self.remote_name}/{integration_branch}: {e}")
            return False
        logger.debug(f"Fetched {self.remote_name}")
        return True

    def is_merged_to_integration_branch(
        self,
        branch: str,
        integration_branch: Optional[str] = None,
        refreshed: bool = True,
    ) -> MergeCheck:
        """Check whether a branch has landed on the integration branch.

        Args:
            branch: Local branch name
            integration_branch: Defaults to the configured main branch
            refreshed: Pass False when the last fetch failed; the result is
                then marked possibly stale and the remote-tracking
                integration ref is only trusted by the fallback checks

        Returns:
            MergeCheck
        """
        integration_branch = integration_branch or self.main_branch
        detector = MergeDetector(self._get_repo(), self.config)
        result = detector.is_merged(branch, integration_branch, refreshed=refreshed)
        logger.debug(f"Merge check for {branch}: {result}")
        return result
