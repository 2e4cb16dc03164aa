"""Thin wrappers around GitPython command execution.

Every git invocation in the project goes through ``run_git`` so that the
timeout is always applied and failures always surface as our own typed
errors instead of ``git.exc`` exceptions.
"""

import os
from contextlib import contextmanager
from typing import Iterator, Optional

import git

from git_worktree_keeper.exceptions import (
    GitTimeoutError,
    NotARepositoryError,
    VcsCommandFailedError,
)
from git_worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)

# GitPython replaces stderr with this marker when kill_after_timeout fires
_TIMEOUT_MARKER = "Timeout:"


def open_repo(path: str) -> git.Repo:
    """Open the repository containing ``path``.

    Raises:
        NotARepositoryError: if ``path`` is missing or not inside a repository
    """
    try:
        return git.Repo(path, search_parent_directories=True)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
        raise NotARepositoryError(path) from e


def describe_git_error(error: git.exc.GitCommandError) -> str:
    """Build a one-line description from a GitCommandError."""
    # GitPython decorates stderr as "\n  stderr: '...'"
    stderr = str(getattr(error, "stderr", "") or "").strip()
    if stderr.startswith("stderr:"):
        stderr = stderr[len("stderr:"):].strip().strip("'").strip()
    status = getattr(error, "status", "unknown")

    if stderr:
        return f"exit {status}: {stderr}"
    return f"exit code {status}"


def run_git(
    repo: git.Repo,
    operation: str,
    *args: str,
    timeout: float,
    cwd: Optional[str] = None,
) -> str:
    """Run ``git <args>`` for ``repo`` and return stripped stdout.

    Args:
        repo: Repository whose git binary/environment to use
        operation: Short name used in error messages and logs
        *args: Git arguments, e.g. ``"worktree", "list", "--porcelain"``
        timeout: Seconds before the process is killed
        cwd: Run as ``git -C cwd`` instead of in the repository root

    Raises:
        GitTimeoutError: the command was killed after ``timeout`` seconds
        VcsCommandFailedError: the command exited non-zero or git is missing
    """
    command = ["git"]
    if cwd is not None:
        command += ["-C", cwd]
    command += list(args)

    logger.debug(f"Running: {' '.join(command)}")
    try:
        output = repo.git.execute(command, kill_after_timeout=timeout)
    except git.exc.GitCommandNotFound as e:
        raise VcsCommandFailedError(operation, f"git executable not found: {e}") from e
    except git.exc.GitCommandError as e:
        if _TIMEOUT_MARKER in str(getattr(e, "stderr", "") or ""):
            logger.warning(f"git {operation} timed out after {timeout:g}s")
            raise GitTimeoutError(operation, timeout) from e
        raise VcsCommandFailedError(operation, describe_git_error(e)) from e
    return output.strip() if isinstance(output, str) else output


def git_succeeds(repo: git.Repo, operation: str, *args: str, timeout: float) -> bool:
    """Run a git predicate command: True on exit 0, False on exit 1.

    Any other failure (including a timeout) is raised, never treated as a
    negative answer.
    """
    try:
        run_git(repo, operation, *args, timeout=timeout)
        return True
    except VcsCommandFailedError as e:
        cause = e.__cause__
        if isinstance(cause, git.exc.GitCommandError) and cause.status == 1:
            return False
        raise


@contextmanager
def working_directory(path: str) -> Iterator[str]:
    """Temporarily make ``path`` the process working directory.

    The previous directory is restored on every exit path.

    Example:
        with working_directory(worktree_path):
            ...
    """
    previous = os.getcwd()
    try:
        os.chdir(path)
    except OSError as e:
        raise VcsCommandFailedError("chdir", f"cannot enter {path}: {e}") from e
    logger.debug(f"Entered {path}")
    try:
        yield path
    finally:
        os.chdir(previous)
        logger.debug(f"Returned to {previous}")
