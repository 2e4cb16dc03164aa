"""Custom exceptions for git-worktree-keeper"""

from typing import Iterable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from git_worktree_keeper.models.safety import ReasonCode


class GitWorktreeKeeperError(Exception):
    """Base exception for all git-worktree-keeper errors."""
    pass


class NotARepositoryError(GitWorktreeKeeperError):
    """Exception raised when the working directory is not inside a Git repository."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        error_msg = "Not in a git repository"
        if path:
            error_msg += f": {path}"
        super().__init__(error_msg)


class InvalidIdentifierError(GitWorktreeKeeperError):
    """Exception raised for an unusable issue number or branch identifier."""

    def __init__(self, identifier: str, message: Optional[str] = None):
        self.identifier = identifier
        self.message = message

        error_msg = f"Invalid identifier '{identifier}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class AlreadyExistsError(GitWorktreeKeeperError):
    """Exception raised when the target worktree or branch already exists.

    ``kind`` is ``"worktree"`` when the directory (or a registered worktree)
    is already present and ``"branch"`` when the derived branch exists.
    """

    WORKTREE = "worktree"
    BRANCH = "branch"

    def __init__(self, target: str, kind: str):
        self.target = target
        self.kind = kind
        super().__init__(f"{kind.capitalize()} '{target}' already exists")


class WorktreeNotFoundError(GitWorktreeKeeperError):
    """Exception raised when no worktree matches the requested identifier."""

    def __init__(self, identifier: Optional[str] = None, message: Optional[str] = None):
        self.identifier = identifier
        if message is None:
            message = f"Worktree for '{identifier}' not found" if identifier else "No worktree found"
        super().__init__(message)


class VcsCommandFailedError(GitWorktreeKeeperError):
    """Exception raised for errors in Git operations."""

    def __init__(self, operation: str, cause: Optional[str] = None, branch: Optional[str] = None):
        self.operation = operation
        self.cause = cause
        self.branch = branch

        error_msg = f"Git operation '{operation}' failed"
        if branch:
            error_msg += f" for branch '{branch}'"
        if cause:
            error_msg += f": {cause}"

        super().__init__(error_msg)


class GitTimeoutError(GitWorktreeKeeperError):
    """Exception raised when a Git command was killed after its timeout."""

    def __init__(self, operation: str, timeout: float):
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"Git operation '{operation}' timed out after {timeout:g}s")


class UnsafeRemovalError(GitWorktreeKeeperError):
    """Exception raised when a worktree cannot be removed without --force."""

    def __init__(self, reasons: Iterable["ReasonCode"], path: Optional[str] = None):
        self.reasons = sorted(reasons, key=lambda reason: reason.value)
        self.path = path

        details = "; ".join(reason.description for reason in self.reasons)
        error_msg = "Refusing to remove worktree"
        if path:
            error_msg += f" at {path}"
        error_msg += f" ({details}). Use --force to override"

        super().__init__(error_msg)


class CancelledError(GitWorktreeKeeperError):
    """Raised when the user declines a confirmation or cancels a selection."""

    def __init__(self, message: str = "Aborted."):
        super().__init__(message)
