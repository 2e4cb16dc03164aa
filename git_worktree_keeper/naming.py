"""Branch and directory naming for task worktrees."""

import re

from git_worktree_keeper.exceptions import InvalidIdentifierError

ISSUE_BRANCH_SUFFIX = "/impl"
DEFAULT_TASK_BRANCH_PATTERN = r"^\d+/"

_ISSUE_NUMBER_RE = re.compile(r"^[0-9]+$")
# Characters that cannot appear in a single path segment on Windows or Unix
_UNSAFE_PATH_CHARS = re.compile(r'[/\\*?<>|:"]')


def _require_identifier(identifier: str) -> str:
    if identifier is None or not identifier.strip():
        raise InvalidIdentifierError(identifier or "", "identifier must not be empty")
    return identifier.strip()


def is_issue_number(identifier: str) -> bool:
    """Return True if the whole identifier is a bare digit string."""
    return bool(_ISSUE_NUMBER_RE.match(identifier or ""))


def derive_branch(identifier: str) -> str:
    """Map an identifier to its branch name.

    ``"123"`` becomes ``"123/impl"``; anything else (``"123abc"``,
    ``"123/impl"``, ``"feature/x"``) is already a branch name.
    """
    identifier = _require_identifier(identifier)
    if is_issue_number(identifier):
        return f"{identifier}{ISSUE_BRANCH_SUFFIX}"
    return identifier


def derive_slug(name: str) -> str:
    """Return a filesystem-safe single path segment for a branch-like name.

    Every character in ``/ \\ * ? < > | : "`` is replaced with ``-``.
    Safe names come back unchanged.
    """
    return _UNSAFE_PATH_CHARS.sub("-", _require_identifier(name))


def worktree_dir_name(repo_name: str, identifier: str) -> str:
    """Sibling directory name for a task, e.g. ``repo-42`` or ``repo-feature-x``."""
    return f"{repo_name}-{derive_slug(identifier)}"


def is_task_branch(branch: str, pattern: str = DEFAULT_TASK_BRANCH_PATTERN) -> bool:
    """Check whether a branch follows the task-branch naming convention."""
    if not branch:
        return False
    return bool(re.search(pattern, branch)) or branch.endswith(ISSUE_BRANCH_SUFFIX)


def identifier_from_branch(branch: str) -> str:
    """Return the issue number for ``123/...`` branches, else the branch itself."""
    if not branch:
        return ""
    head, sep, _ = branch.partition("/")
    if sep and is_issue_number(head):
        return head
    return branch
