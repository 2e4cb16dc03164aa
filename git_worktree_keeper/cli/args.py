"""Command-line argument parsing for git-worktree-keeper."""

import argparse
from typing import Optional, Sequence

from git_worktree_keeper.__version__ import __version__


def build_parser() -> argparse.ArgumentParser:
    """Build the ``gw`` argument parser."""
    parser = argparse.ArgumentParser(
        prog="gw",
        description="Task-scoped git worktrees: create one per issue or branch, remove it safely when done",
        epilog="Config: ~/.gwrc (or $GW_CONFIG) with 'key = value' lines for auto_cd, copy_envs, "
        "auto_remove_branch, update_iterm2_tab and main_branch",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument("--version", action="version", version=f"git-worktree-keeper {__version__}")
    parser.add_argument(
        "--main-branch", default=None, help="Integration branch name (default: main or config)"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    start = subparsers.add_parser(
        "start",
        help="Create a worktree for an issue number or branch",
        description="Create ../<repo>-<identifier> on branch <n>/impl (issue numbers) or <identifier>",
    )
    start.add_argument("identifier", help="Issue number (e.g. 123) or branch name")
    start.add_argument("base_branch", nargs="?", default=None, help="Branch to start from")
    _add_creation_flags(start)

    checkout = subparsers.add_parser(
        "checkout",
        help="Create a worktree for an existing branch",
        description="Check out an existing local or remote branch into its own worktree",
    )
    checkout.add_argument(
        "branch", nargs="?", default=None, help="Branch to check out (omit to pick interactively)"
    )
    _add_creation_flags(checkout)

    end = subparsers.add_parser(
        "end",
        help="Remove a worktree after safety checks",
        description="Remove a task worktree; uncommitted changes block, other findings ask first",
    )
    end.add_argument(
        "identifier", nargs="?", default=None, help="Issue number or branch (omit to pick interactively)"
    )
    end.add_argument(
        "-f", "--force", action="store_true", help="Skip safety checks and discard local changes"
    )

    clean = subparsers.add_parser(
        "clean",
        help="Remove every worktree that is merged and clean",
        description="Remove all task worktrees that have nothing left to lose",
    )
    clean.add_argument("-f", "--force", action="store_true", help="Skip the confirmation prompt")
    clean.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview mode - show what would be removed without removing anything",
    )

    shell = subparsers.add_parser(
        "shell-integration",
        help="Helpers for the shell function that changes directory",
    )
    shell.add_argument(
        "--print-path",
        metavar="IDENTIFIER",
        required=True,
        help="Print the worktree path for an issue number or branch",
    )

    return parser


def _add_creation_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--copy-envs",
        action="store_true",
        default=None,
        help="Copy untracked .env files from the main worktree without asking",
    )
    parser.add_argument(
        "--print-path",
        action="store_true",
        help="Print the new worktree path as the last line of output (for shell integration)",
    )


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
