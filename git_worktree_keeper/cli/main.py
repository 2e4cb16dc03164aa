"""Command-line interface for git-worktree-keeper"""

import argparse
import os
import sys
from typing import Optional, Sequence

from rich.console import Console

from git_worktree_keeper.cli.args import parse_args
from git_worktree_keeper.config import Config, load_config
from git_worktree_keeper.core.cleaner import WorktreeCleaner
from git_worktree_keeper.core.creator import WorktreeCreator
from git_worktree_keeper.core.locator import WorktreeLocator
from git_worktree_keeper.core.remover import WorktreeRemover
from git_worktree_keeper.exceptions import CancelledError, GitWorktreeKeeperError
from git_worktree_keeper.logging_config import get_logger, setup_logging
from git_worktree_keeper.models.worktree import WorktreeRecord
from git_worktree_keeper.services.env_files import EnvFileService
from git_worktree_keeper.services.git.inspector import RepositoryInspector
from git_worktree_keeper.services.git.worktrees import WorktreeService
from git_worktree_keeper.services.package_setup import PackageSetupService
from git_worktree_keeper.services.terminal_tab import TerminalTabService
from git_worktree_keeper.ui.prompts import ConsolePrompter, ScriptedPrompter
from git_worktree_keeper.ui.selector import TextualSelector

# Messages go to stderr; stdout only carries paths for the shell function
console = Console(stderr=True)
logger = get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


class Application:
    """Wires services and lifecycle operations for one invocation."""

    def __init__(self, config: Config, repo_path: Optional[str] = None,
                 interactive: Optional[bool] = None):
        self.config = config
        self.repo_path = repo_path or os.getcwd()
        if interactive is None:
            interactive = sys.stdin.isatty()

        self.inspector = RepositoryInspector(self.repo_path, config)
        # Fail fast outside a repository
        self.inspector.toplevel()

        self.worktree_service = WorktreeService(self.repo_path, config)
        self.terminal_tab = TerminalTabService(config.update_terminal_tab)
        if interactive:
            self.prompter = ConsolePrompter(console)
            self.selector = TextualSelector()
        else:
            # Unattended runs never confirm anything
            self.prompter = ScriptedPrompter(default=False)
            self.selector = None

    def creator(self) -> WorktreeCreator:
        return WorktreeCreator(
            self.inspector,
            self.worktree_service,
            self.config,
            self.prompter,
            env_files=EnvFileService(self.config),
            package_setup=PackageSetupService(),
            terminal_tab=self.terminal_tab,
            selector=self.selector,
            console=console,
        )

    def remover(self) -> WorktreeRemover:
        return WorktreeRemover(
            self.inspector,
            self.worktree_service,
            self.config,
            self.prompter,
            selector=self.selector,
            terminal_tab=self.terminal_tab,
            console=console,
        )

    def cleaner(self) -> WorktreeCleaner:
        return WorktreeCleaner(
            self.inspector, self.worktree_service, self.config, self.prompter, console=console
        )

    def locator(self) -> WorktreeLocator:
        return WorktreeLocator(self.inspector)


def _report_ready(record: WorktreeRecord, config: Config, print_path: bool) -> None:
    console.print(f"\n✨ Worktree ready at:\n   {record.path}")
    if config.auto_cd:
        console.print(
            "\n💡 Shell integration will change to this directory after the command completes."
        )
    if print_path:
        print(record.path)


def run_command(parsed_args: argparse.Namespace, app: Application) -> int:
    """Dispatch a parsed command line; returns the exit code."""
    command = parsed_args.command

    if command == "start":
        record = app.creator().create(
            parsed_args.identifier, parsed_args.base_branch, copy_envs=parsed_args.copy_envs
        )
        _report_ready(record, app.config, parsed_args.print_path)
        return EXIT_OK

    if command == "checkout":
        creator = app.creator()
        branch = parsed_args.branch or creator.select_checkout_branch()
        record = creator.checkout(branch, copy_envs=parsed_args.copy_envs)
        _report_ready(record, app.config, parsed_args.print_path)
        return EXIT_OK

    if command == "end":
        app.remover().remove(parsed_args.identifier, force=parsed_args.force)
        return EXIT_OK

    if command == "clean":
        report = app.cleaner().clean(force=parsed_args.force, dry_run=parsed_args.dry_run)
        return EXIT_ERROR if report.failed else EXIT_OK

    if command == "shell-integration":
        print(app.locator().print_path(parsed_args.print_path))
        return EXIT_OK

    raise ValueError(f"Unknown command: {command}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = None
    try:
        # Parse command line arguments
        parsed_args = parse_args(argv)

        # Setup logging before anything talks to git
        setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug)

        config = load_config(
            main_branch=parsed_args.main_branch,
            verbose=parsed_args.verbose or None,
            debug=parsed_args.debug or None,
        )
        if parsed_args.debug:
            console.print("[yellow]Configuration:[/yellow]")
            for key, value in config.to_dict().items():
                console.print(f"  {key}: {value}")

        return run_command(parsed_args, Application(config))
    except CancelledError as e:
        # Declining is an answer, not a failure
        console.print(f"[yellow]{e}[/yellow]")
        return EXIT_OK
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return EXIT_INTERRUPTED
    except GitWorktreeKeeperError as e:
        console.print(f"[red]Error: {e}[/red]")
        if parsed_args is not None and parsed_args.debug:
            console.print_exception()
        return EXIT_ERROR
    except ValueError as e:
        # Invalid configuration values
        console.print(f"[red]Error: {e}[/red]")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
