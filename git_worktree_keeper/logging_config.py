"""Logging configuration for git-worktree-keeper

All log output goes to stderr (and, with --debug, a log file). stdout is
reserved for the worktree path that the shell function reads.
"""
import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

LOG_DIR_NAME = ".git-worktree-keeper"
LOG_FILE_NAME = "git-worktree-keeper.log"
PACKAGE_PREFIXES = ("git_worktree_keeper.", "services.")

DEBUG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
PLAIN_FORMAT = "[%(name)s] %(message)s"

_RESET = "\033[0m"
_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",    # Cyan
    logging.INFO: "\033[32m",     # Green
    logging.WARNING: "\033[33m",  # Yellow
    logging.ERROR: "\033[31m",    # Red
}


class ColoredFormatter(logging.Formatter):
    """Colors the level name when the handler's stream is a terminal.

    The record itself is left untouched, so other handlers (the debug log
    file) never see escape codes.
    """

    def __init__(self, fmt: str, datefmt: Optional[str] = None, stream: Optional[TextIO] = None):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.stream = stream or sys.stderr

    def formatMessage(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelno)
        if color is None or not self.stream.isatty():
            return super().formatMessage(record)
        values = dict(record.__dict__, levelname=f"{color}{record.levelname}{_RESET}")
        return self._style._fmt % values


def _level_for(verbose: bool, debug: bool) -> int:
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.WARNING


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """
    Configure logging for the application.

    Args:
        verbose: If True, show INFO level messages
        debug: If True, show DEBUG level messages with timestamps and
            mirror everything into ``~/.git-worktree-keeper/git-worktree-keeper.log``
    """
    level = _level_for(verbose, debug)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if debug:
        log_dir = Path.home() / LOG_DIR_NAME
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / LOG_FILE_NAME, mode="w")  # Overwrite each run
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(fmt=DEBUG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    if debug:
        console_handler.setFormatter(ColoredFormatter(DEBUG_FORMAT, DATE_FORMAT, stream=sys.stderr))
    else:
        console_handler.setFormatter(ColoredFormatter(PLAIN_FORMAT, stream=sys.stderr))
    root_logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the specified module.

    Args:
        name: Name of the module (typically __name__)

    Returns:
        Logger with the package prefix stripped, e.g. ``git.inspector``
    """
    for prefix in PACKAGE_PREFIXES:
        if name.startswith(prefix):
            name = name[len(prefix):]
    return logging.getLogger(name)
