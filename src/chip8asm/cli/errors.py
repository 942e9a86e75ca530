"""
Unified CLI Error Handling
==========================

Provides consistent error handling and exit codes for the CLI tools.
"""

import logging
import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click


class ExitCode(IntEnum):
    """Standard exit codes for CLI tools."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Assembly error
    INVALID_ARGS = 2     # Invalid arguments or unreadable files
    INTERNAL_ERROR = 3   # Unexpected internal error


# Verbosity switch -> logging level
LOG_LEVELS = {
    "quiet": logging.WARNING,
    "verbose": logging.INFO,
    "debug": logging.DEBUG,
}


def setup_logging(verbosity: str) -> None:
    """Configure the root logger for a CLI run."""
    level = LOG_LEVELS.get(verbosity, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if level == logging.DEBUG else "%(message)s",
    )


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Unified exception handler for the CLI tools.

    Prints the error to stderr, optionally with a traceback for internal
    errors, and exits with the matching exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors

    Raises:
        SystemExit: Always exits with an appropriate exit code
    """
    from chip8asm.errors import Chip8Error

    if isinstance(error, Chip8Error):
        # Assembler errors carry their own "file:line: error:" prefix
        click.echo(str(error), err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    elif isinstance(error, (click.BadParameter, FileNotFoundError, PermissionError, IsADirectoryError)):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, UnicodeDecodeError):
        click.echo(f"Error: input is not a text file: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
