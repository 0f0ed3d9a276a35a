"""
Unified CLI Error Handling
==========================

Provides consistent error handling and exit codes for the frugen tool.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from frugen.errors import FruArgumentError, FruError


class ExitCode(IntEnum):
    """Standard exit codes for CLI tools."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Encoding, building or format validation error
    INVALID_ARGS = 2     # Invalid arguments, field values or missing files
    INTERNAL_ERROR = 3   # Unexpected internal error


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Unified exception handler for the CLI.

    Formats the error message appropriately, optionally prints traceback
    in verbose mode, and exits with the correct exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors
        error_type: Optional prefix for the error message (e.g., "Validation")

    Raises:
        SystemExit: Always exits with an appropriate exit code
    """
    prefix = f"{error_type} error: " if error_type else "Error: "

    if isinstance(error, FruArgumentError):
        # Values that cannot be encoded into a FRU image
        click.echo(f"{prefix}{error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, FruError):
        # Format violations and other codec errors
        click.echo(f"{prefix}{error}", err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    elif isinstance(error, click.BadParameter):
        # Invalid command-line arguments
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, FileNotFoundError):
        # Missing input files
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, PermissionError):
        # Permission denied
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        # Unexpected internal error
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
