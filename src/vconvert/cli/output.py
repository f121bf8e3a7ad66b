"""CLI error and warning output helpers."""

from __future__ import annotations

import sys
from typing import NoReturn

import click

from vconvert.cli.exit_codes import ExitCode


def error_exit(message: str, code: ExitCode | int) -> NoReturn:
    """Print ``Error: message`` to stderr and exit with ``code``.

    Note:
        This function never returns; it always calls sys.exit().
    """
    click.echo(f"Error: {message}", err=True)
    sys.exit(int(code))


def warning_output(message: str) -> None:
    """Print ``Warning: message`` to stderr."""
    click.echo(f"Warning: {message}", err=True)
