"""Output utilities for CLI commands with clear intent.

user_output is for humans and goes to stderr; machine_output is for data a
caller may pipe and goes to stdout.
"""

import click
from rich.console import Console


def user_output(message: str = "") -> None:
    """Write a human-facing message to stderr."""
    click.echo(message, err=True)


def machine_output(message: str = "") -> None:
    """Write pipeable data to stdout."""
    click.echo(message)


def stderr_console() -> Console:
    """Rich console bound to stderr, for tables and panels."""
    return Console(stderr=True, highlight=False, soft_wrap=True)
