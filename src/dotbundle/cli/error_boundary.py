"""Error boundary handling for CLI commands.

This module provides a decorator to catch well-known exceptions at CLI entry
points and display clean error messages without stack traces.
"""

import functools
from collections.abc import Callable
from typing import Any, TypeVar

import click

from dotbundle.cli.output import user_output
from dotbundle.errors import DotbundleError

T = TypeVar("T", bound=Callable[..., Any])


def _fail(error: Exception) -> SystemExit:
    user_output(click.style("Error: ", fg="red") + str(error))
    return SystemExit(1)


def cli_error_boundary(func: T) -> T:
    """Decorator that catches well-known exceptions and displays clean error messages.

    Catches:
        - DotbundleError: Unknown bundles, cycles, failed snapshots/transactions
        - FileNotFoundError: Missing dotfiles root or files
        - ValueError: Invalid input or configuration
        - PermissionError: Permission denied errors

    All other exceptions bubble up normally with full stack traces.

    Example:
        @click.command()
        @click.pass_obj
        @cli_error_boundary
        def my_command(ctx):
            ...
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except DotbundleError as e:
            raise _fail(e) from None
        except FileNotFoundError as e:
            raise _fail(e) from None
        except ValueError as e:
            raise _fail(e) from None
        except PermissionError as e:
            raise _fail(e) from None

    return wrapper  # type: ignore[return-value]
