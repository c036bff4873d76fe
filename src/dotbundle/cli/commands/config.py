import click

from dotbundle.cli.error_boundary import cli_error_boundary
from dotbundle.cli.output import machine_output, user_output
from dotbundle.core.config import CONFIG_FILENAME, config_items, set_config_value
from dotbundle.core.context import DotbundleContext


@click.group("config")
def config_group() -> None:
    """Manage dotbundle configuration."""


@config_group.command("list")
@click.pass_obj
@cli_error_boundary
def config_list(ctx: DotbundleContext) -> None:
    """Print a list of configuration keys and values."""
    user_output(click.style(f"Configuration ({ctx.root / CONFIG_FILENAME}):", bold=True))
    for key, value in config_items(ctx.config):
        machine_output(f"{key}={value}")


@config_group.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_obj
@cli_error_boundary
def config_set(ctx: DotbundleContext, key: str, value: str) -> None:
    """Set KEY to VALUE in dotbundle.toml.

    For revealed, VALUE is a comma-separated list of bundle ids.
    """
    set_config_value(ctx.root, key, value)
    user_output(f"Set {key}={value}")
