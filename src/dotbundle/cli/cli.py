import logging
import os

import click

from dotbundle.cli.commands.bundles import bundles_cmd, resolve_cmd
from dotbundle.cli.commands.config import config_group
from dotbundle.cli.commands.history import history_cmd
from dotbundle.cli.commands.install import install_cmd, upgrade_cmd
from dotbundle.cli.commands.rollback import rollback_cmd
from dotbundle.cli.commands.snapshot import snapshot_cmd
from dotbundle.cli.commands.update import update_cmd
from dotbundle.cli.error_boundary import cli_error_boundary
from dotbundle.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags

# Enable debug logging if DOTBUNDLE_DEBUG environment variable is set
if os.getenv("DOTBUNDLE_DEBUG"):
    logging.basicConfig(level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s")


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="dotbundle")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.pass_context
@cli_error_boundary
def cli(ctx: click.Context, quiet: bool) -> None:
    """Install, upgrade and roll back composable dotfile bundles."""
    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context(quiet=quiet)


cli.add_command(install_cmd)
cli.add_command(upgrade_cmd)
cli.add_command(update_cmd)
cli.add_command(bundles_cmd)
cli.add_command(resolve_cmd)
cli.add_command(snapshot_cmd)
cli.add_command(history_cmd)
cli.add_command(rollback_cmd)
cli.add_command(config_group)


def main() -> None:
    """CLI entry point used by the `dotbundle` console script."""
    cli()
