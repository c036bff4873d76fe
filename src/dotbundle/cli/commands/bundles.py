import click
from rich.table import Table

from dotbundle.cli.error_boundary import cli_error_boundary
from dotbundle.cli.output import machine_output, stderr_console, user_output
from dotbundle.core.context import DotbundleContext
from dotbundle.core.resolver import DependencyResolver


@click.command("bundles")
@click.option("-a", "--all", "show_all", is_flag=True, help="Include hidden and disabled bundles.")
@click.pass_obj
@cli_error_boundary
def bundles_cmd(ctx: DotbundleContext, show_all: bool) -> None:
    """List available bundles."""
    registry = ctx.registry()
    installed = set(ctx.selection_store.load())

    if show_all:
        descriptors = sorted(
            (registry.describe(bundle_id) for bundle_id in registry.ids()),
            key=lambda d: (d.order, d.id),
        )
    else:
        descriptors = registry.visible(ctx.config.revealed)

    if not descriptors:
        user_output(f"No bundles found in {ctx.config.bundles_dir}")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("id", style="cyan", no_wrap=True)
    table.add_column("name", no_wrap=True)
    table.add_column("order", justify="right", no_wrap=True)
    table.add_column("requires", no_wrap=True)
    table.add_column("status", no_wrap=True)
    table.add_column("description")

    for descriptor in descriptors:
        if not descriptor.enabled:
            status = "[dim]disabled[/dim]"
        elif descriptor.id in installed:
            status = "[green]installed[/green]"
        elif descriptor.hidden:
            status = "[dim]hidden[/dim]"
        else:
            status = ""
        table.add_row(
            descriptor.id,
            descriptor.display_name,
            str(descriptor.order),
            ", ".join(descriptor.dependencies) or "-",
            status,
            descriptor.description,
        )

    stderr_console().print(table)


@click.command("resolve")
@click.argument("bundle_ids", nargs=-1, required=True)
@click.pass_obj
@cli_error_boundary
def resolve_cmd(ctx: DotbundleContext, bundle_ids: tuple[str, ...]) -> None:
    """Print the execution order for BUNDLE_IDS and their dependencies.

    One id per line on stdout, dependencies first.
    """
    for bundle_id in DependencyResolver(ctx.registry()).resolve(list(bundle_ids)):
        machine_output(bundle_id)
