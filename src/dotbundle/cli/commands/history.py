import click
from rich.table import Table

from dotbundle.cli.error_boundary import cli_error_boundary
from dotbundle.cli.output import stderr_console, user_output
from dotbundle.core.context import DotbundleContext
from dotbundle.core.snapshots import SnapshotInfo


def _yes_no(value: bool) -> str:
    return "[green]yes[/green]" if value else "[dim]no[/dim]"


def build_history_table(infos: list[SnapshotInfo]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right", no_wrap=True)
    table.add_column("date", no_wrap=True)
    table.add_column("kind", style="cyan", no_wrap=True)
    table.add_column("commit", no_wrap=True)
    table.add_column("packages", no_wrap=True)
    table.add_column("bundles", no_wrap=True)
    table.add_column("tag", style="dim", no_wrap=True)
    for index, info in enumerate(infos, start=1):
        table.add_row(
            str(index),
            info.display_date,
            info.kind.value,
            info.short_hash,
            _yes_no(info.has_manifest),
            _yes_no(info.has_selection),
            info.tag_name,
        )
    return table


@click.command("history")
@click.pass_obj
@cli_error_boundary
def history_cmd(ctx: DotbundleContext) -> None:
    """List rollback points, newest first."""
    infos = ctx.snapshots().list_snapshots()
    if not infos:
        user_output("No rollback points found. They are created before updates and upgrades.")
        return
    stderr_console().print(build_history_table(infos))
    user_output("Roll back with: dotbundle rollback <tag or timestamp>")
