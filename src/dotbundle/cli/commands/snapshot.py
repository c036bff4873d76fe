import click

from dotbundle.cli.error_boundary import cli_error_boundary
from dotbundle.cli.output import machine_output, user_output
from dotbundle.core.context import DotbundleContext
from dotbundle.core.snapshots import SnapshotKind


@click.command("snapshot")
@click.option(
    "--kind",
    type=click.Choice([kind.value for kind in SnapshotKind]),
    default=SnapshotKind.PRE_CHANGE.value,
    show_default=True,
    help="Reason for the snapshot; becomes the tag prefix.",
)
@click.pass_obj
@cli_error_boundary
def snapshot_cmd(ctx: DotbundleContext, kind: str) -> None:
    """Create a rollback point now.

    Prints the tag name on stdout.
    """
    result = ctx.snapshots().create(SnapshotKind(kind))
    if result.preserved_commit:
        user_output("Uncommitted changes were committed before tagging.")
    user_output(click.style(f"Rollback point created: {result.tag_name}", fg="green"))
    machine_output(result.tag_name)
