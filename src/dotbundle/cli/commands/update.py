import click

from dotbundle.cli.error_boundary import cli_error_boundary
from dotbundle.cli.output import user_output
from dotbundle.core.context import DotbundleContext
from dotbundle.core.update import pull_updates
from dotbundle.errors import UpdateError


def _short(commit: str | None) -> str:
    return commit[:7] if commit else "?"


@click.command("update")
@click.pass_obj
@cli_error_boundary
def update_cmd(ctx: DotbundleContext) -> None:
    """Pull the latest dotfiles changes.

    A pre-update rollback point is created before pulling.
    """
    result = pull_updates(
        root=ctx.root,
        git=ctx.git,
        snapshots=ctx.snapshots(),
        feedback=ctx.feedback,
        lock=ctx.lock,
    )
    if result.up_to_date:
        user_output("Already up to date.")
        return

    if result.snapshot is None:
        raise UpdateError("Update finished without a pre-update rollback point.")
    user_output(
        click.style(
            f"Updated: {_short(result.previous_hash)} -> {_short(result.new_hash)}", fg="green"
        )
    )
    user_output(f"To roll back: dotbundle rollback {result.snapshot.tag_name}")
    user_output("Run 'dotbundle upgrade' to apply any new changes.")
