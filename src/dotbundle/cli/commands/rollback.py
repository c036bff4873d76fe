import click

from dotbundle.cli.error_boundary import cli_error_boundary
from dotbundle.cli.output import stderr_console, user_output
from dotbundle.cli.summary import format_restore_summary
from dotbundle.core.context import DotbundleContext
from dotbundle.core.snapshots import SnapshotManager


def _pick_identifier(ctx: DotbundleContext, manager: SnapshotManager) -> str | None:
    infos = manager.list_snapshots()
    if not infos:
        return None
    options = [
        f"{info.display_date}  {info.kind.value:<18} {info.short_hash}  ({info.tag_name})"
        for info in infos
    ]
    index = ctx.prompter.choose("Select rollback point", options)
    return infos[index].tag_name


@click.command("rollback")
@click.argument("identifier", required=False)
@click.option(
    "--with-packages", is_flag=True, help="Also restore packages from the snapshot's Brewfile."
)
@click.option("--dry-run", is_flag=True, help="Show what would change without changing it.")
@click.option(
    "-y",
    "--yes",
    "assume_yes",
    is_flag=True,
    envvar="DOTBUNDLE_ASSUME_YES",
    help="Skip confirmation prompts.",
)
@click.pass_obj
@cli_error_boundary
def rollback_cmd(
    ctx: DotbundleContext,
    identifier: str | None,
    with_packages: bool,
    dry_run: bool,
    assume_yes: bool,
) -> None:
    """Reset the dotfiles repository to a rollback point.

    IDENTIFIER is a tag (pre-update/20240101-120000) or a bare timestamp.
    Without it, pick from the history. A pre-rollback point is created
    first so the rollback itself can be undone.
    """
    manager = ctx.snapshots()
    assume_yes = assume_yes or ctx.assume_yes

    if identifier is None:
        identifier = _pick_identifier(ctx, manager)
        if identifier is None:
            user_output("No rollback points found.")
            return

    if dry_run:
        preview = manager.restore(identifier, with_packages=with_packages, dry_run=True)
        stderr_console().print(format_restore_summary(preview))
        return

    if not assume_yes:
        # Commit count only; the package diff is computed once, by the real restore.
        preview = manager.restore(identifier, dry_run=True)
        count = len(preview.discarded_commits)
        message = f"Reset to {preview.target_tag}, undoing {count} commit(s)?"
        if not ctx.prompter.confirm(message, hint="Pass --yes to confirm the rollback."):
            user_output("Rollback cancelled.")
            return

    report = manager.restore(
        identifier, with_packages=with_packages, dry_run=False, assume_yes=assume_yes
    )
    stderr_console().print(format_restore_summary(report))
