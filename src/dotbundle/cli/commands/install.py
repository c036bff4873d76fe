"""install and upgrade commands: both drive a TransactionRunner."""

from collections.abc import Iterable

import click

from dotbundle.cli.error_boundary import cli_error_boundary
from dotbundle.cli.output import stderr_console, user_output
from dotbundle.cli.summary import format_transaction_summary
from dotbundle.core.context import DotbundleContext
from dotbundle.core.transaction import SelectionRequest, TransactionReport


def split_ids(values: Iterable[str]) -> tuple[str, ...]:
    """Flatten repeated and comma-separated id options.

    ``-b a,b -b c`` and ``DOTBUNDLE_BUNDLES=a,b,c`` both yield (a, b, c).
    """
    ids: list[str] = []
    for value in values:
        for item in value.split(","):
            item = item.strip()
            if item and item not in ids:
                ids.append(item)
    return tuple(ids)


def _finish(report: TransactionReport) -> None:
    stderr_console().print(format_transaction_summary(report))


@click.command("install")
@click.option(
    "-b",
    "--bundle",
    "bundles",
    multiple=True,
    envvar="DOTBUNDLE_BUNDLES",
    help="Bundle to install (repeatable, comma-separated). Skips the menu.",
)
@click.option(
    "--reveal",
    multiple=True,
    help="Show a hidden bundle in the selection menu (repeatable).",
)
@click.option(
    "-y",
    "--yes",
    "assume_yes",
    is_flag=True,
    envvar="DOTBUNDLE_ASSUME_YES",
    help="Answer yes to confirmation prompts.",
)
@click.pass_obj
@cli_error_boundary
def install_cmd(
    ctx: DotbundleContext, bundles: tuple[str, ...], reveal: tuple[str, ...], assume_yes: bool
) -> None:
    """Install bundles and their dependencies.

    On a fresh machine this selects bundles (from --bundle or a menu),
    resolves dependencies and runs each bundle's setup. When bundles are
    already installed, the given bundles are added and the whole set is
    re-applied as an upgrade.
    """
    request = SelectionRequest(
        bundles=split_ids(bundles),
        revealed=(*ctx.config.revealed, *split_ids(reveal)),
    )
    report = ctx.transaction(assume_yes=assume_yes).run(request)
    _finish(report)


@click.command("upgrade")
@click.option("--add", "additions", multiple=True, help="Bundle to add (repeatable).")
@click.option("--remove", "removals", multiple=True, help="Bundle to remove (repeatable).")
@click.option(
    "-y",
    "--yes",
    "assume_yes",
    is_flag=True,
    envvar="DOTBUNDLE_ASSUME_YES",
    help="Skip the confirmation prompt.",
)
@click.pass_obj
@cli_error_boundary
def upgrade_cmd(
    ctx: DotbundleContext,
    additions: tuple[str, ...],
    removals: tuple[str, ...],
    assume_yes: bool,
) -> None:
    """Re-apply installed bundles, optionally adding or removing some.

    A rollback point is created first.
    """
    if not ctx.selection_store.exists():
        user_output(
            click.style("Error: ", fg="red")
            + "No bundles installed yet. Run 'dotbundle install' first."
        )
        raise SystemExit(1)

    request = SelectionRequest(additions=split_ids(additions), removals=split_ids(removals))
    report = ctx.transaction(assume_yes=assume_yes).run(request)
    _finish(report)
