"""Programmatic entry points.

Thin functions over a DotbundleContext for callers that do not go through
the CLI. Each raises the same DotbundleError subclasses as the commands.
"""

from collections.abc import Sequence

from dotbundle.core.context import DotbundleContext
from dotbundle.core.resolver import DependencyResolver
from dotbundle.core.snapshots import RestoreReport, SnapshotInfo, SnapshotKind, SnapshotResult


def resolve(ctx: DotbundleContext, ids: Sequence[str]) -> list[str]:
    """Expand ids to their transitive closure in execution order.

    Raises:
        NotFoundError: If an id (or a dependency) is unknown or disabled
        CycleError: If the reachable graph contains a cycle
    """
    return DependencyResolver(ctx.registry()).resolve(ids)


def snapshot(ctx: DotbundleContext, kind: SnapshotKind | str) -> SnapshotResult:
    """Create a snapshot of the dotfiles repository.

    Raises:
        SnapshotCreationError: If the tag cannot be created
        ValueError: If kind is not a known snapshot kind
    """
    return ctx.snapshots().create(SnapshotKind(kind))


def list_snapshots(ctx: DotbundleContext) -> list[SnapshotInfo]:
    """All snapshots, newest first."""
    return ctx.snapshots().list_snapshots()


def restore(
    ctx: DotbundleContext,
    identifier: str,
    with_packages: bool = False,
    dry_run: bool = False,
) -> RestoreReport:
    """Roll back to a snapshot.

    Raises:
        RestoreTargetNotFoundError: If identifier matches no snapshot
    """
    return ctx.snapshots().restore(
        identifier,
        with_packages=with_packages,
        dry_run=dry_run,
        assume_yes=ctx.assume_yes,
    )
