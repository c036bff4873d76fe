"""Pull upstream dotfiles changes behind a pre-update rollback point."""

import logging
from dataclasses import dataclass
from pathlib import Path

from dotbundle.core.git.abc import Git
from dotbundle.core.lock import BundleLock
from dotbundle.core.snapshots import SnapshotKind, SnapshotManager, SnapshotResult
from dotbundle.core.user_feedback import UserFeedback
from dotbundle.errors import TransactionError, UpdateError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpdateResult:
    up_to_date: bool
    previous_hash: str | None
    new_hash: str | None
    incoming: tuple[str, ...] = ()
    snapshot: SnapshotResult | None = None


def pull_updates(
    *,
    root: Path,
    git: Git,
    snapshots: SnapshotManager,
    feedback: UserFeedback,
    lock: BundleLock,
) -> UpdateResult:
    """Fetch, and if upstream moved, snapshot then rebase onto it.

    Raises:
        UpdateError: If root is not a repository, fetch fails or no
            upstream is configured
        TransactionError: If the pull fails after the snapshot was taken
    """
    if not git.is_repository(root):
        raise UpdateError(
            f"{root} is not a git repository; re-run the bootstrap installer to update."
        )

    try:
        git.fetch(root)
    except RuntimeError as e:
        raise UpdateError(f"Fetch failed: {e}") from e

    upstream = git.get_upstream_hash(root)
    if upstream is None:
        raise UpdateError("The current branch has no upstream branch configured.")

    head = git.resolve_ref(root, "HEAD")
    incoming = tuple(git.log_range(root, "HEAD", "@{u}"))
    if head == upstream or not incoming:
        logger.debug("HEAD %s, upstream %s: nothing to pull", head, upstream)
        return UpdateResult(up_to_date=True, previous_hash=head, new_hash=head)

    with lock:
        snapshot = snapshots.create(SnapshotKind.PRE_UPDATE)
        feedback.info("Incoming changes:")
        for line in incoming:
            feedback.info(f"  {line}")
        feedback.info("Pulling latest changes...")
        try:
            git.pull_rebase(root)
        except RuntimeError as e:
            raise TransactionError("Pulling updates", e, snapshot.tag_name) from e

    new_hash = git.resolve_ref(root, "HEAD")
    return UpdateResult(
        up_to_date=False,
        previous_hash=snapshot.git_hash,
        new_hash=new_hash,
        incoming=incoming,
        snapshot=snapshot,
    )
