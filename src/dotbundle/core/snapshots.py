"""Snapshots: git tag checkpoints plus captured package and selection state.

A snapshot is a lightweight tag ``<kind>/<timestamp>`` on the dotfiles
repository, with an optional directory ``<snapshot-root>/<timestamp>/``
holding:

- ``Brewfile``: the package manifest at snapshot time
- ``bundles``: a copy of the selection file
- ``metadata.json``: timestamp, commit, tag, kind and creation time

Tags are write-once. Capture is best-effort: a missing Brewfile never
invalidates a snapshot, but a missing tag means there is no snapshot.
"""

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from pathlib import Path

from dotbundle.core.git.abc import Git
from dotbundle.core.lock import BundleLock
from dotbundle.core.packages.abc import PackageManager
from dotbundle.core.packages.manifest import PackageEntry, PackageManifest
from dotbundle.core.prompt import Prompter
from dotbundle.core.selection import SelectionStore
from dotbundle.core.time.abc import Time
from dotbundle.core.user_feedback import UserFeedback
from dotbundle.errors import (
    ManifestCaptureWarning,
    NonInteractiveError,
    RestoreTargetNotFoundError,
    SnapshotCreationError,
    TransactionError,
)

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"
DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"
MANIFEST_FILENAME = "Brewfile"
SELECTION_FILENAME = "bundles"
METADATA_FILENAME = "metadata.json"


class SnapshotKind(Enum):
    """Why a snapshot was taken; also the tag prefix."""

    PRE_UPDATE = "pre-update"
    PRE_UPGRADE = "pre-upgrade"
    PRE_BUNDLE_CHANGE = "pre-bundle-change"
    PRE_ROLLBACK = "pre-rollback"
    PRE_BOOTSTRAP = "pre-bootstrap"
    PRE_CONVERSION = "pre-conversion"
    PRE_CHANGE = "pre-change"


@dataclass(frozen=True)
class SnapshotResult:
    """Outcome of SnapshotManager.create()."""

    timestamp: str
    tag_name: str
    kind: SnapshotKind
    git_hash: str | None
    preserved_commit: bool
    warnings: tuple[ManifestCaptureWarning, ...] = ()


@dataclass(frozen=True)
class SnapshotInfo:
    """One entry of the snapshot history."""

    timestamp: str
    tag_name: str
    kind: SnapshotKind
    short_hash: str
    display_date: str
    has_manifest: bool
    has_selection: bool


class PackageOutcome(Enum):
    """What happened to packages during a restore."""

    NOT_REQUESTED = "not requested"
    NO_MANIFEST = "no manifest captured"
    UNAVAILABLE = "package manager unavailable"
    PREVIEWED = "previewed"
    DECLINED = "skipped by user"
    RESTORED = "restored"
    FAILED = "failed"


@dataclass(frozen=True)
class RestoreReport:
    """Outcome of SnapshotManager.restore()."""

    target_tag: str
    target_hash: str
    previous_hash: str | None
    discarded_commits: tuple[str, ...]
    dry_run: bool
    package_outcome: PackageOutcome
    extra_packages: tuple[PackageEntry, ...] = ()
    safety_snapshot: SnapshotResult | None = None
    warnings: tuple[str, ...] = ()


def parse_timestamp(value: str) -> datetime | None:
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError:
        return None


class SnapshotManager:
    """Creates, lists and restores snapshots of a dotfiles repository."""

    def __init__(
        self,
        *,
        root: Path,
        snapshot_dir: Path,
        git: Git,
        packages: PackageManager,
        selection_store: SelectionStore,
        time: Time,
        feedback: UserFeedback,
        prompter: Prompter,
        lock: BundleLock,
    ) -> None:
        self._root = root
        self._snapshot_dir = snapshot_dir
        self._git = git
        self._packages = packages
        self._selection_store = selection_store
        self._time = time
        self._feedback = feedback
        self._prompter = prompter
        self._lock = lock

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------

    def create(self, kind: SnapshotKind) -> SnapshotResult:
        """Checkpoint the current state.

        Dirty tracked files are committed first so the tag covers them.

        Raises:
            SnapshotCreationError: If the preservation commit or tag fails
        """
        with self._lock:
            return self._create(kind)

    def _create(self, kind: SnapshotKind) -> SnapshotResult:
        if not self._git.is_repository(self._root):
            raise SnapshotCreationError(f"{self._root} is not a git repository")

        preserved = False
        try:
            if self._git.has_uncommitted_changes(self._root):
                message = f"dotbundle: preserve state before {kind.value}"
                self._git.commit_tracked(self._root, message)
                preserved = True
                self._feedback.info(f"Committed uncommitted changes: {message}")
        except RuntimeError as e:
            raise SnapshotCreationError(f"Could not preserve uncommitted changes: {e}") from e

        timestamp = self._unique_timestamp()
        tag_name = f"{kind.value}/{timestamp}"
        self._feedback.info(f"Creating rollback point: {tag_name}")
        try:
            self._git.create_tag(self._root, tag_name)
        except RuntimeError as e:
            raise SnapshotCreationError(f"Could not create tag '{tag_name}': {e}") from e

        git_hash = self._git.resolve_ref(self._root, tag_name)
        warnings = self._capture(timestamp, tag_name, kind, git_hash)
        for warning in warnings:
            logger.warning("%s", warning)
            self._feedback.warning(str(warning))

        logger.debug("Snapshot %s created at %s", tag_name, git_hash)
        return SnapshotResult(
            timestamp=timestamp,
            tag_name=tag_name,
            kind=kind,
            git_hash=git_hash,
            preserved_commit=preserved,
            warnings=tuple(warnings),
        )

    def _unique_timestamp(self) -> str:
        moment = self._time.now()
        while True:
            timestamp = moment.strftime(TIMESTAMP_FORMAT)
            taken = (self._snapshot_dir / timestamp).exists() or self._git.list_tags(
                self._root, f"*/{timestamp}"
            )
            if not taken:
                return timestamp
            moment += timedelta(seconds=1)

    def _capture(
        self, timestamp: str, tag_name: str, kind: SnapshotKind, git_hash: str | None
    ) -> list[ManifestCaptureWarning]:
        warnings: list[ManifestCaptureWarning] = []
        target = self._snapshot_dir / timestamp
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return [ManifestCaptureWarning(f"Could not create snapshot directory {target}: {e}")]

        if self._packages.is_available():
            self._feedback.info("Saving package snapshot...")
            try:
                self._packages.dump_manifest(target / MANIFEST_FILENAME)
            except RuntimeError as e:
                warnings.append(ManifestCaptureWarning(f"Package manifest not captured: {e}"))
        else:
            logger.debug("Package manager unavailable; skipping manifest capture")

        try:
            if self._selection_store.exists():
                selection = self._selection_store.load()
                (target / SELECTION_FILENAME).write_text(
                    "".join(f"{bundle_id}\n" for bundle_id in selection), encoding="utf-8"
                )
        except (OSError, ValueError) as e:
            warnings.append(ManifestCaptureWarning(f"Bundle selection not captured: {e}"))

        metadata = {
            "timestamp": timestamp,
            "git_hash": git_hash,
            "git_tag": tag_name,
            "kind": kind.value,
            "created": self._time.now().astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
        }
        try:
            (target / METADATA_FILENAME).write_text(
                json.dumps(metadata, indent=2) + "\n", encoding="utf-8"
            )
        except OSError as e:
            warnings.append(ManifestCaptureWarning(f"Snapshot metadata not written: {e}"))

        return warnings

    # ------------------------------------------------------------------
    # list_snapshots
    # ------------------------------------------------------------------

    def list_snapshots(self) -> list[SnapshotInfo]:
        """All snapshots across every kind, newest first."""
        infos: list[SnapshotInfo] = []
        for kind in SnapshotKind:
            for tag_name in self._git.list_tags(self._root, f"{kind.value}/*"):
                timestamp = tag_name[len(kind.value) + 1 :]
                moment = parse_timestamp(timestamp)
                if moment is None:
                    logger.debug("Ignoring tag %s: suffix is not a timestamp", tag_name)
                    continue
                snapshot_path = self._snapshot_dir / timestamp
                infos.append(
                    SnapshotInfo(
                        timestamp=timestamp,
                        tag_name=tag_name,
                        kind=kind,
                        short_hash=self._git.short_hash(self._root, tag_name) or "?",
                        display_date=moment.strftime(DISPLAY_FORMAT),
                        has_manifest=(snapshot_path / MANIFEST_FILENAME).is_file(),
                        has_selection=(snapshot_path / SELECTION_FILENAME).is_file(),
                    )
                )
        infos.sort(key=lambda info: info.timestamp, reverse=True)
        return infos

    # ------------------------------------------------------------------
    # restore
    # ------------------------------------------------------------------

    def resolve_target(self, identifier: str) -> tuple[SnapshotKind, str, str, str]:
        """Find the snapshot an identifier refers to.

        Args:
            identifier: A bare timestamp or a full ``<kind>/<timestamp>`` tag

        Returns:
            (kind, timestamp, tag name, commit hash). A bare timestamp shared
            by several kinds resolves to the first kind in declaration order.

        Raises:
            RestoreTargetNotFoundError: If no known tag matches
        """
        if "/" in identifier:
            prefix, timestamp = identifier.split("/", 1)
            candidates = [kind for kind in SnapshotKind if kind.value == prefix]
        else:
            timestamp = identifier
            candidates = list(SnapshotKind)

        for kind in candidates:
            tag_name = f"{kind.value}/{timestamp}"
            commit = self._git.resolve_ref(self._root, tag_name)
            if commit is not None:
                return kind, timestamp, tag_name, commit

        raise RestoreTargetNotFoundError(identifier)

    def restore(
        self,
        identifier: str,
        *,
        with_packages: bool = False,
        dry_run: bool = False,
        assume_yes: bool = False,
    ) -> RestoreReport:
        """Return the repository (and optionally packages) to a snapshot.

        Args:
            identifier: Timestamp or tag of the target snapshot
            with_packages: Also restore the captured package manifest
            dry_run: Report what would change without changing anything
            assume_yes: Skip the package confirmation prompt

        Raises:
            RestoreTargetNotFoundError: If identifier matches no snapshot
            SnapshotCreationError: If the safety snapshot cannot be taken
            TransactionError: If the hard reset fails
        """
        _, timestamp, tag_name, target_hash = self.resolve_target(identifier)
        manifest_path = self._snapshot_dir / timestamp / MANIFEST_FILENAME

        if dry_run:
            return self._preview(tag_name, target_hash, manifest_path, with_packages)

        with self._lock:
            safety = self._create(SnapshotKind.PRE_ROLLBACK)
            discarded = tuple(self._git.log_range(self._root, tag_name, "HEAD"))

            self._feedback.info(f"Rolling back: {safety.git_hash} -> {target_hash}")
            try:
                self._git.reset_hard(self._root, tag_name)
            except RuntimeError as e:
                raise TransactionError(f"Reset to {tag_name}", e, safety.tag_name) from e
            self._feedback.success("Git reset complete.")

            warnings: list[str] = []
            extras: tuple[PackageEntry, ...] = ()
            outcome = PackageOutcome.NOT_REQUESTED
            if with_packages:
                outcome, extras = self._restore_packages(
                    timestamp, manifest_path, assume_yes, warnings
                )

        return RestoreReport(
            target_tag=tag_name,
            target_hash=target_hash,
            previous_hash=safety.git_hash,
            discarded_commits=discarded,
            dry_run=False,
            package_outcome=outcome,
            extra_packages=extras,
            safety_snapshot=safety,
            warnings=tuple(warnings),
        )

    def _preview(
        self, tag_name: str, target_hash: str, manifest_path: Path, with_packages: bool
    ) -> RestoreReport:
        previous_hash = self._git.resolve_ref(self._root, "HEAD")
        discarded = tuple(self._git.log_range(self._root, tag_name, "HEAD"))

        warnings: list[str] = []
        extras: tuple[PackageEntry, ...] = ()
        outcome = PackageOutcome.NOT_REQUESTED
        if with_packages:
            if not manifest_path.is_file():
                outcome = PackageOutcome.NO_MANIFEST
                warnings.append(f"No package snapshot found for {tag_name}")
            elif not self._packages.is_available():
                outcome = PackageOutcome.UNAVAILABLE
                warnings.append("Package manager unavailable; cannot compute package diff")
            else:
                try:
                    captured = PackageManifest.load(manifest_path)
                    extras = tuple(self._packages.installed().extras_over(captured))
                    outcome = PackageOutcome.PREVIEWED
                except (RuntimeError, OSError) as e:
                    outcome = PackageOutcome.FAILED
                    warnings.append(f"Unable to determine package changes: {e}")

        return RestoreReport(
            target_tag=tag_name,
            target_hash=target_hash,
            previous_hash=previous_hash,
            discarded_commits=discarded,
            dry_run=True,
            package_outcome=outcome,
            extra_packages=extras,
            warnings=tuple(warnings),
        )

    def _restore_packages(
        self, timestamp: str, manifest_path: Path, assume_yes: bool, warnings: list[str]
    ) -> tuple[PackageOutcome, tuple[PackageEntry, ...]]:
        def warn(message: str) -> None:
            logger.warning("%s", message)
            self._feedback.warning(message)
            warnings.append(message)

        if not manifest_path.is_file():
            warn(f"No package snapshot found for {timestamp}; skipping package rollback.")
            return PackageOutcome.NO_MANIFEST, ()
        if not self._packages.is_available():
            warn("Package manager unavailable; skipping package rollback.")
            return PackageOutcome.UNAVAILABLE, ()

        try:
            captured = PackageManifest.load(manifest_path)
            extras = tuple(self._packages.installed().extras_over(captured))
        except (RuntimeError, OSError) as e:
            warn(f"Unable to determine package changes: {e}")
            return PackageOutcome.FAILED, ()

        if extras:
            self._feedback.info("Packages to be removed (not in snapshot):")
            for entry in extras:
                self._feedback.info(f"  {entry}")
        else:
            self._feedback.info("No packages to remove; snapshot packages will be reinstalled.")

        if not assume_yes:
            try:
                confirmed = self._prompter.confirm(
                    "Proceed with package cleanup and reinstall?",
                    hint="Pass --yes to confirm package rollback.",
                )
            except NonInteractiveError as e:
                warn(f"Package rollback skipped: {e}")
                return PackageOutcome.DECLINED, extras
            if not confirmed:
                self._feedback.info("Package rollback skipped by user.")
                return PackageOutcome.DECLINED, extras

        try:
            if extras:
                self._packages.cleanup(manifest_path)
            self._packages.install(manifest_path)
        except RuntimeError as e:
            warn(f"Package rollback incomplete: {e}")
            return PackageOutcome.FAILED, extras

        self._feedback.success("Package rollback complete.")
        return PackageOutcome.RESTORED, extras
