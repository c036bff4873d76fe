"""Bundle transaction: select, resolve, snapshot, apply, persist.

The runner is a small state machine:

    IDLE -> RESOLVING -> AWAITING_CONFIRMATION -> SNAPSHOTTING -> APPLYING
         -> PERSISTED -> DONE

ERROR is reachable from every working state and ABORTED only from
AWAITING_CONFIRMATION. First installs skip SNAPSHOTTING. Saving the
selection is the commit point: until then a re-run starts from the
previously saved selection.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from dotbundle.core.applier.abc import ApplyMode, BundleApplier
from dotbundle.core.lock import BundleLock
from dotbundle.core.prompt import Prompter
from dotbundle.core.registry import BundleDescriptor, BundleRegistry
from dotbundle.core.resolver import DependencyResolver
from dotbundle.core.selection import SelectionSet, SelectionStore, apply_edits, check_removals
from dotbundle.core.snapshots import SnapshotKind, SnapshotManager, SnapshotResult
from dotbundle.core.user_feedback import UserFeedback
from dotbundle.errors import (
    DotbundleError,
    DotbundleWarning,
    PartialApplyWarning,
    TransactionError,
)

logger = logging.getLogger(__name__)


class TransactionState(Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    AWAITING_CONFIRMATION = "awaiting-confirmation"
    SNAPSHOTTING = "snapshotting"
    APPLYING = "applying"
    PERSISTED = "persisted"
    DONE = "done"
    ERROR = "error"
    ABORTED = "aborted"


class TransactionMode(Enum):
    INSTALL = "install"
    UPGRADE = "upgrade"


_TRANSITIONS: dict[TransactionState, frozenset[TransactionState]] = {
    TransactionState.IDLE: frozenset({TransactionState.RESOLVING}),
    TransactionState.RESOLVING: frozenset(
        {TransactionState.AWAITING_CONFIRMATION, TransactionState.ERROR}
    ),
    TransactionState.AWAITING_CONFIRMATION: frozenset(
        {
            TransactionState.SNAPSHOTTING,
            TransactionState.APPLYING,
            TransactionState.ABORTED,
            TransactionState.ERROR,
        }
    ),
    TransactionState.SNAPSHOTTING: frozenset({TransactionState.APPLYING, TransactionState.ERROR}),
    TransactionState.APPLYING: frozenset({TransactionState.PERSISTED, TransactionState.ERROR}),
    TransactionState.PERSISTED: frozenset({TransactionState.DONE, TransactionState.ERROR}),
    TransactionState.DONE: frozenset(),
    TransactionState.ERROR: frozenset(),
    TransactionState.ABORTED: frozenset(),
}


@dataclass(frozen=True)
class SelectionRequest:
    """What the operator asked for.

    Fresh installs use ``bundles`` (falling back to a menu when empty).
    Upgrades edit the saved selection with ``additions`` and ``removals``;
    ``bundles`` given on an upgrade are treated as additions.
    """

    bundles: tuple[str, ...] = ()
    additions: tuple[str, ...] = ()
    removals: tuple[str, ...] = ()
    revealed: tuple[str, ...] = ()


@dataclass(frozen=True)
class TransactionReport:
    """Final summary of a transaction."""

    state: TransactionState
    mode: TransactionMode
    bundles: tuple[str, ...]
    previous: tuple[str, ...]
    snapshot: SnapshotResult | None
    applied: tuple[str, ...]
    skipped: tuple[str, ...]
    warnings: tuple[DotbundleWarning, ...]
    history: tuple[TransactionState, ...]

    @property
    def added(self) -> list[str]:
        return [b for b in self.bundles if b not in self.previous]

    @property
    def removed(self) -> list[str]:
        return [b for b in self.previous if b not in self.bundles]


class TransactionRunner:
    """Drives one install or upgrade from request to persisted selection.

    A runner instance is single-use; create a new one per transaction.
    """

    def __init__(
        self,
        *,
        registry: BundleRegistry,
        store: SelectionStore,
        snapshots: SnapshotManager,
        applier: BundleApplier,
        prompter: Prompter,
        feedback: UserFeedback,
        lock: BundleLock,
        assume_yes: bool = False,
    ) -> None:
        self._registry = registry
        self._resolver = DependencyResolver(registry)
        self._store = store
        self._snapshots = snapshots
        self._applier = applier
        self._prompter = prompter
        self._feedback = feedback
        self._lock = lock
        self._assume_yes = assume_yes

        self._state = TransactionState.IDLE
        self._history: list[TransactionState] = [TransactionState.IDLE]
        self._snapshot: SnapshotResult | None = None

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def history(self) -> list[TransactionState]:
        return list(self._history)

    def _transition(self, target: TransactionState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise RuntimeError(f"Illegal transaction transition {self._state} -> {target}")
        logger.debug("Transaction %s -> %s", self._state.value, target.value)
        self._state = target
        self._history.append(target)

    def _fail(self, stage: str, cause: Exception) -> TransactionError:
        self._transition(TransactionState.ERROR)
        snapshot = self._snapshot.tag_name if self._snapshot is not None else None
        logger.debug("Transaction failed at %s: %s", stage, cause)
        return TransactionError(stage, cause, snapshot)

    def run(self, request: SelectionRequest) -> TransactionReport:
        """Execute the transaction.

        Returns:
            Report with state DONE, or ABORTED if the operator declined

        Raises:
            TransactionError: On any structural failure, naming the stage
        """
        self._transition(TransactionState.RESOLVING)
        try:
            mode = TransactionMode.UPGRADE if self._store.exists() else TransactionMode.INSTALL
            current = self._store.load()
        except (OSError, ValueError) as e:
            raise self._fail("Loading selection", e) from e
        try:
            target = self._resolve(mode, current, request)
        except DotbundleError as e:
            raise self._fail("Resolving bundles", e) from e

        self._transition(TransactionState.AWAITING_CONFIRMATION)
        changed = set(target) != set(current)
        try:
            confirmed = self._confirm(mode, current, target, changed)
        except DotbundleError as e:
            raise self._fail("Confirmation", e) from e
        if not confirmed:
            self._transition(TransactionState.ABORTED)
            self._feedback.info("Aborted; nothing was changed.")
            return self._report(mode, target, current, (), (), ())

        try:
            self._lock.acquire()
        except DotbundleError as e:
            raise self._fail("Locking state", e) from e
        try:
            return self._execute(mode, current, target, changed)
        finally:
            self._lock.release()

    def _resolve(
        self, mode: TransactionMode, current: SelectionSet, request: SelectionRequest
    ) -> SelectionSet:
        edited = apply_edits(current, [*request.bundles, *request.additions], request.removals)
        if mode is TransactionMode.INSTALL and edited.is_empty():
            edited = SelectionSet.of(
                self._prompter.select_bundles(self._registry.visible(request.revealed))
            )
        check_removals(self._resolver, edited, request.removals)
        resolved = SelectionSet.of(self._resolver.resolve(list(edited)))
        self._feedback.info(f"Bundle order: {' '.join(resolved)}")
        return resolved

    def _confirm(
        self,
        mode: TransactionMode,
        current: SelectionSet,
        target: SelectionSet,
        changed: bool,
    ) -> bool:
        if mode is TransactionMode.INSTALL or self._assume_yes:
            return True

        lines = [f"Re-apply {len(target)} bundle(s): {', '.join(target)}"]
        if changed:
            added = [b for b in target if b not in current]
            removed = [b for b in current if b not in target]
            if added:
                lines.append(f"  adding: {', '.join(added)}")
            if removed:
                lines.append(f"  removing: {', '.join(removed)}")
        lines.append("Setup steps re-run and may overwrite local changes. Continue?")
        return self._prompter.confirm(
            "\n".join(lines), hint="Pass --yes or set DOTBUNDLE_ASSUME_YES=1."
        )

    def _execute(
        self,
        mode: TransactionMode,
        current: SelectionSet,
        target: SelectionSet,
        changed: bool,
    ) -> TransactionReport:
        warnings: list[DotbundleWarning] = []

        if mode is TransactionMode.UPGRADE:
            self._transition(TransactionState.SNAPSHOTTING)
            kind = SnapshotKind.PRE_BUNDLE_CHANGE if changed else SnapshotKind.PRE_UPGRADE
            try:
                self._snapshot = self._snapshots.create(kind)
            except DotbundleError as e:
                raise self._fail("Snapshotting", e) from e
            warnings.extend(self._snapshot.warnings)

        self._transition(TransactionState.APPLYING)
        try:
            descriptors = [self._registry.get(bundle_id) for bundle_id in target]
        except DotbundleError as e:
            raise self._fail("Applying bundles", e) from e
        applied, skipped = self._apply_all(descriptors, ApplyMode(mode.value), warnings)

        try:
            self._store.save(target)
        except OSError as e:
            raise self._fail(f"Saving selection to {self._store.path()}", e) from e
        self._transition(TransactionState.PERSISTED)

        try:
            self._applier.finalize(descriptors)
        except (OSError, RuntimeError) as e:
            warning = DotbundleWarning(f"Post-apply step failed: {e}")
            logger.warning("%s", warning)
            self._feedback.warning(str(warning))
            warnings.append(warning)
        self._transition(TransactionState.DONE)

        return self._report(mode, target, current, applied, skipped, warnings)

    def _apply_all(
        self,
        descriptors: list[BundleDescriptor],
        mode: ApplyMode,
        warnings: list[DotbundleWarning],
    ) -> tuple[list[str], list[str]]:
        applied: list[str] = []
        skipped: list[str] = []
        for descriptor in descriptors:
            self._feedback.info(f"── Bundle: {descriptor.display_name} ({mode.value})")
            try:
                ran = self._applier.apply(descriptor, mode)
            except (OSError, RuntimeError) as e:
                warning = PartialApplyWarning(descriptor.id, str(e))
                logger.warning("%s", warning)
                self._feedback.warning(str(warning))
                warnings.append(warning)
                continue
            if ran:
                applied.append(descriptor.id)
            else:
                skipped.append(descriptor.id)
                self._feedback.warning(f"No setup step found for bundle '{descriptor.id}'")
        return applied, skipped

    def _report(
        self,
        mode: TransactionMode,
        target: SelectionSet,
        current: SelectionSet,
        applied: Iterable[str],
        skipped: Iterable[str],
        warnings: Iterable[DotbundleWarning],
    ) -> TransactionReport:
        return TransactionReport(
            state=self._state,
            mode=mode,
            bundles=target.ids,
            previous=current.ids,
            snapshot=self._snapshot,
            applied=tuple(applied),
            skipped=tuple(skipped),
            warnings=tuple(warnings),
            history=tuple(self._history),
        )
