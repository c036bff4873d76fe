"""Persisted record of the installed bundle set.

The selection file holds one bundle id per line in execution order. Its
existence alone decides whether a run is a first install or an upgrade.
"""

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from dotbundle.core.resolver import DependencyResolver
from dotbundle.errors import BundleInUseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionSet:
    """Ordered, duplicate-free sequence of bundle ids."""

    ids: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if len(set(self.ids)) != len(self.ids):
            raise ValueError(f"Duplicate bundle ids in selection: {list(self.ids)}")

    @staticmethod
    def of(ids: Iterable[str]) -> "SelectionSet":
        return SelectionSet(ids=tuple(ids))

    def __iter__(self) -> Iterator[str]:
        return iter(self.ids)

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, bundle_id: object) -> bool:
        return bundle_id in self.ids

    def is_empty(self) -> bool:
        return not self.ids


def apply_edits(
    current: SelectionSet, additions: Iterable[str], removals: Iterable[str]
) -> SelectionSet:
    """Compute (current ∪ additions) minus removals.

    Untouched members keep their relative order and new additions are
    appended in the order given. The result is not resolved; callers
    re-resolve it before applying.
    """
    removed = set(removals)
    result = [bundle_id for bundle_id in current if bundle_id not in removed]
    for bundle_id in additions:
        if bundle_id not in removed and bundle_id not in result:
            result.append(bundle_id)
    return SelectionSet.of(result)


def check_removals(
    resolver: DependencyResolver, remaining: SelectionSet, removals: Iterable[str]
) -> None:
    """Reject removing a bundle that a remaining bundle still requires.

    Raises:
        BundleInUseError: Naming the first such bundle and all its dependents
        NotFoundError: If a remaining bundle is no longer available
    """
    removed = [bundle_id for bundle_id in removals if bundle_id not in remaining]
    if not removed:
        return

    closures = {bundle_id: resolver.closure(bundle_id) for bundle_id in remaining}
    for bundle_id in removed:
        dependents = [member for member in remaining if bundle_id in closures[member]]
        if dependents:
            raise BundleInUseError(bundle_id, dependents)


class SelectionStore(ABC):
    """Abstract persistence for the installed SelectionSet."""

    @abstractmethod
    def exists(self) -> bool:
        """True once a selection has been saved (upgrade mode)."""
        ...

    @abstractmethod
    def load(self) -> SelectionSet:
        """Load the saved selection, or an empty one if nothing is saved."""
        ...

    @abstractmethod
    def save(self, selection: SelectionSet) -> None:
        """Replace the saved selection."""
        ...

    @abstractmethod
    def path(self) -> Path:
        """Location of the selection file (for messages and snapshot capture)."""
        ...


class FileSelectionStore(SelectionStore):
    """Production implementation backed by a plain-text file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> SelectionSet:
        if not self._path.is_file():
            return SelectionSet()
        ids: list[str] = []
        for line in self._path.read_text(encoding="utf-8").splitlines():
            bundle_id = line.strip()
            if bundle_id and bundle_id not in ids:
                ids.append(bundle_id)
        return SelectionSet.of(ids)

    def save(self, selection: SelectionSet) -> None:
        """Write the selection atomically.

        The new content goes to a temporary file in the same directory which
        then replaces the old file, so readers never see a partial write.
        """
        parent = self._path.parent
        parent.mkdir(parents=True, exist_ok=True)
        content = "".join(f"{bundle_id}\n" for bundle_id in selection)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", dir=parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Saved selection %s to %s", list(selection), self._path)

    def path(self) -> Path:
        return self._path


class InMemorySelectionStore(SelectionStore):
    """Test implementation that keeps the selection in memory."""

    def __init__(self, selection: SelectionSet | None = None) -> None:
        """Initialize in-memory store.

        Args:
            selection: Initial saved selection (None = fresh install)
        """
        self._selection = selection
        self._save_count = 0

    @property
    def save_count(self) -> int:
        """Number of save() calls, for test assertions."""
        return self._save_count

    def exists(self) -> bool:
        return self._selection is not None

    def load(self) -> SelectionSet:
        return self._selection if self._selection is not None else SelectionSet()

    def save(self, selection: SelectionSet) -> None:
        self._selection = selection
        self._save_count += 1

    def path(self) -> Path:
        return Path("/fake/dotbundle/.bundles")
