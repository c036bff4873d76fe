"""Application context with dependency injection."""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotbundle.core.applier.abc import BundleApplier
from dotbundle.core.applier.real import RealBundleApplier
from dotbundle.core.config import DotbundleConfig, find_root, load_config
from dotbundle.core.git.abc import Git
from dotbundle.core.git.real import RealGit
from dotbundle.core.lock import BundleLock
from dotbundle.core.packages.abc import PackageManager
from dotbundle.core.packages.real import NoPackageManager, RealBrew
from dotbundle.core.prompt import Prompter, TerminalPrompter
from dotbundle.core.registry import BundleRegistry
from dotbundle.core.selection import FileSelectionStore, SelectionStore
from dotbundle.core.snapshots import SnapshotManager
from dotbundle.core.time.abc import Time
from dotbundle.core.time.real import RealTime
from dotbundle.core.transaction import TransactionRunner
from dotbundle.core.user_feedback import InteractiveFeedback, QuietFeedback, UserFeedback

ASSUME_YES_ENV_VAR = "DOTBUNDLE_ASSUME_YES"


@dataclass(frozen=True)
class DotbundleContext:
    """Immutable context holding all dependencies for dotbundle operations.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.

    The lock object is shared by every component built from the context so
    that nested critical sections (a restore taking its safety snapshot,
    a transaction snapshotting before apply) re-enter instead of deadlocking.
    """

    git: Git
    packages: PackageManager
    applier: BundleApplier
    time: Time
    prompter: Prompter
    feedback: UserFeedback
    config: DotbundleConfig
    selection_store: SelectionStore
    lock: BundleLock
    assume_yes: bool

    @property
    def root(self) -> Path:
        return self.config.root

    def registry(self) -> BundleRegistry:
        """Scan the bundle directory. Re-scans on every call."""
        return BundleRegistry.discover(self.config.bundles_dir)

    def snapshots(self) -> SnapshotManager:
        return SnapshotManager(
            root=self.config.root,
            snapshot_dir=self.config.snapshot_dir,
            git=self.git,
            packages=self.packages,
            selection_store=self.selection_store,
            time=self.time,
            feedback=self.feedback,
            prompter=self.prompter,
            lock=self.lock,
        )

    def transaction(self, *, assume_yes: bool = False) -> TransactionRunner:
        return TransactionRunner(
            registry=self.registry(),
            store=self.selection_store,
            snapshots=self.snapshots(),
            applier=self.applier,
            prompter=self.prompter,
            feedback=self.feedback,
            lock=self.lock,
            assume_yes=assume_yes or self.assume_yes,
        )

    @staticmethod
    def for_test(
        root: Path,
        git: Git | None = None,
        packages: PackageManager | None = None,
        applier: BundleApplier | None = None,
        time: Time | None = None,
        prompter: Prompter | None = None,
        feedback: UserFeedback | None = None,
        config: DotbundleConfig | None = None,
        selection_store: SelectionStore | None = None,
        assume_yes: bool = False,
    ) -> "DotbundleContext":
        """Create test context with fakes for every unspecified dependency.

        Args:
            root: Dotfiles root; config paths default to locations under it
            git: Optional Git implementation. If None, creates FakeGit with
                 root registered as a repository.
            packages: Optional PackageManager. If None, creates an
                      unavailable FakePackageManager.
            selection_store: Optional store. If None, an empty
                             InMemorySelectionStore (fresh install).

        Example:
            >>> git = FakeGit(repos={root})
            >>> ctx = DotbundleContext.for_test(root, git=git)
        """
        from tests.fakes.applier import FakeBundleApplier
        from tests.fakes.feedback import FakeUserFeedback
        from tests.fakes.git import FakeGit
        from tests.fakes.packages import FakePackageManager
        from tests.fakes.prompter import FakePrompter
        from tests.fakes.time import FakeTime

        from dotbundle.core.selection import InMemorySelectionStore

        if config is None:
            config = load_config(root)

        return DotbundleContext(
            git=git if git is not None else FakeGit(repos={root}),
            packages=packages if packages is not None else FakePackageManager(available=False),
            applier=applier if applier is not None else FakeBundleApplier(),
            time=time if time is not None else FakeTime(),
            prompter=prompter if prompter is not None else FakePrompter(),
            feedback=feedback if feedback is not None else FakeUserFeedback(),
            config=config,
            selection_store=(
                selection_store if selection_store is not None else InMemorySelectionStore()
            ),
            lock=BundleLock(config.lock_path),
            assume_yes=assume_yes,
        )


def _env_flag(environ: Mapping[str, str], name: str) -> bool:
    return environ.get(name, "").strip().lower() in ("1", "true", "yes")


def create_context(
    *, quiet: bool = False, cwd: Path | None = None, env: Mapping[str, str] | None = None
) -> DotbundleContext:
    """Create production context with real implementations.

    Called at CLI entry point to create the context for the entire
    command execution.

    Args:
        quiet: If True, suppress informational feedback
        cwd: Where to start looking for the dotfiles root (default: cwd)
        env: Environment mapping (default: os.environ)

    Raises:
        FileNotFoundError: If no dotfiles root can be located
        ValueError: If dotbundle.toml is malformed
    """
    environ = env if env is not None else os.environ

    # 1. Locate root and load config
    root = find_root(cwd if cwd is not None else Path.cwd(), environ)
    config = load_config(root)

    # 2. Package manager: brew if configured and installed
    packages: PackageManager
    if config.package_manager == "none":
        packages = NoPackageManager()
    else:
        packages = RealBrew()

    # 3. Feedback mode
    feedback: UserFeedback = QuietFeedback() if quiet else InteractiveFeedback()

    return DotbundleContext(
        git=RealGit(),
        packages=packages,
        applier=RealBundleApplier(config.root, config.state_dir),
        time=RealTime(),
        prompter=TerminalPrompter(),
        feedback=feedback,
        config=config,
        selection_store=FileSelectionStore(config.selection_file),
        lock=BundleLock(config.lock_path),
        assume_yes=_env_flag(environ, ASSUME_YES_ENV_VAR),
    )
