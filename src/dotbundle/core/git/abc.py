"""High-level git operations interface.

This module provides a clean abstraction over git subprocess calls, making the
snapshot and update code testable without a real repository.

Architecture:
- Git: Abstract base class defining the interface
- RealGit: Production implementation using subprocess
- FakeGit (tests/fakes/git.py): In-memory implementation for tests
"""

from abc import ABC, abstractmethod
from pathlib import Path

# ============================================================================
# Abstract Interface
# ============================================================================


class Git(ABC):
    """Abstract interface for git operations.

    All implementations (real and fake) must implement this interface.
    This interface contains ONLY runtime operations - no test setup methods.
    """

    @abstractmethod
    def is_repository(self, path: Path) -> bool:
        """Check whether path is the root of a git work tree."""
        ...

    @abstractmethod
    def has_uncommitted_changes(self, repo_root: Path) -> bool:
        """Check for staged or unstaged modifications to tracked files.

        Untracked files are not considered; they are never part of a snapshot.
        """
        ...

    @abstractmethod
    def commit_tracked(self, repo_root: Path, message: str) -> None:
        """Stage every modification to tracked files and commit it.

        Raises:
            RuntimeError: If staging or committing fails
        """
        ...

    @abstractmethod
    def create_tag(self, repo_root: Path, tag_name: str) -> None:
        """Create a lightweight, unsigned tag pointing at HEAD.

        Raises:
            RuntimeError: If the tag already exists or cannot be written
        """
        ...

    @abstractmethod
    def list_tags(self, repo_root: Path, pattern: str) -> list[str]:
        """List tag names matching a glob pattern (e.g. 'pre-update/*')."""
        ...

    @abstractmethod
    def resolve_ref(self, repo_root: Path, ref: str) -> str | None:
        """Resolve a ref to its full commit hash, or None if it does not exist."""
        ...

    @abstractmethod
    def short_hash(self, repo_root: Path, ref: str) -> str | None:
        """Resolve a ref to its abbreviated commit hash, or None if missing."""
        ...

    @abstractmethod
    def log_range(self, repo_root: Path, base: str, head: str) -> list[str]:
        """List commits reachable from head but not base, one-line format.

        Args:
            repo_root: Path to the repository root
            base: Excluded end of the range
            head: Included end of the range

        Returns:
            Lines of 'git log --oneline base..head', newest first
        """
        ...

    @abstractmethod
    def reset_hard(self, repo_root: Path, ref: str) -> None:
        """Reset HEAD, index and working tree to ref, discarding changes."""
        ...

    @abstractmethod
    def fetch(self, repo_root: Path) -> None:
        """Fetch from the default remote."""
        ...

    @abstractmethod
    def get_upstream_hash(self, repo_root: Path) -> str | None:
        """Commit hash of the current branch's upstream, or None if unset."""
        ...

    @abstractmethod
    def pull_rebase(self, repo_root: Path) -> None:
        """Pull the upstream with --rebase --autostash."""
        ...
