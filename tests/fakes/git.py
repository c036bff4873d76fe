"""Fake git operations for testing.

FakeGit is an in-memory repository model: a parent map of commits, a HEAD
pointer, a tag table and an optional upstream branch. Construct instances
directly with keyword arguments.
"""

import fnmatch
from pathlib import Path

from dotbundle.core.git.abc import Git


def _make_hash(n: int) -> str:
    return f"{n:07x}".ljust(40, "0")


class FakeGit(Git):
    """In-memory fake implementation of git operations.

    This class has NO public setup methods. All state is provided via constructor
    using keyword arguments with sensible defaults.
    """

    def __init__(
        self,
        *,
        repos: set[Path] | None = None,
        commits: list[str] | None = None,
        dirty: bool = False,
        tags: dict[str, str] | None = None,
        upstream_commits: list[str] | None = None,
        failing: set[str] | None = None,
    ) -> None:
        """Create FakeGit with pre-configured state.

        Args:
            repos: Paths recognised as repository roots
            commits: Messages of the initial linear history, oldest first
                     (defaults to a single "initial" commit)
            dirty: Whether tracked files start out modified
            tags: Extra tag name -> commit hash entries
            upstream_commits: Messages of commits the upstream has beyond the
                              initial HEAD. None means no upstream configured.
            failing: Names of methods that raise RuntimeError when called
        """
        self._repos = {path.resolve() for path in repos or set()}
        self._parents: dict[str, str | None] = {}
        self._messages: dict[str, str] = {}
        self._counter = 0
        self._head: str | None = None
        for message in commits if commits is not None else ["initial"]:
            self._head = self._new_commit(self._head, message)

        self._dirty = dirty
        self._tags: dict[str, str] = dict(tags or {})
        self._failing = failing or set()

        self._upstream: str | None = None
        if upstream_commits is not None:
            tip = self._head
            for message in upstream_commits:
                tip = self._new_commit(tip, message)
            self._upstream = tip

        self._commit_messages: list[str] = []
        self._created_tags: list[str] = []
        self._resets: list[str] = []
        self._fetch_count = 0
        self._pull_count = 0

    def _new_commit(self, parent: str | None, message: str) -> str:
        self._counter += 1
        commit = _make_hash(self._counter)
        self._parents[commit] = parent
        self._messages[commit] = message
        return commit

    def _check(self, operation: str, repo_root: Path) -> None:
        if operation in self._failing:
            raise RuntimeError(f"Failed to {operation}: simulated failure")
        if repo_root.resolve() not in self._repos:
            raise RuntimeError(f"Failed to {operation}: not a git repository: {repo_root}")

    # Read-only tracking for test assertions

    @property
    def head(self) -> str | None:
        return self._head

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def tags(self) -> dict[str, str]:
        """Current tag table (tag name -> commit hash)."""
        return dict(self._tags)

    @property
    def commit_messages(self) -> list[str]:
        """Messages of commits created through commit_tracked()."""
        return self._commit_messages

    @property
    def created_tags(self) -> list[str]:
        return self._created_tags

    @property
    def resets(self) -> list[str]:
        """Refs passed to reset_hard(), in call order."""
        return self._resets

    @property
    def fetch_count(self) -> int:
        return self._fetch_count

    @property
    def pull_count(self) -> int:
        return self._pull_count

    @property
    def mutation_count(self) -> int:
        """Total number of state-changing calls made so far."""
        return (
            len(self._commit_messages)
            + len(self._created_tags)
            + len(self._resets)
            + self._pull_count
        )

    # Git interface

    def is_repository(self, path: Path) -> bool:
        return path.resolve() in self._repos

    def has_uncommitted_changes(self, repo_root: Path) -> bool:
        self._check("has_uncommitted_changes", repo_root)
        return self._dirty

    def commit_tracked(self, repo_root: Path, message: str) -> None:
        self._check("commit_tracked", repo_root)
        self._head = self._new_commit(self._head, message)
        self._dirty = False
        self._commit_messages.append(message)

    def create_tag(self, repo_root: Path, tag_name: str) -> None:
        self._check("create_tag", repo_root)
        if tag_name in self._tags:
            raise RuntimeError(f"Failed to create tag: tag '{tag_name}' already exists")
        if self._head is None:
            raise RuntimeError("Failed to create tag: repository has no commits")
        self._tags[tag_name] = self._head
        self._created_tags.append(tag_name)

    def list_tags(self, repo_root: Path, pattern: str) -> list[str]:
        self._check("list_tags", repo_root)
        return sorted(name for name in self._tags if fnmatch.fnmatchcase(name, pattern))

    def _resolve(self, ref: str) -> str | None:
        if ref == "HEAD":
            return self._head
        if ref == "@{u}":
            return self._upstream
        if ref in self._tags:
            return self._tags[ref]
        if ref in self._parents:
            return ref
        return None

    def resolve_ref(self, repo_root: Path, ref: str) -> str | None:
        self._check("resolve_ref", repo_root)
        return self._resolve(ref)

    def short_hash(self, repo_root: Path, ref: str) -> str | None:
        self._check("short_hash", repo_root)
        commit = self._resolve(ref)
        return commit[:7] if commit is not None else None

    def log_range(self, repo_root: Path, base: str, head: str) -> list[str]:
        self._check("log_range", repo_root)
        excluded = self._ancestry(self._resolve(base))
        return [
            f"{commit[:7]} {self._messages[commit]}"
            for commit in self._ancestry(self._resolve(head))
            if commit not in excluded
        ]

    def _ancestry(self, commit: str | None) -> list[str]:
        """Commit followed by its ancestors, newest first."""
        chain: list[str] = []
        while commit is not None:
            chain.append(commit)
            commit = self._parents[commit]
        return chain

    def reset_hard(self, repo_root: Path, ref: str) -> None:
        self._check("reset_hard", repo_root)
        commit = self._resolve(ref)
        if commit is None:
            raise RuntimeError(f"Failed to reset: unknown ref {ref}")
        self._head = commit
        self._dirty = False
        self._resets.append(ref)

    def fetch(self, repo_root: Path) -> None:
        self._check("fetch", repo_root)
        self._fetch_count += 1

    def get_upstream_hash(self, repo_root: Path) -> str | None:
        self._check("get_upstream_hash", repo_root)
        return self._upstream

    def pull_rebase(self, repo_root: Path) -> None:
        self._check("pull_rebase", repo_root)
        if self._upstream is None:
            raise RuntimeError("Failed to pull: no upstream configured")
        self._head = self._upstream
        self._pull_count += 1
