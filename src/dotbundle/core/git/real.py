"""Production Git implementation using subprocess.

This module provides the real Git implementation that executes actual git
commands via subprocess.
"""

import subprocess
from pathlib import Path

from dotbundle.core.git.abc import Git
from dotbundle.core.subprocess import run_subprocess_with_context

# ============================================================================
# Production Implementation
# ============================================================================


class RealGit(Git):
    """Production implementation using subprocess.

    All git operations execute actual git commands via subprocess.
    """

    def is_repository(self, path: Path) -> bool:
        """Check whether path is the root of a git work tree."""
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=path,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return False
        return Path(result.stdout.strip()).resolve() == path.resolve()

    def has_uncommitted_changes(self, repo_root: Path) -> bool:
        """Check for modifications to tracked files."""
        result = run_subprocess_with_context(
            ["git", "status", "--porcelain", "--untracked-files=no"],
            operation_context="check working tree status",
            cwd=repo_root,
        )
        return bool(result.stdout.strip())

    def commit_tracked(self, repo_root: Path, message: str) -> None:
        """Stage tracked modifications and commit them."""
        run_subprocess_with_context(
            ["git", "add", "--update"],
            operation_context="stage tracked changes",
            cwd=repo_root,
        )
        run_subprocess_with_context(
            ["git", "commit", "--no-verify", "--no-gpg-sign", "--quiet", "-m", message],
            operation_context="commit tracked changes",
            cwd=repo_root,
        )

    def create_tag(self, repo_root: Path, tag_name: str) -> None:
        """Create a lightweight, unsigned tag pointing at HEAD."""
        run_subprocess_with_context(
            ["git", "-c", "tag.gpgSign=false", "tag", tag_name],
            operation_context=f"create tag '{tag_name}'",
            cwd=repo_root,
        )

    def list_tags(self, repo_root: Path, pattern: str) -> list[str]:
        """List tag names matching a glob pattern."""
        result = run_subprocess_with_context(
            ["git", "tag", "--list", pattern],
            operation_context=f"list tags matching '{pattern}'",
            cwd=repo_root,
        )
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def resolve_ref(self, repo_root: Path, ref: str) -> str | None:
        """Resolve a ref to its full commit hash."""
        result = subprocess.run(
            ["git", "rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def short_hash(self, repo_root: Path, ref: str) -> str | None:
        """Resolve a ref to its abbreviated commit hash."""
        result = subprocess.run(
            ["git", "rev-parse", "--short", "--verify", "--quiet", f"{ref}^{{commit}}"],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def log_range(self, repo_root: Path, base: str, head: str) -> list[str]:
        """List commits in base..head, one-line format."""
        result = run_subprocess_with_context(
            ["git", "log", "--oneline", f"{base}..{head}"],
            operation_context=f"list commits in {base}..{head}",
            cwd=repo_root,
        )
        return [line for line in result.stdout.splitlines() if line.strip()]

    def reset_hard(self, repo_root: Path, ref: str) -> None:
        """Reset HEAD, index and working tree to ref."""
        run_subprocess_with_context(
            ["git", "reset", "--hard", ref],
            operation_context=f"reset to '{ref}'",
            cwd=repo_root,
        )

    def fetch(self, repo_root: Path) -> None:
        """Fetch from the default remote."""
        run_subprocess_with_context(
            ["git", "fetch"],
            operation_context="fetch from remote",
            cwd=repo_root,
        )

    def get_upstream_hash(self, repo_root: Path) -> str | None:
        """Commit hash of the current branch's upstream."""
        result = subprocess.run(
            ["git", "rev-parse", "--verify", "--quiet", "@{u}"],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def pull_rebase(self, repo_root: Path) -> None:
        """Pull the upstream with --rebase --autostash."""
        run_subprocess_with_context(
            ["git", "pull", "--rebase", "--autostash"],
            operation_context="pull upstream changes",
            cwd=repo_root,
        )
