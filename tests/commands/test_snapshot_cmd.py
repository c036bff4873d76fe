"""CLI tests for the snapshot and history commands."""

from pathlib import Path

from dotbundle.core.context import DotbundleContext
from tests.fakes.git import FakeGit
from tests.test_utils.cli import invoke


def test_snapshot_creates_pre_change_tag(tmp_path: Path) -> None:
    git = FakeGit(repos={tmp_path})
    ctx = DotbundleContext.for_test(tmp_path, git=git)

    result = invoke(ctx, "snapshot")

    assert result.exit_code == 0, result.output
    assert git.created_tags == ["pre-change/20240315-143000"]
    assert "Rollback point created: pre-change/20240315-143000" in result.output
    assert (tmp_path / ".state" / "snapshots" / "20240315-143000" / "metadata.json").is_file()


def test_snapshot_kind_option_sets_prefix(tmp_path: Path) -> None:
    git = FakeGit(repos={tmp_path})
    ctx = DotbundleContext.for_test(tmp_path, git=git)

    result = invoke(ctx, "snapshot", "--kind", "pre-bootstrap")

    assert result.exit_code == 0, result.output
    assert git.created_tags == ["pre-bootstrap/20240315-143000"]


def test_snapshot_commits_dirty_tree_first(tmp_path: Path) -> None:
    git = FakeGit(repos={tmp_path}, dirty=True)
    ctx = DotbundleContext.for_test(tmp_path, git=git)

    result = invoke(ctx, "snapshot")

    assert result.exit_code == 0, result.output
    assert "Uncommitted changes were committed" in result.output
    assert git.commit_messages == ["dotbundle: preserve state before pre-change"]
    assert not git.dirty


def test_snapshot_outside_repository_fails(tmp_path: Path) -> None:
    ctx = DotbundleContext.for_test(tmp_path, git=FakeGit(repos=set()))

    result = invoke(ctx, "snapshot")

    assert result.exit_code == 1
    assert "is not a git repository" in result.output


def test_snapshot_rejects_unknown_kind(tmp_path: Path) -> None:
    result = invoke(DotbundleContext.for_test(tmp_path), "snapshot", "--kind", "whenever")

    assert result.exit_code == 2


def test_history_without_snapshots(tmp_path: Path) -> None:
    result = invoke(DotbundleContext.for_test(tmp_path), "history")

    assert result.exit_code == 0, result.output
    assert "No rollback points found" in result.output


def test_history_lists_snapshots_newest_first(tmp_path: Path) -> None:
    head = FakeGit().head
    assert head is not None
    git = FakeGit(
        repos={tmp_path},
        tags={
            "pre-update/20240101-120000": head,
            "pre-upgrade/20240202-090000": head,
            "unrelated-tag": head,
        },
    )
    ctx = DotbundleContext.for_test(tmp_path, git=git)

    result = invoke(ctx, "history")

    assert result.exit_code == 0, result.output
    assert "2024-02-02 09:00:00" in result.output
    assert "2024-01-01 12:00:00" in result.output
    assert result.output.index("pre-upgrade") < result.output.index("pre-update")
    assert "unrelated-tag" not in result.output
    assert "dotbundle rollback" in result.output
