"""CLI tests for the install and upgrade commands."""

from pathlib import Path

from dotbundle.core.applier.abc import ApplyMode
from dotbundle.core.context import DotbundleContext
from dotbundle.core.selection import InMemorySelectionStore, SelectionSet
from tests.fakes.applier import FakeBundleApplier
from tests.fakes.git import FakeGit
from tests.fakes.prompter import FakePrompter
from tests.test_utils.bundles import write_bundle
from tests.test_utils.cli import invoke


def _write_bundles(root: Path) -> None:
    bundles = root / "bundles"
    write_bundle(bundles, "core", order=10)
    write_bundle(bundles, "develop", order=20, requires=["core"])
    write_bundle(bundles, "work", order=20, requires=["core"])
    write_bundle(bundles, "secret", hidden=True)


def test_install_with_bundle_flag_resolves_dependencies(tmp_path: Path) -> None:
    _write_bundles(tmp_path)
    store = InMemorySelectionStore()
    applier = FakeBundleApplier()
    ctx = DotbundleContext.for_test(tmp_path, applier=applier, selection_store=store)

    result = invoke(ctx, "install", "-b", "develop")

    assert result.exit_code == 0, result.output
    assert store.load().ids == ("core", "develop")
    assert applier.applied == [("core", ApplyMode.INSTALL), ("develop", ApplyMode.INSTALL)]
    assert "Install complete" in result.output
    assert "Bundles: core, develop" in result.output


def test_install_reads_bundles_from_environment(tmp_path: Path) -> None:
    _write_bundles(tmp_path)
    store = InMemorySelectionStore()
    ctx = DotbundleContext.for_test(tmp_path, selection_store=store)

    result = invoke(ctx, "install", env={"DOTBUNDLE_BUNDLES": "work,develop"})

    assert result.exit_code == 0, result.output
    assert store.load().ids == ("core", "work", "develop")


def test_install_menu_offers_revealed_hidden_bundle(tmp_path: Path) -> None:
    _write_bundles(tmp_path)
    prompter = FakePrompter(selection=["secret"])
    store = InMemorySelectionStore()
    ctx = DotbundleContext.for_test(tmp_path, prompter=prompter, selection_store=store)

    result = invoke(ctx, "install", "--reveal", "secret")

    assert result.exit_code == 0, result.output
    assert "secret" in prompter.menus[0]
    assert store.load().ids == ("secret",)


def test_install_unknown_bundle_exits_with_error(tmp_path: Path) -> None:
    _write_bundles(tmp_path)
    store = InMemorySelectionStore()
    ctx = DotbundleContext.for_test(tmp_path, selection_store=store)

    result = invoke(ctx, "install", "-b", "gaming")

    assert result.exit_code == 1
    assert "Error: " in result.output
    assert "Bundle 'gaming' not found or disabled" in result.output
    assert store.save_count == 0


def test_install_without_terminal_or_bundles_fails(tmp_path: Path) -> None:
    _write_bundles(tmp_path)
    ctx = DotbundleContext.for_test(tmp_path, prompter=FakePrompter(interactive=False))

    result = invoke(ctx, "install")

    assert result.exit_code == 1
    assert "--bundle" in result.output


def test_upgrade_without_installed_bundles_fails(tmp_path: Path) -> None:
    _write_bundles(tmp_path)
    ctx = DotbundleContext.for_test(tmp_path)

    result = invoke(ctx, "upgrade", "--yes")

    assert result.exit_code == 1
    assert "No bundles installed yet" in result.output


def test_upgrade_add_creates_rollback_point(tmp_path: Path) -> None:
    _write_bundles(tmp_path)
    store = InMemorySelectionStore(SelectionSet.of(["core", "develop"]))
    git = FakeGit(repos={tmp_path})
    ctx = DotbundleContext.for_test(tmp_path, git=git, selection_store=store)

    result = invoke(ctx, "upgrade", "--add", "work", "--yes")

    assert result.exit_code == 0, result.output
    assert git.created_tags == ["pre-bundle-change/20240315-143000"]
    assert store.load().ids == ("core", "develop", "work")
    assert "Added: work" in result.output
    assert "Rollback point: pre-bundle-change/20240315-143000" in result.output


def test_upgrade_remove_required_bundle_is_rejected(tmp_path: Path) -> None:
    _write_bundles(tmp_path)
    store = InMemorySelectionStore(SelectionSet.of(["core", "develop"]))
    ctx = DotbundleContext.for_test(tmp_path, selection_store=store)

    result = invoke(ctx, "upgrade", "--remove", "core", "--yes")

    assert result.exit_code == 1
    assert "required by develop" in result.output
    assert store.save_count == 0


def test_upgrade_declined_changes_nothing(tmp_path: Path) -> None:
    _write_bundles(tmp_path)
    store = InMemorySelectionStore(SelectionSet.of(["core"]))
    git = FakeGit(repos={tmp_path})
    prompter = FakePrompter(confirm=False)
    ctx = DotbundleContext.for_test(tmp_path, git=git, prompter=prompter, selection_store=store)

    result = invoke(ctx, "upgrade")

    assert result.exit_code == 0, result.output
    assert "Nothing changed" in result.output
    assert git.created_tags == []
    assert store.save_count == 0


def test_upgrade_yes_from_environment_skips_prompt(tmp_path: Path) -> None:
    _write_bundles(tmp_path)
    store = InMemorySelectionStore(SelectionSet.of(["core"]))
    prompter = FakePrompter(interactive=False)
    ctx = DotbundleContext.for_test(tmp_path, prompter=prompter, selection_store=store)

    result = invoke(ctx, "upgrade", env={"DOTBUNDLE_ASSUME_YES": "1"})

    assert result.exit_code == 0, result.output
    assert prompter.confirm_messages == []
    assert store.save_count == 1


def test_partial_failure_reports_warning_but_succeeds(tmp_path: Path) -> None:
    _write_bundles(tmp_path)
    applier = FakeBundleApplier(failing={"core"})
    ctx = DotbundleContext.for_test(tmp_path, applier=applier)

    result = invoke(ctx, "install", "-b", "develop")

    assert result.exit_code == 0, result.output
    assert "Done with 1 warning(s)" in result.output
    assert applier.applied_ids == ["core", "develop"]
