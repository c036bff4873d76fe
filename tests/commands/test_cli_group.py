"""CLI tests for the top-level group: help, context creation and errors."""

from pathlib import Path

from tests.test_utils.cli import invoke


def test_help_lists_every_command() -> None:
    result = invoke(None, "-h")

    assert result.exit_code == 0, result.output
    for name in ("install", "upgrade", "update", "bundles", "resolve", "snapshot", "history"):
        assert name in result.output
    assert "rollback" in result.output
    assert "config" in result.output


def test_missing_root_is_a_clean_error(tmp_path: Path) -> None:
    result = invoke(None, "history", env={"DOTBUNDLE_ROOT": str(tmp_path / "missing")})

    assert result.exit_code == 1
    assert "Error: " in result.output
    assert "DOTBUNDLE_ROOT points to a missing directory" in result.output


def test_malformed_config_is_a_clean_error(tmp_path: Path) -> None:
    (tmp_path / "dotbundle.toml").write_text('package_manager = "apt"\n', encoding="utf-8")

    result = invoke(None, "bundles", env={"DOTBUNDLE_ROOT": str(tmp_path)})

    assert result.exit_code == 1
    assert "'package_manager'" in result.output


def test_context_is_created_from_root(tmp_path: Path) -> None:
    (tmp_path / "dotbundle.toml").write_text('package_manager = "none"\n', encoding="utf-8")

    result = invoke(None, "config", "list", env={"DOTBUNDLE_ROOT": str(tmp_path)})

    assert result.exit_code == 0, result.output
    assert "package_manager=none" in result.output
