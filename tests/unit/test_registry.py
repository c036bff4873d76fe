"""Tests for bundle discovery and descriptor parsing."""

from pathlib import Path

import pytest

from dotbundle.core.registry import (
    DEFAULT_ORDER,
    BundleRegistry,
    descriptor_from_pairs,
    descriptor_key_lines,
    parse_descriptor_pairs,
    split_requires,
)
from dotbundle.errors import DescriptorError, NotFoundError
from tests.test_utils.bundles import descriptor, write_bundle


def test_parse_descriptor_pairs_strips_quotes_and_keeps_first_occurrence() -> None:
    text = '# comment\nname="Core"\norder=10\nname="Other"\n\nnot a pair\n'

    pairs = parse_descriptor_pairs(text)

    assert pairs == {"name": "Core", "order": "10"}


def test_descriptor_key_lines_point_at_the_effective_definition() -> None:
    text = '# comment\nname="Core"\norder=10\nname="Other"\n'

    assert descriptor_key_lines(text) == {"name": 2, "order": 3}


def test_split_requires_trims_whitespace_and_drops_blanks() -> None:
    assert split_requires(" core , shell,,core ") == ("core", "shell")
    assert split_requires("") == ()


def test_descriptor_defaults_when_pairs_are_empty() -> None:
    result = descriptor_from_pairs("core", {})

    assert result.display_name == "core"
    assert result.order == DEFAULT_ORDER
    assert result.dependencies == ()
    assert result.hidden is False
    assert result.enabled is True


def test_descriptor_boolean_parsing() -> None:
    """Only "true" hides a bundle and only "false" disables one."""
    hidden = descriptor_from_pairs("x", {"hidden": "TRUE", "enabled": "no"})
    disabled = descriptor_from_pairs("y", {"hidden": "yes", "enabled": "False"})

    assert hidden.hidden is True
    assert hidden.enabled is True
    assert disabled.hidden is False
    assert disabled.enabled is False


def test_descriptor_rejects_non_integer_order() -> None:
    with pytest.raises(DescriptorError, match="Invalid order value 'high'"):
        descriptor_from_pairs("core", {"order": "high"})


def test_discover_names_file_and_line_of_bad_order(tmp_path: Path) -> None:
    bundle_dir = tmp_path / "bundles" / "core"
    bundle_dir.mkdir(parents=True)
    (bundle_dir / "bundle.conf").write_text('name="Core"\norder="high"\n', encoding="utf-8")

    with pytest.raises(DescriptorError) as exc_info:
        BundleRegistry.discover(tmp_path / "bundles")

    assert f"{bundle_dir / 'bundle.conf'}:2" in str(exc_info.value)


def test_discover_reads_every_bundle_directory(tmp_path: Path) -> None:
    bundles_dir = tmp_path / "bundles"
    write_bundle(bundles_dir, "core", name="Core", order=10)
    write_bundle(bundles_dir, "develop", name="Development", order=20, requires=["core"])
    (bundles_dir / ".hidden-dir").mkdir()
    (bundles_dir / "README.md").write_text("not a bundle", encoding="utf-8")

    registry = BundleRegistry.discover(bundles_dir)

    assert registry.ids() == ["core", "develop"]
    develop = registry.get("develop")
    assert develop.display_name == "Development"
    assert develop.dependencies == ("core",)
    assert develop.path == bundles_dir / "develop"


def test_discover_directory_without_descriptor_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / "bundles" / "plain").mkdir(parents=True)

    registry = BundleRegistry.discover(tmp_path / "bundles")

    assert registry.get("plain").order == DEFAULT_ORDER


def test_discover_missing_root_is_empty(tmp_path: Path) -> None:
    registry = BundleRegistry.discover(tmp_path / "nope")

    assert registry.ids() == []


def test_get_rejects_unknown_and_disabled_bundles() -> None:
    registry = BundleRegistry([descriptor("core"), descriptor("old", enabled=False)])

    with pytest.raises(NotFoundError) as exc_info:
        registry.get("missing")
    assert exc_info.value.bundle_id == "missing"

    with pytest.raises(NotFoundError):
        registry.get("old")
    assert registry.exists("old")
    assert not registry.is_available("old")
    assert registry.describe("old").enabled is False


def test_duplicate_ids_are_rejected() -> None:
    with pytest.raises(DescriptorError, match="Duplicate bundle id 'core'"):
        BundleRegistry([descriptor("core"), descriptor("core")])


def test_get_config_returns_raw_values(tmp_path: Path) -> None:
    write_bundle(tmp_path, "core", name="Core", description="Base shell setup")

    registry = BundleRegistry.discover(tmp_path)

    assert registry.get_config("core", "description") == "Base shell setup"
    assert registry.get_config("core", "color", "blue") == "blue"
    with pytest.raises(NotFoundError):
        registry.get_config("missing", "name")


def test_visible_sorts_by_order_and_hides_hidden_unless_revealed() -> None:
    registry = BundleRegistry(
        [
            descriptor("work", order=20),
            descriptor("core", order=10),
            descriptor("develop", order=20),
            descriptor("test", order=99, hidden=True),
            descriptor("legacy", enabled=False),
        ]
    )

    assert [d.id for d in registry.visible()] == ["core", "develop", "work"]
    assert [d.id for d in registry.visible(["test"])] == ["core", "develop", "work", "test"]
