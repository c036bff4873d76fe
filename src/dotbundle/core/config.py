"""Configuration data structures and loading.

Reads ``dotbundle.toml`` from the dotfiles root. Every key is optional; a
missing file means all defaults apply.
"""

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import tomlkit

from dotbundle.core.lock import LOCK_FILENAME

CONFIG_FILENAME = "dotbundle.toml"
ROOT_ENV_VAR = "DOTBUNDLE_ROOT"
PACKAGE_MANAGERS = ("brew", "none")

DEFAULTS: dict[str, object] = {
    "bundles_dir": "bundles",
    "state_dir": ".state",
    "selection_file": ".bundles",
    "package_manager": "brew",
    "revealed": [],
}


@dataclass(frozen=True)
class DotbundleConfig:
    """Immutable configuration for one dotfiles root.

    Loaded once at CLI entry point and stored in DotbundleContext.
    All paths are absolute.
    """

    root: Path
    bundles_dir: Path
    state_dir: Path
    selection_file: Path
    package_manager: str
    revealed: tuple[str, ...]

    @property
    def snapshot_dir(self) -> Path:
        return self.state_dir / "snapshots"

    @property
    def lock_path(self) -> Path:
        return self.state_dir / LOCK_FILENAME


def find_root(start: Path, env: Mapping[str, str] | None = None) -> Path:
    """Locate the dotfiles root.

    ``DOTBUNDLE_ROOT`` wins when set. Otherwise walks up from ``start`` to
    the first directory holding ``dotbundle.toml`` or ``.git``.

    Raises:
        FileNotFoundError: If no root can be found
    """
    environ = env if env is not None else os.environ
    explicit = environ.get(ROOT_ENV_VAR)
    if explicit:
        root = Path(explicit).expanduser().resolve()
        if not root.is_dir():
            raise FileNotFoundError(f"{ROOT_ENV_VAR} points to a missing directory: {root}")
        return root

    current = start.resolve()
    for candidate in [current, *current.parents]:
        if (candidate / CONFIG_FILENAME).is_file() or (candidate / ".git").exists():
            return candidate

    raise FileNotFoundError(
        f"No dotfiles root found from {start} "
        f"(looked for {CONFIG_FILENAME} or .git; set {ROOT_ENV_VAR} to override)"
    )


def _read_str(data: dict[str, object], key: str, config_path: Path) -> str:
    value = data.get(key, DEFAULTS[key])
    if not isinstance(value, str) or not value:
        raise ValueError(f"'{key}' in {config_path} must be a non-empty string")
    return value


def _read_revealed(data: dict[str, object], config_path: Path) -> tuple[str, ...]:
    value = data.get("revealed", DEFAULTS["revealed"])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"'revealed' in {config_path} must be a list of strings")
    return tuple(value)


def load_config(root: Path) -> DotbundleConfig:
    """Load configuration for a dotfiles root.

    Args:
        root: The dotfiles root directory

    Returns:
        DotbundleConfig with defaults filled in and paths made absolute

    Raises:
        ValueError: If a key has the wrong type or an unknown package manager
    """
    config_path = root / CONFIG_FILENAME
    data: dict[str, object] = {}
    if config_path.is_file():
        with config_path.open("rb") as f:
            data = tomllib.load(f)

    package_manager = _read_str(data, "package_manager", config_path)
    if package_manager not in PACKAGE_MANAGERS:
        raise ValueError(
            f"'package_manager' in {config_path} must be one of {', '.join(PACKAGE_MANAGERS)}"
        )

    return DotbundleConfig(
        root=root,
        bundles_dir=root / _read_str(data, "bundles_dir", config_path),
        state_dir=root / _read_str(data, "state_dir", config_path),
        selection_file=root / _read_str(data, "selection_file", config_path),
        package_manager=package_manager,
        revealed=_read_revealed(data, config_path),
    )


def config_items(config: DotbundleConfig) -> list[tuple[str, str]]:
    """Effective key/value pairs, relative to the root where applicable."""
    return [
        ("bundles_dir", str(config.bundles_dir.relative_to(config.root))),
        ("state_dir", str(config.state_dir.relative_to(config.root))),
        ("selection_file", str(config.selection_file.relative_to(config.root))),
        ("package_manager", config.package_manager),
        ("revealed", ", ".join(config.revealed)),
    ]


def set_config_value(root: Path, key: str, value: str) -> None:
    """Write one key to ``dotbundle.toml``.

    Preserves existing formatting and comments using tomlkit. ``revealed``
    takes a comma-separated list.

    Raises:
        ValueError: If the key is unknown or the value invalid
    """
    if key not in DEFAULTS:
        raise ValueError(f"Unknown config key: {key}")
    if key == "package_manager" and value not in PACKAGE_MANAGERS:
        raise ValueError(f"package_manager must be one of {', '.join(PACKAGE_MANAGERS)}")

    config_path = root / CONFIG_FILENAME
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as f:
            doc = tomlkit.load(f)
    else:
        doc = tomlkit.document()

    if key == "revealed":
        items = [item.strip() for item in value.split(",") if item.strip()]
        doc[key] = items
    else:
        if not value:
            raise ValueError(f"{key} must not be empty")
        doc[key] = value

    with config_path.open("w", encoding="utf-8") as f:
        tomlkit.dump(doc, f)
