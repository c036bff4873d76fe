"""Production package manager implementations."""

import shutil
import tempfile
from pathlib import Path

from dotbundle.core.packages.abc import PackageManager
from dotbundle.core.packages.manifest import PackageManifest
from dotbundle.core.subprocess import run_subprocess_with_context


class RealBrew(PackageManager):
    """Homebrew implementation driven through ``brew bundle``."""

    def __init__(self, brew_bin: str = "brew") -> None:
        self._brew = brew_bin

    def is_available(self) -> bool:
        return shutil.which(self._brew) is not None

    def dump_manifest(self, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        run_subprocess_with_context(
            [self._brew, "bundle", "dump", f"--file={dest}", "--force"],
            operation_context="dump installed packages",
        )

    def installed(self) -> PackageManifest:
        with tempfile.TemporaryDirectory(prefix="dotbundle-") as tmp:
            dump = Path(tmp) / "Brewfile"
            self.dump_manifest(dump)
            return PackageManifest.load(dump)

    def cleanup(self, manifest_path: Path) -> None:
        run_subprocess_with_context(
            [self._brew, "bundle", "cleanup", f"--file={manifest_path}", "--force"],
            operation_context="remove packages missing from snapshot",
        )

    def install(self, manifest_path: Path) -> None:
        run_subprocess_with_context(
            [self._brew, "bundle", "install", f"--file={manifest_path}"],
            operation_context="install packages from snapshot",
        )


class NoPackageManager(PackageManager):
    """Stand-in used when package capture is disabled or brew is missing.

    Snapshots skip the manifest; package restores are reported as unavailable.
    """

    def is_available(self) -> bool:
        return False

    def dump_manifest(self, dest: Path) -> None:
        raise RuntimeError("No package manager is configured")

    def installed(self) -> PackageManifest:
        raise RuntimeError("No package manager is configured")

    def cleanup(self, manifest_path: Path) -> None:
        raise RuntimeError("No package manager is configured")

    def install(self, manifest_path: Path) -> None:
        raise RuntimeError("No package manager is configured")
