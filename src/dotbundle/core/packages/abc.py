"""Package manager operations interface.

Snapshots capture the installed package set as a manifest file, and
rollbacks restore it. Everything else about package installation is left
to the package manager itself.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from dotbundle.core.packages.manifest import PackageManifest


class PackageManager(ABC):
    """Abstract interface for package manager operations."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether the package manager can be invoked."""
        ...

    @abstractmethod
    def dump_manifest(self, dest: Path) -> None:
        """Write the currently installed package set to dest, overwriting it.

        Raises:
            RuntimeError: If the package manager fails
        """
        ...

    @abstractmethod
    def installed(self) -> PackageManifest:
        """Return the currently installed package set."""
        ...

    @abstractmethod
    def cleanup(self, manifest_path: Path) -> None:
        """Uninstall every package not declared in manifest_path."""
        ...

    @abstractmethod
    def install(self, manifest_path: Path) -> None:
        """Install every package declared in manifest_path (idempotent)."""
        ...
