"""Bundle application interface.

Applying a bundle means running its own setup step; what that step does
(installing packages, linking files) is the bundle's business.
"""

from abc import ABC, abstractmethod
from enum import Enum

from dotbundle.core.registry import BundleDescriptor


class ApplyMode(Enum):
    """Argument passed to each bundle's setup step."""

    INSTALL = "install"
    UPGRADE = "upgrade"


class BundleApplier(ABC):
    """Abstract interface for running bundle setup steps."""

    @abstractmethod
    def apply(self, bundle: BundleDescriptor, mode: ApplyMode) -> bool:
        """Run one bundle's setup step.

        Returns:
            True if a setup step ran, False if the bundle has none

        Raises:
            RuntimeError: If the setup step fails
        """
        ...

    @abstractmethod
    def finalize(self, bundles: list[BundleDescriptor]) -> None:
        """Post-step after the selection is persisted.

        Raises:
            OSError: If the post-step cannot update the filesystem
        """
        ...
