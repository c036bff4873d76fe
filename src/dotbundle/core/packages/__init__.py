"""Package manager interface and implementations."""

from dotbundle.core.packages.abc import PackageManager
from dotbundle.core.packages.manifest import PackageEntry, PackageManifest
from dotbundle.core.packages.real import NoPackageManager, RealBrew

__all__ = ["NoPackageManager", "PackageEntry", "PackageManager", "PackageManifest", "RealBrew"]
