"""Bundle applier interface and implementations."""

from dotbundle.core.applier.abc import ApplyMode, BundleApplier
from dotbundle.core.applier.real import RealBundleApplier

__all__ = ["ApplyMode", "BundleApplier", "RealBundleApplier"]
