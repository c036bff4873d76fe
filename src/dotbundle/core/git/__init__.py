"""Git interface and implementations."""

from dotbundle.core.git.abc import Git
from dotbundle.core.git.real import RealGit

__all__ = ["Git", "RealGit"]
