"""Error taxonomy for dotbundle.

Structural errors derive from DotbundleError and abort the operation that
raised them. Best-effort failures derive from DotbundleWarning; they are
never raised across a component boundary; instead they are collected on
result objects and reported in a final summary.
"""


class DotbundleError(Exception):
    """Base class for all fatal dotbundle errors."""


class NotFoundError(DotbundleError):
    """A bundle id is unknown to the registry or disabled."""

    def __init__(self, bundle_id: str) -> None:
        super().__init__(f"Bundle '{bundle_id}' not found or disabled")
        self.bundle_id = bundle_id


class CycleError(DotbundleError):
    """The dependency graph reachable from a request contains a cycle."""

    def __init__(self, bundle_id: str) -> None:
        super().__init__(f"Circular dependency detected involving '{bundle_id}'")
        self.bundle_id = bundle_id


class DescriptorError(DotbundleError):
    """A bundle descriptor holds a value that cannot be parsed."""


class BundleInUseError(DotbundleError):
    """A bundle cannot be removed because selected bundles still require it."""

    def __init__(self, bundle_id: str, dependents: list[str]) -> None:
        joined = ", ".join(dependents)
        super().__init__(f"Cannot remove '{bundle_id}': still required by {joined}")
        self.bundle_id = bundle_id
        self.dependents = dependents


class SnapshotCreationError(DotbundleError):
    """The snapshot tag (or its preservation commit) could not be written."""


class RestoreTargetNotFoundError(DotbundleError):
    """A rollback identifier does not match any known snapshot tag."""

    def __init__(self, identifier: str) -> None:
        super().__init__(
            f"Rollback point '{identifier}' not found. "
            "Run 'dotbundle history' to see available points."
        )
        self.identifier = identifier


class NonInteractiveError(DotbundleError):
    """An answer is required but there is neither a terminal nor a flag."""


class LockHeldError(DotbundleError):
    """Another dotbundle process holds the state lock."""

    def __init__(self, pid: int, path: str) -> None:
        super().__init__(
            f"Another dotbundle process (pid {pid}) is running. Lock file: {path}"
        )
        self.pid = pid
        self.path = path


class UpdateError(DotbundleError):
    """Pulling upstream changes is not possible."""


class TransactionError(DotbundleError):
    """A transaction aborted at a structural failure.

    The message names the stage that failed and, when one exists, the
    snapshot that can be used to recover.
    """

    def __init__(self, stage: str, cause: Exception, snapshot: str | None = None) -> None:
        message = f"{stage} failed: {cause}"
        if snapshot is not None:
            message += f"\nRecovery point available: {snapshot} (dotbundle rollback)"
        else:
            message += "\nNo recovery snapshot exists for this run."
        super().__init__(message)
        self.stage = stage
        self.cause = cause
        self.snapshot = snapshot


class DotbundleWarning(UserWarning):
    """Base class for non-fatal, accumulated problems."""


class ManifestCaptureWarning(DotbundleWarning):
    """Best-effort capture of snapshot state failed."""


class PartialApplyWarning(DotbundleWarning):
    """One bundle's setup step failed; the remaining bundles still ran."""

    def __init__(self, bundle_id: str, message: str) -> None:
        super().__init__(f"{bundle_id}: {message}")
        self.bundle_id = bundle_id
