"""Advisory lock around state-mutating sections.

Snapshot creation, bundle application and restores all mutate the working
tree, the git index and the selection file. Only one dotbundle process may
be inside such a section at a time.

Exclusion comes from ``fcntl.flock`` on the lock file. The kernel drops the
lock when the holding process exits, so a crashed run never leaves a lock
behind. The PID written into the file only feeds the error message.
"""

import fcntl
import logging
import os
from pathlib import Path
from types import TracebackType

from dotbundle.errors import LockHeldError

logger = logging.getLogger(__name__)

LOCK_FILENAME = "dotbundle.lock"


def read_holder(path: Path) -> int | None:
    """PID recorded in the lock file, or None if absent or unreadable."""
    try:
        text = path.read_text(encoding="utf-8").strip()
    except (FileNotFoundError, UnicodeDecodeError):
        return None
    try:
        return int(text)
    except ValueError:
        return None


class BundleLock:
    """Exclusive ``flock`` on a lock file stamped with the holder's PID.

    Re-entrant within one process: nested ``with`` blocks on the same lock
    object only release on the outermost exit. Two BundleLock objects on the
    same path exclude each other even inside one process.

    Usage:
        with BundleLock(state_dir / LOCK_FILENAME):
            ...
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._depth = 0
        self._fd: int | None = None

    @property
    def path(self) -> Path:
        return self._path

    def acquire(self) -> None:
        """Take the lock without blocking.

        Raises:
            LockHeldError: If another process (or lock object) holds it
        """
        if self._depth > 0:
            self._depth += 1
            return

        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self._path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            holder = read_holder(self._path)
            raise LockHeldError(holder if holder is not None else -1, str(self._path)) from None

        # The file is never unlinked; a waiter could otherwise lock an orphaned inode.
        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()}\n".encode())
        self._fd = fd
        self._depth = 1
        logger.debug("Acquired lock %s", self._path)

    def release(self) -> None:
        if self._depth == 0:
            return
        self._depth -= 1
        if self._depth == 0 and self._fd is not None:
            os.ftruncate(self._fd, 0)
            fcntl.flock(self._fd, fcntl.LOCK_UN)
            os.close(self._fd)
            self._fd = None
            logger.debug("Released lock %s", self._path)

    def __enter__(self) -> "BundleLock":
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
