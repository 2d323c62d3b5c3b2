"""Cross-process lock

Serializes concurrent marvex invocations (e.g. a keybinding pressed twice)
so two of them never derive the same terminal number or consume the same
reserved session.

The lock is an exclusive advisory flock on a per-user file. Acquisition
blocks until the holder releases it or exits; closing the descriptor
releases it.

Example:
    >>> with acquire_lock("/run/user/1000/marvex.lock"):
    ...     ...  # name + consume a reserved session
"""

import fcntl
import os
from pathlib import Path

from .errors import LockError
from .telemetry import get_logger

logger = get_logger(__name__)

__all__ = ["FileLock", "acquire_lock"]


class FileLock:
    """Held exclusive lock on an open lock file."""

    def __init__(self, path: Path, fd: int):
        self.path = path
        self._fd: int | None = fd

    @property
    def held(self) -> bool:
        return self._fd is not None

    def release(self) -> None:
        """Close the descriptor, dropping the lock. Safe to call twice."""
        if self._fd is None:
            return
        os.close(self._fd)
        self._fd = None
        logger.debug(f"Released lock {self.path}")

    def __enter__(self) -> "FileLock":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


def acquire_lock(path: str | os.PathLike) -> FileLock:
    """Open (creating if absent) and exclusively lock a file.

    Blocks until the lock is obtained.

    Args:
        path: Lock file path

    Raises:
        LockError: the file cannot be opened or locked
    """
    lock_path = Path(path)

    try:
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(lock_path, os.O_CREAT | os.O_WRONLY, 0o600)
    except OSError as e:
        raise LockError(f"can't open lock file '{lock_path}': {e}") from e

    try:
        logger.debug(f"Waiting for lock {lock_path}")
        fcntl.flock(fd, fcntl.LOCK_EX)
    except OSError as e:
        os.close(fd)
        raise LockError(f"can't lock opened lock file '{lock_path}': {e}") from e

    logger.debug(f"Acquired lock {lock_path}")
    return FileLock(lock_path, fd)
