"""Repository-wide locking for page mutations.

Git stages through a single index per working tree, so two commits running
at once against the same root can interleave. Every root therefore gets one
RepositoryLock: writers (save, remove) are exclusive, readers share.

Within a process the lock is a writer-preferring reader/writer lock. Writers
also take an advisory fcntl lock on a file inside the git directory so that
separate processes sharing a root are serialized as well.
"""

import logging
import os
import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterator

# Import fcntl for POSIX file locking (not available on Windows)
try:
    import fcntl
    HAS_FCNTL = True
except ImportError:
    HAS_FCNTL = False

from wikistore.repository.errors import RepositoryLockError

logger = logging.getLogger(__name__)

# Seconds to wait for the lock before giving up
LOCK_TIMEOUT = 30.0

LOCK_FILE_NAME = "wikistore.lock"


class RepositoryLock:
    """Reader/writer lock scoped to one repository root.

    Example:
        >>> lock = lock_for("/srv/wiki")
        >>> with lock.writing():
        ...     pass  # write file, commit
    """

    def __init__(self, root: str):
        self.root = root
        self._cond = threading.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def reading(self, timeout: float = LOCK_TIMEOUT) -> Iterator[None]:
        """Hold a shared lock for the duration of the block."""
        deadline = time.monotonic() + timeout
        with self._cond:
            while self._writer or self._writers_waiting:
                remaining = deadline - time.monotonic()
                if remaining <= 0 or not self._cond.wait(remaining):
                    raise RepositoryLockError(self.root, timeout)
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def writing(self, timeout: float = LOCK_TIMEOUT) -> Iterator[None]:
        """Hold the exclusive lock for the duration of the block.

        Raises:
            RepositoryLockError: If the lock is not acquired within timeout
        """
        deadline = time.monotonic() + timeout
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0 or not self._cond.wait(remaining):
                        raise RepositoryLockError(self.root, timeout)
                self._writer = True
            finally:
                self._writers_waiting -= 1
                if not self._writer:
                    self._cond.notify_all()
        try:
            with self._process_lock(deadline, timeout):
                yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()

    @contextmanager
    def _process_lock(self, deadline: float, timeout: float) -> Iterator[None]:
        """Advisory lock shared with other processes writing to this root."""
        git_dir = os.path.join(self.root, ".git")
        if not HAS_FCNTL or not os.path.isdir(git_dir):
            if not HAS_FCNTL:
                logger.warning(
                    "File locking not available on this platform. "
                    "Concurrent writers in other processes are not serialized."
                )
            yield
            return

        lock_file = open(os.path.join(git_dir, LOCK_FILE_NAME), "w")
        try:
            while True:
                try:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                    break
                except OSError:
                    # Held by another process
                    if time.monotonic() > deadline:
                        raise RepositoryLockError(self.root, timeout)
                    time.sleep(0.05)
            logger.debug(f"Repository lock acquired for {self.root}")
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
                logger.debug(f"Repository lock released for {self.root}")
        finally:
            lock_file.close()


_registry: Dict[str, RepositoryLock] = {}
_registry_guard = threading.Lock()


def lock_for(root: str) -> RepositoryLock:
    """Return the lock shared by every handle opened on root."""
    key = os.path.realpath(root)
    with _registry_guard:
        lock = _registry.get(key)
        if lock is None:
            lock = RepositoryLock(key)
            _registry[key] = lock
        return lock
