"""
lock.py

mutual-exclusion primitives guarding writes to the registry document.
the manager only relies on acquire() -> bool and release().
"""

from __future__ import annotations

import fcntl
import logging
import threading
import time
from pathlib import Path
from typing import IO, Protocol

logger = logging.getLogger(__name__)

_PATH_MUTEXES: dict[str, threading.Lock] = {}
_PATH_MUTEXES_GUARD = threading.Lock()


class Lock(Protocol):
    def acquire(self) -> bool: ...

    def release(self) -> None: ...


def _path_mutex(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _PATH_MUTEXES_GUARD:
        return _PATH_MUTEXES.setdefault(key, threading.Lock())


def _validate_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive (got {value})")


class ThreadLock:
    """Process-local lock; serializes callers inside one interpreter only."""

    def __init__(self, timeout: float | None = None) -> None:
        if timeout is not None:
            _validate_positive("timeout", timeout)
        self._lock = threading.Lock()
        self._timeout = timeout

    def acquire(self) -> bool:
        if self._timeout is None:
            return self._lock.acquire()
        return self._lock.acquire(timeout=self._timeout)

    def release(self) -> None:
        self._lock.release()


class FileLock:
    """Exclusive ``fcntl.flock`` on a sidecar lock file, shared by every process using it.

    flock is held per open file description, so threads of one process would
    all see the lock as theirs. A per-path in-process mutex is taken first to
    serialize them as well.

    ``acquire`` polls with ``LOCK_NB`` until ``timeout`` seconds have passed and
    then gives up, returning False.
    """

    def __init__(self, path: Path | str, timeout: float = 10.0, poll_interval: float = 0.05) -> None:
        _validate_positive("timeout", timeout)
        _validate_positive("poll_interval", poll_interval)
        self.path = Path(path)
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._fh: IO[str] | None = None

    def acquire(self) -> bool:
        start = time.monotonic()
        self.path.parent.mkdir(parents=True, exist_ok=True)

        mutex = _path_mutex(self.path)
        if not mutex.acquire(timeout=self.timeout):
            logger.debug("in-process mutex for %s not acquired within %ss", self.path, self.timeout)
            return False

        try:
            fh = open(self.path, "a+", encoding="utf-8")
        except OSError:
            mutex.release()
            raise

        while True:
            try:
                fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except OSError:
                if (time.monotonic() - start) >= self.timeout:
                    fh.close()
                    mutex.release()
                    logger.debug("flock on %s not acquired within %ss", self.path, self.timeout)
                    return False
                time.sleep(self.poll_interval)

        self._fh = fh
        logger.debug("acquired %s", self.path)
        return True

    def release(self) -> None:
        fh = self._fh
        if fh is None:
            raise RuntimeError(f"lock on {self.path} is not held")
        self._fh = None
        try:
            fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
        finally:
            fh.close()
            _path_mutex(self.path).release()
        logger.debug("released %s", self.path)
