"""
manager.py

owns the cached registry document and serializes every write through the lock.

reads go straight to the in-process cache and are never locked, so they can
observe a writer mid-mutation or miss another process's unreconciled write.
the cache is authoritative only for this manager's lifetime. sharing one
document across processes is safe only when the lock is cross-process too
(FileLock, not ThreadLock).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from . import settings
from .errors import LockUnavailable, MissingConfig, UnknownRepository
from .lock import Lock
from .models import Configuration, Found, NotFound, Repository, RepositoryLookup
from .persister import Persister

logger = logging.getLogger(__name__)


class Manager:
    def __init__(self, lock: Lock, persister: Persister) -> None:
        self._lock = lock
        self._persister = persister
        self._configuration: Configuration | None = None

    def get_repositories(self) -> dict[str, Repository]:
        return self.get_config().repositories

    def find_one_repository(self, repo_id: str) -> RepositoryLookup:
        repository = self.get_repositories().get(repo_id)
        if repository is None:
            return NotFound(repo_id)
        return Found(repository)

    def add(self, repository: Repository) -> None:
        with self.locked():
            self._do_add(repository)
            self.flush()
        logger.info("added repository %s (%s)", repository.get_id(), repository.url)

    def add_all(self, repositories: Iterable[Repository]) -> None:
        """Insert a batch under one lock acquisition and a single flush."""
        with self.locked():
            # the whole batch is collected before the cache sees any of it
            batch = {repository.get_id(): repository for repository in repositories}
            self.get_repositories().update(batch)
            self.flush()
        logger.info("added %d repositories", len(batch))

    def update(self, repository: Repository, url: str) -> None:
        """Point an existing repository at ``url``, keeping its id.

        Existence is checked against the cache before locking, and again once
        the lock is held in case a concurrent writer removed the entry.
        """
        repo_id = repository.get_id()
        if repo_id not in self.get_repositories():
            raise UnknownRepository(repo_id)

        with self.locked():
            repos = self.get_repositories()
            if repo_id not in repos:
                raise UnknownRepository(repo_id)
            del repos[repo_id]
            repository.set_url(url)
            repos[repository.get_id()] = repository
            self.flush()
        logger.info("updated repository %s to %s", repo_id, url)

    def delete(self, repository: Repository) -> None:
        repo_id = repository.get_id()
        with self.locked():
            self.get_repositories().pop(repo_id, None)
            self.flush()
        logger.info("deleted repository %s", repo_id)

    def flush(self) -> None:
        # no lock taken here: callers are either inside locked() or manage their own
        self._persister.flush(self.get_config())

    def get_config(self) -> Configuration:
        if self._configuration is not None:
            return self._configuration

        try:
            self._configuration = self._persister.load()
        except MissingConfig as e:
            logger.warning("%s, starting from an empty configuration", e)
            self._configuration = Configuration(name=settings.REGISTRY_NAME)

        return self._configuration

    def reload(self) -> None:
        self._configuration = None

    @contextmanager
    def locked(self) -> Iterator[Lock]:
        lock = self.acquire_lock()
        try:
            yield lock
        finally:
            lock.release()
            logger.debug("configuration lock released")

    def acquire_lock(self) -> Lock:
        if not self._lock.acquire():
            logger.warning("configuration lock denied")
            raise LockUnavailable()
        logger.debug("configuration lock acquired")
        return self._lock

    def _do_add(self, repository: Repository) -> None:
        self.get_repositories()[repository.get_id()] = repository
