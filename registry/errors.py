"""
errors.py

exceptions raised by the manager and its collaborators.
the api layer maps these onto http status codes.
"""

from __future__ import annotations


class RegistryError(Exception):
    """Base class for registry failures."""


class LockUnavailable(RegistryError, OSError):
    def __init__(self, message: str = "cannot acquire lock for configuration file") -> None:
        super().__init__(message)


class UnknownRepository(RegistryError, LookupError):
    def __init__(self, repo_id: str) -> None:
        super().__init__(f"unknown repository: {repo_id}")
        self.repo_id = repo_id


class PersistenceError(RegistryError, OSError):
    """Storage-level load or flush failure."""


class MissingConfig(RegistryError):
    """The configuration document does not exist yet or is empty."""
