"""
persister.py

load/save the registry document (repos.json).

writes go through a temp file in the same directory, fsync, then os.replace,
so readers never see a half-written document.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from .errors import MissingConfig, PersistenceError
from .models import Configuration

logger = logging.getLogger(__name__)


class Persister(Protocol):
    def load(self) -> Configuration: ...

    def flush(self, configuration: Configuration) -> None: ...


class JsonPersister:
    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> Configuration:
        if not self.path.exists():
            raise MissingConfig(f"no configuration at {self.path}")

        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"cannot read {self.path}: {e}") from e

        if not raw.strip():
            raise MissingConfig(f"configuration at {self.path} is empty")

        try:
            cfg = Configuration.model_validate_json(raw)
        except ValidationError as e:
            raise PersistenceError(f"invalid configuration in {self.path}: {e}") from e

        logger.debug("loaded %d repositories from %s", len(cfg.repositories), self.path)
        return cfg

    def flush(self, configuration: Configuration) -> None:
        content = configuration.to_json() + "\n"
        tmp: Path | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=str(self.path.parent), prefix=f".{self.path.name}.", delete=False
            ) as fh:
                tmp = Path(fh.name)
                fh.write(content)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, self.path)
            tmp = None
        except OSError as e:
            raise PersistenceError(f"cannot write {self.path}: {e}") from e
        finally:
            if tmp is not None:
                tmp.unlink(missing_ok=True)

        logger.info("flushed %d repositories to %s", len(configuration.repositories), self.path)
