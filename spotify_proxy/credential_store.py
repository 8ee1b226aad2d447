"""
Refresh-token persistence backed by a dotenv file.

The file doubles as the service configuration, so writes go through
``dotenv.set_key`` which replaces an existing ``KEY=value`` line in place (or
appends one) and leaves every other line alone.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import dotenv_values, load_dotenv, set_key

logger = logging.getLogger(__name__)


class DotenvCredentialStore:
    """Key-value view over a .env file with an in-memory snapshot.

    Reads are served from the snapshot (falling back to the process
    environment); the snapshot is refreshed after every write.
    """

    def __init__(self, path: str | os.PathLike[str]):
        self.path = Path(path)
        self._values: dict[str, str | None] = {}
        self.reload()

    def reload(self) -> None:
        if not self.path.exists():
            self._values = {}
            return
        self._values = dict(dotenv_values(self.path))
        load_dotenv(dotenv_path=self.path, override=True)

    def get(self, key: str) -> str | None:
        value = self._values.get(key)
        if value is None:
            value = os.getenv(key)
        return value or None

    def set(self, key: str, value: str) -> None:
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.touch()
        set_key(str(self.path), key, value)
        self.reload()
        logger.info("Saved %s to %s", key, self.path)
