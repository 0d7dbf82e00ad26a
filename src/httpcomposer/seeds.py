"""Directory-backed seed store.

A *seed* is a JSON snapshot of a previous successful response, stored at
``<directory>/<cache key>``.  Seeds serve two purposes: they answer
requests before the transport is tried, and they stand in for the live
response when the network is unreachable.

Writes are create-only.  The payload goes to a temporary file in the
seed directory which is then hard-linked to its final name; the link
fails if a seed already exists, so an existing seed is never replaced
and readers never observe a half-written file.  Two concurrent writers
for the same key race benignly: one link wins, the other is discarded.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from httpcomposer.exceptions import ConfigurationError, SeedUnavailableError

logger = logging.getLogger(__name__)

_DIRECTORY_MODE = 0o777


class SeedStore:
    """Read and write seed files under a single directory.

    The directory is created lazily, with permissive mode, on first use.

    Args:
        directory: Directory holding one file per cache key.

    Raises:
        ConfigurationError: If *directory* is empty.

    Example::

        store = SeedStore("/tmp/seeds")
        store.write(key, {"code": 200, "body": {"a": 1}})
        store.read(key)   # {"code": 200, "body": {"a": 1}}
    """

    def __init__(self, directory: str | Path) -> None:
        if not directory:
            raise ConfigurationError("Seeds directory must be provided in order to use seeds.")
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        """The seed directory."""
        return self._directory

    def path_for(self, key: str) -> Path:
        """Return the file path used for *key*."""
        return self._directory / key

    def exists(self, key: str) -> bool:
        """Return ``True`` if a seed file exists for *key*."""
        return self.path_for(key).is_file()

    def read(self, key: str) -> dict[str, Any]:
        """Load the seed stored for *key*.

        Raises:
            SeedUnavailableError: If no seed exists or the file does not
                hold a JSON object.
        """
        path = self.path_for(key)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise SeedUnavailableError(f"No seed for key {key}") from None
        except OSError as exc:
            raise SeedUnavailableError(f"Unable to read seed {path}: {exc}") from exc

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("Ignoring corrupt seed file %s: %s", path, exc)
            raise SeedUnavailableError(f"Corrupt seed {path}") from exc

        if not isinstance(data, dict):
            logger.warning("Ignoring seed file %s: expected a JSON object", path)
            raise SeedUnavailableError(f"Corrupt seed {path}")
        return data

    def get(self, key: str) -> Optional[dict[str, Any]]:
        """Return the seed for *key*, or ``None`` when there is none."""
        try:
            return self.read(key)
        except SeedUnavailableError:
            return None

    def write(self, key: str, data: dict[str, Any]) -> bool:
        """Store *data* as the seed for *key* unless one already exists.

        Args:
            key: The cache key naming the seed file.
            data: JSON-serialisable response dict.

        Returns:
            ``True`` if the seed was written, ``False`` if a seed for
            *key* was already present.

        Raises:
            OSError: If the directory or file cannot be written.  The
                temporary file is removed first.
        """
        path = self.path_for(key)
        if path.exists():
            return False

        self._ensure_directory()
        payload = json.dumps(data, ensure_ascii=False)

        fd = None
        tmp_path: Optional[str] = None
        try:
            fd = tempfile.NamedTemporaryFile(
                mode="w",
                dir=self._directory,
                prefix=f".{key}.",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            )
            tmp_path = fd.name
            fd.write(payload)
            fd.flush()
            os.fsync(fd.fileno())
            fd.close()
            fd = None
            try:
                os.link(tmp_path, path)
            except FileExistsError:
                return False
            return True
        finally:
            if fd is not None:
                fd.close()
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass

    def _ensure_directory(self) -> None:
        if not self._directory.is_dir():
            self._directory.mkdir(mode=_DIRECTORY_MODE, parents=True, exist_ok=True)
