"""
JSON File Storage

One file per key inside a data directory, mirroring how a browser's
local storage keeps one string per key. Writes go to a temporary file
first and are moved into place, so a crash never leaves a half-written
collection behind.
"""

import os
import tempfile
from pathlib import Path
from typing import Iterable, Optional

from ledgerbook.services.storage.interface import KeyValueStore, StorageError


SUFFIX = ".json"


class JsonFileKeyValueStore(KeyValueStore):
    """
    File-per-key store rooted at `data_dir`.
    
    Keys must be plain names; path separators are rejected.
    """
    
    def __init__(self, data_dir: Path):
        self._data_dir = Path(data_dir)
    
    @property
    def data_dir(self) -> Path:
        return self._data_dir
    
    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}{SUFFIX}"
    
    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}")
    
    def write(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._data_dir, prefix=f".{key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {key}: {e}")
    
    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {key}: {e}")
    
    def keys(self) -> Iterable[str]:
        if not self._data_dir.is_dir():
            return []
        return sorted(
            p.name[: -len(SUFFIX)]
            for p in self._data_dir.iterdir()
            if p.is_file() and p.name.endswith(SUFFIX) and not p.name.startswith(".")
        )
