"""
Device-local key/value storage backends for the session store.

Both backends raise StorageError on any failure; callers decide how to degrade.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol

from ptsp_chat.errors import StorageError

DEFAULT_QUOTA_BYTES = 5_242_880


class Storage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...


def _check_quota(key: str, value: str, quota: Optional[int]) -> None:
    if quota is not None and len(value.encode("utf-8")) > quota:
        raise StorageError(f"Quota exceeded writing {key!r} ({quota} bytes)")


class FileStorage:
    """One JSON file per key under ``directory``; writes replace the file atomically."""

    def __init__(self, directory: Path, quota: Optional[int] = DEFAULT_QUOTA_BYTES):
        self._directory = Path(directory).expanduser()
        self._quota = quota

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        try:
            return self.path_for(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read {key!r}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        _check_quota(key, value, self._quota)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, self.path_for(key))
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {key!r}: {e}") from e


class MemoryStorage:
    """In-process storage, for tests and embedding."""

    def __init__(self, quota: Optional[int] = DEFAULT_QUOTA_BYTES):
        self._items: dict[str, str] = {}
        self._quota = quota

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        _check_quota(key, value, self._quota)
        self._items[key] = value
