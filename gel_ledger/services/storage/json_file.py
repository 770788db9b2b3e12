"""
JSON File Storage Implementation

DESIGN DECISION: Each key is stored as its own JSON file under a data
directory, because:
1. Users can inspect and back up their ledger with ordinary tools
2. A write only touches the key being changed
3. Writes are atomic (temp file + rename), so a crash never leaves a
   half-written "transactions" file behind

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No multi-key transactions (the ledger writes one key at a time)
"""

import errno
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote, unquote

from gel_ledger.config import get_settings
from gel_ledger.services.storage.interface import (
    KeyValueStorageInterface,
    QuotaExceededError,
    SerializationError,
    StorageError,
)

_SUFFIX = ".json"


class JsonFileStorage(KeyValueStorageInterface):
    """File-per-key storage with an optional total-size quota."""

    def __init__(
        self,
        data_dir: Optional[str] = None,
        quota_bytes: Optional[int] = None,
    ):
        settings = get_settings().storage
        self._dir = Path(data_dir or settings.data_dir)
        self._quota_bytes = quota_bytes

    def _path(self, key: str) -> Path:
        return self._dir / f"{quote(key, safe='')}{_SUFFIX}"

    def _used_bytes(self, excluding: Path) -> int:
        if not self._dir.exists():
            return 0
        return sum(
            p.stat().st_size
            for p in self._dir.glob(f"*{_SUFFIX}")
            if p != excluding
        )

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read '{key}': {e}")

        try:
            return json.loads(raw)
        except ValueError as e:
            raise SerializationError(f"Stored value for '{key}' is not valid JSON: {e}")

    def set(self, key: str, value: Any) -> None:
        try:
            encoded = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Value is not JSON-serializable: {e}")

        path = self._path(key)
        if self._quota_bytes is not None:
            needed = len(encoded.encode("utf-8"))
            if self._used_bytes(excluding=path) + needed > self._quota_bytes:
                raise QuotaExceededError(
                    f"Storing '{key}' would exceed the {self._quota_bytes} byte quota"
                )

        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._dir, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(encoded)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            if e.errno in (errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)):
                raise QuotaExceededError(f"No space left to store '{key}': {e}")
            raise StorageError(f"Failed to write '{key}': {e}")

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove '{key}': {e}")

    def keys(self) -> list[str]:
        if not self._dir.exists():
            return []
        return sorted(
            unquote(p.name[: -len(_SUFFIX)])
            for p in self._dir.glob(f"*{_SUFFIX}")
        )
