from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Optional


class LocalKeyValueStore:
    """Persistent string key-value storage, one JSON file per key.

    Note: files may be shared with other processes; the last writer wins.
    """

    def __init__(self, directory: str | os.PathLike):
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    @property
    def directory(self) -> Path:
        return self._dir

    @property
    def lock(self) -> threading.RLock:
        """Guards read-modify-write sequences inside this process."""
        return self._lock

    def _path(self, key: str) -> Path:
        return self._dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def get_json(self, key: str, default: Any = None) -> Any:
        text = self.get(key)
        if text is None:
            return default
        return json.loads(text)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(value)
                os.replace(tmp_name, self._path(key))
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value, ensure_ascii=False))

    def remove(self, key: str) -> None:
        with self._lock:
            try:
                self._path(key).unlink()
            except FileNotFoundError:
                pass

    def contains(self, key: str) -> bool:
        return self._path(key).exists()

    def version(self, key: str) -> Optional[int]:
        """Change token for ``key`` (mtime in ns), ``None`` when absent."""
        try:
            return self._path(key).stat().st_mtime_ns
        except FileNotFoundError:
            return None
