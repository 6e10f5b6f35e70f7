# billager/store.py
"""Durable string key-value store backed by a single JSON file.

Holds ``{key: string}``; callers serialize their own values. Every write
rewrites the whole file through a unique temp file so a crash never leaves it
half-written. All stores opened on the same path share one re-entrant lock;
callers doing a read-modify-write hold ``store.lock`` across it.
"""
import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional

from .errors import PersistenceError
from .utils import logger

_locks: Dict[str, threading.RLock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    key = str(path.resolve())
    with _locks_guard:
        if key not in _locks:
            _locks[key] = threading.RLock()
        return _locks[key]


class KeyValueStore:
    def __init__(self, path):
        self.path = Path(path)
        self.lock = _lock_for(self.path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as e:
            logger.exception("Failed reading store %s", self.path)
            raise PersistenceError(f"Could not read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"Store {self.path} is not a JSON object")
        return data

    def _save(self, data: Dict[str, str]) -> None:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.path.parent,
                prefix=self.path.name + ".", suffix=".tmp", delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(json.dumps(data, ensure_ascii=False))
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.exception("Failed writing store %s", self.path)
            raise PersistenceError(f"Could not write {self.path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        with self.lock:
            return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self.lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def remove_item(self, key: str) -> None:
        with self.lock:
            data = self._load()
            if data.pop(key, None) is not None:
                self._save(data)
