"""Persistent cache of star-chart image URLs.

Keys are ``ChartRequest.cache_key()`` strings, values are image URLs. Entries
never expire and are never evicted; writing an existing key overwrites it.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class ChartCache(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, url: str) -> None: ...


class MemoryChartCache:
    """Dict-backed cache. Lives as long as the process."""

    def __init__(self, entries: dict[str, str] | None = None) -> None:
        self.entries: dict[str, str] = dict(entries or {})

    def get(self, key: str) -> str | None:
        return self.entries.get(key) or None

    def set(self, key: str, url: str) -> None:
        self.entries[key] = url


_path_locks: dict[Path, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    with _path_locks_guard:
        return _path_locks.setdefault(path.resolve(), threading.Lock())


class JsonFileChartCache:
    """Cache persisted as a single JSON object on disk.

    Reads are served from an in-memory copy that is reloaded whenever the
    file is replaced or modified. Each ``set`` re-reads the file under a
    per-path lock, merges the new entry, and rewrites it (temp file, then
    ``os.replace``), so instances sharing a path never drop each other's
    entries. An unreadable or malformed file is logged and treated as empty.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = _lock_for(self.path)
        self._entries: dict[str, str] = {}
        self._signature: tuple[int, int, int] | None = None

    def _stat_signature(self) -> tuple[int, int, int] | None:
        try:
            st = self.path.stat()
        except FileNotFoundError:
            return None
        return st.st_ino, st.st_mtime_ns, st.st_size

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable chart cache at %s", self.path)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Chart cache at %s is not an object", self.path)
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, str) and v}

    def _refresh(self) -> None:
        signature = self._stat_signature()
        if signature != self._signature:
            self._entries = self._read()
            self._signature = signature

    def get(self, key: str) -> str | None:
        with self._lock:
            self._refresh()
            return self._entries.get(key)

    def set(self, key: str, url: str) -> None:
        with self._lock:
            entries = self._read()
            entries[key] = url
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(entries, f, indent=0, sort_keys=True)
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
            self._entries = entries
            self._signature = self._stat_signature()
