"""Key-value persistence for viewer state (watched videos)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, Optional, Protocol, Set, Tuple

from .logging_utils import get_logger

COMPLETED_VIDEOS_KEY = "learning:completedVideos"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})
        self.writes = 0

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value
        self.writes += 1


class JsonFileStore:
    """String store backed by a single JSON object file.

    An unreadable or corrupted file reads as empty; the next write replaces it.
    """

    def __init__(self, path: Path):
        self.path = path

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            get_logger().warning(f"Could not read store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


def read_completed_videos(store: KeyValueStore) -> Tuple[Set[str], bool]:
    """Return the stored completed paths and whether the stored list was clean.

    The list is not clean when it held entries that are not strings or repeated
    a path; the caller rewrites it on its next save.
    """
    log = get_logger()
    try:
        raw = store.get(COMPLETED_VIDEOS_KEY)
        if not raw:
            return set(), True
        parsed = json.loads(raw)
    except Exception as e:
        log.warning(f"Failed to load completion state: {e}")
        return set(), True
    if not isinstance(parsed, list):
        log.warning("Ignoring completion state that is not a list")
        return set(), True
    paths = {p for p in parsed if isinstance(p, str)}
    return paths, len(paths) == len(parsed)


def load_completed_videos(store: KeyValueStore) -> Set[str]:
    return read_completed_videos(store)[0]


def persist_completed_videos(store: KeyValueStore, paths: Iterable[str]) -> bool:
    try:
        store.set(COMPLETED_VIDEOS_KEY, json.dumps(sorted(paths), ensure_ascii=False))
        return True
    except Exception as e:
        get_logger().warning(f"Failed to save completion state: {e}")
        return False


__all__ = [
    "COMPLETED_VIDEOS_KEY",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "load_completed_videos",
    "persist_completed_videos",
    "read_completed_videos",
]
