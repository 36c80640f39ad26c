import hashlib
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional


class KeyValueStore(ABC):
    """Client-local string storage (the guest cart's only persistence)."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemoryKeyValueStore(KeyValueStore):
    def __init__(self) -> None:
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class FileKeyValueStore(KeyValueStore):
    """One file per key; file names are the SHA-1 of the key."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        return self.root / f"{hashlib.sha1(key.encode()).hexdigest()}.json"

    def get(self, key: str) -> Optional[str]:
        try:
            return self._path_for(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        p = self._path_for(key)
        tmp = p.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(p)

    def remove(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)

    def __contains__(self, key: str) -> bool:
        return self._path_for(key).exists()
