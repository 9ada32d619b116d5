"""Key-value stores the metadata cache is written against.

Contract: `read(key)` returns the stored record or None, `write(key, value,
ttl)` stores a JSON-compatible record for `ttl` seconds, `delete(key)`
removes it and reports whether anything was there.
"""

from __future__ import annotations

import copy
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple


class BaseCacheStore:
    name: str = "base"

    def read(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def write(self, key: str, value: Any, ttl: Optional[float]) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        raise NotImplementedError


class InMemoryStore(BaseCacheStore):
    name = "memory"

    def __init__(self, *, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._data: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> Optional[Any]:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            value, expires_at = item
            if expires_at is not None and self._clock() >= expires_at:
                del self._data[key]
                return None
            return copy.deepcopy(value)

    def write(self, key: str, value: Any, ttl: Optional[float]) -> None:
        expires_at = None if ttl is None else self._clock() + ttl
        with self._lock:
            self._data[key] = (copy.deepcopy(value), expires_at)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
