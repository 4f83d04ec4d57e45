import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Hashable, List, Tuple


class Cache(ABC):
    """L1 cache used by the repositories. Implementations must be thread-safe."""

    @abstractmethod
    def get(self, key: Hashable) -> Tuple[Any, bool]:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: Hashable, value: Any) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_all(self) -> List[Tuple[Hashable, Any]]:
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: Hashable) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int:
        raise NotImplementedError


class LRUCache(Cache):
    """Least-recently-used cache holding at most ``capacity`` entries.

    ``get`` and ``set`` both refresh an entry; inserting past capacity evicts
    the least recently used one. ``get_all`` lists entries most recent first.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"cache capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._items: 'OrderedDict[Hashable, Any]' = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            if key not in self._items:
                return None, False
            self._items.move_to_end(key)
            return self._items[key], True

    def set(self, key, value):
        with self._lock:
            self._items[key] = value
            self._items.move_to_end(key)
            while len(self._items) > self.capacity:
                self._items.popitem(last=False)

    def get_all(self):
        with self._lock:
            return list(reversed(self._items.items()))

    def delete(self, key):
        with self._lock:
            self._items.pop(key, None)

    def clear(self):
        with self._lock:
            self._items.clear()

    def __len__(self):
        with self._lock:
            return len(self._items)
