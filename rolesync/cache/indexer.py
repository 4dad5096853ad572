"""
Indexer: thread-safe keyed store with a secondary index by namespace.

Written from watch callbacks, read from controller workers. Upserts are
last-write-wins by key. Entries are hints: a missing entry only means the
cache has not seen the object.
"""

import threading
from typing import Any, Dict, Generic, List, Optional, Set, Tuple, TypeVar

from rolesync.errors import NotFoundError
from rolesync.keys import format_key, key_for

T = TypeVar("T")


class Indexer(Generic[T]):
    """In-memory indexed cache, one per controller instance."""

    def __init__(self, kind: str = "object"):
        self.kind = kind
        self._lock = threading.RLock()
        self._items: Dict[str, T] = {}
        self._by_namespace: Dict[str, Set[str]] = {}

    def add(self, obj: T) -> str:
        """Insert or replace an object. Returns its key."""
        key = key_for(obj)
        namespace = obj.metadata.namespace
        with self._lock:
            self._items[key] = obj
            self._by_namespace.setdefault(namespace, set()).add(key)
        return key

    update = add

    def delete(self, obj: Any) -> bool:
        """Remove an object. Returns False if it was not cached."""
        return self.delete_by_key(key_for(obj))

    def delete_by_key(self, key: str) -> bool:
        with self._lock:
            obj = self._items.pop(key, None)
            if obj is None:
                return False
            keys = self._by_namespace.get(obj.metadata.namespace)
            if keys is not None:
                keys.discard(key)
                if not keys:
                    del self._by_namespace[obj.metadata.namespace]
            return True

    def get_by_key(self, key: str) -> Tuple[Optional[T], bool]:
        with self._lock:
            obj = self._items.get(key)
        return obj, obj is not None

    def get(self, namespace: str, name: str) -> T:
        """Lookup by (namespace, name). Raises NotFoundError if absent."""
        obj, found = self.get_by_key(format_key(namespace, name))
        if not found:
            raise NotFoundError(self.kind, namespace, name)
        return obj

    def by_namespace(self, namespace: str) -> List[T]:
        with self._lock:
            keys = sorted(self._by_namespace.get(namespace, ()))
            return [self._items[k] for k in keys]

    def list_keys(self) -> List[str]:
        with self._lock:
            return sorted(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
