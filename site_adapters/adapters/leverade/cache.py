"""Response cache keyed by request path."""

from typing import Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class ResponseCache(Generic[T]):
    """Unbounded in-memory cache, one entry per exact request path.

    Entries never expire; they are only replaced through ``set`` or dropped
    through ``invalidate``.
    """

    def __init__(self):
        self._entries: Dict[str, T] = {}

    def get(self, path: str) -> Optional[T]:
        return self._entries.get(path)

    def set(self, path: str, value: T) -> None:
        self._entries[path] = value

    def invalidate(self, path: str) -> bool:
        """Drop one entry. Returns True if it existed."""
        return self._entries.pop(path, None) is not None

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def __contains__(self, path: str) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)
