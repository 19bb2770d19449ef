"""Explicit time-to-live cache passed to the components that need one."""

from typing import Any, Callable, Hashable, Optional

from .time import monotonic


class TTLCache:
    """
    Small key/value cache whose entries expire after ``ttl_seconds``.

    Instances are owned by the caller and handed to collaborators by
    reference; there is no module-level cache.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, Any]] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        """Drop one entry, or every entry when no key is given."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
