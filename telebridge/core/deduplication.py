"""
Bounded in-memory key sets used for deduplication and retraction tracking.
Entries are kept in insertion order and the oldest ones are evicted first.
"""
import logging
from collections import OrderedDict
from typing import Iterator

logger = logging.getLogger(__name__)

DEFAULT_MAX_KEYS = 1000


class BoundedKeySet:
    """Set of relay keys that never holds more than ``maxlen`` entries."""

    def __init__(self, maxlen: int = DEFAULT_MAX_KEYS, name: str = "keys"):
        if maxlen < 1:
            raise ValueError("maxlen must be positive")
        self.maxlen = maxlen
        self.name = name
        self._keys: "OrderedDict[str, None]" = OrderedDict()

    def add(self, key: str) -> None:
        """Record a key. Re-adding a known key keeps its original position."""
        if key in self._keys:
            return
        self._keys[key] = None
        self._evict()

    def discard(self, key: str) -> None:
        self._keys.pop(key, None)

    def clear(self) -> None:
        self._keys.clear()

    def _evict(self) -> None:
        evicted = 0
        while len(self._keys) > self.maxlen:
            self._keys.popitem(last=False)
            evicted += 1
        if evicted:
            logger.debug(f"Evicted {evicted} oldest entries from {self.name} set")

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)

    def __repr__(self) -> str:
        return f"BoundedKeySet(name={self.name!r}, size={len(self)}, maxlen={self.maxlen})"
