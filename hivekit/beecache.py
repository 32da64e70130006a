"""A small in-process cache with access-time based expiry."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

DEFAULT_EVERY = 60


@dataclass
class BeeItem:
    """A cached value with the time it was last read."""

    val: Any
    last_access: float
    expired: int
    clock: Callable[[], float] = field(default=time.time, repr=False, compare=False)

    def access(self) -> Any:
        """Mark the item as read now and return its value."""
        self.last_access = self.clock()
        return self.val


class BeeCache:
    """Cache that drops items not read for longer than their lifetime."""

    def __init__(self, every: int = DEFAULT_EVERY, clock: Callable[[], float] = time.time) -> None:
        self.every = every
        self._clock = clock
        self._lock = threading.RLock()
        self._items: dict[str, BeeItem] | None = None
        self._stop: threading.Event | None = None

    def get(self, name: str) -> Any:
        with self._lock:
            if self._items is None:
                return None
            item = self._items.get(name)
            return None if item is None else item.access()

    def put(self, name: str, value: Any, expired: int) -> None:
        with self._lock:
            if self._items is None:
                raise RuntimeError("cache is not started")
            if name in self._items:
                raise KeyError("the key is exist")
            self._items[name] = BeeItem(value, self._clock(), expired, self._clock)

    def delete(self, name: str) -> bool:
        """Remove ``name``; return whether it was present."""
        with self._lock:
            if not self._items or name not in self._items:
                return False
            del self._items[name]
            return True

    def items(self) -> dict[str, BeeItem] | None:
        """Return the live mapping of cached items."""
        return self._items

    def is_exist(self, name: str) -> bool:
        with self._lock:
            return self._items is not None and name in self._items

    def start(self) -> None:
        """Reset the store and begin periodic expiry checks."""
        if self._stop is not None:
            self._stop.set()
        with self._lock:
            self._items = {}
        self._stop = threading.Event()
        if self.every >= 1:
            threading.Thread(
                target=self._vacuum, args=(self._stop, self.every), daemon=True
            ).start()

    def _vacuum(self, stop: threading.Event, interval: int) -> None:
        while not stop.wait(interval):
            with self._lock:
                if self._items is None:
                    return
                names = list(self._items)
            for name in names:
                self._item_expired(name)

    def _item_expired(self, name: str) -> bool:
        with self._lock:
            if self._items is None:
                return True
            item = self._items.get(name)
            if item is None:
                return True
            if round(self._clock() - item.last_access) >= item.expired:
                del self._items[name]
                return True
            return False