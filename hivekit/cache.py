"""Pluggable key/value caches with a registry of named adapters."""

from __future__ import annotations

import json
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

import redis

DEFAULT_EVERY = 60
DEFAULT_KEY = "beecacheRedis"


class Cache(ABC):
    """Interface every cache adapter implements."""

    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the value stored under ``key`` or None."""

    @abstractmethod
    def put(self, key: str, val: Any, timeout: int) -> None:
        """Store ``val`` under ``key`` for ``timeout`` seconds."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``."""

    @abstractmethod
    def incr(self, key: str) -> None:
        """Increase the integer stored under ``key`` by one."""

    @abstractmethod
    def decr(self, key: str) -> None:
        """Decrease the integer stored under ``key`` by one."""

    @abstractmethod
    def is_exist(self, key: str) -> bool:
        """Tell whether ``key`` is present."""

    @abstractmethod
    def clear_all(self) -> None:
        """Drop every entry."""

    @abstractmethod
    def start_and_gc(self, config: str) -> None:
        """Configure the adapter from a JSON string and start it."""


_adapters: dict[str, Cache] = {}


def register(name: str, adapter: Cache) -> None:
    """Make ``adapter`` available under ``name``."""
    if adapter is None:
        raise ValueError("cache: Register adapter is nil")
    if name in _adapters:
        raise ValueError(f"cache: Register called twice for adapter {name}")
    _adapters[name] = adapter


def new_cache(adapter_name: str, config: str) -> Cache:
    """Start the adapter registered as ``adapter_name`` and return it."""
    try:
        adapter = _adapters[adapter_name]
    except KeyError:
        raise ValueError(
            f"cache: unknown adaptername {adapter_name!r} (forgotten import?)"
        ) from None
    adapter.start_and_gc(config)
    return adapter


def _json_object(config: str) -> dict[str, Any]:
    """Decode ``config`` as a JSON object; anything else yields an empty dict."""
    try:
        decoded = json.loads(config)
    except (TypeError, ValueError):
        return {}
    return decoded if isinstance(decoded, dict) else {}


@dataclass
class MemoryItem:
    """A value held by :class:`MemoryCache` with its timestamp and lifetime."""

    val: Any
    last_access: float
    expired: int


class MemoryCache(Cache):
    """In-process cache whose entries expire after a number of seconds."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._items: dict[str, MemoryItem] = {}
        self._stop: threading.Event | None = None
        self.every = 0

    def _age(self, item: MemoryItem) -> int:
        return int(self._clock()) - int(item.last_access)

    def get(self, name: str) -> Any:
        with self._lock:
            item = self._items.get(name)
            if item is None:
                return None
            if self._age(item) > item.expired:
                del self._items[name]
                return None
            return item.val

    def put(self, name: str, value: Any, expired: int) -> None:
        with self._lock:
            if name in self._items:
                raise KeyError("the key is exist")
            self._items[name] = MemoryItem(value, self._clock(), expired)

    def delete(self, name: str) -> None:
        with self._lock:
            if name not in self._items:
                raise KeyError("key not exist")
            del self._items[name]

    def _step(self, key: str, delta: int) -> None:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                raise KeyError("key not exist")
            if isinstance(item.val, bool) or not isinstance(item.val, int):
                raise TypeError("item val is not int int64 int32")
            item.val += delta

    def incr(self, key: str) -> None:
        self._step(key, 1)

    def decr(self, key: str) -> None:
        self._step(key, -1)

    def is_exist(self, name: str) -> bool:
        with self._lock:
            return name in self._items

    def clear_all(self) -> None:
        with self._lock:
            self._items = {}

    def start_and_gc(self, config: str) -> None:
        cf = _json_object(config)
        interval = cf.get("interval", DEFAULT_EVERY)
        if isinstance(interval, bool) or not isinstance(interval, int):
            raise ValueError(f"invalid interval: {interval!r}")
        if self._stop is not None:
            self._stop.set()
        self.every = interval
        self._stop = threading.Event()
        if interval >= 1:
            threading.Thread(
                target=self._vacuum, args=(self._stop, interval), daemon=True
            ).start()

    def _vacuum(self, stop: threading.Event, interval: int) -> None:
        while not stop.wait(interval):
            with self._lock:
                names = list(self._items)
            for name in names:
                self._item_expired(name)

    def _item_expired(self, name: str) -> bool:
        with self._lock:
            item = self._items.get(name)
            if item is None:
                return True
            if self._age(item) >= item.expired:
                del self._items[name]
                return True
            return False


class RedisCache(Cache):
    """Cache kept in a single Redis hash."""

    def __init__(self) -> None:
        self.key = DEFAULT_KEY
        self.conninfo = ""
        self._client: redis.Redis | None = None

    def _connect_init(self) -> redis.Redis:
        host, sep, port = self.conninfo.rpartition(":")
        if not sep:
            host, port = self.conninfo, "6379"
        return redis.Redis(
            host=host or "localhost",
            port=int(port or 6379),
            socket_connect_timeout=5,
        )

    @property
    def _conn(self) -> redis.Redis:
        if self._client is None:
            self._client = self._connect_init()
        return self._client

    def get(self, key: str) -> Any:
        try:
            return self._conn.hget(self.key, key)
        except redis.RedisError:
            return None

    def put(self, key: str, val: Any, timeout: int) -> None:
        self._conn.hset(self.key, key, val)

    def delete(self, key: str) -> None:
        self._conn.hdel(self.key, key)

    def is_exist(self, key: str) -> bool:
        try:
            return bool(self._conn.hexists(self.key, key))
        except redis.RedisError:
            return False

    def incr(self, key: str) -> None:
        self._conn.hincrby(self.key, key, 1)

    def decr(self, key: str) -> None:
        self._conn.hincrby(self.key, key, -1)

    def clear_all(self) -> None:
        self._conn.delete(self.key)

    def start_and_gc(self, config: str) -> None:
        cf = _json_object(config)
        key = cf.get("key", DEFAULT_KEY)
        if "conn" not in cf:
            raise ValueError("config has no conn key")
        self.key = key
        self.conninfo = cf["conn"]
        self._client = self._connect_init()
        try:
            self._client.ping()
        except redis.RedisError as exc:
            self._client = None
            raise ConnectionError("dial tcp conn error") from exc


register("memory", MemoryCache())
register("redis", RedisCache())