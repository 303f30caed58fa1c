"""Typed access to the Redis key-value store."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta
from typing import Any

import redis

DEFAULT_ADDRESS = "redis:6379"


class KeyNotFound(KeyError):
    """Raised when a key that must exist is missing from the store."""


def _text(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8")
    return value


def _milliseconds(expiration: timedelta | float | int | None) -> int | None:
    if expiration is None:
        return None
    if isinstance(expiration, timedelta):
        ms = int(expiration.total_seconds() * 1000)
    else:
        ms = int(expiration * 1000)
    return ms if ms > 0 else None


class KVStore:
    """Numbers, flags and strings kept in Redis.

    Expirations are timedeltas or seconds; ``None`` or zero keeps the key
    forever.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    def _raw(self, key: str) -> str | None:
        return _text(self._client.get(key))

    def has_key(self, key: str) -> bool:
        return self._client.exists(key) != 0

    def get_num(self, key: str, default: float = 0.0) -> float:
        """Return the key as a float, or ``default`` if it is missing."""
        raw = self._raw(key)
        return default if raw is None else float(raw)

    def get_int(self, key: str, default: int = 0) -> int:
        """Return the key as an integer, or ``default`` if it is missing."""
        raw = self._raw(key)
        return default if raw is None else int(raw)

    def get_bool(self, key: str) -> bool:
        """Return whether the key holds a non-zero integer; missing is False."""
        return self.get_int(key, 0) != 0

    def set_bool(
        self, key: str, value: bool, expiration: timedelta | float | None = None
    ) -> None:
        self._set(key, 1 if value else 0, expiration)

    def get_string(self, key: str) -> str:
        """Return the key's value; raise :class:`KeyNotFound` if it is missing."""
        raw = self._raw(key)
        if raw is None:
            raise KeyNotFound(key)
        return raw

    def set_string(
        self, key: str, value: str, expiration: timedelta | float | None = None
    ) -> None:
        self._set(key, value, expiration)

    def _set(self, key: str, value: Any, expiration: timedelta | float | None) -> None:
        ms = _milliseconds(expiration)
        if ms is None:
            self._client.set(key, value)
        else:
            self._client.set(key, value, px=ms)

    def get_keys(self, patterns: Iterable[str]) -> list[str]:
        """Expand patterns holding ``*`` into matching keys; keep the rest as is."""
        keys: list[str] = []
        for pattern in patterns:
            if "*" in pattern:
                keys.extend(_text(k) for k in self._client.keys(pattern))
            else:
                keys.append(pattern)
        return keys

    def get_values(self, keys: Iterable[str]) -> dict[str, str | None]:
        """Return each key's value, ``None`` for missing ones."""
        keys = list(keys)
        if not keys:
            return {}
        values = self._client.mget(keys)
        return {key: _text(value) for key, value in zip(keys, values)}


def connect(address: str = DEFAULT_ADDRESS) -> KVStore:
    """Open a store on the Redis server at ``host:port``."""
    host, _, port = address.rpartition(":")
    if not host:
        host, port = address, "6379"
    client = redis.Redis(host=host, port=int(port), db=0, decode_responses=True)
    return KVStore(client)