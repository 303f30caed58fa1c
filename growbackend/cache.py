"""Serving cached answers and refreshing them in the background."""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Callable
from datetime import timedelta

import redis

from growbackend.kv import KeyNotFound, KVStore
from growbackend.pipeline import CACHE_KEY, Handler, HTTPError, Middleware, Request, Response

log = logging.getLogger(__name__)

WORKING_TTL = timedelta(seconds=4)

CacheKeyFn = Callable[[Request], str]

_LOOKUP_ERRORS = (KeyNotFound, redis.RedisError)


def _refresh(store: KVStore, key: str, handler: Handler, request: Request) -> None:
    working_key = f"{key}.working"
    try:
        working = store.get_bool(working_key)
    except (ValueError, redis.RedisError):
        working = False
    if working:
        log.info("skipping work")
        return
    store.set_bool(working_key, True, WORKING_TTL)
    try:
        handler(request)
    except HTTPError as exc:
        log.error("background refresh of %s failed: %s", key, exc)
    finally:
        store.set_bool(working_key, False, None)


def select_cache_result(store: KVStore, cache_key_fn: CacheKeyFn) -> Middleware:
    """Middleware answering from the cache at ``cache.<key>`` when it can.

    A fresh entry is returned as is. When only the ``.last`` copy remains,
    it is returned at once and the handler is run in the background to
    rebuild the cache, unless another refresh is already running. With
    neither, the handler runs normally; the key is left in the context so
    the output step can fill the cache.
    """

    def middleware(handler: Handler) -> Handler:
        def wrapped(request: Request) -> Response:
            key = f"cache.{cache_key_fn(request)}"
            request.context[CACHE_KEY] = key
            try:
                return Response(body=store.get_string(key).encode("utf-8"))
            except _LOOKUP_ERRORS as exc:
                log.error("get_string in select_cache_result %r - key: %s", exc, key)
            last_key = f"{key}.last"
            try:
                last = store.get_string(last_key)
            except _LOOKUP_ERRORS as exc:
                log.error("get_string in select_cache_result %r - last_key: %s", exc, last_key)
                return handler(request)
            background = dataclasses.replace(request, context=dict(request.context))
            threading.Thread(
                target=_refresh,
                args=(store, key, handler, background),
                name=f"cache-refresh-{key}",
                daemon=True,
            ).start()
            return Response(body=last.encode("utf-8"))

        return wrapped

    return middleware