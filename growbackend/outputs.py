"""Final handlers that write JSON answers."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from http import HTTPStatus
from typing import Any
from uuid import UUID

from growbackend.kv import KVStore
from growbackend.models import format_time
from growbackend.pipeline import (
    CACHE_KEY,
    INSERTED_ID,
    SELECT_RESULT,
    Handler,
    HTTPError,
    Request,
    Response,
)

log = logging.getLogger(__name__)

CACHE_TTL = timedelta(minutes=1)
CACHE_LAST_TTL = timedelta(minutes=20)

_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _default(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return format_time(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _encode(value: Any) -> bytes:
    """Compact JSON with HTML-sensitive characters escaped, ending in a newline."""
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=_default)
    for char, escaped in _ESCAPES.items():
        text = text.replace(char, escaped)
    return (text + "\n").encode("utf-8")


def _json_response(value: Any, where: str) -> Response:
    try:
        body = _encode(value)
    except (TypeError, ValueError) as exc:
        log.error("json encoding in %s %s - %r", where, exc, value)
        raise HTTPError(HTTPStatus.INTERNAL_SERVER_ERROR, str(exc)) from exc
    return Response(body=body, headers={"Content-Type": "application/json"})


def output_object_id(request: Request) -> Response:
    """Answer with the id of the object just inserted."""
    inserted = request.context[INSERTED_ID]
    return _json_response({"id": str(inserted)}, "output_object_id")


def output_ok(request: Request) -> Response:
    """Answer with ``{"status":"OK"}``."""
    return _json_response({"status": "OK"}, "output_ok")


def output_select_one_result(request: Request) -> Response:
    """Answer with the single selected object."""
    return _json_response(request.context[SELECT_RESULT], "output_select_one_result")


def output_result(name: str, store: KVStore | None = None) -> Handler:
    """Return a handler answering ``{name: results}``.

    When the request carries a cache key and a store is given, the answer
    is also cached under that key for one minute and under ``<key>.last``
    for twenty minutes.
    """

    def handler(request: Request) -> Response:
        response = _json_response(
            {name: request.context.get(SELECT_RESULT)}, "output_result"
        )
        cache_key = request.context.get(CACHE_KEY)
        if store is not None and isinstance(cache_key, str):
            data = response.body.decode("utf-8")
            store.set_string(cache_key, data, CACHE_TTL)
            store.set_string(f"{cache_key}.last", data, CACHE_LAST_TTL)
        return response

    return handler